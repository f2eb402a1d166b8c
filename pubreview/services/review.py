"""Review state machine for publications."""
import enum
import logging
from datetime import datetime

from flask_babel import gettext as _

from pubreview.errors import NotFoundError, StateError, ValidationError
from pubreview.extensions import db
from pubreview.models import Publication, PublicationStatus
from pubreview.services import commit, policy, text_value

logger = logging.getLogger(__name__)


class Trigger(str, enum.Enum):
    CREATE = 'create'
    APPROVE = 'approve'
    REJECT = 'reject'
    REQUEST_CORRECTION = 'request_correction'
    RESUBMIT = 'resubmit'


# (current status, trigger) -> next status. Anything missing is illegal.
TRANSITIONS = {
    (None, Trigger.CREATE): PublicationStatus.PENDING_REVIEW,
    (PublicationStatus.PENDING_REVIEW, Trigger.APPROVE): PublicationStatus.PUBLISHED,
    (PublicationStatus.PENDING_REVIEW, Trigger.REJECT): PublicationStatus.REJECTED,
    (PublicationStatus.PENDING_REVIEW, Trigger.REQUEST_CORRECTION): PublicationStatus.NEEDS_CORRECTION,
    (PublicationStatus.NEEDS_CORRECTION, Trigger.APPROVE): PublicationStatus.PUBLISHED,
    (PublicationStatus.NEEDS_CORRECTION, Trigger.REJECT): PublicationStatus.REJECTED,
    (PublicationStatus.NEEDS_CORRECTION, Trigger.REQUEST_CORRECTION): PublicationStatus.NEEDS_CORRECTION,
    (PublicationStatus.NEEDS_CORRECTION, Trigger.RESUBMIT): PublicationStatus.PENDING_REVIEW,
}

OUTCOME_TRIGGERS = {
    PublicationStatus.PUBLISHED: Trigger.APPROVE,
    PublicationStatus.REJECTED: Trigger.REJECT,
    PublicationStatus.NEEDS_CORRECTION: Trigger.REQUEST_CORRECTION,
}

COMMENTS_REQUIRED = frozenset({PublicationStatus.REJECTED, PublicationStatus.NEEDS_CORRECTION})


def not_pending_error(status):
    return StateError(_('Publication is not currently pending review (status: %(status)s)', status=status.value))


def next_status(current, trigger):
    try:
        return TRANSITIONS[(current, trigger)]
    except KeyError:
        raise not_pending_error(current) if current is not None else StateError(_('Invalid transition'))


def initial_status():
    return next_status(None, Trigger.CREATE)


def parse_outcome(value):
    """Map a requested review status onto one of the allowed outcomes."""
    try:
        outcome = PublicationStatus(value)
    except ValueError:
        outcome = None
    if outcome not in OUTCOME_TRIGGERS:
        allowed = ', '.join(status.value for status in OUTCOME_TRIGGERS)
        raise ValidationError(_('Invalid review status. Must be one of: %(allowed)s', allowed=allowed))
    return outcome


def submit_review(publication_id, actor, target_status, comments):
    """Apply a reviewer decision to a publication.

    Input is validated before the record is touched. The transition is
    written as a single conditional UPDATE keyed on the id and the status the
    caller observed, so of two concurrent reviews only one can succeed; the
    other gets the same "not currently pending review" error as a caller
    reviewing an already decided publication.
    """
    outcome = parse_outcome(target_status)
    comments = text_value(comments, 'reviewerComments')
    if outcome in COMMENTS_REQUIRED and not comments:
        raise ValidationError(_('Reviewer comments required for rejection or correction requests.'))

    publication = db.session.get(Publication, publication_id)
    if publication is None:
        raise NotFoundError(_('Publication not found'))

    policy.require(policy.can_act_as_reviewer(actor))
    observed = publication.status
    if not policy.can_review(actor, publication):
        raise not_pending_error(observed)
    new_status = next_status(observed, OUTCOME_TRIGGERS[outcome])

    updated = (
        Publication.query
        .filter(Publication.id == publication_id, Publication.status == observed)
        .update({
            Publication.status: new_status,
            Publication.reviewer_comments: comments,
            Publication.reviewed_by_id: actor.id,
            Publication.updated_at: datetime.utcnow(),
            Publication.version_id: Publication.version_id + 1,
        }, synchronize_session=False)
    )
    if updated != 1:
        db.session.rollback()
        current = db.session.get(Publication, publication_id)
        logger.info("Review of publication %s by user %s lost a race", publication_id, actor.id)
        raise not_pending_error(current.status if current else observed)

    commit()
    db.session.refresh(publication)
    logger.info("Publication %s moved %s -> %s by user %s",
                publication_id, observed.value, new_status.value, actor.id)
    return publication


def resubmit_if_corrected(publication, actor):
    """Owner edits of a publication awaiting correction send it back for review."""
    if policy.is_owner(actor, publication) and publication.status == PublicationStatus.NEEDS_CORRECTION:
        publication.status = next_status(publication.status, Trigger.RESUBMIT)
        publication.clear_review()
        return True
    return False
