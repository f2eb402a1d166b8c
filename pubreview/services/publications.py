"""Create, read, update and delete publications.

Every write here keeps the stored PDF and the record in step: a file stored
for a request that then fails is removed again, a replaced file is only
deleted after the record points at its successor, and deleting a record
removes its file afterwards on a best-effort basis.
"""
import json
import logging

from flask_babel import gettext as _

from pubreview.errors import AuthorizationError, NotFoundError, ValidationError
from pubreview.extensions import db
from pubreview.models import Category, DESCRIPTION_MAX_LENGTH, Publication
from pubreview.services import commit, policy, review, storage, text_value
from pubreview.services.query import parse_date

logger = logging.getLogger(__name__)


# ==================== Metadata validation ====================

def parse_author_names(value):
    """Accept a list or a JSON array string; return the trimmed, non-empty names."""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise ValidationError(_('Author names, if a string, must be a valid JSON array.'))
    if not isinstance(value, (list, tuple)):
        raise ValidationError(_('Author names must be an array or a JSON string representing an array.'))
    if not value or not all(isinstance(name, str) and name.strip() for name in value):
        raise ValidationError(_('Author names must be a non-empty array of non-empty strings.'))
    return [name.strip() for name in value]


def _clean_description(value):
    description = text_value(value, 'description')
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(_('Description cannot be more than %(n)d characters', n=DESCRIPTION_MAX_LENGTH))
    return description


def _clean_category(value):
    try:
        return Category(value)
    except ValueError:
        allowed = ', '.join(c.value for c in Category)
        raise ValidationError(_('Invalid category. Must be one of: %(allowed)s', allowed=allowed))


def _clean_date(value):
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationError(_('Invalid date format for date of publication. Please use a format like YYYY-MM-DD.'))
    return parsed


def _optional_text(value, field):
    return text_value(value, field) or None


def clean_new_metadata(data):
    """Validated column values for a new publication."""
    if not data.get('authorNames'):
        raise ValidationError(_('Author names are required and must be a non-empty array of strings.'))
    author_names = parse_author_names(data['authorNames'])

    title = text_value(data.get('title'), 'title')
    if not title or not data.get('category') or not data.get('dateOfPublication'):
        raise ValidationError(_('Please provide title, category, and date of publication (e.g., YYYY-MM-DD).'))

    return {
        'title': title,
        'description': _clean_description(data.get('description')),
        'author_names': author_names,
        'category': _clean_category(data['category']),
        'doi': _optional_text(data.get('doi'), 'doi'),
        'date_of_publication': _clean_date(data['dateOfPublication']),
        'volume': _optional_text(data.get('volume'), 'volume'),
    }


def clean_metadata_changes(data):
    """Validated column values for a partial update.

    Blank title, category, DOI, date and authors leave the stored value alone;
    description and volume may be cleared by sending an empty value.
    """
    changes = {}
    title = text_value(data.get('title'), 'title')
    if title:
        changes['title'] = title
    if 'description' in data:
        changes['description'] = _clean_description(data.get('description'))
    if data.get('authorNames'):
        changes['author_names'] = parse_author_names(data['authorNames'])
    if data.get('category'):
        changes['category'] = _clean_category(data['category'])
    doi = _optional_text(data.get('doi'), 'doi')
    if doi:
        changes['doi'] = doi
    if data.get('dateOfPublication'):
        changes['date_of_publication'] = _clean_date(data['dateOfPublication'])
    if 'volume' in data:
        changes['volume'] = _optional_text(data.get('volume'), 'volume')
    return changes


# ==================== Operations ====================

def get_publication(publication_id):
    publication = db.session.get(Publication, publication_id)
    if publication is None:
        raise NotFoundError(_('Publication not found'))
    return publication


def get_visible_publication(actor, publication_id):
    publication = get_publication(publication_id)
    policy.require(policy.can_view_publication(actor, publication),
                   _('Not authorized to view this publication details'))
    return publication


def create_publication(actor, data, upload):
    policy.require(policy.can_create_publication(actor))
    storage.validate_upload(upload)

    with storage.staged_content(upload) as reference:
        fields = clean_new_metadata(data)
        publication = Publication(
            content=reference,
            status=review.initial_status(),
            reviewer_comments='',
            publisher=actor,
            **fields,
        )
        db.session.add(publication)
        commit()

    logger.info("User %s submitted publication %s", actor.id, publication.id)
    return publication


def update_publication(actor, publication_id, data, upload=None):
    """Metadata-only update; status changes only through an owner resubmission."""
    publication = get_publication(publication_id)
    if not policy.can_update_publication(actor, publication):
        if policy.is_owner(actor, publication):
            raise AuthorizationError(_(
                'Cannot update publication with status: %(status)s. Contact admin for changes to published work.',
                status=publication.status.value))
        raise AuthorizationError(_('Not authorized to update this publication'))

    changes = clean_metadata_changes(data)
    previous_reference = publication.content

    with storage.staged_content(upload) as new_reference:
        for name, value in changes.items():
            setattr(publication, name, value)
        if new_reference:
            publication.content = new_reference
        resubmitted = review.resubmit_if_corrected(publication, actor)
        commit()

    if new_reference:
        storage.discard(previous_reference)
    if resubmitted:
        logger.info("Publication %s resubmitted for review by user %s", publication.id, actor.id)
    logger.info("User %s updated publication %s", actor.id, publication.id)
    return publication


def _remove(publication):
    # The record is authoritative; a file left behind is only logged
    reference = publication.content
    publication_id = publication.id
    db.session.delete(publication)
    commit()
    storage.discard(reference)
    return publication_id


def delete_publication(actor, publication_id):
    """Owner path: anything but a published publication."""
    publication = get_publication(publication_id)
    if not policy.is_owner(actor, publication):
        raise AuthorizationError(_('Not authorized to delete this publication'))
    if not policy.can_delete_publication(actor, publication):
        raise AuthorizationError(_('Cannot delete a published publication. Contact admin.'))
    _remove(publication)
    logger.info("User %s deleted publication %s", actor.id, publication_id)


def admin_delete_publication(actor, publication_id):
    policy.require(policy.can_admin_delete_publication(actor))
    publication = get_publication(publication_id)
    previous_status = publication.status
    _remove(publication)
    logger.info("Admin %s deleted publication %s (status %s)", actor.id, publication_id, previous_status.value)


def referenced_content():
    """Content references of every stored publication."""
    return {content for (content,) in db.session.query(Publication.content)}

