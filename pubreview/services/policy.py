"""Authorization policy.

Every role, ownership and status rule lives here as a pure function of the
acting user (``None`` for anonymous callers) and the target resource. Routes
and services consult these functions instead of repeating role checks, and
call :func:`require` to turn a refusal into an :class:`AuthorizationError`.
"""
from pubreview.errors import AuthorizationError
from pubreview.models import PublicationStatus, Role

OWNER_EDITABLE_STATUSES = frozenset({PublicationStatus.PENDING_REVIEW, PublicationStatus.NEEDS_CORRECTION})
REVIEW_OUTCOMES = frozenset({
    PublicationStatus.PUBLISHED, PublicationStatus.REJECTED, PublicationStatus.NEEDS_CORRECTION,
})


def _role(actor):
    return actor.role if actor is not None else None


def is_owner(actor, publication):
    return actor is not None and publication.publisher_id == actor.id


def require(allowed, message='Not authorized'):
    if not allowed:
        raise AuthorizationError(message)


# ==================== Users ====================

def can_assign_role_at_registration(actor):
    """Only an authenticated admin chooses the role of a new account."""
    return _role(actor) == Role.ADMIN


def can_provision_reviewer(actor):
    return _role(actor) == Role.ADMIN


def can_manage_users(actor):
    return _role(actor) == Role.ADMIN


def can_delete_user(actor, user):
    return can_manage_users(actor) and actor.id != user.id


def can_change_role(actor, user, new_role, admin_count):
    """An admin may not demote themselves while they are the only admin."""
    if not can_manage_users(actor):
        return False
    if actor.id == user.id and user.role == Role.ADMIN and new_role != Role.ADMIN:
        return admin_count > 1
    return True


# ==================== Publications ====================

def can_create_publication(actor):
    return _role(actor) in (Role.USER, Role.ADMIN)


def can_view_publication(actor, publication):
    if publication.status == PublicationStatus.PUBLISHED:
        return True
    if actor is None:
        return False
    if is_owner(actor, publication) or actor.role == Role.ADMIN:
        return True
    if actor.role == Role.REVIEWER:
        # Any reviewer may open the pending queue; other statuses only for the assigned reviewer.
        return (publication.status == PublicationStatus.PENDING_REVIEW
                or publication.reviewed_by_id == actor.id)
    return False


def can_list_own(actor):
    return _role(actor) in (Role.USER, Role.ADMIN)


def review_queue_statuses(actor):
    role = _role(actor)
    if role == Role.ADMIN:
        return (PublicationStatus.PENDING_REVIEW, PublicationStatus.NEEDS_CORRECTION)
    if role == Role.REVIEWER:
        return (PublicationStatus.PENDING_REVIEW,)
    return ()


def can_view_review_queue(actor):
    return bool(review_queue_statuses(actor))


def can_list_all(actor):
    return _role(actor) == Role.ADMIN


def can_update_publication(actor, publication):
    if actor is None:
        return False
    if actor.role == Role.ADMIN:
        return True
    return is_owner(actor, publication) and publication.status in OWNER_EDITABLE_STATUSES


def can_delete_publication(actor, publication):
    """Owner path: anything but a published record."""
    return is_owner(actor, publication) and publication.status != PublicationStatus.PUBLISHED


def can_admin_delete_publication(actor):
    return _role(actor) == Role.ADMIN


def can_act_as_reviewer(actor):
    return _role(actor) in (Role.REVIEWER, Role.ADMIN)


def can_review(actor, publication):
    if not can_act_as_reviewer(actor):
        return False
    if publication.status == PublicationStatus.PENDING_REVIEW:
        return True
    return actor.role == Role.ADMIN and publication.status == PublicationStatus.NEEDS_CORRECTION
