"""Authorization policy rules, checked without a database."""
from types import SimpleNamespace

import pytest

from pubreview.errors import AuthorizationError
from pubreview.models import PublicationStatus, Role
from pubreview.services import policy

ALL_STATUSES = list(PublicationStatus)


def make_user(user_id, role):
    return SimpleNamespace(id=user_id, role=role)


def make_publication(status, publisher_id=1, reviewed_by_id=None):
    return SimpleNamespace(status=status, publisher_id=publisher_id, reviewed_by_id=reviewed_by_id)


OWNER = make_user(1, Role.USER)
STRANGER = make_user(2, Role.USER)
REVIEWER = make_user(3, Role.REVIEWER)
OTHER_REVIEWER = make_user(4, Role.REVIEWER)
ADMIN = make_user(5, Role.ADMIN)


def test_require_raises_authorization_error():
    policy.require(True)
    with pytest.raises(AuthorizationError, match='Nope'):
        policy.require(False, 'Nope')


def test_only_admin_manages_users():
    assert policy.can_manage_users(ADMIN)
    assert policy.can_provision_reviewer(ADMIN)
    assert policy.can_assign_role_at_registration(ADMIN)
    for actor in (None, OWNER, REVIEWER):
        assert not policy.can_manage_users(actor)
        assert not policy.can_provision_reviewer(actor)
        assert not policy.can_assign_role_at_registration(actor)


def test_admin_cannot_delete_self():
    assert policy.can_delete_user(ADMIN, OWNER)
    assert not policy.can_delete_user(ADMIN, ADMIN)


def test_sole_admin_cannot_demote_self():
    assert not policy.can_change_role(ADMIN, ADMIN, Role.USER, admin_count=1)
    assert policy.can_change_role(ADMIN, ADMIN, Role.USER, admin_count=2)
    assert policy.can_change_role(ADMIN, ADMIN, Role.ADMIN, admin_count=1)
    assert policy.can_change_role(ADMIN, OWNER, Role.REVIEWER, admin_count=1)


def test_publication_creation_roles():
    assert policy.can_create_publication(OWNER)
    assert policy.can_create_publication(ADMIN)
    assert not policy.can_create_publication(REVIEWER)
    assert not policy.can_create_publication(None)


@pytest.mark.parametrize('actor', [None, OWNER, STRANGER, REVIEWER, ADMIN])
def test_published_is_visible_to_everyone(actor):
    assert policy.can_view_publication(actor, make_publication(PublicationStatus.PUBLISHED))


@pytest.mark.parametrize('status', [s for s in ALL_STATUSES if s != PublicationStatus.PUBLISHED])
def test_unpublished_visibility(status):
    pub = make_publication(status)
    assert policy.can_view_publication(OWNER, pub)
    assert policy.can_view_publication(ADMIN, pub)
    assert not policy.can_view_publication(STRANGER, pub)
    assert not policy.can_view_publication(None, pub)


def test_reviewer_visibility_is_asymmetric():
    pending = make_publication(PublicationStatus.PENDING_REVIEW)
    assert policy.can_view_publication(REVIEWER, pending)
    assert policy.can_view_publication(OTHER_REVIEWER, pending)

    correcting = make_publication(PublicationStatus.NEEDS_CORRECTION, reviewed_by_id=REVIEWER.id)
    assert policy.can_view_publication(REVIEWER, correcting)
    assert not policy.can_view_publication(OTHER_REVIEWER, correcting)


def test_review_queue_scope_by_role():
    assert policy.review_queue_statuses(REVIEWER) == (PublicationStatus.PENDING_REVIEW,)
    assert policy.review_queue_statuses(ADMIN) == (
        PublicationStatus.PENDING_REVIEW, PublicationStatus.NEEDS_CORRECTION)
    assert not policy.can_view_review_queue(OWNER)
    assert not policy.can_view_review_queue(None)


@pytest.mark.parametrize('status,allowed', [
    (PublicationStatus.PENDING_REVIEW, True),
    (PublicationStatus.NEEDS_CORRECTION, True),
    (PublicationStatus.PUBLISHED, False),
    (PublicationStatus.REJECTED, False),
])
def test_owner_update_depends_on_status(status, allowed):
    pub = make_publication(status)
    assert policy.can_update_publication(OWNER, pub) is allowed
    assert policy.can_update_publication(ADMIN, pub)
    assert not policy.can_update_publication(STRANGER, pub)
    assert not policy.can_update_publication(REVIEWER, pub)


@pytest.mark.parametrize('status', ALL_STATUSES)
def test_owner_delete_refused_only_when_published(status):
    pub = make_publication(status)
    assert policy.can_delete_publication(OWNER, pub) is (status != PublicationStatus.PUBLISHED)
    assert not policy.can_delete_publication(STRANGER, pub)
    assert policy.can_admin_delete_publication(ADMIN)
    assert not policy.can_admin_delete_publication(OWNER)


@pytest.mark.parametrize('status', ALL_STATUSES)
def test_review_gating(status):
    pub = make_publication(status)
    pending = status == PublicationStatus.PENDING_REVIEW
    assert policy.can_review(REVIEWER, pub) is pending
    assert policy.can_review(ADMIN, pub) is (pending or status == PublicationStatus.NEEDS_CORRECTION)
    assert not policy.can_review(OWNER, pub)
