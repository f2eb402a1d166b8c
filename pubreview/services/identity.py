"""User accounts: registration, login and administration."""
import logging
import re

from flask_babel import gettext as _
from sqlalchemy import text

from pubreview.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from pubreview.extensions import db
from pubreview.models import Publication, Role, User
from pubreview.services import commit, policy, text_value, tokens

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MIN_PASSWORD_LENGTH = 6


def _duplicate_user():
    return _('User with this email or username already exists')


def is_valid_email(email):
    return bool(EMAIL_RE.match(email))


def _clean_username(username):
    username = text_value(username, 'username')
    if not username:
        raise ValidationError(_('Username is required.'))
    if len(username) > 80:
        raise ValidationError(_('Username cannot be more than 80 characters.'))
    return username


def _clean_email(email):
    email = text_value(email, 'email').lower()
    if not email or not is_valid_email(email):
        raise ValidationError(_('Please provide a valid email.'))
    return email


def _check_password(password):
    if password is not None and not isinstance(password, str):
        raise ValidationError(_('%(field)s must be a string.', field='password'))
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(_('Password must be at least %(n)d characters.', n=MIN_PASSWORD_LENGTH))


def parse_role(value):
    try:
        return Role(value)
    except ValueError:
        raise ValidationError(_('Invalid role. Must be one of: %(roles)s', roles=', '.join(r.value for r in Role)))


def _lock_users():
    """Serialize role decisions that depend on counting users.

    Only PostgreSQL takes a lock, held until the surrounding transaction
    commits. On SQLite the count and the insert that follows are separate
    statements outside one transaction, so two simultaneous first
    registrations there can both become admin.
    """
    if db.session.get_bind().dialect.name == 'postgresql':
        db.session.execute(text('LOCK TABLE users IN SHARE ROW EXCLUSIVE MODE'))


def _create_user(username, email, password, role):
    user = User(username=username, email=email, role=role)
    user.set_password(password)
    db.session.add(user)
    commit(conflict_message=_duplicate_user())
    return user


def register(username, email, password, requested_role=None, actor=None):
    """Self-registration. The first account in an empty store becomes admin."""
    username = _clean_username(username)
    email = _clean_email(email)
    _check_password(password)

    role = Role.USER
    if requested_role and policy.can_assign_role_at_registration(actor):
        role = parse_role(requested_role)

    _lock_users()
    if User.query.count() == 0:
        role = Role.ADMIN
    user = _create_user(username, email, password, role)
    logger.info("Registered user %s (%s) with role %s", user.id, user.username, user.role.value)
    return user


def authenticate(email, password):
    """Return the user for valid credentials; never say which part was wrong."""
    email = text_value(email, 'email').lower()
    if not email or not password:
        raise ValidationError(_('Please provide email and password'))
    if not isinstance(password, str):
        raise ValidationError(_('%(field)s must be a string.', field='password'))
    user = User.query.filter_by(email=email).first()
    if user is None or not user.check_password(password):
        raise AuthenticationError(_('Invalid credentials'))
    return user


def issue_token(user):
    return tokens.generate_token(user.id)


def resolve_session(token):
    """The live user behind a bearer token."""
    user = db.session.get(User, tokens.decode_token(token))
    if user is None:
        raise AuthenticationError(_('Not authorized, user not found'))
    return user


def get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(_('User not found'))
    return user


def list_users(role=None):
    query = User.query
    if role:
        query = query.filter(User.role == parse_role(role))
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def add_reviewer(actor, username, email, password):
    policy.require(policy.can_provision_reviewer(actor))
    if not username or not email or not password:
        raise ValidationError(_('Please provide username, email, and password for the reviewer.'))
    username = _clean_username(username)
    email = _clean_email(email)
    _check_password(password)
    user = _create_user(username, email, password, Role.REVIEWER)
    logger.info("Admin %s added reviewer %s (%s)", actor.id, user.id, user.username)
    return user


def update_user(actor, user_id, username=None, email=None, role=None):
    policy.require(policy.can_manage_users(actor))
    user = get_user(user_id)
    username = _clean_username(username) if username else None
    email = _clean_email(email) if email else None
    new_role = parse_role(role) if role else None

    if new_role is not None and new_role != user.role:
        _lock_users()
        admin_count = User.query.filter(User.role == Role.ADMIN).count()
        policy.require(policy.can_change_role(actor, user, new_role, admin_count),
                       _('Cannot change role of the only admin.'))
        user.role = new_role

    if username:
        user.username = username
    if email:
        user.email = email

    commit(conflict_message=_duplicate_user())
    logger.info("Admin %s updated user %s", actor.id, user.id)
    return user


def delete_user(actor, user_id):
    policy.require(policy.can_manage_users(actor))
    user = get_user(user_id)
    policy.require(policy.can_delete_user(actor, user), _('Admin cannot delete self.'))
    if user.publications.count():
        raise ConflictError(_('User still has publications. Delete or reassign them first.'))

    # Reviews stay on record without a reviewer
    Publication.query.filter_by(reviewed_by_id=user.id).update(
        {Publication.reviewed_by_id: None}, synchronize_session=False)
    db.session.delete(user)
    commit()
    logger.info("Admin %s deleted user %s", actor.id, user_id)
