"""Authentication routes and decorators."""
import logging
from functools import wraps

from flask import Blueprint, g, jsonify, request
from flask_babel import gettext as _

from pubreview.errors import AuthenticationError, AuthorizationError, ValidationError
from pubreview.services import identity

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def request_data():
    """JSON body if there is one, otherwise form fields."""
    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValidationError(_('Request body must be a JSON object.'))
        return data
    return request.form.to_dict()


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip() or None
    return None


def load_current_user(required=True):
    token = _bearer_token()
    if token is None:
        if required:
            raise AuthenticationError(_('Not authorized, no token'))
        return None
    return identity.resolve_session(token)


# ==================== RBAC Decorators (MUST be defined before routes that use them) ====================

def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = load_current_user()
        return f(*args, **kwargs)
    return decorated_function


def login_optional(f):
    """Resolve the caller when a token is sent; anonymous otherwise."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = load_current_user(required=False)
        return f(*args, **kwargs)
    return decorated_function


def role_required(roles):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = load_current_user()
            if user.role.value not in roles:
                logger.warning("User %s with role %s refused access to %s", user.id, user.role.value, request.path)
                raise AuthorizationError(
                    _('User role %(role)s is not authorized to access this route', role=user.role.value))
            g.current_user = user
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    return role_required(['admin'])(f)


def reviewer_required(f):
    return role_required(['admin', 'reviewer'])(f)


def publisher_required(f):
    return role_required(['admin', 'user'])(f)


def session_payload(user, status_code=200):
    body = {'success': True, **user.to_dict(), 'token': identity.issue_token(user)}
    return jsonify(body), status_code


# ==================== Routes ====================

@auth_bp.route('/register', methods=['POST'])
@login_optional
def register():
    data = request_data()
    user = identity.register(
        data.get('username'),
        data.get('email'),
        data.get('password'),
        requested_role=data.get('role'),
        actor=g.current_user,
    )
    return session_payload(user, 201)


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request_data()
    user = identity.authenticate(data.get('email'), data.get('password'))
    return session_payload(user)


@auth_bp.route('/me')
@login_required
def me():
    return jsonify({'success': True, 'data': g.current_user.to_dict()})
