"""Signed bearer tokens for API sessions."""
import logging
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from pubreview.errors import AuthenticationError

logger = logging.getLogger(__name__)

ALGORITHM = 'HS256'


def generate_token(user_id):
    now = datetime.now(timezone.utc)
    claims = {
        'id': user_id,
        'iat': now,
        'exp': now + timedelta(days=current_app.config['TOKEN_TTL_DAYS']),
    }
    return jwt.encode(claims, current_app.config['SECRET_KEY'], algorithm=ALGORITHM)


def decode_token(token):
    """Return the user id carried by ``token``; raise if it is invalid or expired."""
    try:
        claims = jwt.decode(token, current_app.config['SECRET_KEY'], algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError('Not authorized, token expired')
    except jwt.InvalidTokenError as e:
        logger.debug("Rejected token: %s", e)
        raise AuthenticationError('Not authorized, token failed')
    user_id = claims.get('id')
    if not isinstance(user_id, int):
        raise AuthenticationError('Not authorized, token failed')
    return user_id
