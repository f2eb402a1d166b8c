"""Service layer shared helpers."""
import logging

from flask_babel import gettext as _
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from pubreview.errors import ConflictError, StorageError, ValidationError
from pubreview.extensions import db

logger = logging.getLogger(__name__)


def text_value(value, field):
    """Trimmed text of a submitted field; a missing value reads as ''."""
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValidationError(_('%(field)s must be a string.', field=field))
    return value.strip()


def commit(conflict_message='Conflicting update, please refresh and retry.'):
    """Commit the session, translating database failures into domain errors.

    Unique constraint violations and lost optimistic-concurrency races become
    :class:`ConflictError`; any other database failure is logged and raised
    as :class:`StorageError`. The session is rolled back in every case.
    """
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(conflict_message)
    except StaleDataError:
        db.session.rollback()
        raise ConflictError('Publication was modified concurrently, please refresh and retry.')
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Database commit failed: %s", e)
        raise StorageError('Database error')
