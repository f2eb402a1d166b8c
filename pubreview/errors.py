"""Domain errors and their JSON rendering at the HTTP boundary."""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class PubReviewError(Exception):
    """Base class for errors the caller is told about."""
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(PubReviewError):
    status_code = 400


class UnsupportedFileType(ValidationError):
    pass


class FileTooLarge(ValidationError):
    pass


class AuthenticationError(PubReviewError):
    status_code = 401


class AuthorizationError(PubReviewError):
    status_code = 403


class NotFoundError(PubReviewError):
    status_code = 404


class ConflictError(PubReviewError):
    status_code = 409


class StateError(ConflictError):
    """A review transition is not allowed from the current status."""


class StorageError(PubReviewError):
    status_code = 500


def error_response(message, status_code):
    return jsonify({'success': False, 'message': message}), status_code


def register_error_handlers(app):
    """Render every error as ``{"success": false, "message": ...}``."""

    @app.errorhandler(PubReviewError)
    def handle_domain_error(error):
        if isinstance(error, StorageError):
            logger.error("Storage failure: %s", error.message)
            return error_response('Server Error', error.status_code)
        return error_response(error.message, error.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return error_response(error.description, error.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception("Unhandled error: %s", error)
        return error_response('Server Error', 500)
