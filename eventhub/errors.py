"""
Domain Errors
Every expected outcome the engines can refuse with, plus the storage
failure wrapper. The HTTP layer renders them through register_error_handlers.
"""
import logging

from flask import jsonify
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from eventhub.extensions import db

logger = logging.getLogger(__name__)


class EventHubError(Exception):
    """Base class for domain errors"""
    code = "ERROR"
    status = 400
    default_message = "Request could not be completed"

    def __init__(self, message=None, details=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self):
        payload = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class NotFound(EventHubError):
    code = "NOT_FOUND"
    status = 404
    default_message = "Resource not found"


class CapacityExceeded(EventHubError):
    code = "CAPACITY_EXCEEDED"
    status = 409
    default_message = "Event is at full capacity"


class AlreadyRegistered(EventHubError):
    code = "ALREADY_REGISTERED"
    status = 409
    default_message = "Already registered for this event"


class AlreadySubmitted(EventHubError):
    code = "ALREADY_SUBMITTED"
    status = 409
    default_message = "You have already attempted this quiz"


class NotEligible(EventHubError):
    code = "NOT_ELIGIBLE"
    status = 403
    default_message = "You are not eligible to register for this event"


class InvalidState(EventHubError):
    code = "INVALID_STATE"
    status = 409
    default_message = "Operation not allowed in the current state"


class AlreadyCheckedIn(EventHubError):
    code = "ALREADY_CHECKED_IN"
    status = 409
    default_message = "Already checked in"


class QuizNotActive(EventHubError):
    code = "QUIZ_NOT_ACTIVE"
    status = 400
    default_message = "Quiz is not active"


class InvalidInput(EventHubError):
    code = "INVALID_INPUT"
    status = 400
    default_message = "Invalid input"


class Unauthorized(EventHubError):
    code = "UNAUTHORIZED"
    status = 401
    default_message = "Authentication required"


class Forbidden(EventHubError):
    code = "FORBIDDEN"
    status = 403
    default_message = "Not authorized"


class StorageError(EventHubError):
    code = "STORAGE_ERROR"
    status = 500
    default_message = "A storage error occurred"


def _error_response(error):
    return jsonify({"success": False, "error": error.to_dict()}), error.status


def register_error_handlers(app):
    """Map domain, validation and storage errors to JSON responses"""

    @app.errorhandler(EventHubError)
    def handle_domain_error(error):
        if error.status >= 500:
            logger.error("%s: %s", error.code, error.message)
        return _error_response(error)

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        details = [
            {"field": ".".join(str(p) for p in e["loc"]), "message": e["msg"]}
            for e in error.errors()
        ]
        return _error_response(InvalidInput("Request body is invalid", details))

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(error):
        db.session.rollback()
        logger.exception("Unhandled storage error")
        return _error_response(StorageError())

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({
            "success": False,
            "error": {"code": error.name.upper().replace(" ", "_"), "message": error.description},
        }), error.code
