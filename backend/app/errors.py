"""Application error hierarchy and Flask error handlers.

Services raise these; the handlers registered in the app factory turn them
into the standard error envelope from ``app.utils.response``.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from app.utils.response import error_response, server_error

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "BAD_REQUEST"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        result = {"code": self.code, "message": self.message}
        if self.details is not None:
            result["details"] = self.details
        return result


class ValidationError(AppError):
    """Malformed or out-of-range input. Raised before any mutation."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(AppError):
    """Unknown user, pet, record, exercise or companion type."""

    code = "NOT_FOUND"
    status_code = 404


class ConflictError(AppError):
    """Request conflicts with current state (already owned, still locked, ...)."""

    code = "CONFLICT"
    status_code = 400


def register_error_handlers(app):
    """Render AppError subclasses with the standard error envelope."""

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        logger.info(f"{error.__class__.__name__}: {error.message}")
        return error_response(
            error.code, error.message, error.details, status_code=error.status_code
        )

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error: SQLAlchemyError):
        from app import db

        db.session.rollback()
        logger.exception(f"Database error: {error}")
        return server_error()
