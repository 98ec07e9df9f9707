"""Global resilience and error-handler registration.

Synopsis:
Registers teardown and error handlers for database rollback safety and a
JSON maintenance response when the database is unreachable.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import DBAPIError, OperationalError

from .extensions import db
from .utils.api_responses import APIResponse

logger = logging.getLogger(__name__)


def register_resilience_handlers(app) -> None:
    """Install global DB rollback and maintenance handlers."""

    @app.teardown_request
    def _rollback_on_error(exc):
        if exc is not None:
            db.session.rollback()

    @app.errorhandler(OperationalError)
    @app.errorhandler(DBAPIError)
    def _db_error_handler(err):
        db.session.rollback()
        logger.error("Database error while handling request: %s", err)
        return APIResponse.error(
            "Service temporarily unavailable. Please try again shortly.",
            status_code=503,
        )

    @app.errorhandler(404)
    def _not_found(_err):
        return APIResponse.not_found()

    @app.errorhandler(405)
    def _method_not_allowed(_err):
        return APIResponse.error("Method not allowed", status_code=405)

    @app.errorhandler(500)
    def _server_error(_err):
        return APIResponse.error("Internal server error", status_code=500)
