from __future__ import annotations

import logging

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import DomainError
from .responses import error

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    """Single place mapping every failure to the response envelope."""

    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        if e.status_code >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.path, type(e).__name__, e.message)
        return error(e.message or type(e).__name__, e.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return error(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        message = str(e) if app.config.get("DEBUG") else "Internal server error"
        return error(message, 500)
