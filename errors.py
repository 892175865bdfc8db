"""
errors.py
API exceptions and the Flask handlers that turn them into JSON envelopes.

Service code raises ValidationError / AuthError / NotFoundError.
Anything else escaping a route is logged and answered with a generic 500.
"""

from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from utils import respond

log = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ApiError):
    status_code = 400


class AuthError(ApiError):
    status_code = 401


class NotFoundError(ApiError):
    status_code = 404


def on_failure(message: str):
    """
    Route decorator: unexpected errors become a 500 with `message`.
    The real error only goes to the log.
    """

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except (ApiError, HTTPException):
                raise
            except Exception:
                log.exception("%s (%s %s)", message, request.method, request.path)
                return respond(False, message=message, status=500)

        return wrapper

    return decorator


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def _api_error(e: ApiError):
        if e.status_code >= 500:
            log.error("API error on %s: %s", request.path, e.message)
        return respond(False, message=e.message, status=e.status_code)

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        if e.code == 404:
            return respond(False, message=f"Not found - {request.path}", status=404)
        return respond(False, message=e.description, status=e.code or 500)

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):
        log.exception("Unhandled error on %s %s", request.method, request.path)
        return respond(False, message="Internal server error", status=500)
