"""JSON response envelopes and conversion of raised errors into error responses."""

from __future__ import annotations

import traceback
from typing import Any

import flask

from helphub.errors import AppError, status_for
from helphub.models import ErrorResponse, FieldError, MetaData, Response, ValidationErrors

_UNKNOWN_ERROR = "Unknown server error"
_INTERNAL_SERVER_ERROR = 500


def success_response(status_code: int, data: Any, meta_data: MetaData | None = None) -> flask.Response:
    """Build a successful JSON response carrying ``data``."""
    response = flask.jsonify(Response(ok=True, meta_data=meta_data, data=data).to_dict())
    response.status_code = status_code
    return response


def error_response(err: ErrorResponse) -> flask.Response:
    """Build a failed JSON response whose status is the error's code."""
    response = flask.jsonify(Response(ok=False, error=err).to_dict())
    response.status_code = err.code
    return response


def error_fields(err: BaseException | None) -> list[FieldError] | None:
    """Return one field error per failed field, or None if ``err`` has no fields."""
    if isinstance(err, ValidationErrors):
        return [FieldError(name, err.errors[name]) for name in sorted(err.errors)]
    return None


def cast_error_response(err: BaseException, debug: bool = False) -> ErrorResponse:
    """Turn a raised error into the error details sent to the client."""
    if not isinstance(err, AppError):
        return ErrorResponse(code=_INTERNAL_SERVER_ERROR, message=_UNKNOWN_ERROR)

    code = status_for(err.error_type)
    if code is None:
        response = ErrorResponse(code=_INTERNAL_SERVER_ERROR, message=_UNKNOWN_ERROR)
    else:
        response = ErrorResponse(code=code, message=err.message, field_error=error_fields(err.cause))

    if debug:
        response.description = f"Error: {err}"
        response.stack_trace = "".join(traceback.format_exception(type(err), err, err.__traceback__))
    return response


def install_error_handler(app: flask.Flask, debug: bool = False) -> None:
    """Make ``app`` answer raised errors with JSON error responses."""

    def handle_app_error(exc: AppError) -> flask.Response:
        return error_response(cast_error_response(exc, debug))

    def handle_unexpected(exc: BaseException) -> flask.Response:
        original = getattr(exc, "original_exception", None) or exc
        return error_response(cast_error_response(original, debug))

    app.register_error_handler(AppError, handle_app_error)
    app.register_error_handler(_INTERNAL_SERVER_ERROR, handle_unexpected)