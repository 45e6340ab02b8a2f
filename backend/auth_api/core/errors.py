"""RFC 7807 problem+json rendering for every error the API can produce."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from auth_api.core.logger import ensure_request_id

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"

#: Stable ``code`` values for statuses raised outside :class:`APIError`.
STATUS_CODES: dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    413: "payload_too_large",
    415: "unsupported_media_type",
    422: "unprocessable_entity",
    429: "too_many_requests",
    500: "internal_server_error",
    503: "service_unavailable",
}


def _as_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build a Problem Details body.

    :param status: HTTP status code.
    :param code: Machine-readable error code.
    :param message: Client-safe summary, served as ``detail``.
    :param details: Optional structured context (e.g. field errors).
    :returns: Problem dictionary carrying the request id.
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
        "request_id": ensure_request_id(),
    }
    if details:
        problem["details"] = details
    return problem


def problem_response(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    source: str = "APIError",
    exc_info: bool = False,
) -> tuple[Response, int]:
    """
    Log and render one problem.

    4xx are logged as warnings, 5xx as errors.

    :param source: Label of the failure family for the log line.
    :param exc_info: Attach the active traceback to the log record.
    """
    status = int(status)
    problem = _as_problem(status=status, code=code, message=message, details=details)
    level = logging.ERROR if status >= 500 else logging.WARNING
    log.log(
        level,
        "%s: code=%s status=%s msg=%s request_id=%s",
        source,
        code,
        status,
        message,
        problem["request_id"],
        exc_info=exc_info,
    )
    resp = jsonify(problem)
    resp.mimetype = PROBLEM_MIMETYPE
    return resp, status


class APIError(Exception):
    """
    Error rendered as problem+json.

    Parameters
    ----------
    message : str
        Client-facing description.
    status_code : int, optional
        HTTP status, ``400`` by default.
    code : str, optional
        snake_case identifier, ``"bad_request"`` by default.
    details : dict[str, Any] | None, optional
        Structured context such as validation messages.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}


class BadRequest(APIError):
    """400 for malformed or rejected input."""

    def __init__(
        self,
        message: str = "Bad request",
        *,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, status_code=HTTPStatus.BAD_REQUEST, code=code, details=details)


class Unauthorized(APIError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, code="unauthorized")


class Forbidden(APIError):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status_code=HTTPStatus.FORBIDDEN, code="forbidden")


class NotFound(APIError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status_code=HTTPStatus.NOT_FOUND, code="not_found")


class Conflict(APIError):
    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, status_code=HTTPStatus.CONFLICT, code="conflict")


class InternalServerError(APIError):
    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(
            message,
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
        )


def _register_jwt_loaders() -> None:
    """Render Flask-JWT-Extended failures as 401 problems."""
    from auth_api.core.extensions import jwt

    def unauthorized(message: str) -> tuple[Response, int]:
        return problem_response(
            status=HTTPStatus.UNAUTHORIZED,
            code="unauthorized",
            message=message,
            source="JWTError",
        )

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return unauthorized(reason or "Missing access token")

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return unauthorized(reason or "Invalid access token")

    @jwt.expired_token_loader
    def _expired_token(_header: dict[str, Any], _payload: dict[str, Any]):
        return unauthorized("Access token has expired")


def init_app(app: Flask) -> None:
    """
    Register the problem+json handlers on ``app``.

    Service errors are translated to :class:`APIError` first. Database and
    unexpected failures never expose their internals; their tracebacks go
    to the log only.
    """
    from auth_api.services._shared.base import BaseService
    from auth_api.services._shared.errors import ServiceError

    _register_jwt_loaders()

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return problem_response(
            status=err.status_code,
            code=err.code,
            message=err.message,
            details=err.details or None,
        )

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        return handle_api_error(BaseService.translate_exceptions(err))

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        code = STATUS_CODES.get(status, "error")
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or code.replace("_", " ").capitalize()).strip()
        return problem_response(status=status, code=code, message=message, source="HTTPException")

    @app.errorhandler(MarshmallowValidationError)
    def handle_validation_error(err: MarshmallowValidationError):
        return problem_response(
            status=HTTPStatus.BAD_REQUEST,
            code="validation_error",
            message="Validation failed",
            details={"errors": err.normalized_messages()},
            source="ValidationError",
        )

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        return problem_response(
            status=HTTPStatus.CONFLICT,
            code="conflict",
            message="Resource conflict",
            source="IntegrityError",
            exc_info=True,
        )

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        return problem_response(
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            code="service_unavailable",
            message="Service temporarily unavailable",
            source="OperationalError",
            exc_info=True,
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        return problem_response(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
            message="Unexpected error",
            source="Unhandled exception",
            exc_info=True,
        )
