"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from marshmallow import Schema

from auth_api.core.container import build_auth_service, build_user_service, get_registry
from auth_api.core.errors import BadRequest, Forbidden
from auth_api.core.logger import ensure_request_id
from auth_api.models.user import Role
from auth_api.schemas.common import validate_payload
from auth_api.services._shared.base import ServiceContext
from auth_api.services._shared.policies import has_role
from auth_api.services.auth import AuthService
from auth_api.services.users import UserService

F = TypeVar("F", bound=Callable[..., Any])


def load_or_400(schema: Schema, data: Mapping[str, Any] | None) -> Any:
    """Validate ``data`` with ``schema`` or raise a ``validation_error`` problem."""

    result = validate_payload(schema, data)
    if not result.ok:
        raise BadRequest(
            "Validation failed", code="validation_error", details={"errors": result.errors}
        )
    return result.value


def request_device() -> str:
    """Return the client device string (``User-Agent``), empty when absent."""

    return request.headers.get("User-Agent", "")


def service_context(*, authenticated: bool = False) -> ServiceContext:
    """Build the per-request service context.

    With ``authenticated=True`` the actor is read from the already verified
    access token (``sub`` and ``roles`` claims).
    """

    if not authenticated:
        return ServiceContext(request_id=ensure_request_id())
    claims = get_jwt() or {}
    return ServiceContext(
        actor_id=str(get_jwt_identity()),
        actor_roles=frozenset(claims.get("roles", ())),
        request_id=ensure_request_id(),
    )


def auth_service(ctx: ServiceContext | None = None) -> AuthService:
    return build_auth_service(get_registry(), ctx or service_context())


def user_service(ctx: ServiceContext) -> UserService:
    return build_user_service(get_registry(), ctx)


def require_role(required: Role) -> Callable[[F], F]:
    """Ensure the verified JWT grants ``required`` or a higher role."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            verify_jwt_in_request(optional=False)
            claims = get_jwt() or {}
            if not has_role(claims.get("roles", ()), required):
                current_app.logger.warning(
                    "Role check failed",
                    extra={"user_id": claims.get("sub"), "endpoint": request.endpoint},
                )
                raise Forbidden("Insufficient role")
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
