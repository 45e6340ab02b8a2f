"""Authentication endpoints: register, login, refresh, logout and confirm."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, request

from auth_api.api.deps import auth_service, json_response, load_or_400, request_device, timing
from auth_api.core.container import get_registry
from auth_api.core.extensions import limiter
from auth_api.schemas import (
    LoginSchema,
    MessageSchema,
    RegisterSchema,
    TokenResponseSchema,
    UserSchema,
)
from auth_api.services.auth import LoginIn, LoginOut
from auth_api.services.identity import RegisterIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
user_schema = UserSchema()
token_schema = TokenResponseSchema()
message_schema = MessageSchema()

REFRESH_SCHEME = "refresh"


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


def _presented_refresh_token() -> str | None:
    """Read the refresh token from ``Authorization: Refresh <token>`` or the cookie."""

    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == REFRESH_SCHEME and value.strip():
        return value.strip()
    return request.cookies.get(get_registry().settings.refresh_cookie_name)


def _token_response(out: LoginOut) -> Response:
    body = {
        "data": token_schema.dump(
            {
                "user": out.user,
                "access_token": out.tokens.access_token,
                "expires_at": out.tokens.access_expires_at,
                "refresh_token": out.tokens.refresh_token,
            }
        )
    }
    response = json_response(body)
    settings = get_registry().settings
    response.set_cookie(
        settings.refresh_cookie_name,
        out.tokens.refresh_token,
        expires=out.tokens.refresh_expires_at,
        path="/",
        secure=settings.secure_cookies,
        httponly=True,
        samesite="Lax",
    )
    return response


@bp.post("/register")
@timing
def register():
    """Register a new user and return the created representation."""

    data = load_or_400(register_schema, request.get_json(silent=True))
    user = auth_service().register(
        RegisterIn(email=data["email"], full_name=data["full_name"], password=data["password"])
    )
    return json_response({"data": user_schema.dump(user)}, status=201)


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate credentials and issue an access/refresh token pair."""

    data = load_or_400(login_schema, request.get_json(silent=True))
    dto = LoginIn(email=data["email"], password=data["password"])
    out = auth_service().login(dto, request_device())
    return _token_response(out)


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the presented refresh token and issue a new pair."""

    out = auth_service().refresh(_presented_refresh_token(), request_device())
    return _token_response(out)


@bp.post("/logout")
@timing
def logout():
    """Revoke the presented refresh token and clear the cookie."""

    out = auth_service().logout(_presented_refresh_token())
    response = json_response({"data": message_schema.dump(out)})
    settings = get_registry().settings
    response.delete_cookie(
        settings.refresh_cookie_name,
        path="/",
        secure=settings.secure_cookies,
        httponly=True,
        samesite="Lax",
    )
    return response


@bp.get("/confirm")
@timing
def confirm():
    """Consume an email confirmation token."""

    out = auth_service().confirm_email(request.args.get("token", ""))
    return json_response({"data": message_schema.dump(out)})
