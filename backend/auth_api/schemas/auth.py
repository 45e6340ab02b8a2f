"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

import re
from typing import Any

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from .common import EmailPayloadSchema
from .user import UserSchema

# A letter first, then letter runs separated by single spaces (any script)
FULL_NAME_RE = re.compile(r"^[^\W\d_]+(?: [^\W\d_]+)*$")

# At least one upper-case letter, one lower-case letter and one digit
PASSWORD_RE = re.compile(
    r"""^(?=.*[A-ZА-Я])(?=.*[a-zа-я])(?=.*\d)[A-Za-zА-Яа-я0-9~!?@#$%^&*_\-+()\[\]{}></\\|"'.,:]+$"""
)

FULL_NAME_MESSAGE = "Full name must contain only letters separated by single spaces."
PASSWORD_MESSAGE = (
    "Password must contain an upper-case letter, a lower-case letter and a digit, "
    "and no unsupported characters."
)


class RegisterSchema(EmailPayloadSchema):
    """Input payload for account registration."""

    email = fields.Email(required=True, validate=validate.Length(min=3, max=50))
    full_name = fields.String(
        required=True,
        validate=[
            validate.Length(min=5, max=100),
            validate.Regexp(FULL_NAME_RE, error=FULL_NAME_MESSAGE),
        ],
    )
    password = fields.String(
        required=True,
        load_only=True,
        validate=[
            validate.Length(min=8, max=32),
            validate.Regexp(PASSWORD_RE, error=PASSWORD_MESSAGE),
        ],
    )
    password_repeat = fields.String(required=True, load_only=True)

    @validates_schema
    def passwords_match(self, data: dict[str, Any], **_: Any) -> None:
        if "password" in data and data.get("password_repeat") != data["password"]:
            raise ValidationError("Passwords do not match.", field_name="password_repeat")


class LoginSchema(EmailPayloadSchema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))


class TokenResponseSchema(Schema):
    """Login/refresh response: user view, access token and refresh token."""

    user = fields.Nested(UserSchema, required=True)
    access_token = fields.String(required=True)
    expires_at = fields.DateTime(required=True)
    refresh_token = fields.String(required=True)
