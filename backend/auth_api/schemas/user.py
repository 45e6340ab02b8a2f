"""User administration schemas."""

from __future__ import annotations

import re
from typing import Any

from marshmallow import Schema, fields, post_load, validate

from auth_api.models.user import Role

from .common import CommaSeparatedList, EmailPayloadSchema, PaginationQuerySchema

ROLE_NAMES = [role.value for role in Role]

# At least one letter and one digit
ADMIN_PASSWORD_RE = re.compile(r"^(?=.*[^\W\d_])(?=.*\d).+$")


class UserSchema(Schema):
    """Public user representation."""

    id = fields.String(required=True)
    email = fields.Email(required=True)
    full_name = fields.String(required=True)
    roles = fields.List(fields.String(), required=True)
    verified = fields.Boolean(required=True)
    banned = fields.Boolean(required=True)
    created_at = fields.DateTime(allow_none=True)


class UserCreateSchema(EmailPayloadSchema):
    """Administrative creation payload."""

    email = fields.Email(required=True, validate=validate.Length(min=3, max=254))
    full_name = fields.String(required=True, validate=validate.Length(min=5, max=100))
    password = fields.String(
        required=True,
        load_only=True,
        validate=[
            validate.Length(min=8, max=20),
            validate.Regexp(
                ADMIN_PASSWORD_RE, error="Password must contain a letter and a digit."
            ),
        ],
    )
    verified = fields.Boolean(load_default=True)
    banned = fields.Boolean(load_default=False)


class UserEditSchema(Schema):
    """Partial update of roles and account flags."""

    roles = fields.List(
        fields.String(validate=validate.OneOf(ROLE_NAMES)),
        validate=validate.Length(min=1, error="At least one role is required."),
    )
    verified = fields.Boolean()
    banned = fields.Boolean()

    @post_load
    def to_roles(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        if "roles" in data:
            data["roles"] = tuple(Role(name) for name in dict.fromkeys(data["roles"]))
        return data


class UserListQuerySchema(PaginationQuerySchema):
    """Query parameters of the user listing."""

    roles = CommaSeparatedList(load_default=None, validate=validate.ContainsOnly(ROLE_NAMES))
    created_at = fields.String(load_default="desc", validate=validate.OneOf(["asc", "desc"]))

    @post_load
    def to_roles(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        names = data.get("roles")
        data["roles"] = tuple(Role(name) for name in names) if names else None
        return data


class UserListResponseSchema(Schema):
    """One page of users with paging metadata."""

    users = fields.List(fields.Nested(UserSchema), required=True)
    count = fields.Integer(required=True)
    page = fields.Integer(required=True)
    page_size = fields.Integer(required=True)
    page_count = fields.Integer(required=True)
