"""User endpoints: self-service lookups and role-guarded administration."""

from __future__ import annotations

from flask import Blueprint, request

from auth_api.api.deps import (
    json_response,
    load_or_400,
    require_role,
    service_context,
    timing,
    user_service,
)
from auth_api.models.user import Role
from auth_api.schemas import (
    UserCreateSchema,
    UserEditSchema,
    UserListQuerySchema,
    UserListResponseSchema,
    UserSchema,
)
from auth_api.services.users import UserCreateIn, UserEditIn, UserListIn

bp = Blueprint("users", __name__)

user_schema = UserSchema()
create_schema = UserCreateSchema()
edit_schema = UserEditSchema()
list_query_schema = UserListQuerySchema()
list_response_schema = UserListResponseSchema()


@bp.get("/me")
@require_role(Role.USER)
@timing
def me():
    """Return the authenticated user."""

    ctx = service_context(authenticated=True)
    user = user_service(ctx).me(ctx.actor_id)
    return json_response({"data": user_schema.dump(user)})


@bp.get("")
@require_role(Role.ADMIN)
@timing
def list_users():
    """List users page by page, filtered by role and sorted by creation time."""

    query = load_or_400(list_query_schema, request.args)
    page = user_service(service_context(authenticated=True)).list_users(UserListIn(**query))
    return json_response({"data": list_response_schema.dump(page)})


@bp.post("")
@require_role(Role.ADMIN)
@timing
def create_user():
    """Create a user on behalf of an administrator."""

    data = load_or_400(create_schema, request.get_json(silent=True))
    user = user_service(service_context(authenticated=True)).create_user(UserCreateIn(**data))
    return json_response({"data": user_schema.dump(user)}, status=201)


@bp.get("/<string:id_or_email>")
@require_role(Role.ADMIN)
@timing
def find_one(id_or_email: str):
    """Find a user by id or email."""

    user = user_service(service_context(authenticated=True)).find_one(id_or_email)
    return json_response({"data": user_schema.dump(user)})


@bp.patch("/<string:user_id>")
@require_role(Role.SUPER_ADMIN)
@timing
def edit_user(user_id: str):
    """Update roles and/or account flags."""

    data = load_or_400(edit_schema, request.get_json(silent=True))
    user = user_service(service_context(authenticated=True)).edit_user(user_id, UserEditIn(**data))
    return json_response({"data": user_schema.dump(user)})


@bp.delete("/<string:user_id>")
@require_role(Role.USER)
@timing
def delete_user(user_id: str):
    """Delete an account: one's own, or anyone's for administrators."""

    user = user_service(service_context(authenticated=True)).delete_user(user_id)
    return json_response({"data": user_schema.dump(user)})
