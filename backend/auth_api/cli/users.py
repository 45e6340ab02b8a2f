"""Flask CLI commands for bootstrapping administrative accounts."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from auth_api.core.container import build_user_service, get_registry
from auth_api.models.user import Role
from auth_api.services._shared.base import ServiceContext
from auth_api.services._shared.errors import ServiceError
from auth_api.services.users import UserCreateIn, UserEditIn

LOGGER = logging.getLogger(__name__)

ADMIN_ROLES = [Role.ADMIN.value, Role.SUPER_ADMIN.value]


@click.group("users")
def users_cli() -> None:
    """User administration commands."""


@users_cli.command("create-admin")
@click.option("--email", required=True, help="Login email of the new account.")
@click.option("--full-name", required=True, help="Display name of the new account.")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Password (prompted when omitted).",
)
@click.option(
    "--role",
    type=click.Choice(ADMIN_ROLES, case_sensitive=False),
    default=Role.SUPER_ADMIN.value,
    show_default=True,
    help="Highest role granted in addition to USER.",
)
@with_appcontext
def create_admin_command(email: str, full_name: str, password: str, role: str) -> None:
    """Create a verified administrator account."""
    granted = Role(role.upper())
    service = build_user_service(get_registry(), ServiceContext())
    try:
        user = service.create_user(
            UserCreateIn(email=email.strip(), full_name=full_name, password=password)
        )
        user = service.edit_user(user.id, UserEditIn(roles=(Role.USER, granted)))
    except ServiceError as exc:
        raise click.ClickException(str(exc)) from exc

    LOGGER.info("Created administrator", extra={"user_id": user.id, "event": "admin_created"})
    click.echo(f"Created {', '.join(user.roles)} account {user.email} ({user.id})")
