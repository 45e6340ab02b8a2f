"""Flask CLI commands for refresh token housekeeping."""

from __future__ import annotations

import click
from flask.cli import with_appcontext

from auth_api.core.container import get_registry
from auth_api.services._shared.base import BaseService
from auth_api.services._shared.errors import StorageError


@click.group("tokens")
def tokens_cli() -> None:
    """Refresh token maintenance commands."""


@tokens_cli.command("purge-expired")
@with_appcontext
def purge_expired_command() -> None:
    """Delete refresh tokens whose expiry has passed."""
    try:
        removed = get_registry().refresh_store.purge_expired(BaseService.now_utc())
    except StorageError as exc:
        raise click.ClickException(f"Purge failed: {exc}") from exc
    click.echo(f"Removed {removed} expired refresh token(s)")
