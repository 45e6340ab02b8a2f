"""Tiny helpers shared across test modules."""

from __future__ import annotations

from contextlib import contextmanager

from auth_api.models.user import Role
from auth_api.services._shared.errors import StorageError
from auth_api.services._shared.ports import InMemoryRefreshTokenStore

JSON_PROBLEM = "application/problem+json"


@contextmanager
def not_raises(exception: type[BaseException]):
    """Context manager asserting that an exception is *not* raised.

    Parameters
    ----------
    exception: type[BaseException]
        Exception type that should not be raised within the context.
    """
    try:
        yield
    except exception as exc:  # pragma: no cover
        raise AssertionError(f"Did raise {exception}: {exc}") from exc


def bearer(access_token: str) -> dict[str, str]:
    """Return an ``Authorization`` header for an access token."""
    return {"Authorization": f"Bearer {access_token}"}


def access_token_for(user, roles: tuple[Role, ...] | None = None) -> str:
    """Sign an access token for ``user`` with the app's JWT settings.

    Requires the application context kept open by the ``db`` fixture.
    """
    from flask_jwt_extended import create_access_token

    granted = roles if roles is not None else tuple(user.roles)
    return create_access_token(
        identity=str(user.id),
        additional_claims={
            "id": str(user.id),
            "email": user.email,
            "roles": [Role(r).value for r in granted],
            "verified": bool(user.verified),
        },
    )


class FailingWriteStore(InMemoryRefreshTokenStore):
    """In-memory store whose device writes always fail."""

    def upsert_for_device(self, **kwargs):
        raise StorageError("Refresh token could not be stored.")
