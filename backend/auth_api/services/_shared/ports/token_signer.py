from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Protocol


class TokenSigner(Protocol):
    """Port for signing and decoding access tokens."""

    def sign(self, claims: dict[str, Any], ttl: timedelta) -> str:
        """
        Sign ``claims`` into an access token valid for ``ttl``.

        ``claims["id"]`` becomes the token subject.
        """
        ...

    def decode(self, token: str) -> dict[str, Any]: ...


class StubTokenSigner(TokenSigner):
    """Deterministic token signer used in unit tests."""

    def __init__(self) -> None:
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}

    def sign(self, claims: dict[str, Any], ttl: timedelta) -> str:
        self._seq += 1
        token = f"access.{claims.get('id')}.{self._seq}"
        payload: dict[str, Any] = {
            "sub": claims.get("id"),
            "type": "access",
            "exp": int((datetime.now(UTC) + ttl).timestamp()),
        }
        payload.update(claims)
        self._issued[token] = payload
        return token

    def decode(self, token: str) -> dict[str, Any]:
        return self._issued[token]
