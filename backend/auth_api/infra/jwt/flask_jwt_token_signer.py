# auth_api/infra/jwt/flask_jwt_token_signer.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

from auth_api.services._shared.ports import TokenSigner


@dataclass(slots=True)
class JWTTokenSigner(TokenSigner):
    """
    Adapter for Flask-JWT-Extended.

    ``claims["id"]`` becomes the ``sub`` claim; every claim is also embedded
    as an additional claim so clients can read ``email``/``roles`` directly.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    def sign(self, claims: dict[str, Any], ttl: timedelta) -> str:
        from flask_jwt_extended import create_access_token as _create_access

        return cast(
            str,
            _create_access(
                identity=str(claims["id"]),
                additional_claims=dict(claims),
                expires_delta=ttl,
            ),
        )

    def decode(self, token: str) -> dict[str, Any]:
        from flask_jwt_extended import decode_token

        return cast(dict[str, Any], decode_token(token))
