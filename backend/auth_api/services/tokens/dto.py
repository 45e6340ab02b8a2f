# auth_api/services/tokens/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Signed access JWT.
    :type access_token: str
    :param access_expires_at: Access token expiry (UTC).
    :type access_expires_at: datetime
    :param refresh_token: Opaque refresh token value.
    :type refresh_token: str
    :param refresh_expires_at: Refresh token expiry (UTC).
    :type refresh_expires_at: datetime
    """

    access_token: str
    access_expires_at: datetime
    refresh_token: str
    refresh_expires_at: datetime
