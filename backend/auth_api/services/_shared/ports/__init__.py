"""
auth_api.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) that define the contracts
between the service layer and its infrastructure.

Modules
-------
- :mod:`password_hasher`:
    Defines :class:`~.PasswordHasher`: one-way password hashing.

- :mod:`token_signer`:
    Defines :class:`~.TokenSigner`: access token signing and decoding.

- :mod:`notifier`:
    Defines :class:`~.Notifier`: outbound email delivery.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore` and :class:`~.RefreshTokenView`:
    persistence and atomic rotation of per-device refresh tokens.

- :mod:`user_cache`:
    Defines :class:`~.UserCache`: optional read-through user cache.

Design Notes
------------
Most ports ship an in-memory or stub double in the same module for unit
tests; password hashing is tested with a fast werkzeug method. Concrete
adapters live under ``auth_api.infra``.
"""

from __future__ import annotations

from .notifier import InMemoryNotifier, Notifier, SentMessage
from .password_hasher import PasswordHasher
from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenStore,
    RefreshTokenView,
)
from .token_signer import StubTokenSigner, TokenSigner
from .user_cache import InMemoryUserCache, NullUserCache, UserCache

__all__ = [
    "InMemoryNotifier",
    "InMemoryRefreshTokenStore",
    "InMemoryUserCache",
    "Notifier",
    "NullUserCache",
    "PasswordHasher",
    "RefreshTokenStore",
    "RefreshTokenView",
    "SentMessage",
    "StubTokenSigner",
    "TokenSigner",
    "UserCache",
]
