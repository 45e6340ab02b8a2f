from __future__ import annotations

from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash

from auth_api.services._shared.ports import PasswordHasher


@dataclass(frozen=True, slots=True)
class WerkzeugPasswordHasher(PasswordHasher):
    """
    Salted password hashing via :mod:`werkzeug.security`.

    :param method: Werkzeug method string (e.g. ``"scrypt"`` or
        ``"pbkdf2:sha256:600000"``). ``None`` uses werkzeug's default.
    """

    method: str | None = None

    def hash(self, plaintext: str) -> str:
        if self.method:
            return generate_password_hash(plaintext, method=self.method)
        return generate_password_hash(plaintext)

    def verify(self, plaintext: str, digest: str) -> bool:
        if not digest:
            return False
        return check_password_hash(digest, plaintext)
