from __future__ import annotations

from datetime import timedelta

from auth_api.infra.jwt import JWTTokenSigner


def test_sign_and_decode_round_trip(app):
    """Claims are embedded and ``id`` becomes the subject."""
    signer = JWTTokenSigner()
    claims = {"id": "u-1", "email": "jwt@example.com", "roles": ["USER"], "verified": True}

    token = signer.sign(claims, timedelta(minutes=5))
    decoded = signer.decode(token)

    assert decoded["sub"] == "u-1"
    assert decoded["type"] == "access"
    assert decoded["email"] == "jwt@example.com"
    assert decoded["roles"] == ["USER"]
    assert decoded["verified"] is True
    assert decoded["exp"] - decoded["iat"] == 300
