"""Verification of Supabase-issued access tokens."""

from jose import jwt

from royally_tuned.config import settings

ALGORITHM = "HS256"


def decode_token(token: str) -> dict:
    """Decode and verify a Supabase access token.

    Args:
        token: Encoded JWT string from the ``Authorization: Bearer`` header.

    Returns:
        Decoded payload dictionary (``sub``, ``email``, ``app_metadata``, ...).

    Raises:
        jose.JWTError: If the token is invalid, expired, has the wrong
            audience, or is malformed.
    """
    return jwt.decode(
        token,
        settings.supabase_jwt_secret,
        algorithms=[ALGORITHM],
        audience=settings.supabase_jwt_audience,
    )
