"""Security utilities (JWT access tokens)."""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import jwt

from ..config import get_settings

ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """
    Create a signed JWT whose ``sub`` claim is the owner id.

    Args:
        subject: Owner id the token authenticates
        expires_delta: Token lifetime (defaults to one day)
        extra_claims: Additional claims to embed

    Returns:
        Encoded JWT
    """
    settings = get_settings()
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode: dict[str, Any] = {**(extra_claims or {}), "sub": subject, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a JWT.

    Raises:
        JWTError: signature, expiry or format is invalid
    """
    settings = get_settings()
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
