"""Access token verification.

Tokens are minted by the identity service; this API only holds its public
key. A verified token maps to ``TokenClaims``: ``sub`` is the username,
``email`` is required, and an unrecognised ``role`` is ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jwt

from rockspotter.config import get_settings
from rockspotter.db.models import USER_ROLES

_public_key: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    username: str
    email: str
    role: str | None = None


def _load_public_key() -> str:
    global _public_key  # noqa: PLW0603
    if _public_key is None:
        _public_key = Path(get_settings().jwt_public_key_path).read_text()
    return _public_key


def reset_keys() -> None:
    """Forget the cached key so the next call rereads the configured path."""
    global _public_key  # noqa: PLW0603
    _public_key = None


def _decode(token: str) -> dict[str, Any]:
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            _load_public_key(),
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            options={"require": ["sub", "exp", "iss"]},
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None


def verify_token(token: str, expected_type: str = "access") -> TokenClaims:
    """Decode and check a bearer token.

    Raises:
        jwt.InvalidTokenError: For any token this API should not accept,
            including access tokens without an email claim.
    """
    payload = _decode(token)

    token_type = payload.get("type")
    if token_type != expected_type:
        msg = f"Expected token type '{expected_type}', got '{token_type}'"
        raise jwt.InvalidTokenError(msg)

    email = payload.get("email")
    if not email:
        msg = "Token is missing the email claim"
        raise jwt.InvalidTokenError(msg)

    role = payload.get("role")
    return TokenClaims(
        username=payload["sub"],
        email=email,
        role=role if role in USER_ROLES else None,
    )
