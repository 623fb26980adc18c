"""Bearer credential helpers built on python-jose JWTs."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from parlor.core.errors import Unauthenticated
from parlor.core.settings import settings


def create_access_token(user_id: str, extra_claims: dict[str, Any] | None = None) -> str:
    """Create a signed JWT whose subject is the user id."""
    to_encode: dict[str, Any] = {"sub": user_id}
    if extra_claims:
        to_encode.update(extra_claims)
    to_encode["exp"] = datetime.now(UTC) + timedelta(
        minutes=settings.access_token_expire_minutes
    )
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> str:
    """Verify a JWT and return its subject.

    Raises:
        Unauthenticated: If the signature, expiry or structure is invalid,
            or the token carries no subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise Unauthenticated("Invalid token") from err

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise Unauthenticated("Invalid token")
    return subject
