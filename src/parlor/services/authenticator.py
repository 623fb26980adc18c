"""Bearer credential validation shared by REST and real-time connections."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from parlor.core.errors import Unauthenticated
from parlor.core.security import decode_access_token
from parlor.models import User

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity resolved from a verified credential."""

    id: str
    username: str
    email: str


class ConnectionAuthenticator:
    """Resolve a bearer credential to a user that still exists."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def authenticate(self, token: str | None) -> AuthenticatedUser:
        """Verify ``token`` and load its user.

        Accepts the raw token or an ``Authorization`` header value.

        Raises:
            Unauthenticated: Missing, malformed, expired or wrongly signed
                token, or a subject that no longer exists.
        """
        if token and token.startswith(BEARER_PREFIX):
            token = token[len(BEARER_PREFIX):]
        if not token or not token.strip():
            raise Unauthenticated("Missing or invalid token")

        user_id = decode_access_token(token.strip())
        user = self._db.get(User, user_id)
        if user is None:
            raise Unauthenticated("User not found")
        return AuthenticatedUser(id=user.id, username=user.username, email=user.email)
