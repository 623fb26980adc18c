"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from parlor.core.errors import Unauthenticated
from parlor.db.session import get_db
from parlor.services import (
    AuthenticatedUser,
    ConnectionAuthenticator,
    ConversationListBuilder,
    ConversationStore,
    ConversationVisibility,
    DirectMessageRouter,
    PresenceRegistry,
    RoomHub,
    get_presence_registry,
    get_room_hub,
)

# Missing credentials are reported as 401 by get_current_user, not as 403 by the scheme.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
PresenceDep = Annotated[PresenceRegistry, Depends(get_presence_registry)]
RoomHubDep = Annotated[RoomHub, Depends(get_room_hub)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> AuthenticatedUser:
    """Resolve the bearer credential of the request to a user.

    Raises:
        Unauthenticated: If the credential is missing or invalid, or the
            user no longer exists.
    """
    if credentials is None:
        raise Unauthenticated("Missing or invalid token")
    return ConnectionAuthenticator(db).authenticate(credentials.credentials)


# Type alias for current user dependency
CurrentUserDep = Annotated[AuthenticatedUser, Depends(get_current_user)]


def get_store(db: SessionDep) -> ConversationStore:
    return ConversationStore(db)


StoreDep = Annotated[ConversationStore, Depends(get_store)]


def get_dm_router(
    store: StoreDep,
    presence: PresenceDep,
    rooms: RoomHubDep,
) -> DirectMessageRouter:
    return DirectMessageRouter(store, presence, rooms)


def get_list_builder(store: StoreDep) -> ConversationListBuilder:
    return ConversationListBuilder(store)


def get_visibility(store: StoreDep) -> ConversationVisibility:
    return ConversationVisibility(store)


DirectMessageRouterDep = Annotated[DirectMessageRouter, Depends(get_dm_router)]
ListBuilderDep = Annotated[ConversationListBuilder, Depends(get_list_builder)]
VisibilityDep = Annotated[ConversationVisibility, Depends(get_visibility)]
