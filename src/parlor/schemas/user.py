"""User-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict


class PublicProfile(BaseModel):
    """Publicly visible part of a user account."""

    id: str
    username: str
    avatar_url: str | None = None

    model_config = ConfigDict(from_attributes=True)
