"""Identifier generation for persisted rows."""

import uuid


def new_id() -> str:
    """Return a random UUID4 string."""
    return str(uuid.uuid4())
