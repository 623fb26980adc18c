"""Database configuration and utilities."""

from .session import SessionLocal, get_db, get_session_scope, session_scope

__all__ = ["get_db", "get_session_scope", "session_scope", "SessionLocal"]
