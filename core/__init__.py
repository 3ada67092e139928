"""Core package - exports session management."""

from .session import (
    SessionStore,
    session_store,
    generate_user_id,
    generate_session_id,
)

__all__ = [
    "SessionStore",
    "session_store",
    "generate_user_id",
    "generate_session_id",
]
