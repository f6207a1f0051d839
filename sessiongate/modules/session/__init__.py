"""
Session Module - Black Box Interface

Purpose: Session model and the repository contract the request layer consumes
Interface: Session, SessionRepository (create_session/get/save/delete), SessionEventPublisher
Hidden: Storage layout, TTL handling, event mirroring

Replaceable with any repository (database, in-memory, distributed cache)
that satisfies SessionRepository.
"""

from .repository import (
    InMemorySessionRepository,
    RedisSessionRepository,
    SessionEventPublisher,
    SessionRepository,
)
from .session import DEFAULT_MAX_INACTIVE_INTERVAL, Session, generate_session_id

__all__ = [
    "DEFAULT_MAX_INACTIVE_INTERVAL",
    "InMemorySessionRepository",
    "RedisSessionRepository",
    "Session",
    "SessionEventPublisher",
    "SessionRepository",
    "generate_session_id",
]
