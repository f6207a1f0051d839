"""
Events Module - Black Box Interface

Purpose: Fan repository lifecycle events out to session listeners
Interface: SessionEventListenerAdapter.on_session_event(), SessionListener
Hidden: Dispatch order, failure isolation

Repositories that do not publish events simply never call the adapter.
"""

from .adapter import (
    LoggingSessionListener,
    SessionEvent,
    SessionEventListenerAdapter,
    SessionEventType,
    SessionListener,
    SessionListenerBase,
)

__all__ = [
    "LoggingSessionListener",
    "SessionEvent",
    "SessionEventListenerAdapter",
    "SessionEventType",
    "SessionListener",
    "SessionListenerBase",
]
