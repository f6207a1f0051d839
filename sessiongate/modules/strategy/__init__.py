"""
Strategy Module - Black Box Interface

Purpose: Move session identifiers between client and server
Interface: resolve_session_ids(), get_session_id(), save_session_ids()
Hidden: Which cookies carry which channel, conflict resolution between channels

Single and multiplexed strategies are interchangeable behind SessionStrategy.
"""

from .strategy import (
    DEFAULT_ALIAS,
    CookieSessionStrategy,
    MultiplexedSessionStrategy,
    SessionIdCandidate,
    SessionStrategy,
)

__all__ = [
    "DEFAULT_ALIAS",
    "CookieSessionStrategy",
    "MultiplexedSessionStrategy",
    "SessionIdCandidate",
    "SessionStrategy",
]
