import json
import logging
from datetime import UTC, datetime
from typing import Callable, Dict, List, Optional, Protocol, runtime_checkable

from ..events import SessionEvent, SessionEventType
from .session import DEFAULT_MAX_INACTIVE_INTERVAL, Session

logger = logging.getLogger(__name__)

SessionEventHandler = Callable[[SessionEvent], None]


class SessionRepository(Protocol):
    """Protocol for session storage backends."""

    def create_session(self) -> Session:
        """Create a session object locally. Nothing is written until save()."""
        ...

    async def get(self, session_id: str) -> Optional[Session]:
        """Return the live session for session_id, or None if missing or expired."""
        ...

    async def save(self, session: Session) -> None:
        """Create or update the session."""
        ...

    async def delete(self, session_id: str) -> None:
        """Remove the session if it exists."""
        ...


@runtime_checkable
class SessionEventPublisher(Protocol):
    """Repositories that can report session creation and destruction."""

    def subscribe(self, handler: SessionEventHandler) -> None:
        ...


class _EventPublishingMixin:
    """Subscriber bookkeeping shared by the bundled repositories."""

    def _init_subscribers(self) -> None:
        self._subscribers: List[SessionEventHandler] = []

    def subscribe(self, handler: SessionEventHandler) -> None:
        """Register a handler for created/destroyed events."""
        self._subscribers.append(handler)

    def _notify(self, event: SessionEvent) -> None:
        for handler in self._subscribers:
            try:
                handler(event)
            except Exception:
                # Storage already happened; listener failures only get reported
                logger.exception(
                    f"Session event handler failed for {event.type.value} {event.session_id}"
                )


class InMemorySessionRepository(_EventPublishingMixin):
    """
    Process-local repository backed by a dict.

    Sessions are stored as snapshots, so changes made to a loaded session are
    invisible to other requests until save() is called.
    """

    def __init__(self, default_max_inactive_interval: int = DEFAULT_MAX_INACTIVE_INTERVAL):
        """
        Initialize in-memory repository.

        Args:
            default_max_inactive_interval: Max inactive interval for new sessions (seconds)
        """
        self.default_max_inactive_interval = default_max_inactive_interval
        self._sessions: Dict[str, dict] = {}
        self._init_subscribers()

    def create_session(self) -> Session:
        return Session(max_inactive_interval=self.default_max_inactive_interval)

    async def get(self, session_id: str) -> Optional[Session]:
        data = self._sessions.get(session_id)
        if data is None:
            return None

        session = Session.from_dict(data)
        if session.is_expired():
            del self._sessions[session_id]
            self._notify(SessionEvent(SessionEventType.DESTROYED, session_id, session))
            return None

        session.last_accessed_time = datetime.now(UTC)
        return session

    async def save(self, session: Session) -> None:
        created = session.is_new
        if session.original_id != session.id:
            self._sessions.pop(session.original_id, None)

        self._sessions[session.id] = session.to_dict()
        session.mark_persisted()

        if created:
            self._notify(SessionEvent(SessionEventType.CREATED, session.id, session))

    async def delete(self, session_id: str) -> None:
        data = self._sessions.pop(session_id, None)
        if data is None:
            return
        self._notify(
            SessionEvent(SessionEventType.DESTROYED, session_id, Session.from_dict(data))
        )

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions


class RedisSessionRepository(_EventPublishingMixin):
    """
    Session repository on top of an async Redis client.

    Keys:
        session:{id}      JSON snapshot, TTL = max inactive interval
        sessions:active   set of stored session ids
        events:session    pub/sub channel for lifecycle events
        session:events    capped history of lifecycle events
    """

    def __init__(
        self,
        redis_client,
        default_max_inactive_interval: int = DEFAULT_MAX_INACTIVE_INTERVAL,
    ):
        """
        Initialize Redis repository.

        Args:
            redis_client: Async Redis client (decode_responses=True)
            default_max_inactive_interval: Max inactive interval for new sessions (seconds)
        """
        self.redis = redis_client
        self.default_max_inactive_interval = default_max_inactive_interval
        self._init_subscribers()

    def create_session(self) -> Session:
        return Session(max_inactive_interval=self.default_max_inactive_interval)

    async def get(self, session_id: str) -> Optional[Session]:
        """
        Load a session.

        Args:
            session_id: Session identifier

        Returns:
            Session or None if not found or expired
        """
        data = await self.redis.get(f"session:{session_id}")
        if not data:
            return None

        session = Session.from_dict(json.loads(data))
        if session.is_expired():
            return None

        session.last_accessed_time = datetime.now(UTC)
        return session

    async def save(self, session: Session) -> None:
        """
        Store the session snapshot.

        Logic:
        1. Drop the original key if the id was rotated
        2. Write the snapshot with the session TTL
        3. Track the id in the active set
        4. Publish a created event for first saves
        """
        created = session.is_new

        if not created and session.original_id != session.id:
            await self.redis.delete(f"session:{session.original_id}")
            await self.redis.srem("sessions:active", session.original_id)

        session_key = f"session:{session.id}"
        payload = json.dumps(session.to_dict())
        if session.max_inactive_interval >= 0:
            await self.redis.setex(session_key, session.max_inactive_interval, payload)
        else:
            await self.redis.set(session_key, payload)

        await self.redis.sadd("sessions:active", session.id)
        session.mark_persisted()

        if created:
            await self._publish_event(SessionEvent(SessionEventType.CREATED, session.id, session))

    async def delete(self, session_id: str) -> None:
        """
        Delete a session.

        Args:
            session_id: Session identifier
        """
        session_key = f"session:{session_id}"

        data = await self.redis.get(session_key)
        if not data:
            return

        await self.redis.delete(session_key)
        await self.redis.srem("sessions:active", session_id)

        await self._publish_event(
            SessionEvent(SessionEventType.DESTROYED, session_id, Session.from_dict(json.loads(data)))
        )

    async def _publish_event(self, event: SessionEvent):
        """Notify subscribers and mirror the event to Redis for monitoring"""
        self._notify(event)

        message = json.dumps(
            {
                "type": f"session.{event.type.value}",
                "timestamp": datetime.now(UTC).isoformat(),
                "data": {"session_id": event.session_id},
            }
        )
        await self.redis.publish("events:session", message)
        await self.redis.lpush("session:events", message)
        await self.redis.ltrim("session:events", 0, 999)  # Keep last 1000
