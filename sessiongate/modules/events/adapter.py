import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Protocol, Sequence

from ..exceptions import ListenerNotificationError

logger = logging.getLogger(__name__)


class SessionEventType(str, Enum):
    """Kind of repository lifecycle event."""

    CREATED = "created"
    DESTROYED = "destroyed"


@dataclass(frozen=True)
class SessionEvent:
    """
    Lifecycle event emitted by a session repository.

    ``session`` is whatever the repository chose to hand over. For destroyed
    sessions it may be None.
    """

    type: SessionEventType
    session_id: str
    session: Optional[Any] = None


class SessionListener(Protocol):
    """Protocol for listeners interested in session creation and destruction."""

    def session_created(self, event: SessionEvent) -> None:
        ...

    def session_destroyed(self, event: SessionEvent) -> None:
        ...


class SessionListenerBase:
    """No-op listener; subclass and override only the handler you need."""

    def session_created(self, event: SessionEvent) -> None:
        pass

    def session_destroyed(self, event: SessionEvent) -> None:
        pass


class LoggingSessionListener(SessionListenerBase):
    """Writes every lifecycle event to the log."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def session_created(self, event: SessionEvent) -> None:
        self.log.info(f"Session created: {event.session_id}")

    def session_destroyed(self, event: SessionEvent) -> None:
        self.log.info(f"Session destroyed: {event.session_id}")


class SessionEventListenerAdapter:
    """
    Translates repository events into listener callbacks.

    The listener list is fixed at construction and notified in registration
    order. A failing listener does not stop delivery to the others; the first
    failure is raised once every listener has been called.
    """

    def __init__(self, listeners: Sequence[SessionListener] = ()):
        """
        Initialize the adapter.

        Args:
            listeners: Ordered listeners, assembled once at startup
        """
        self._listeners = tuple(listeners)

    @property
    def listeners(self) -> tuple:
        return self._listeners

    def on_session_event(self, event: SessionEvent) -> None:
        """
        Deliver an event to every registered listener.

        Args:
            event: Event published by the repository

        Raises:
            ListenerNotificationError: If any listener raised, after all were called
        """
        errors: List[Exception] = []

        for listener in self._listeners:
            try:
                if event.type is SessionEventType.CREATED:
                    listener.session_created(event)
                else:
                    listener.session_destroyed(event)
            except Exception as e:
                logger.error(
                    f"Session listener {type(listener).__name__} failed on "
                    f"{event.type.value} event for {event.session_id}: {e}",
                    exc_info=True,
                )
                errors.append(e)

        if errors:
            raise ListenerNotificationError(
                f"{len(errors)} session listener(s) failed on {event.type.value} event",
                errors=errors,
            ) from errors[0]
