import uuid
from datetime import UTC, datetime, timedelta
from typing import Any, Dict, List, Optional

DEFAULT_MAX_INACTIVE_INTERVAL = 1800


def generate_session_id() -> str:
    """Generate a new opaque session identifier (UUID4, 36 characters)."""
    return str(uuid.uuid4())


class Session:
    """
    Server-side session held by a session repository.

    Attributes live in memory on this object for the whole request; the
    repository decides when and how they are stored.
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        attributes: Optional[Dict[str, Any]] = None,
        creation_time: Optional[datetime] = None,
        last_accessed_time: Optional[datetime] = None,
        max_inactive_interval: int = DEFAULT_MAX_INACTIVE_INTERVAL,
        is_new: bool = True,
    ):
        """
        Initialize a session.

        Args:
            session_id: Existing identifier, or None to generate one
            attributes: Initial attribute mapping
            creation_time: When the session was first created (UTC)
            last_accessed_time: When the session was last accessed (UTC)
            max_inactive_interval: Seconds of inactivity before expiry, negative for never
            is_new: True until the session has been saved by a repository
        """
        now = datetime.now(UTC)
        self.id = session_id or generate_session_id()
        self.original_id = self.id
        self._attributes: Dict[str, Any] = dict(attributes or {})
        self.creation_time = creation_time or now
        self.last_accessed_time = last_accessed_time or self.creation_time
        self.max_inactive_interval = max_inactive_interval
        self.is_new = is_new

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self._attributes.get(name, default)

    def set_attribute(self, name: str, value: Any) -> None:
        if value is None:
            self.remove_attribute(name)
            return
        self._attributes[name] = value

    def remove_attribute(self, name: str) -> None:
        self._attributes.pop(name, None)

    @property
    def attribute_names(self) -> List[str]:
        return list(self._attributes)

    @property
    def attributes(self) -> Dict[str, Any]:
        """Copy of the current attributes."""
        return dict(self._attributes)

    def change_session_id(self) -> str:
        """
        Rotate the identifier while keeping the attributes.

        The original identifier is kept in ``original_id`` until the
        repository saves the session under its new identifier.
        """
        self.id = generate_session_id()
        return self.id

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.max_inactive_interval < 0:
            return False
        now = now or datetime.now(UTC)
        return now - self.last_accessed_time >= timedelta(seconds=self.max_inactive_interval)

    def mark_persisted(self) -> None:
        """Called by repositories once the session is stored under its current id."""
        self.original_id = self.id
        self.is_new = False

    def to_dict(self) -> dict:
        return {
            "session_id": self.id,
            "attributes": self.attributes,
            "created_at": self.creation_time.isoformat(),
            "last_activity": self.last_accessed_time.isoformat(),
            "max_inactive_interval": self.max_inactive_interval,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        return cls(
            session_id=data["session_id"],
            attributes=data.get("attributes"),
            creation_time=datetime.fromisoformat(data["created_at"]),
            last_accessed_time=datetime.fromisoformat(data["last_activity"]),
            max_inactive_interval=data.get("max_inactive_interval", DEFAULT_MAX_INACTIVE_INTERVAL),
            is_new=False,
        )

    def __repr__(self) -> str:
        return f"Session(id={self.id!r}, attributes={self.attribute_names!r})"
