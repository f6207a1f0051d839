"""
SessionGate API data models.

These models define the request and response bodies of the
session inspection endpoints.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


# Request Models (API Input)


class SetAttributeRequest(BaseModel):
    """Request to store a session attribute."""

    value: Any = Field(..., description="JSON-serializable attribute value")


class UpdateSessionRequest(BaseModel):
    """Request to update session settings."""

    max_inactive_interval: Optional[int] = Field(
        None, description="Seconds of inactivity before the session expires, negative for never"
    )


# Response Models (API Output)


class SessionResponse(BaseModel):
    """Current session as seen by the request."""

    session_id: str
    is_new: bool
    created_at: datetime
    last_accessed_at: datetime
    max_inactive_interval: int
    attributes: Dict[str, Any] = Field(default_factory=dict)


class SessionIdResponse(BaseModel):
    """Response after rotating the session id."""

    session_id: str
    previous_session_id: str


class HealthResponse(BaseModel):
    """Service health."""

    status: str
    repository: str
    multiplexed: bool = False
