"""
API Module - Black Box Interface

Purpose: Request and response models of the session endpoints
Interface: Pydantic models used by sessiongate.main
Hidden: Field validation and serialization

The endpoints only orchestrate; all session logic lives in the
session and middleware modules.
"""

from .models import (
    HealthResponse,
    SessionIdResponse,
    SessionResponse,
    SetAttributeRequest,
    UpdateSessionRequest,
)

__all__ = [
    "HealthResponse",
    "SessionIdResponse",
    "SessionResponse",
    "SetAttributeRequest",
    "UpdateSessionRequest",
]
