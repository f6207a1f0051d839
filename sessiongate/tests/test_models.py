"""
Unit tests for SessionGate data models.
"""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from sessiongate.modules.api import (
    HealthResponse,
    SessionIdResponse,
    SessionResponse,
    SetAttributeRequest,
    UpdateSessionRequest,
)
from sessiongate.modules.cookie import CookieDescriptor
from sessiongate.modules.exceptions import SessionConfigurationError


class TestCookieDescriptor:
    """Test cookie descriptor model."""

    def test_defaults(self):
        """Test the default session cookie settings."""
        descriptor = CookieDescriptor()
        assert descriptor.name == "SESSION"
        assert descriptor.max_age == -1
        assert descriptor.http_only is True
        assert descriptor.secure is None
        assert descriptor.same_site == "Lax"

    def test_same_site_is_normalized(self):
        assert CookieDescriptor(same_site="strict").same_site == "Strict"
        assert CookieDescriptor(same_site="NONE").same_site == "None"
        assert CookieDescriptor(same_site=None).same_site is None

    def test_descriptor_is_immutable(self):
        """Test that descriptors cannot change after construction."""
        descriptor = CookieDescriptor()
        with pytest.raises(ValidationError):
            descriptor.name = "OTHER"

    def test_invalid_name(self):
        """Test that invalid descriptors fail with a configuration error."""
        with pytest.raises(SessionConfigurationError) as exc_info:
            CookieDescriptor(name="bad=name")
        assert "Invalid cookie name" in str(exc_info.value)

    def test_max_age_lower_bound(self):
        with pytest.raises(SessionConfigurationError):
            CookieDescriptor(max_age=-2)


class TestRequestModels:
    """Test API request models."""

    def test_attribute_value_required(self):
        with pytest.raises(ValidationError):
            SetAttributeRequest()

    def test_attribute_accepts_json_values(self):
        request = SetAttributeRequest(value={"items": [1, 2, 3]})
        assert request.value == {"items": [1, 2, 3]}

    def test_update_is_optional(self):
        assert UpdateSessionRequest().max_inactive_interval is None
        assert UpdateSessionRequest(max_inactive_interval=-1).max_inactive_interval == -1


class TestResponseModels:
    """Test API response models."""

    def test_session_response(self):
        now = datetime.now(UTC)
        response = SessionResponse(
            session_id="abc",
            is_new=True,
            created_at=now,
            last_accessed_at=now,
            max_inactive_interval=1800,
        )
        assert response.attributes == {}
        assert response.model_dump()["session_id"] == "abc"

    def test_session_id_response(self):
        response = SessionIdResponse(session_id="new", previous_session_id="old")
        assert response.previous_session_id == "old"

    def test_health_response(self):
        response = HealthResponse(status="healthy", repository="memory")
        assert response.multiplexed is False
