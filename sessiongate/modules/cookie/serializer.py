"""Reading and writing session identifiers as HTTP cookies."""

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from starlette.requests import Request
from starlette.responses import Response

from ..exceptions import SessionConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_COOKIE_NAME = "SESSION"

# Lifetime used when the remember-me request attribute is present
REMEMBER_ME_MAX_AGE = 2147483647

_COOKIE_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_TOKEN_PATTERN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_SAME_SITE_VALUES = {"strict": "Strict", "lax": "Lax", "none": "None"}


class CookieDescriptor(BaseModel):
    """Immutable cookie configuration shared by every request."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default=DEFAULT_COOKIE_NAME, description="Cookie name")
    domain: Optional[str] = Field(None, description="Cookie domain, host-only when unset")
    path: Optional[str] = Field(None, description="Cookie path, request root path + '/' when unset")
    max_age: int = Field(default=-1, ge=-1, description="Max-Age in seconds, -1 for a browser-session cookie")
    http_only: bool = Field(default=True, description="Emit the HttpOnly attribute")
    secure: Optional[bool] = Field(None, description="Emit Secure, follows the request scheme when unset")
    same_site: Optional[str] = Field(default="Lax", description="SameSite policy: Strict, Lax or None")
    remember_me_request_attribute: Optional[str] = Field(
        None, description="request.state attribute that extends the cookie lifetime"
    )
    use_base64_encoding: bool = Field(default=False, description="Base64 encode the cookie value")
    jvm_route: Optional[str] = Field(None, description="Route suffix appended to the value")

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise SessionConfigurationError(f"Invalid cookie configuration: {e}") from e

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        """Cookie names must be non-empty RFC 6265 tokens."""
        if not v or not _TOKEN_PATTERN.match(v):
            raise ValueError(f"Invalid cookie name: {v!r}")
        return v

    @field_validator("same_site")
    @classmethod
    def validate_same_site(cls, v):
        if v is None:
            return v
        try:
            return _SAME_SITE_VALUES[v.lower()]
        except KeyError:
            raise ValueError(f"Invalid SameSite policy: {v!r}") from None


@dataclass
class CookieValue:
    """A cookie write request: the value to send plus the exchange it belongs to."""

    request: Request
    response: Response
    cookie_value: str


class CookieSerializer(Protocol):
    """Protocol for cookie serializers."""

    def read_cookie_values(self, request: Request) -> List[str]:
        """Return the values of all matching cookies in transport order."""
        ...

    def write_cookie_value(self, cookie_value: CookieValue) -> None:
        """Add a Set-Cookie header; an empty value clears the cookie."""
        ...


class DefaultCookieSerializer:
    """
    Cookie serializer driven by a CookieDescriptor.

    Example:
        serializer = DefaultCookieSerializer(name="SESSION", max_age=1800)
    """

    def __init__(self, descriptor: Optional[CookieDescriptor] = None, **options: Any):
        """
        Initialize serializer.

        Args:
            descriptor: Complete cookie descriptor
            **options: Descriptor fields, used when no descriptor is given

        Raises:
            SessionConfigurationError: If the descriptor is invalid
        """
        if descriptor is not None and options:
            raise SessionConfigurationError("Pass either a descriptor or descriptor options, not both")

        if descriptor is None:
            descriptor = CookieDescriptor(**options)

        self.descriptor = descriptor
        self._route_suffix = f".{descriptor.jvm_route}" if descriptor.jvm_route else None

    @property
    def cookie_name(self) -> str:
        return self.descriptor.name

    def read_cookie_values(self, request: Request) -> List[str]:
        values = []
        for header in request.headers.getlist("cookie"):
            for chunk in header.split(";"):
                if "=" in chunk:
                    key, value = chunk.split("=", 1)
                else:
                    key, value = "", chunk
                if key.strip() != self.descriptor.name:
                    continue

                value = value.strip()
                if len(value) >= 2 and value[0] == value[-1] == '"':
                    value = value[1:-1]

                session_id = self._decode(value)
                if session_id:
                    values.append(session_id)
        return values

    def write_cookie_value(self, cookie_value: CookieValue) -> None:
        descriptor = self.descriptor
        request = cookie_value.request
        value = cookie_value.cookie_value

        max_age = self._max_age(cookie_value)
        if max_age == 0:
            expires: Any = _COOKIE_EPOCH
        elif max_age > 0:
            expires = max_age
        else:
            expires = None

        cookie_value.response.set_cookie(
            key=descriptor.name,
            value=self._encode(value) if value else "",
            max_age=max_age if max_age >= 0 else None,
            expires=expires,
            path=descriptor.path or self._default_path(request),
            domain=descriptor.domain,
            secure=descriptor.secure if descriptor.secure is not None else request.url.scheme == "https",
            httponly=descriptor.http_only,
            samesite=descriptor.same_site.lower() if descriptor.same_site else None,
        )

    def _max_age(self, cookie_value: CookieValue) -> int:
        if not cookie_value.cookie_value:
            return 0
        attribute = self.descriptor.remember_me_request_attribute
        if attribute and getattr(cookie_value.request.state, attribute, None) is not None:
            return REMEMBER_ME_MAX_AGE
        return self.descriptor.max_age

    def _encode(self, value: str) -> str:
        if self._route_suffix:
            value += self._route_suffix
        if self.descriptor.use_base64_encoding:
            value = base64.b64encode(value.encode("utf-8")).decode("ascii")
        return value

    def _decode(self, value: str) -> Optional[str]:
        if self.descriptor.use_base64_encoding:
            try:
                value = base64.b64decode(value, validate=True).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError):
                logger.debug(f"Ignoring undecodable {self.descriptor.name} cookie value")
                return None
        if self._route_suffix and value.endswith(self._route_suffix):
            value = value[: -len(self._route_suffix)]
        return value

    @staticmethod
    def _default_path(request: Request) -> str:
        return request.scope.get("root_path", "").rstrip("/") + "/"
