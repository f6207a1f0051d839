"""
Cookie Module - Black Box Interface

Purpose: Transport session identifiers in HTTP cookies
Interface: read_cookie_values(), write_cookie_value()
Hidden: Cookie header parsing, attribute formatting, value encoding

Can be replaced with any serializer that satisfies CookieSerializer.
"""

from .serializer import (
    DEFAULT_COOKIE_NAME,
    REMEMBER_ME_MAX_AGE,
    CookieDescriptor,
    CookieSerializer,
    CookieValue,
    DefaultCookieSerializer,
)

__all__ = [
    "DEFAULT_COOKIE_NAME",
    "REMEMBER_ME_MAX_AGE",
    "CookieDescriptor",
    "CookieSerializer",
    "CookieValue",
    "DefaultCookieSerializer",
]
