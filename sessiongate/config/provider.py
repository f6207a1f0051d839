"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple

from ..modules.exceptions import SessionConfigurationError
from ..modules.session import DEFAULT_MAX_INACTIVE_INTERVAL


@dataclass(frozen=True)
class SessionCookieConfig:
    """Session cookie configuration."""
    name: str = "SESSION"
    domain: Optional[str] = None
    path: Optional[str] = None
    max_age: int = -1
    http_only: bool = True
    secure: Optional[bool] = None
    same_site: Optional[str] = "Lax"
    remember_me_attribute: Optional[str] = None
    use_base64_encoding: bool = False
    jvm_route: Optional[str] = None


@dataclass(frozen=True)
class SessionConfig:
    """Session layer configuration."""
    cookie: SessionCookieConfig = field(default_factory=SessionCookieConfig)
    aliases: List[Tuple[str, str]] = field(default_factory=list)
    remember_me: bool = False
    max_inactive_interval: int = DEFAULT_MAX_INACTIVE_INTERVAL

    @property
    def is_multiplexed(self) -> bool:
        """Check if more than the default channel is configured."""
        return bool(self.aliases)


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_session_config(self) -> SessionConfig:
        """Get session configuration."""
        ...


class StaticConfigProvider:
    """Configuration provider returning a fixed configuration."""

    def __init__(self, session_config: Optional[SessionConfig] = None):
        self._session_config = session_config or SessionConfig()

    def get_session_config(self) -> SessionConfig:
        return self._session_config


def _env_bool(name: str, default: Optional[bool]) -> Optional[bool]:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.lower() == "true"


def parse_aliases(value: str) -> List[Tuple[str, str]]:
    """
    Parse an alias list in ``alias:cookie_name`` format.

    Entries without a cookie name use the alias as cookie name.

    Example:
        >>> parse_aliases("SESSION:SESSION,ALT:ALT_SESSION")
        [('SESSION', 'SESSION'), ('ALT', 'ALT_SESSION')]
    """
    aliases = []
    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue

        if ":" in entry:
            alias, cookie_name = entry.split(":", 1)
        else:
            alias, cookie_name = entry, entry

        alias, cookie_name = alias.strip(), cookie_name.strip()
        if not alias or not cookie_name:
            raise SessionConfigurationError(f"Invalid session alias entry: {entry!r}")
        aliases.append((alias, cookie_name))
    return aliases


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_session_config(self) -> SessionConfig:
        """Get session configuration from environment variables."""
        try:
            cookie = SessionCookieConfig(
                name=os.getenv("SESSION_COOKIE_NAME", "SESSION"),
                domain=os.getenv("SESSION_COOKIE_DOMAIN") or None,
                path=os.getenv("SESSION_COOKIE_PATH") or None,
                max_age=int(os.getenv("SESSION_COOKIE_MAX_AGE", "-1")),
                http_only=_env_bool("SESSION_COOKIE_HTTP_ONLY", True),
                secure=_env_bool("SESSION_COOKIE_SECURE", None),
                same_site=os.getenv("SESSION_COOKIE_SAME_SITE", "Lax") or None,
                remember_me_attribute=os.getenv("SESSION_REMEMBER_ME_ATTRIBUTE") or None,
                use_base64_encoding=_env_bool("SESSION_COOKIE_BASE64", False),
                jvm_route=os.getenv("SESSION_COOKIE_ROUTE") or None,
            )
            max_inactive_interval = int(
                os.getenv("SESSION_MAX_INACTIVE_INTERVAL", str(DEFAULT_MAX_INACTIVE_INTERVAL))
            )
        except ValueError as e:
            raise SessionConfigurationError(f"Invalid session configuration: {e}") from e

        return SessionConfig(
            cookie=cookie,
            aliases=parse_aliases(os.getenv("SESSION_ALIASES", "")),
            remember_me=_env_bool("SESSION_REMEMBER_ME", False),
            max_inactive_interval=max_inactive_interval,
        )
