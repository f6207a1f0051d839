"""
Config Module - Black Box Interface

Purpose: Server and storage settings of the SessionGate API
Interface: get_config(), ConfigModule.get(), ConfigModule.set()
Hidden: Environment variable names, parsing, validation

Session cookie and strategy options live in sessiongate.config.provider;
this module covers the server and storage settings around them.
"""

import os
from typing import Any, Callable, Dict, Tuple

SUPPORTED_REPOSITORIES = ("redis", "memory")

# Contract: keys the module always provides
REQUIRED_CONFIG_KEYS = {
    "session_repository": "Session repository backend (redis or memory)",
    "redis_host": "Redis server hostname",
    "redis_port": "Redis server port number",
    "redis_db": "Redis database number",
    "host": "API server bind address",
    "port": "API server port",
    "log_level": "Logging level (DEBUG, INFO, WARNING, ERROR)",
}

OPTIONAL_CONFIG_KEYS = {
    "redis_password": {
        "description": "Redis authentication password",
        "default": None,
    },
    "debug": {
        "description": "Enable uvicorn auto-reload",
        "default": False,
    },
}


def _port(value: str) -> int:
    # Kubernetes service links inject REDIS_PORT as tcp://host:port
    return int(value.rsplit(":", 1)[-1]) if value.startswith("tcp://") else int(value)


def _flag(value: str) -> bool:
    return value.lower() == "true"


# key -> (environment variable, default, parser)
_ENV_SETTINGS: Dict[str, Tuple[str, Any, Callable[[str], Any]]] = {
    "session_repository": ("SESSION_REPOSITORY", "redis", str.lower),
    "redis_host": ("REDIS_HOST", "localhost", str),
    "redis_port": ("REDIS_PORT", "6379", _port),
    "redis_db": ("REDIS_DB", "0", int),
    "redis_password": ("REDIS_PASSWORD", None, str),
    "host": ("API_HOST", "0.0.0.0", str),
    "port": ("API_PORT", "8080", int),
    "log_level": ("LOG_LEVEL", "INFO", str.upper),
    "debug": ("DEBUG", "false", _flag),
}


class ConfigModule:
    """Server configuration loaded from the environment."""

    def __init__(self):
        """
        Load and validate settings.

        Raises:
            ValueError: If a setting is missing, malformed or unsupported
        """
        self._config = self._load_from_env()
        self._validate()

    @staticmethod
    def _load_from_env() -> Dict[str, Any]:
        config = {}
        for key, (env_var, default, parse) in _ENV_SETTINGS.items():
            raw = os.getenv(env_var, default)
            try:
                config[key] = parse(raw) if raw is not None else None
            except ValueError as e:
                raise ValueError(f"Invalid value for {env_var}: {raw!r}") from e
        return config

    def _validate(self) -> None:
        missing = [key for key in self.get_config_schema()["required"] if self._config.get(key) is None]
        if missing:
            raise ValueError(f"Missing required configuration keys: {', '.join(missing)}")

        repository = self._config["session_repository"]
        if repository not in SUPPORTED_REPOSITORIES:
            raise ValueError(
                f"Unsupported session repository: {repository}. "
                f"Expected one of: {', '.join(SUPPORTED_REPOSITORIES)}"
            )

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._config[key] = value

    def get_all(self) -> Dict[str, Any]:
        """Copy of every setting."""
        return dict(self._config)

    @staticmethod
    def get_config_schema() -> Dict[str, Any]:
        """
        Describe the configuration contract.

        Example:
            >>> ConfigModule.get_config_schema()["required"]["redis_host"]
            'Redis server hostname'
        """
        return {
            "required": dict(REQUIRED_CONFIG_KEYS),
            "optional": dict(OPTIONAL_CONFIG_KEYS),
        }


_instance = None


def get_config() -> ConfigModule:
    """Get the configuration module singleton."""
    global _instance
    if _instance is None:
        _instance = ConfigModule()
    return _instance


__all__ = ["ConfigModule", "SUPPORTED_REPOSITORIES", "get_config"]
