"""Exceptions shared by the SessionGate modules."""

from typing import List, Optional


class SessionGateError(Exception):
    """Base class for all session layer errors."""


class SessionConfigurationError(SessionGateError, ValueError):
    """Invalid cookie descriptor, alias set or strategy wiring.

    Raised while the components are being built, never while serving a request.
    """


class SessionInvalidatedError(SessionGateError, RuntimeError):
    """A session facade was used after it was invalidated."""


class ListenerNotificationError(SessionGateError):
    """One or more session listeners failed while handling an event."""

    def __init__(self, message: str, errors: Optional[List[BaseException]] = None):
        super().__init__(message)
        self.errors = errors or []


class UnknownSessionAliasError(SessionGateError, KeyError):
    """A session channel alias that the configured strategy does not define."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Unknown session alias"
