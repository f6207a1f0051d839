"""
Per-request session state.

Each channel (alias) of the strategy moves through
UNRESOLVED -> RESOLVED_EXISTING | RESOLVED_NEW -> COMMITTED. Nothing is
written to the repository before commit(), except deletes caused by an
explicit invalidate().
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from starlette.requests import Request
from starlette.responses import Response

from ..exceptions import SessionInvalidatedError, UnknownSessionAliasError
from ..session import Session, SessionRepository
from ..strategy import SessionIdCandidate, SessionStrategy

logger = logging.getLogger(__name__)


class ChannelState(str, Enum):
    """Resolution state of one session channel within a request."""

    UNRESOLVED = "unresolved"
    RESOLVED_EXISTING = "resolved_existing"
    RESOLVED_NEW = "resolved_new"
    COMMITTED = "committed"


class _Channel:
    def __init__(self, alias: str):
        self.alias = alias
        self.state = ChannelState.UNRESOLVED
        self.looked_up = False
        self.requested_session_id: Optional[str] = None
        self.requested_session_valid = False
        self.session: Optional[Session] = None
        self.facade: Optional["HttpSession"] = None
        self.invalidated = False
        self.accessed = False


class HttpSession:
    """
    Session facade handed to request handlers.

    Reads and writes go to the session held in memory for this request; the
    repository sees them at commit time.
    """

    def __init__(self, context: "SessionRequestContext", channel: _Channel, session: Session, is_new: bool):
        self._context = context
        self._channel = channel
        self._session = session
        self._is_new = is_new
        self._invalidated = False

    def _check_valid(self) -> Session:
        if self._invalidated:
            raise SessionInvalidatedError(f"Session {self._session.id} has been invalidated")
        return self._session

    @property
    def id(self) -> str:
        return self._check_valid().id

    @property
    def alias(self) -> str:
        return self._channel.alias

    @property
    def is_new(self) -> bool:
        self._check_valid()
        return self._is_new

    @property
    def creation_time(self) -> datetime:
        return self._check_valid().creation_time

    @property
    def last_accessed_time(self) -> datetime:
        return self._check_valid().last_accessed_time

    @property
    def max_inactive_interval(self) -> int:
        return self._check_valid().max_inactive_interval

    @max_inactive_interval.setter
    def max_inactive_interval(self, seconds: int) -> None:
        self._check_valid().max_inactive_interval = seconds

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self._check_valid().get_attribute(name, default)

    def set_attribute(self, name: str, value: Any) -> None:
        self._check_valid().set_attribute(name, value)

    def remove_attribute(self, name: str) -> None:
        self._check_valid().remove_attribute(name)

    @property
    def attribute_names(self) -> List[str]:
        return self._check_valid().attribute_names

    async def invalidate(self) -> None:
        """Destroy the session now and clear the client cookie at commit."""
        self._check_valid()
        self._invalidated = True
        await self._context._invalidate(self._channel)

    def __repr__(self) -> str:
        state = "invalidated" if self._invalidated else self._session.id
        return f"HttpSession(alias={self.alias!r}, session={state!r})"


class SessionRequestContext:
    """Session access for a single request, installed by SessionRepositoryMiddleware."""

    def __init__(self, request: Request, repository: SessionRepository, strategy: SessionStrategy):
        """
        Initialize request context.

        Args:
            request: Incoming request
            repository: Session repository
            strategy: Strategy used to read and write identifiers
        """
        self.request = request
        self.repository = repository
        self.strategy = strategy
        self._channels: Dict[str, _Channel] = {alias: _Channel(alias) for alias in strategy.aliases}
        self._primary_alias = strategy.aliases[0]
        self._candidates: Optional[List[SessionIdCandidate]] = None
        self._committed = False

    @property
    def committed(self) -> bool:
        return self._committed

    def state(self, alias: Optional[str] = None) -> ChannelState:
        return self._channel(alias).state

    def _channel(self, alias: Optional[str]) -> _Channel:
        alias = alias or self._primary_alias
        try:
            return self._channels[alias]
        except KeyError:
            raise UnknownSessionAliasError(f"Unknown session alias: {alias}") from None

    @property
    def candidates(self) -> List[SessionIdCandidate]:
        if self._candidates is None:
            self._candidates = self.strategy.resolve_session_ids(self.request)
        return self._candidates

    def requested_session_id(self, alias: Optional[str] = None) -> Optional[str]:
        """Identifier the client sent for this alias, without touching the repository."""
        channel = self._channel(alias)
        if channel.requested_session_id is not None:
            return channel.requested_session_id
        for candidate in self.candidates:
            if candidate.alias == channel.alias:
                return candidate.session_id
        return None

    async def is_requested_session_id_valid(self, alias: Optional[str] = None) -> bool:
        channel = self._channel(alias)
        if not channel.looked_up:
            await self._resolve(channel)
        return channel.requested_session_valid

    async def get_session(self, create: bool = True, alias: Optional[str] = None) -> Optional[HttpSession]:
        """
        Return the session for the alias (primary channel by default).

        Args:
            create: Create a new session when none resolves
            alias: Strategy alias of the channel

        Returns:
            HttpSession, or None when no session exists and create is False
        """
        if self._committed:
            raise RuntimeError("Session context has already been committed")

        channel = self._channel(alias)
        if channel.facade is not None:
            return channel.facade

        if not channel.looked_up:
            await self._resolve(channel)
        if channel.session is not None:
            channel.state = ChannelState.RESOLVED_EXISTING
            channel.accessed = True
            channel.facade = HttpSession(self, channel, channel.session, is_new=False)
            return channel.facade

        if not create:
            return None

        channel.session = self.repository.create_session()
        channel.state = ChannelState.RESOLVED_NEW
        channel.accessed = True
        channel.facade = HttpSession(self, channel, channel.session, is_new=True)
        logger.debug(f"Created new session {channel.session.id} for alias {channel.alias}")
        return channel.facade

    async def change_session_id(self, alias: Optional[str] = None) -> str:
        """
        Give the current session a new identifier, keeping its attributes.

        Raises:
            RuntimeError: If the request has no session
        """
        session = await self.get_session(create=False, alias=alias)
        if session is None:
            raise RuntimeError("Cannot change session id: no session is associated with this request")

        old_id = session.id
        new_id = self._channel(alias).session.change_session_id()
        logger.debug(f"Changed session id {old_id} -> {new_id}")
        return new_id

    async def _resolve(self, channel: _Channel) -> None:
        channel.looked_up = True
        for candidate in self.candidates:
            if candidate.alias != channel.alias:
                continue
            if channel.requested_session_id is None:
                channel.requested_session_id = candidate.session_id

            try:
                session = await self.repository.get(candidate.session_id)
            except Exception as e:
                logger.warning(f"Session lookup failed for alias {channel.alias}, treating as not found: {e}")
                continue

            if session is None or session.is_expired():
                logger.debug(f"No live session for requested id under alias {channel.alias}")
                continue

            channel.requested_session_id = candidate.session_id
            channel.requested_session_valid = True
            channel.session = session
            return

    async def _invalidate(self, channel: _Channel) -> None:
        session = channel.session
        channel.session = None
        channel.facade = None
        channel.invalidated = True
        if session is not None and not session.is_new:
            await self.repository.delete(session.original_id)
        logger.debug(f"Invalidated session for alias {channel.alias}")

    async def commit(self, response: Optional[Response]) -> None:
        """
        Flush session state and write identifiers. Runs at most once.

        Args:
            response: Outgoing response, or None when the handler failed

        Raises:
            Exception: Whatever the repository raises while saving
        """
        if self._committed:
            return
        self._committed = True

        session_ids: Dict[str, str] = {}
        for alias, channel in self._channels.items():
            if channel.accessed and channel.session is not None:
                await self.repository.save(channel.session)
                if not channel.requested_session_valid or channel.session.id != channel.requested_session_id:
                    session_ids[alias] = channel.session.id
            elif channel.invalidated:
                session_ids[alias] = ""
            else:
                continue
            channel.state = ChannelState.COMMITTED

        if response is not None and session_ids:
            self.strategy.save_session_ids(session_ids, self.request, response)
