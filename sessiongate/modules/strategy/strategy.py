import logging
from typing import Dict, List, Mapping, NamedTuple, Optional, Protocol, Sequence, Tuple

from starlette.requests import Request
from starlette.responses import Response

from ..cookie import DEFAULT_COOKIE_NAME, CookieSerializer, CookieValue, DefaultCookieSerializer
from ..exceptions import SessionConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ALIAS = "SESSION"


class SessionIdCandidate(NamedTuple):
    """Session identifier read from a request, tagged with its channel alias."""

    alias: str
    session_id: str


class SessionStrategy(Protocol):
    """Protocol for session identifier transport strategies."""

    @property
    def aliases(self) -> Tuple[str, ...]:
        """Channel aliases, primary first."""
        ...

    def resolve_session_ids(self, request: Request) -> List[SessionIdCandidate]:
        """Candidate identifiers from the request, in priority order."""
        ...

    def get_session_id(self, request: Request, alias: str) -> Optional[str]:
        """Identifier offered by the request for a specific alias, if supported."""
        ...

    def save_session_ids(
        self, session_ids: Mapping[str, str], request: Request, response: Response
    ) -> None:
        """Write identifiers per alias; an empty identifier clears the channel."""
        ...


class CookieSessionStrategy:
    """Single-channel strategy that keeps the identifier in one cookie."""

    def __init__(
        self,
        cookie_serializer: Optional[CookieSerializer] = None,
        alias: str = DEFAULT_ALIAS,
    ):
        """
        Initialize cookie strategy.

        Args:
            cookie_serializer: Serializer to read and write the cookie (default: SESSION cookie)
            alias: Channel alias used to tag candidates
        """
        if not alias:
            raise SessionConfigurationError("Session strategy alias must not be empty")
        self.cookie_serializer = cookie_serializer or DefaultCookieSerializer()
        self.alias = alias

    @property
    def aliases(self) -> Tuple[str, ...]:
        return (self.alias,)

    @property
    def cookie_name(self) -> str:
        return getattr(self.cookie_serializer, "cookie_name", DEFAULT_COOKIE_NAME)

    def resolve_session_ids(self, request: Request) -> List[SessionIdCandidate]:
        return [
            SessionIdCandidate(self.alias, session_id)
            for session_id in self.cookie_serializer.read_cookie_values(request)
        ]

    def get_session_id(self, request: Request, alias: str) -> Optional[str]:
        # Alternate lookups need a multiplexed strategy
        return None

    def save_session_id(self, session_id: str, request: Request, response: Response) -> None:
        self.cookie_serializer.write_cookie_value(CookieValue(request, response, session_id))

    def save_session_ids(
        self, session_ids: Mapping[str, str], request: Request, response: Response
    ) -> None:
        if self.alias in session_ids:
            self.save_session_id(session_ids[self.alias], request, response)


class MultiplexedSessionStrategy:
    """
    Runs several independent cookie channels over one request/response pair.

    Typical use is a primary session plus an alternate, independently expiring
    one. Each channel only reads and writes its own cookie.
    """

    def __init__(self, channels: Sequence[Tuple[str, CookieSessionStrategy]]):
        """
        Initialize multiplexed strategy.

        Args:
            channels: Ordered (alias, strategy) pairs; the first is the primary channel

        Raises:
            SessionConfigurationError: On empty, duplicate aliases or shared cookie names
        """
        if not channels:
            raise SessionConfigurationError("Multiplexed strategy needs at least one channel")

        self._channels: Dict[str, CookieSessionStrategy] = {}
        cookie_names = set()
        for alias, strategy in channels:
            if not alias:
                raise SessionConfigurationError("Session strategy alias must not be empty")
            if alias in self._channels:
                raise SessionConfigurationError(f"Duplicate session alias: {alias}")
            if strategy.cookie_name in cookie_names:
                raise SessionConfigurationError(
                    f"Cookie {strategy.cookie_name} is used by more than one session alias"
                )
            cookie_names.add(strategy.cookie_name)
            self._channels[alias] = strategy

    @property
    def aliases(self) -> Tuple[str, ...]:
        return tuple(self._channels)

    def channel(self, alias: str) -> CookieSessionStrategy:
        return self._channels[alias]

    def resolve_session_ids(self, request: Request) -> List[SessionIdCandidate]:
        candidates = []
        seen = set()
        for alias, strategy in self._channels.items():
            for candidate in strategy.resolve_session_ids(request):
                if candidate.session_id in seen:
                    logger.debug(
                        f"Session id offered by alias {alias} already claimed by an earlier channel"
                    )
                    continue
                seen.add(candidate.session_id)
                candidates.append(SessionIdCandidate(alias, candidate.session_id))
        return candidates

    def get_session_id(self, request: Request, alias: str) -> Optional[str]:
        for candidate in self.resolve_session_ids(request):
            if candidate.alias == alias:
                return candidate.session_id
        return None

    def save_session_id(self, session_id: str, request: Request, response: Response) -> None:
        self.save_session_ids({self.aliases[0]: session_id}, request, response)

    def save_session_ids(
        self, session_ids: Mapping[str, str], request: Request, response: Response
    ) -> None:
        for alias, session_id in session_ids.items():
            self._channels[alias].save_session_id(session_id, request, response)
