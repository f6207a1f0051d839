"""
Session Factory following Black Box Design principles.

This factory:
- Resolves the cookie serializer and strategy from configuration
- Wires the listener adapter to the repository
- Returns the request middleware ready to install
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ...config.provider import ConfigProvider, SessionConfig
from ..cookie import CookieDescriptor, CookieSerializer, DefaultCookieSerializer
from ..events import SessionEventListenerAdapter, SessionListener
from ..exceptions import SessionConfigurationError
from ..session import SessionEventPublisher, SessionRepository
from ..strategy import CookieSessionStrategy, MultiplexedSessionStrategy, SessionStrategy
from .session_middleware import SessionRepositoryMiddleware

logger = logging.getLogger(__name__)

# request.state attribute set by remember-me login handling
REMEMBER_ME_LOGIN_ATTR = "remember_me_login"


@dataclass
class SessionComponents:
    """Everything the application needs to serve repository-backed sessions."""
    middleware: SessionRepositoryMiddleware
    listener_adapter: SessionEventListenerAdapter
    strategy: SessionStrategy
    subscribed: bool


class SessionFactory:
    """
    Factory for building the session stack.

    This is the composition root that:
    - Chooses serializer and strategy once, at startup
    - Registers listeners with the repository when it publishes events
    - Returns only the public components
    """

    @staticmethod
    def build(
        config_provider: ConfigProvider,
        repository: SessionRepository,
        listeners: Sequence[SessionListener] = (),
        cookie_serializer: Optional[CookieSerializer] = None,
        session_strategy: Optional[SessionStrategy] = None,
        remember_me_probe: Optional[Callable[[], bool]] = None,
    ) -> SessionComponents:
        """
        Build the complete session stack.

        Args:
            config_provider: Configuration provider
            repository: Session repository
            listeners: Ordered session listeners
            cookie_serializer: Explicit serializer, takes precedence over remember-me defaults
            session_strategy: Explicit strategy, takes precedence over configured aliases
            remember_me_probe: Reports whether remember-me login is active

        Returns:
            SessionComponents with middleware, listener adapter and strategy

        Raises:
            SessionConfigurationError: If the configuration is invalid
        """
        session_config = config_provider.get_session_config()
        remember_me = remember_me_probe() if remember_me_probe else session_config.remember_me

        strategy = session_strategy or SessionFactory.build_strategy(
            session_config, cookie_serializer, remember_me
        )

        listener_adapter = SessionEventListenerAdapter(listeners)
        subscribed = isinstance(repository, SessionEventPublisher)
        if subscribed:
            repository.subscribe(listener_adapter.on_session_event)
            logger.info(f"Session listener adapter subscribed with {len(listener_adapter.listeners)} listener(s)")
        else:
            logger.info("Session repository does not publish events; listeners will not be notified")

        middleware = SessionRepositoryMiddleware(repository, strategy)
        return SessionComponents(
            middleware=middleware,
            listener_adapter=listener_adapter,
            strategy=strategy,
            subscribed=subscribed,
        )

    @staticmethod
    def build_descriptor(
        session_config: SessionConfig,
        remember_me: bool = False,
        name: Optional[str] = None,
    ) -> CookieDescriptor:
        """Create a cookie descriptor from configuration."""
        cookie = session_config.cookie
        remember_me_attribute = cookie.remember_me_attribute
        if remember_me:
            remember_me_attribute = REMEMBER_ME_LOGIN_ATTR

        options = dict(
            name=name or cookie.name,
            domain=cookie.domain,
            path=cookie.path,
            max_age=cookie.max_age,
            http_only=cookie.http_only,
            secure=cookie.secure,
            same_site=cookie.same_site,
            remember_me_request_attribute=remember_me_attribute,
            use_base64_encoding=cookie.use_base64_encoding,
            jvm_route=cookie.jvm_route,
        )
        return CookieDescriptor(**options)

    @staticmethod
    def build_strategy(
        session_config: SessionConfig,
        cookie_serializer: Optional[CookieSerializer] = None,
        remember_me: bool = False,
    ) -> SessionStrategy:
        """Choose single or multiplexed strategy from configuration."""
        if not session_config.is_multiplexed:
            if cookie_serializer is not None:
                if remember_me:
                    logger.info("Explicit cookie serializer configured; ignoring remember-me cookie defaults")
                serializer = cookie_serializer
            else:
                serializer = DefaultCookieSerializer(SessionFactory.build_descriptor(session_config, remember_me))
            logger.info("Building session stack with single cookie strategy")
            return CookieSessionStrategy(serializer)

        if cookie_serializer is not None:
            raise SessionConfigurationError(
                "An explicit cookie serializer cannot be combined with multiple session aliases"
            )

        channels = []
        for alias, cookie_name in session_config.aliases:
            descriptor = SessionFactory.build_descriptor(session_config, remember_me, name=cookie_name)
            channels.append((alias, CookieSessionStrategy(DefaultCookieSerializer(descriptor), alias=alias)))

        logger.info(f"Building session stack with multiplexed strategy: {[a for a, _ in channels]}")
        return MultiplexedSessionStrategy(channels)
