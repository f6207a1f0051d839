"""Request hook that binds a SessionRequestContext to each request."""

import logging
from typing import Optional

from fastapi import Request

from ..session import SessionRepository
from ..strategy import CookieSessionStrategy, SessionStrategy
from .context import SessionRequestContext

logger = logging.getLogger(__name__)

SESSION_CONTEXT_ATTRIBUTE = "session_context"


class SessionRepositoryMiddleware:
    """
    Middleware that replaces per-request session handling with a repository.

    For each request it installs a SessionRequestContext on request.state,
    runs the downstream handlers and commits the context exactly once.
    """

    def __init__(
        self,
        repository: SessionRepository,
        strategy: Optional[SessionStrategy] = None,
        context_attribute: str = SESSION_CONTEXT_ATTRIBUTE,
    ):
        """
        Initialize session middleware.

        Args:
            repository: Session repository backing all sessions
            strategy: Identifier transport strategy (default: SESSION cookie)
            context_attribute: request.state attribute holding the context
        """
        self.repository = repository
        self.strategy = strategy or CookieSessionStrategy()
        self.context_attribute = context_attribute

    async def __call__(self, request: Request, call_next):
        """Process the request with a repository-backed session context."""
        if getattr(request.state, self.context_attribute, None) is not None:
            # Already wrapped further up the stack
            return await call_next(request)

        context = SessionRequestContext(request, self.repository, self.strategy)
        setattr(request.state, self.context_attribute, context)

        try:
            response = await call_next(request)
        except Exception:
            logger.debug(f"Handler failed for {request.method} {request.url.path}, committing session without response")
            await context.commit(None)
            raise

        await context.commit(response)
        return response
