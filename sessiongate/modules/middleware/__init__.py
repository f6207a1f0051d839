"""
Session Middleware Module - Black Box Interface

Purpose: Back request sessions with a SessionRepository for FastAPI/Starlette apps
Interface: SessionRepositoryMiddleware, get_http_session(), install_session_middleware()
Hidden: Identifier resolution, deferred session creation, commit-time persistence

Handlers only ever see request.state.session_context and HttpSession;
the repository and strategy behind them are completely replaceable.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from .context import ChannelState, HttpSession, SessionRequestContext
from .factory import SessionComponents, SessionFactory
from .session_middleware import SESSION_CONTEXT_ATTRIBUTE, SessionRepositoryMiddleware


async def get_http_session(request: Request) -> HttpSession:
    """FastAPI dependency returning the primary session, created if needed."""
    context = get_session_context(request)
    return await context.get_session(create=True)


def get_session_context(request: Request) -> SessionRequestContext:
    """Return the session context installed by SessionRepositoryMiddleware."""
    context = getattr(request.state, SESSION_CONTEXT_ATTRIBUTE, None)
    if context is None:
        raise RuntimeError("SessionRepositoryMiddleware is not installed for this application")
    return context


def install_session_middleware(app, middleware: SessionRepositoryMiddleware) -> SessionRepositoryMiddleware:
    """
    Register the middleware on a FastAPI/Starlette application.

    Must be called before the application starts serving.
    """
    app.add_middleware(BaseHTTPMiddleware, dispatch=middleware)
    return middleware


__all__ = [
    "ChannelState",
    "HttpSession",
    "SESSION_CONTEXT_ATTRIBUTE",
    "SessionComponents",
    "SessionFactory",
    "SessionRepositoryMiddleware",
    "SessionRequestContext",
    "get_http_session",
    "get_session_context",
    "install_session_middleware",
]
