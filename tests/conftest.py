"""
Shared pytest fixtures for SessionGate tests.

This module provides common fixtures including:
- Redis mocks for repository tests
- In-memory repository and recording listeners
- FastAPI test application wired with the session middleware
"""

import os
import sys
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import Depends, FastAPI, Request, Response

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sessiongate.modules.events import SessionEvent, SessionListenerBase
from sessiongate.modules.middleware import (
    HttpSession,
    SessionRepositoryMiddleware,
    get_http_session,
    get_session_context,
    install_session_middleware,
)
from sessiongate.modules.session import InMemorySessionRepository


# =============================================================================
# Redis Mocking Infrastructure
# =============================================================================

@pytest.fixture
def mock_redis():
    """Create a comprehensive mock Redis client for async operations."""
    redis = AsyncMock()

    redis.setex = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    redis.delete = AsyncMock(return_value=1)
    redis.exists = AsyncMock(return_value=0)
    redis.expire = AsyncMock()

    redis.sadd = AsyncMock()
    redis.srem = AsyncMock()
    redis.smembers = AsyncMock(return_value=set())

    redis.lpush = AsyncMock()
    redis.ltrim = AsyncMock()

    redis.publish = AsyncMock()
    redis.ping = AsyncMock(return_value=True)

    pipeline = AsyncMock()
    pipeline.execute = AsyncMock(return_value=[])
    redis.pipeline = MagicMock(return_value=pipeline)

    return redis


@pytest.fixture
def mock_redis_with_data():
    """
    Redis mock with in-memory data storage for more realistic tests.

    This allows testing code that reads back what it writes.
    """
    storage = {}
    sets = {}
    ttls = {}

    redis = AsyncMock()

    async def mock_set(key, value, *args, **kwargs):
        storage[key] = value
        return True

    async def mock_setex(key, ttl, value):
        storage[key] = value
        ttls[key] = ttl
        return True

    async def mock_get(key):
        return storage.get(key)

    async def mock_delete(*keys):
        count = 0
        for key in keys:
            if key in storage:
                del storage[key]
                ttls.pop(key, None)
                count += 1
        return count

    async def mock_exists(*keys):
        return sum(1 for k in keys if k in storage)

    async def mock_sadd(key, *members):
        sets.setdefault(key, set()).update(members)
        return len(members)

    async def mock_srem(key, *members):
        sets.setdefault(key, set()).difference_update(members)
        return len(members)

    async def mock_smembers(key):
        return set(sets.get(key, set()))

    redis.set = mock_set
    redis.setex = mock_setex
    redis.get = mock_get
    redis.delete = mock_delete
    redis.exists = mock_exists
    redis.sadd = mock_sadd
    redis.srem = mock_srem
    redis.smembers = mock_smembers
    redis.publish = AsyncMock()
    redis.lpush = AsyncMock()
    redis.ltrim = AsyncMock()
    redis._storage = storage  # Expose for test assertions
    redis._sets = sets
    redis._ttls = ttls

    return redis


# =============================================================================
# Session Fixtures
# =============================================================================

class RecordingListener(SessionListenerBase):
    """Listener that records every event it sees, optionally failing."""

    def __init__(self, name: str, calls: Optional[List[tuple]] = None, fail: bool = False):
        self.name = name
        self.calls = calls if calls is not None else []
        self.fail = fail

    def session_created(self, event: SessionEvent) -> None:
        self.calls.append((self.name, "created", event.session_id))
        if self.fail:
            raise RuntimeError(f"{self.name} failed")

    def session_destroyed(self, event: SessionEvent) -> None:
        self.calls.append((self.name, "destroyed", event.session_id))
        if self.fail:
            raise RuntimeError(f"{self.name} failed")


@pytest.fixture
def repository():
    """In-memory session repository."""
    return InMemorySessionRepository(default_max_inactive_interval=1800)


def build_session_app(middleware: SessionRepositoryMiddleware) -> FastAPI:
    """
    Create a small app exercising the session middleware.

    Endpoints accept an optional ``alias`` query parameter selecting the
    session channel.
    """
    app = FastAPI()
    install_session_middleware(app, middleware)

    @app.get("/noop")
    async def noop():
        return {"status": "ok"}

    @app.get("/attributes/{name}")
    async def read_attribute(name: str, request: Request, alias: Optional[str] = None):
        session = await get_session_context(request).get_session(create=False, alias=alias)
        if session is None:
            return {"session_id": None, "value": None}
        return {"session_id": session.id, "value": session.get_attribute(name)}

    @app.put("/attributes/{name}/{value}")
    async def write_attribute(name: str, value: str, request: Request, alias: Optional[str] = None):
        session = await get_session_context(request).get_session(alias=alias)
        session.set_attribute(name, value)
        return {"session_id": session.id, "is_new": session.is_new}

    @app.delete("/session")
    async def invalidate(request: Request, alias: Optional[str] = None):
        session = await get_session_context(request).get_session(create=False, alias=alias)
        if session is not None:
            await session.invalidate()
        return Response(status_code=204)

    @app.post("/session/id")
    async def rotate(request: Request):
        context = get_session_context(request)
        old_id = (await context.get_session(create=False)).id
        new_id = await context.change_session_id()
        return {"old": old_id, "new": new_id}

    @app.get("/check")
    async def check(request: Request, alias: Optional[str] = None):
        valid = await get_session_context(request).is_requested_session_id_valid(alias)
        return {"valid": valid}

    @app.get("/whoami")
    async def whoami(session: HttpSession = Depends(get_http_session)):
        return {"session_id": session.id, "is_new": session.is_new}

    @app.get("/boom")
    async def boom(request: Request):
        session = await get_session_context(request).get_session()
        session.set_attribute("before", "error")
        raise RuntimeError("handler failed")

    return app


def make_request(*cookie_headers: str, scheme: str = "http", root_path: str = "") -> Request:
    """Build a bare Starlette request carrying the given Cookie headers."""
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": scheme,
        "server": ("testserver", 443 if scheme == "https" else 80),
        "path": "/",
        "root_path": root_path,
        "query_string": b"",
        "headers": [(b"cookie", header.encode("latin-1")) for header in cookie_headers],
    }
    return Request(scope)


def set_cookie_headers(response) -> List[str]:
    """All Set-Cookie header values of an httpx response."""
    return response.headers.get_list("set-cookie")


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring infrastructure"
    )
