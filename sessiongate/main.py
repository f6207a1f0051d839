#!/usr/bin/env python3
"""
SessionGate - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes the session repository and session stack
3. Runs the API with repository-backed sessions

All session logic is in the modules, following black box principles.
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import redis.asyncio as redis
import uvicorn
from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse

from sessiongate.config.provider import ConfigProvider, EnvConfigProvider
from sessiongate.modules.api import (
    HealthResponse,
    SessionIdResponse,
    SessionResponse,
    SetAttributeRequest,
    UpdateSessionRequest,
)

# Import modules through their black box interfaces
from sessiongate.modules.config import get_config
from sessiongate.modules.events import LoggingSessionListener, SessionListener
from sessiongate.modules.exceptions import UnknownSessionAliasError
from sessiongate.modules.middleware import (
    HttpSession,
    SessionComponents,
    SessionFactory,
    get_session_context,
)
from sessiongate.modules.session import (
    InMemorySessionRepository,
    RedisSessionRepository,
    SessionRepository,
)
from sessiongate.modules.storage import StorageModule

# Get configuration
config = get_config()

# Configure logging with health check suppression
from sessiongate.logging_config import get_logging_config
import logging.config as log_config

log_config.dictConfig(get_logging_config(config.get("log_level")))
logger = logging.getLogger(__name__)

# Configuration provider (centralized config access)
config_provider: ConfigProvider = EnvConfigProvider()

# Listeners notified of session creation and destruction, in order
session_listeners: List[SessionListener] = [LoggingSessionListener()]

# Module instances (initialized at startup)
storage: Optional[StorageModule] = None
session_repository: Optional[SessionRepository] = None
session_components: Optional[SessionComponents] = None


async def build_repository() -> SessionRepository:
    """Create the configured session repository."""
    global storage

    max_inactive_interval = config_provider.get_session_config().max_inactive_interval

    if config.get("session_repository") == "memory":
        logger.info("Using in-memory session repository")
        return InMemorySessionRepository(default_max_inactive_interval=max_inactive_interval)

    redis_url = f"redis://{config.get('redis_host')}:{config.get('redis_port')}/{config.get('redis_db')}"
    storage = StorageModule(redis_url, password=config.get("redis_password"))
    redis_client = await storage.connect()
    logger.info(f"Using Redis session repository at {config.get('redis_host')}:{config.get('redis_port')}")
    return RedisSessionRepository(redis_client, default_max_inactive_interval=max_inactive_interval)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - initialize and cleanup resources.
    """
    global session_repository, session_components, storage

    logger.info("Starting SessionGate API...")
    settings = config.get_all()
    if settings.get("redis_password"):
        settings["redis_password"] = "***"
    logger.info(f"Configuration: {settings}")

    session_repository = await build_repository()

    # Build session stack via factory (dependency injection)
    session_components = SessionFactory.build(
        config_provider,
        session_repository,
        listeners=session_listeners,
    )
    logger.info("Session stack initialized via factory")

    yield

    logger.info("Shutting down SessionGate API...")
    if storage:
        await storage.disconnect()
        storage = None
    session_components = None
    session_repository = None
    logger.info("SessionGate API shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="SessionGate API",
    description="SessionGate - Repository-backed HTTP sessions",
    version="1.0.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def session_middleware(request: Request, call_next):
    """Install the repository-backed session for every request."""
    if request.url.path == "/health":
        return await call_next(request)
    if not session_components:
        return JSONResponse(status_code=503, content={"error": "Service not initialized"})
    return await session_components.middleware(request, call_next)


def session_response(session: HttpSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.id,
        is_new=session.is_new,
        created_at=session.creation_time,
        last_accessed_at=session.last_accessed_time,
        max_inactive_interval=session.max_inactive_interval,
        attributes={name: session.get_attribute(name) for name in session.attribute_names},
    )


async def require_session(request: Request, alias: Optional[str]) -> HttpSession:
    """Return the existing session or raise 404."""
    session = await get_session_context(request).get_session(create=False, alias=alias)
    if session is None:
        raise HTTPException(404, "No session associated with this request")
    return session


# Session Endpoints


@app.get("/session", response_model=SessionResponse)
async def get_session(request: Request, alias: Optional[str] = Query(None)):
    """
    Get the current session.

    Returns:
        SessionResponse
        404: No session
    """
    return session_response(await require_session(request, alias))


@app.put("/session/attributes/{name}", response_model=SessionResponse)
async def set_attribute(
    name: str, payload: SetAttributeRequest, request: Request, alias: Optional[str] = Query(None)
):
    """
    Store a session attribute, creating the session if needed.

    Returns:
        SessionResponse with the updated attributes
    """
    session = await get_session_context(request).get_session(create=True, alias=alias)
    session.set_attribute(name, payload.value)
    return session_response(session)


@app.delete("/session/attributes/{name}", response_model=SessionResponse)
async def remove_attribute(name: str, request: Request, alias: Optional[str] = Query(None)):
    """
    Remove a session attribute.

    Returns:
        SessionResponse
        404: No session
    """
    session = await require_session(request, alias)
    session.remove_attribute(name)
    return session_response(session)


@app.patch("/session", response_model=SessionResponse)
async def update_session(
    payload: UpdateSessionRequest, request: Request, alias: Optional[str] = Query(None)
):
    """Update session settings."""
    session = await require_session(request, alias)
    if payload.max_inactive_interval is not None:
        session.max_inactive_interval = payload.max_inactive_interval
    return session_response(session)


@app.post("/session/id", response_model=SessionIdResponse)
async def change_session_id(request: Request, alias: Optional[str] = Query(None)):
    """
    Rotate the session id, keeping all attributes.

    Returns:
        SessionIdResponse
        404: No session
    """
    session = await require_session(request, alias)
    previous_session_id = session.id
    new_session_id = await get_session_context(request).change_session_id(alias=alias)
    return SessionIdResponse(session_id=new_session_id, previous_session_id=previous_session_id)


@app.delete("/session", status_code=204)
async def invalidate_session(request: Request, alias: Optional[str] = Query(None)):
    """
    Invalidate the current session.

    Returns:
        204: Session destroyed (or none existed)
    """
    session = await get_session_context(request).get_session(create=False, alias=alias)
    if session is not None:
        await session.invalidate()
    return Response(status_code=204)


# Health Endpoints


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns:
        200: Service healthy
        503: Service unhealthy
    """
    repository_kind = config.get("session_repository")
    try:
        if storage:
            client = await storage.connect()
            await client.ping()

        if session_components:
            return HealthResponse(
                status="healthy",
                repository=repository_kind,
                multiplexed=len(session_components.strategy.aliases) > 1,
            )
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "repository": repository_kind, "modules": "not initialized"},
        )
    except redis.RedisError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "error": str(e)})


# Error handlers


@app.exception_handler(redis.ConnectionError)
async def redis_error_handler(request, exc):
    """Handle Redis connection errors."""
    logger.error(f"Redis connection error: {exc}")
    return JSONResponse(status_code=503, content={"error": "Session store connection failed"})


@app.exception_handler(UnknownSessionAliasError)
async def unknown_alias_handler(request, exc):
    """Handle lookups of unknown session aliases."""
    logger.warning(f"Unknown session alias requested: {exc}")
    return JSONResponse(status_code=400, content={"error": str(exc)})


if __name__ == "__main__":
    uvicorn.run(
        "sessiongate.main:app",
        host=config.get("host"),
        port=config.get("port"),
        log_level=config.get("log_level").lower(),
        reload=config.get("debug"),
        log_config=get_logging_config(config.get("log_level")),
    )
