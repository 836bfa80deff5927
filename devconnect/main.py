"""DevConnect API -- Main Application Entry Point

Creates the FastAPI application, configures logging and CORS, registers
the presence and notification routes under the /api/v1 prefix, and
mounts the Socket.IO ASGI application for real-time communication.

Run with::

    uvicorn devconnect.main:app --host 0.0.0.0 --port 5000 --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from devconnect.core.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan: startup / shutdown hooks
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Startup:
      - Import realtime handlers to register Socket.IO event listeners.

    Shutdown:
      - Dispose of the database engine.  Live sessions are not persisted;
        clients reconnect to the next process.
    """
    # Importing handlers is sufficient to register all Socket.IO events
    from devconnect.realtime import handlers  # noqa: F401

    logger.info("%s %s started", settings.app_name, settings.app_version)
    yield

    from devconnect.api.deps import engine

    await engine.dispose()


# ---------------------------------------------------------------------------
# Application instance
# ---------------------------------------------------------------------------

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# CORS middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health():
    """Lightweight health check for load balancers and readiness probes."""
    return {
        "status": "ok",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Register API route modules
# ---------------------------------------------------------------------------

from devconnect.api.routes import notifications, presence  # noqa: E402

_prefix = settings.api_v1_prefix

app.include_router(presence.router, prefix=_prefix)
app.include_router(notifications.router, prefix=_prefix)


# ---------------------------------------------------------------------------
# Mount Socket.IO ASGI application
# ---------------------------------------------------------------------------

from devconnect.realtime.socketServer import socket_app  # noqa: E402

app.mount("/ws", socket_app)
