"""
Padel Club API Server

FastAPI server exposing the club roster, the day's court bookings and the
AI match advisor to a single-device front end.

There is one login session per process and it is not tied to a client:
anyone who can reach the server acts as the logged-in player. The server
therefore binds to loopback unless HOST says otherwise.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
import uvicorn
from slowapi import _rate_limit_exceeded_handler  # type: ignore
from slowapi.errors import RateLimitExceeded  # type: ignore

from padel_backend.api.routes import router, limiter as routes_limiter
from padel_backend.database import db
from padel_backend.database.init_defaults import init_defaults
from padel_backend.services.auth_service import LoginFlow
from padel_backend.services.club_store import ClubStore
from padel_backend.services.errors import ClubError
from padel_backend.services.storage_service import SqlKeyValueStore

# Set up logging
# Allow log level to be configured via environment variable (default: INFO)
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
numeric_level = getattr(logging, log_level, logging.INFO)
logging.basicConfig(
    level=numeric_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Single-device server, see module docstring
DEFAULT_HOST = "127.0.0.1"
HOST = os.getenv("HOST", DEFAULT_HOST)
PORT = int(os.getenv("PORT", "8000"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup and shutdown events."""
    # Startup
    logger.info("Starting up Padel Club API...")

    # Initialize database (create tables if they don't exist)
    await db.init_database()
    logger.info("Database initialized")

    store = await ClubStore.load(SqlKeyValueStore())
    app.state.store = store
    app.state.login_flow = LoginFlow(store)

    # Seeded admin identity
    try:
        await init_defaults(store)
        logger.info("✓ Default values initialized")
    except Exception as e:
        logger.error(f"Failed to initialize defaults: {e}", exc_info=True)
        # Don't raise - the club stays usable for existing players

    yield  # App is running

    # Shutdown
    logger.info("Shutting down Padel Club API...")
    try:
        await store.close()
        logger.info("✓ Club store flushed and closed")
    except Exception as e:
        logger.error(f"Error closing club store: {e}", exc_info=True)
    await db.engine.dispose()


app = FastAPI(
    title="Padel Club API",
    description="Roster, same-day court bookings and AI team balancing for a padel club",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup rate limiter
app.state.limiter = routes_limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


async def club_error_handler(request: Request, exc: ClubError):
    """Rejected club commands map to their HTTP status; state was left untouched."""
    logger.info(f"{request.method} {request.url.path} rejected: {type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.add_exception_handler(ClubError, club_error_handler)

# Add CORS middleware, origins configured via ALLOWED_ORIGINS env var
allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router)


@app.get("/api/health")
async def health():
    """Liveness check."""
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(app, host=HOST, port=PORT)
