"""Royally Tuned FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from royally_tuned.api.artists import router as artists_router
from royally_tuned.api.billing import router as billing_router
from royally_tuned.api.calculations import router as calculations_router
from royally_tuned.api.dashboard import router as dashboard_router
from royally_tuned.api.spotify import router as spotify_router
from royally_tuned.api.webhooks import router as webhooks_router
from royally_tuned.config import settings
from royally_tuned.errors import register_exception_handlers

# Configure root logger so all royally_tuned.* loggers output to stderr.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    yield
    # Shutdown: dispose engine connections
    from royally_tuned.database import engine

    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Royalty registration tracking, track metadata, and billing for independent musicians.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Middleware: added in reverse execution order (last added runs first on request).
# SessionMiddleware carries the subscription state and the Spotify OAuth state.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret_key,
    https_only=settings.environment == "production",
)

register_exception_handlers(app)

# Routers
app.include_router(billing_router)
app.include_router(webhooks_router)
app.include_router(artists_router)
app.include_router(calculations_router)
app.include_router(spotify_router)
app.include_router(dashboard_router)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}
