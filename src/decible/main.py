"""
FastAPI Application Entry Point.

Creates the decible API application: logging, routers, the per-app client
registries and the error handler for failures raised inside dependencies
(authentication, missing credentials).

Usage:
    uvicorn decible.main:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request

from decible.api.dependencies import get_settings
from decible.api.routes import error_response
from decible.api.routes import router
from decible.api.user import router as user_router
from decible.backend.client import BackendClient
from decible.core.config import Settings
from decible.core.logging import configure_logging, get_logger, info
from decible.core.registry import ClientRegistry
from decible.services.errors import DecibleError
from decible.services.rate_limit import RateLimiter
from decible.tts.cache import TinyLRUCache
from decible.tts.provider import SpeechProvider

_LOG = get_logger("decible.app")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use; defaults to ``get_settings()``.

    Returns:
        FastAPI: Configured application instance.
    """
    configure_logging()

    settings = settings or get_settings()
    config = settings.get_app_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.provider.reset()
        app.state.backend.reset()
        info(_LOG, "clients_closed")

    app = FastAPI(title="decible", lifespan=lifespan)

    app.state.config = config
    app.state.provider = ClientRegistry("provider", lambda: SpeechProvider.from_config(config.provider))
    app.state.backend = ClientRegistry("backend", lambda: BackendClient.from_config(config.backend))
    app.state.rate_limiter = RateLimiter()
    app.state.preview_cache = TinyLRUCache(
        max_items=config.preview.cache_max_items,
        ttl_seconds=config.preview.cache_ttl_seconds,
    )

    app.include_router(router)         # /api/voices, /api/generate, /api/tts, /health, ...
    app.include_router(user_router)    # /api/user/history, /api/credits

    @app.exception_handler(DecibleError)
    async def _decible_error_handler(request: Request, exc: DecibleError):
        return error_response(exc)

    return app


app = create_app()
