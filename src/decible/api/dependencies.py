"""
FastAPI Dependency Providers.

Hierarchy:
    get_settings()             - YAML + environment, loaded once
    get_config(request)        - validated AppConfig stored on app.state
    get_provider(request)      - speech provider from app.state registry
    get_backend(request)       - backend client from app.state registry
    get_rate_limiter(request)  - tier limiter on app.state, None when disabled
    get_*_service(...)         - request-scoped service objects

Clients are built lazily by the ``ClientRegistry`` instances that
``create_app()`` places on ``app.state``. A missing credential therefore
surfaces only on the routes that need that client.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from fastapi import Depends, Request

from decible.backend.client import BackendClient
from decible.catalog.query import DEFAULT_CATALOG, VoiceCatalog
from decible.core.config import AppConfig, Settings, apply_env_overrides, load_settings, settings_path
from decible.services.credits import CreditService
from decible.services.generation import GenerationService
from decible.services.history import HistoryService
from decible.services.preview import PreviewService
from decible.services.rate_limit import RateLimiter
from decible.tts.provider import SpeechProvider


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    Reads ``$DECIBLE_SETTINGS`` (default ``config/settings.yaml``). When the
    file is absent, defaults plus environment overrides are used.
    """
    path = settings_path()
    if Path(path).exists():
        return load_settings(path)
    return Settings(raw=apply_env_overrides({}))


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_catalog() -> VoiceCatalog:
    return DEFAULT_CATALOG


def get_provider(request: Request) -> SpeechProvider:
    return request.app.state.provider.get()


def get_backend(request: Request) -> BackendClient:
    """Backend client; raises ConfigurationError when URL or key is missing."""
    return request.app.state.backend.get()


def get_rate_limiter(request: Request) -> Optional[RateLimiter]:
    if not request.app.state.config.rate_limit.enabled:
        return None
    return request.app.state.rate_limiter


def get_generation_service(
    provider: SpeechProvider = Depends(get_provider),
    config: AppConfig = Depends(get_config),
    catalog: VoiceCatalog = Depends(get_catalog),
) -> GenerationService:
    return GenerationService(provider, config, catalog)


def get_history_service(
    backend: BackendClient = Depends(get_backend),
    config: AppConfig = Depends(get_config),
) -> HistoryService:
    return HistoryService(backend, config)


def get_credit_service(
    backend: BackendClient = Depends(get_backend),
    config: AppConfig = Depends(get_config),
) -> CreditService:
    return CreditService(backend, config)


def get_preview_service(
    request: Request,
    provider: SpeechProvider = Depends(get_provider),
    catalog: VoiceCatalog = Depends(get_catalog),
) -> PreviewService:
    return PreviewService(provider, cache=request.app.state.preview_cache, catalog=catalog)
