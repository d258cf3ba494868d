"""
decible API Routes.

Endpoints:
    GET  /api/voices          - Filtered catalog with full-catalog facets
    GET  /api/voices/preview  - Cached short sample for one voice
    GET  /api/geo             - Caller country from the edge header
    GET  /api/pricing         - Plan prices in the caller's currency
    POST /api/generate        - Generate speech, return MPEG bytes
    POST /api/tts             - Charge credits, generate, store and record (authenticated)
    GET  /health              - Liveness and configuration summary
    GET  /metrics             - Prometheus metrics

Error Handling:
    Every error is JSON:
    {
        "ok": false,
        "error": "<ERROR_CODE>",
        "message": "<client-safe message>",
        "request_id": "<id>"
    }

    Status codes come from the error code (errors.STATUS_MAP). Unexpected
    exceptions become a 500 INTERNAL_ERROR without detail.

Example:
    curl -X POST http://localhost:8000/api/generate \\
        -H "Content-Type: application/json" \\
        -d '{"text": "Hello!", "voiceId": "brian"}' \\
        --output hello.mp3
"""
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse

from decible import __version__
from decible.api.auth import require_user
from decible.api.dependencies import (
    get_backend,
    get_catalog,
    get_config,
    get_generation_service,
    get_preview_service,
    get_rate_limiter,
)
from decible.api.schemas import GenerateRequest
from decible.backend.client import BackendClient
from decible.catalog.query import QueryFilters, VoiceCatalog
from decible.core.config import AppConfig
from decible.core.logging import fail, get_logger, get_request_id, info, set_request_id
from decible.core.metrics import metrics
from decible.services.errors import DecibleError, ErrorCode
from decible.services.generation import GenerationService
from decible.services.geo import Currency, currency_for_country, resolve_country
from decible.services.models import UserIdentity
from decible.services.preview import PreviewService
from decible.services.pricing import pricing_for
from decible.services.rate_limit import RateLimiter

router = APIRouter()

_LOG = get_logger("decible.api")


def new_request_id() -> str:
    rid = str(uuid.uuid4())[:12]
    set_request_id(rid)
    return rid


def error_response(error: DecibleError, rid: Optional[str] = None) -> JSONResponse:
    """Build the standard JSON error body for ``error``."""
    body = error.to_dict()
    rid = rid or get_request_id()
    if rid and rid != "-":
        body["request_id"] = rid
    return JSONResponse(status_code=error.status_code, content=body, headers=error.headers or None)


def internal_error_response(rid: str, exc: Exception) -> JSONResponse:
    fail(_LOG, "unhandled_error", error_type=type(exc).__name__, error=str(exc)[:300])
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "error": ErrorCode.INTERNAL_ERROR,
            "message": "Internal server error",
            "request_id": rid,
        },
    )


@router.get("/api/voices")
def list_voices(
    category: Optional[str] = None,
    language: Optional[str] = None,
    use_case: Optional[str] = Query(default=None, alias="useCase"),
    search: Optional[str] = None,
    catalog: VoiceCatalog = Depends(get_catalog),
):
    """
    Query the voice catalog.

    All filters are optional; ``all`` or an empty value means no
    constraint. Facets always describe the whole catalog.
    """
    filters = QueryFilters.from_params(category=category, language=language, use_case=use_case, search=search)
    result = catalog.query(filters)
    metrics.record_catalog_query(filtered=not filters.is_empty)
    return result.to_dict()


@router.get("/api/voices/preview")
def voice_preview(
    voice_id: Optional[str] = None,
    service: PreviewService = Depends(get_preview_service),
):
    rid = new_request_id()
    try:
        return service.preview(voice_id).to_dict()
    except DecibleError as e:
        return error_response(e, rid)
    except Exception as e:
        return internal_error_response(rid, e)


@router.get("/api/geo")
def geo(request: Request, config: AppConfig = Depends(get_config)):
    """Report the caller's country (default "IN" when the edge header is absent)."""
    return {"country": resolve_country(request.headers, config.geo.header, config.geo.default_country)}


@router.get("/api/pricing")
def pricing(
    request: Request,
    currency: Optional[str] = None,
    config: AppConfig = Depends(get_config),
):
    """Plan table in ``currency`` when given and valid, else in the caller's geo currency."""
    country = resolve_country(request.headers, config.geo.header, config.geo.default_country)
    selected = Currency.parse(currency) or currency_for_country(country)
    return {
        "country": country,
        "currency": selected.value,
        "plans": pricing_for(selected),
    }


@router.post("/api/generate", response_class=Response)
def generate(
    req: GenerateRequest,
    service: GenerationService = Depends(get_generation_service),
):
    """
    Generate speech and return the MPEG payload.

    Returns:
        audio/mpeg bytes with headers X-Request-Id, X-Characters, X-Bytes.

    Raises:
        400: text or voiceId missing, text too long
        500: provider failure or missing provider key
    """
    rid = new_request_id()
    try:
        result = service.synthesize(req.to_generation_request())
        headers = {
            "X-Request-Id": rid,
            "X-Characters": str(result.characters),
            "X-Bytes": str(len(result.audio)),
        }
        return Response(content=result.audio, media_type=result.content_type, headers=headers)
    except DecibleError as e:
        return error_response(e, rid)
    except Exception as e:
        return internal_error_response(rid, e)


@router.post("/api/tts")
def generate_and_store(
    req: GenerateRequest,
    user: UserIdentity = Depends(require_user),
    service: GenerationService = Depends(get_generation_service),
    backend: BackendClient = Depends(get_backend),
    rate_limiter: Optional[RateLimiter] = Depends(get_rate_limiter),
):
    """
    Generate speech for an authenticated user, charge credits, store it and
    record history.

    Returns:
        {"success": true, "audioUrl", "taskId",
         "usage": {"characters", "creditsUsed", "creditsRemaining"}}

    Errors: 404 no profile, 402 insufficient credits (with creditsNeeded
    and creditsRemaining), 429 rate limited (with retryAfter and
    X-RateLimit-* headers).
    """
    rid = new_request_id()
    info(_LOG, "stored_generation", user=user.id)
    try:
        stored = service.synthesize_and_store(req.to_generation_request(), user, backend, rate_limiter)
        body = stored.to_dict()
        body["request_id"] = rid
        return body
    except DecibleError as e:
        return error_response(e, rid)
    except Exception as e:
        return internal_error_response(rid, e)


@router.get("/health")
def health(
    request: Request,
    config: AppConfig = Depends(get_config),
    catalog: VoiceCatalog = Depends(get_catalog),
):
    return {
        "ok": True,
        "service": "decible",
        "version": __version__,
        "catalog_size": len(catalog),
        "provider_configured": bool(config.provider.api_key),
        "backend_configured": bool(config.backend.url and config.backend.service_key),
        "auth_configured": bool(config.auth.jwt_secret),
        "rate_limit_enabled": config.rate_limit.enabled,
        "preview_cache": request.app.state.preview_cache.stats(),
    }


@router.get("/metrics")
def prometheus_metrics():
    content, content_type = metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)
