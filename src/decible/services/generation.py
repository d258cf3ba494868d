"""
Generation Proxy.

Turns a client generation request into one provider call.

Pipeline (``synthesize``):
    1. Validate text and voice id (rejects before any outbound call)
    2. Resolve the provider voice id: catalog ids map to the provider's
       premade id, anything else is passed through unchanged
    3. Call the provider with the configured model and voice settings
       (default stability 0.5, similarity 0.5)
    4. Return the MPEG payload

Pipeline (``synthesize_and_store``), for authenticated callers:
    1. Load the caller's credit profile (404 when missing)
    2. Validate and resolve as above
    3. Check the balance covers ``characters * cost_per_character`` (402)
    4. Count the request against the tier's rate limit (429)
    5. Call the provider
    6. Upload the payload under ``{user_id}/{epoch_ms}-{random}.mp3``
    7. Deduct the credits and log a credit transaction
    8. Insert a ``completed`` history row
    9. Return the public URL and the remaining balance

If the upload fails the request fails; no credits are taken, no history row
is written and the audio is not returned as a fallback. A failed deduction
or history insert is logged and does not fail the request, since the audio
is already stored.
"""
from __future__ import annotations

import time
from typing import NamedTuple, Optional

from decible.backend.client import BackendClient, BackendError
from decible.backend.storage import upload_audio
from decible.catalog.query import DEFAULT_CATALOG, VoiceCatalog
from decible.core.config import AppConfig
from decible.core.logging import debug, error, fail, get_logger, info, success
from decible.core.metrics import metrics
from decible.services.credits import CreditService
from decible.services.errors import (
    DecibleError,
    InsufficientCreditsError,
    NotFoundError,
    RateLimitedError,
)
from decible.services.models import (
    GenerationHistoryEntry,
    GenerationRequest,
    GenerationResult,
    GenerationStatus,
    StoredGeneration,
    UserIdentity,
)
from decible.services.rate_limit import RateLimiter
from decible.services.validators import validate_generation_input
from decible.tts.provider import DEFAULT_VOICE_SETTINGS, SpeechProvider, VoiceSettings

_LOG = get_logger("decible.generation")


class _Prepared(NamedTuple):
    text: str
    voice_id: str
    provider_voice_id: str
    voice_name: Optional[str]
    settings: VoiceSettings


class GenerationService:
    """
    Validates generation requests and forwards them to the provider.

    Args:
        provider: Speech provider client.
        config: Validated application config.
        catalog: Catalog used to resolve voice ids.
    """

    def __init__(
        self,
        provider: SpeechProvider,
        config: Optional[AppConfig] = None,
        catalog: VoiceCatalog = DEFAULT_CATALOG,
    ):
        self._provider = provider
        self._config = config or AppConfig()
        self._catalog = catalog

    def resolve_voice(self, voice_id: str) -> tuple[str, Optional[str]]:
        """Return (provider voice id, display name) for a catalog id or raw provider id."""
        voice = self._catalog.get(voice_id) or self._catalog.by_name(voice_id)
        if voice is None:
            return voice_id, None
        return voice.provider_voice_id, voice.name

    def _prepare(self, request: GenerationRequest) -> _Prepared:
        text, voice_id = validate_generation_input(
            request.text,
            request.voice_id,
            max_length=self._config.generation.max_text_length,
        )
        provider_voice_id, voice_name = self.resolve_voice(voice_id)
        settings = request.settings or DEFAULT_VOICE_SETTINGS

        preview_chars = self._config.logging.text_preview_chars
        info(
            _LOG,
            "request",
            voice=voice_id,
            chars=len(text),
            text_preview=text[:preview_chars] if preview_chars > 0 else "",
        )
        debug(_LOG, "resolved", voice=voice_id, provider_voice=provider_voice_id, settings=settings.to_payload())
        return _Prepared(text, voice_id, provider_voice_id, voice_name, settings)

    def _generate(self, prepared: _Prepared, mode: str) -> GenerationResult:
        """Call the provider; failures are counted under ``mode``."""
        t0 = time.perf_counter()
        try:
            audio = self._provider.synthesize(prepared.text, prepared.provider_voice_id, prepared.settings)
        except DecibleError:
            metrics.record_generation(mode, "error", duration=time.perf_counter() - t0)
            raise
        debug(_LOG, "provider_done", bytes=len(audio), seconds=round(time.perf_counter() - t0, 3))
        return GenerationResult(
            audio=audio,
            characters=len(prepared.text),
            voice_id=prepared.voice_id,
            provider_voice_id=prepared.provider_voice_id,
            settings=prepared.settings,
        )

    def synthesize(self, request: GenerationRequest) -> GenerationResult:
        """
        Generate audio for ``request``.

        Raises:
            InvalidInputError: Missing/blank text or voice id, text too long.
            ConfigurationError: Provider key not configured.
            ProviderError: Provider call failed.
        """
        prepared = self._prepare(request)
        t0 = time.perf_counter()
        result = self._generate(prepared, "raw")
        seconds = time.perf_counter() - t0

        metrics.record_generation("raw", "success", duration=seconds, audio_bytes=len(result.audio))
        success(_LOG, "done", voice=prepared.voice_name or prepared.voice_id,
                bytes=len(result.audio), seconds=round(seconds, 3))
        return result

    def synthesize_and_store(
        self,
        request: GenerationRequest,
        user: UserIdentity,
        backend: BackendClient,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> StoredGeneration:
        """
        Charge, generate, upload and record one generation.

        Args:
            request: Client request.
            user: Authenticated caller.
            backend: Backend client for profiles, storage and history.
            rate_limiter: Tier limiter; None skips rate limiting.

        Raises:
            NotFoundError: The caller has no credit profile.
            InvalidInputError: As ``synthesize``.
            InsufficientCreditsError: Balance below the request's cost.
            RateLimitedError: Tier limit reached.
            ConfigurationError, ProviderError: As ``synthesize``.
            StorageError: The upload failed.
            PersistenceError: The profile could not be read.
        """
        t0 = time.perf_counter()
        credits = CreditService(backend, self._config)
        try:
            profile = credits.get_profile(user)
        except NotFoundError:
            metrics.record_rejection("no_profile")
            raise

        prepared = self._prepare(request)
        credits_needed = len(prepared.text) * self._config.generation.cost_per_character
        try:
            credits.ensure_balance(profile, credits_needed)
        except InsufficientCreditsError:
            metrics.record_rejection("insufficient_credits")
            raise

        if rate_limiter is not None:
            try:
                rate_limiter.hit(user.id, profile.subscription_tier)
            except RateLimitedError:
                metrics.record_rejection("rate_limited")
                raise

        result = self._generate(prepared, "stored")

        try:
            stored = upload_audio(
                backend,
                self._config.backend.storage_bucket,
                user.id,
                result.audio,
                content_type=result.content_type,
            )
        except DecibleError:
            metrics.record_generation("stored", "error", duration=time.perf_counter() - t0)
            fail(_LOG, "store_failed", voice=result.voice_id)
            raise

        new_balance = credits.deduct(
            user,
            credits_needed,
            f"TTS Generation: {result.characters} characters",
            reference_id=stored.key,
        )
        if new_balance is None:
            new_balance = profile.credits_remaining - credits_needed

        entry = GenerationHistoryEntry(
            user_id=user.id,
            text=request.text or "",
            voice_id=result.voice_id,
            voice_name=prepared.voice_name or result.voice_id,
            audio_url=stored.public_url,
            characters_used=result.characters,
            credits_used=credits_needed,
            settings=result.settings.to_payload(),
            status=GenerationStatus.COMPLETED,
        )

        generation_id: Optional[str] = None
        try:
            row = backend.insert(self._config.backend.history_table, entry.to_row())
            generation_id = str(row["id"]) if row.get("id") is not None else None
        except BackendError as exc:
            metrics.record_upstream_failure("database")
            error(_LOG, "history_insert_failed", status=exc.status, body=exc.body)

        seconds = time.perf_counter() - t0
        metrics.record_generation("stored", "success", duration=seconds, audio_bytes=len(result.audio))
        success(_LOG, "stored", key=stored.key, credits=credits_needed, balance=new_balance,
                seconds=round(seconds, 3))
        return StoredGeneration(
            generation_id=generation_id,
            audio_url=stored.public_url,
            characters=result.characters,
            credits_used=credits_needed,
            credits_remaining=new_balance,
        )
