"""
Voice previews.

A preview is a short fixed sentence spoken by one voice, returned as a
``data:audio/mpeg;base64,...`` URL so that the browser can play it without
a second request. Each voice is generated at most once per process while it
stays in the bounded cache.
"""
from __future__ import annotations

import base64
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from decible.catalog.query import DEFAULT_CATALOG, VoiceCatalog
from decible.core.logging import get_logger, info, verbose
from decible.core.metrics import metrics
from decible.services.validators import validate_voice_id
from decible.tts.cache import TinyLRUCache
from decible.tts.provider import SpeechProvider, VoiceSettings

_LOG = get_logger("decible.preview")

PREVIEW_TEXTS = (
    "Welcome to your voice preview. This is how I sound when speaking naturally.",
    "Hello there! I'm excited to be your voice today. Let me show you what I can do.",
    "Hi, thanks for checking out my voice. I hope you enjoy what you hear.",
)

PREVIEW_SETTINGS = VoiceSettings(stability=0.5, similarity_boost=0.75, style=0.0, speed=1.0)


def to_data_url(audio: bytes, content_type: str = "audio/mpeg") -> str:
    return f"data:{content_type};base64,{base64.b64encode(audio).decode('ascii')}"


@dataclass(frozen=True)
class PreviewResult:
    preview_url: str
    cached: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"previewUrl": self.preview_url, "cached": self.cached}


class PreviewService:
    def __init__(
        self,
        provider: SpeechProvider,
        cache: Optional[TinyLRUCache[str]] = None,
        catalog: VoiceCatalog = DEFAULT_CATALOG,
        texts: Sequence[str] = PREVIEW_TEXTS,
        choose: Callable[[Sequence[str]], str] = random.choice,
    ):
        self._provider = provider
        self._cache: TinyLRUCache[str] = cache if cache is not None else TinyLRUCache()
        self._catalog = catalog
        self._texts = texts
        self._choose = choose

    @property
    def cache(self) -> TinyLRUCache[str]:
        return self._cache

    def preview(self, voice_id: Optional[str]) -> PreviewResult:
        """
        Return a preview data URL for ``voice_id``.

        Raises:
            ValidationError: voice_id missing.
            ProviderError / ConfigurationError: generation failed.
        """
        voice_id = validate_voice_id(voice_id)

        cached = self._cache.get(voice_id)
        if cached is not None:
            metrics.record_preview_cache("hit")
            verbose(_LOG, "preview_cached", voice=voice_id)
            return PreviewResult(preview_url=cached, cached=True)
        metrics.record_preview_cache("miss")

        voice = self._catalog.get(voice_id)
        provider_voice_id = voice.provider_voice_id if voice else voice_id

        audio = self._provider.synthesize(self._choose(self._texts), provider_voice_id, PREVIEW_SETTINGS)
        data_url = to_data_url(audio)
        self._cache.set(voice_id, data_url)

        info(_LOG, "preview_generated", voice=voice_id, bytes=len(audio))
        return PreviewResult(preview_url=data_url, cached=False)
