"""
Speech provider client.

Talks to an ElevenLabs-compatible HTTP API:

    GET  {base_url}/v1/voices
    POST {base_url}/v1/text-to-speech/{voice_id}
         headers: xi-api-key, Accept: audio/mpeg
         body:    {"text", "model_id", "voice_settings"}

The client is synchronous and buffers the whole MP3 body; there is no
retry and no streaming. Every upstream failure (non-2xx, transport error,
empty body) surfaces as ProviderError with a fixed client-safe message; the
upstream status and a truncated body are logged.

Example:
    >>> provider = SpeechProvider(api_key="sk-...")
    >>> mp3 = provider.synthesize("Hello there", "21m00Tcm4TlvDq8ikWAM")
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from decible.core.config import Defaults, ProviderConfig
from decible.core.logging import error, get_logger, info, verbose
from decible.core.metrics import metrics
from decible.services.errors import ConfigurationError, ProviderError
from decible.services.validators import clamp_speed, clamp_unit

_LOG = get_logger("decible.provider")

AUDIO_MPEG = "audio/mpeg"
_ERROR_BODY_PREVIEW = 300


@dataclass(frozen=True)
class VoiceSettings:
    """
    Voice tuning forwarded to the provider.

    Values are clamped on construction through ``create()``; the optional
    fields are omitted from the payload when unset.
    """
    stability: float = 0.5
    similarity_boost: float = 0.5
    style: Optional[float] = None
    speed: Optional[float] = None
    use_speaker_boost: Optional[bool] = None

    @classmethod
    def create(
        cls,
        stability: Optional[float] = None,
        similarity_boost: Optional[float] = None,
        style: Optional[float] = None,
        speed: Optional[float] = None,
        use_speaker_boost: Optional[bool] = None,
    ) -> "VoiceSettings":
        return cls(
            stability=clamp_unit(0.5 if stability is None else stability),
            similarity_boost=clamp_unit(0.5 if similarity_boost is None else similarity_boost),
            style=None if style is None else clamp_unit(style),
            speed=None if speed is None else clamp_speed(speed),
            use_speaker_boost=use_speaker_boost,
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "stability": self.stability,
            "similarity_boost": self.similarity_boost,
        }
        if self.style is not None:
            payload["style"] = self.style
        if self.speed is not None:
            payload["speed"] = self.speed
        if self.use_speaker_boost is not None:
            payload["use_speaker_boost"] = self.use_speaker_boost
        return payload


DEFAULT_VOICE_SETTINGS = VoiceSettings()


class SpeechProvider:
    """
    HTTP client for the speech-synthesis provider.

    Args:
        api_key: Provider API key. May be None; synthesis then raises
            ConfigurationError instead of calling out.
        base_url: Provider root URL.
        model_id: Model sent with every synthesis request.
        timeout_s: Total timeout per request.
        transport: Optional httpx transport (tests pass MockTransport).
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = Defaults.PROVIDER_BASE_URL,
        model_id: str = Defaults.PROVIDER_MODEL_ID,
        timeout_s: float = Defaults.PROVIDER_TIMEOUT_S,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model_id = model_id
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout_s,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: ProviderConfig, transport: Optional[httpx.BaseTransport] = None) -> "SpeechProvider":
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            model_id=config.model_id,
            timeout_s=config.timeout_s,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def close(self) -> None:
        self._client.close()

    def _headers(self, accept: str = "application/json") -> Dict[str, str]:
        if not self.api_key:
            raise ConfigurationError(details={"missing": "provider.api_key"})
        return {"xi-api-key": self.api_key, "Accept": accept}

    def _fail(self, op: str, message: str, **fields: Any) -> ProviderError:
        metrics.record_upstream_failure("provider")
        error(_LOG, "provider_failed", op=op, **fields)
        return ProviderError(message, details={"op": op, **fields})

    def synthesize(
        self,
        text: str,
        voice_id: str,
        settings: Optional[VoiceSettings] = None,
    ) -> bytes:
        """
        Generate speech for ``text`` with ``voice_id``.

        Returns:
            MPEG audio bytes.

        Raises:
            ConfigurationError: No API key configured.
            ProviderError: Upstream failure of any kind.
        """
        headers = self._headers(accept=AUDIO_MPEG)
        body = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": (settings or DEFAULT_VOICE_SETTINGS).to_payload(),
        }

        t0 = time.perf_counter()
        try:
            response = self._client.post(f"/v1/text-to-speech/{voice_id}", json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise self._fail("synthesize", "Failed to generate audio", voice=voice_id, reason=type(exc).__name__) from exc
        seconds = time.perf_counter() - t0

        if response.status_code >= 300:
            raise self._fail(
                "synthesize",
                "Failed to generate audio",
                voice=voice_id,
                status=response.status_code,
                body=response.text[:_ERROR_BODY_PREVIEW],
            )

        audio = response.content
        if not audio:
            raise self._fail("synthesize", "Empty audio response", voice=voice_id, status=response.status_code)

        info(_LOG, "provider_call", voice=voice_id, chars=len(text), bytes=len(audio), seconds=round(seconds, 3))
        return audio

    def list_voices(self) -> List[Dict[str, Any]]:
        """
        Fetch the provider's voice list.

        Returns:
            List of ``{"id", "name", "category", "labels"}`` dictionaries.
        """
        headers = self._headers()
        try:
            response = self._client.get("/v1/voices", headers=headers)
        except httpx.HTTPError as exc:
            raise self._fail("list_voices", "Failed to fetch voices", reason=type(exc).__name__) from exc

        if response.status_code >= 300:
            raise self._fail(
                "list_voices",
                "Failed to fetch voices",
                status=response.status_code,
                body=response.text[:_ERROR_BODY_PREVIEW],
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise self._fail("list_voices", "Failed to fetch voices", reason="invalid_json") from exc

        voices = [
            {
                "id": v.get("voice_id"),
                "name": v.get("name"),
                "category": v.get("category"),
                "labels": v.get("labels") or {},
            }
            for v in payload.get("voices", [])
        ]
        verbose(_LOG, "provider_voices", count=len(voices))
        return voices
