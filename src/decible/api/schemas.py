"""
API Request Schemas.

Pydantic models for request bodies. Required generation fields are declared
optional here on purpose: a missing ``text`` or ``voiceId`` is answered by
the service layer with the service's own 400 body ("Missing text or
voiceId") instead of FastAPI's generic 422.

Both camelCase and snake_case spellings are accepted for the fields the web
client and older scripts send differently.

Example Request:
    {
        "text": "Once upon a time...",
        "voiceId": "rachel",
        "settings": {"stability": 0.4, "similarityBoost": 0.8}
    }
"""
from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field

from decible.services.models import GenerationRequest
from decible.tts.provider import VoiceSettings


class VoiceSettingsIn(BaseModel):
    """Voice tuning. Out-of-range values are clamped, not rejected."""
    stability: float | None = Field(default=None, description="0-1, default 0.5")
    similarity_boost: float | None = Field(
        default=None,
        validation_alias=AliasChoices("similarity_boost", "similarityBoost"),
        description="0-1, default 0.5",
    )
    style: float | None = Field(default=None, description="0-1")
    speed: float | None = Field(default=None, description="0.7-1.2")
    use_speaker_boost: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("use_speaker_boost", "useSpeakerBoost"),
    )

    def to_settings(self) -> VoiceSettings:
        return VoiceSettings.create(
            stability=self.stability,
            similarity_boost=self.similarity_boost,
            style=self.style,
            speed=self.speed,
            use_speaker_boost=self.use_speaker_boost,
        )


class GenerateRequest(BaseModel):
    """Body of POST /api/generate and POST /api/tts."""
    text: str | None = Field(default=None, description="Text to speak")
    voice_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("voiceId", "voice_id"),
        description="Catalog voice id (e.g. 'brian') or provider voice id",
    )
    settings: VoiceSettingsIn | None = Field(
        default=None,
        validation_alias=AliasChoices("settings", "voice_settings"),
    )

    def to_generation_request(self) -> GenerationRequest:
        return GenerationRequest(
            text=self.text,
            voice_id=self.voice_id,
            settings=self.settings.to_settings() if self.settings else None,
        )
