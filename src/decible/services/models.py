"""Value objects shared by the generation and history services."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from decible.tts.provider import VoiceSettings


class GenerationStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class UserIdentity:
    """Authenticated caller, decoded from the access token."""
    id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class GenerationRequest:
    text: Optional[str]
    voice_id: Optional[str]
    settings: Optional[VoiceSettings] = None


@dataclass(frozen=True)
class GenerationResult:
    audio: bytes
    characters: int
    voice_id: str
    provider_voice_id: str
    settings: VoiceSettings
    content_type: str = "audio/mpeg"


@dataclass(frozen=True)
class StoredGeneration:
    generation_id: Optional[str]
    audio_url: str
    characters: int
    credits_used: int
    credits_remaining: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "audioUrl": self.audio_url,
            "taskId": self.generation_id,
            "usage": {
                "characters": self.characters,
                "creditsUsed": self.credits_used,
                "creditsRemaining": self.credits_remaining,
            },
        }


# Stored text is truncated to keep history rows small.
HISTORY_TEXT_LIMIT = 500


@dataclass
class GenerationHistoryEntry:
    """One row of the ``generation_history`` table."""
    user_id: str
    text: str
    voice_id: str
    voice_name: Optional[str]
    audio_url: Optional[str]
    characters_used: int
    credits_used: int
    settings: Dict[str, Any] = field(default_factory=dict)
    status: GenerationStatus = GenerationStatus.COMPLETED
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row["text"] = self.text[:HISTORY_TEXT_LIMIT]
        row["status"] = self.status.value
        return row
