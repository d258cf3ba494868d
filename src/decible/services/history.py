"""
History Service.

Reads a user's generation log from the backend and reshapes each row for
display:

    text        null/blank -> "Voice Generation"
    voiceName   null/blank -> "Unknown Voice"
    duration    "<n> chars" when characters_used > 0, else "Audio"

An anonymous caller is rejected before the backend is touched.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from decible.backend.client import BackendClient, BackendError
from decible.core.config import AppConfig
from decible.core.logging import error, get_logger, info
from decible.core.metrics import metrics
from decible.services.errors import AuthRequiredError, PersistenceError
from decible.services.models import UserIdentity
from decible.services.validators import validate_history_limit

_LOG = get_logger("decible.history")

FALLBACK_TEXT = "Voice Generation"
FALLBACK_VOICE_NAME = "Unknown Voice"
FALLBACK_DURATION = "Audio"


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _duration_label(characters: Any) -> str:
    if isinstance(characters, bool):
        return FALLBACK_DURATION
    if isinstance(characters, (int, float)) and characters > 0:
        return f"{int(characters)} chars"
    return FALLBACK_DURATION


@dataclass(frozen=True)
class HistoryItem:
    id: Any
    text: str
    voice_id: Optional[str]
    voice_name: str
    date: Optional[str]
    duration: str
    url: Optional[str]
    status: str
    credits_used: int

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "HistoryItem":
        credits = row.get("credits_used")
        return cls(
            id=row.get("id"),
            text=FALLBACK_TEXT if _blank(row.get("text")) else row["text"],
            voice_id=row.get("voice_id"),
            voice_name=FALLBACK_VOICE_NAME if _blank(row.get("voice_name")) else row["voice_name"],
            date=row.get("created_at"),
            duration=_duration_label(row.get("characters_used")),
            url=row.get("audio_url"),
            status=row.get("status") or "completed",
            credits_used=int(credits) if isinstance(credits, (int, float)) else 0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "voiceId": self.voice_id,
            "voiceName": self.voice_name,
            "date": self.date,
            "duration": self.duration,
            "url": self.url,
            "status": self.status,
            "creditsUsed": self.credits_used,
        }


class HistoryService:
    def __init__(self, backend: BackendClient, config: Optional[AppConfig] = None):
        self._backend = backend
        self._config = config or AppConfig()

    def list_for_user(self, user: Optional[UserIdentity], limit: Any = None) -> List[HistoryItem]:
        """
        Return the user's most recent generations, newest first.

        Args:
            user: Authenticated caller; None raises AuthRequiredError.
            limit: Raw ``limit`` value (default 50, capped at history.max_limit).

        Raises:
            AuthRequiredError: No authenticated user.
            PersistenceError: Backend read failed.
        """
        if user is None:
            raise AuthRequiredError()

        history_cfg = self._config.history
        n = validate_history_limit(limit, history_cfg.default_limit, history_cfg.max_limit)

        try:
            rows = self._backend.select(
                self._config.backend.history_table,
                filters={"user_id": user.id},
                order="created_at",
                descending=True,
                limit=n,
            )
        except BackendError as exc:
            metrics.record_upstream_failure("database")
            error(_LOG, "history_fetch_failed", status=exc.status, body=exc.body)
            raise PersistenceError(details={"status": exc.status}) from exc

        items = [HistoryItem.from_row(row) for row in rows]
        info(_LOG, "history", count=len(items), limit=n)
        return items
