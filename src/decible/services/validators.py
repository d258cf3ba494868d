"""
Input validation for the generation, preview and history paths.

Validation runs before any outbound call so that a rejected request never
reaches the speech provider or the backend.

Validation Rules:
    - Text: required, non-blank, at most ``max_length`` characters
    - Voice id: required, non-blank, at most 128 characters
    - Voice settings: stability / similarity / style clamped to [0, 1],
      speed clamped to [0.7, 1.2]
    - History limit: positive integer, capped; anything else -> default
    - Paging offset: non-negative integer; anything else -> 0

All validation failures raise ValidationError, an InvalidInputError with a
``reason`` code (e.g. "TEXT_TOO_LONG") for programmatic handling.
"""
from __future__ import annotations

from typing import Any, Optional, Tuple

from decible.core.logging import get_logger, verbose
from decible.services.errors import InvalidInputError

_LOG = get_logger("decible.validators")

MAX_VOICE_ID_LENGTH = 128
SPEED_RANGE = (0.7, 1.2)
MISSING_FIELDS_MESSAGE = "Missing text or voiceId"


class ValidationError(InvalidInputError):
    """
    Raised when input validation fails.

    Attributes:
        message: Client-safe description.
        reason: Machine-readable reason (TEXT_REQUIRED, TEXT_TOO_LONG, ...).
    """

    def __init__(self, message: str, reason: str = "VALIDATION_ERROR"):
        super().__init__(message, details={"reason": reason})
        self.reason = reason


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def validate_generation_input(
    text: Optional[str],
    voice_id: Optional[str],
    max_length: int = 5000,
) -> Tuple[str, str]:
    """
    Validate the two required generation fields.

    Returns:
        (text, voice_id) with surrounding whitespace removed from the id.
        The text is returned unchanged apart from the blank check.

    Raises:
        ValidationError: MISSING_FIELDS, TEXT_TOO_LONG or VOICE_ID_TOO_LONG.
    """
    if _is_blank(text) or _is_blank(voice_id):
        raise ValidationError(MISSING_FIELDS_MESSAGE, "MISSING_FIELDS")

    text = str(text)
    if len(text) > max_length:
        raise ValidationError(
            f"Text exceeds maximum length ({len(text)} > {max_length})",
            "TEXT_TOO_LONG",
        )

    voice_id = validate_voice_id(voice_id)
    return text, voice_id


def validate_voice_id(voice_id: Optional[str]) -> str:
    """Validate a voice identifier."""
    if _is_blank(voice_id):
        raise ValidationError("voice_id is required", "VOICE_ID_REQUIRED")
    voice_id = str(voice_id).strip()
    if len(voice_id) > MAX_VOICE_ID_LENGTH:
        raise ValidationError(
            f"voice_id exceeds maximum length ({MAX_VOICE_ID_LENGTH})",
            "VOICE_ID_TOO_LONG",
        )
    return voice_id


def clamp_unit(value: float) -> float:
    """Clamp a setting to [0, 1]."""
    return max(0.0, min(1.0, float(value)))


def clamp_speed(value: float) -> float:
    low, high = SPEED_RANGE
    return max(low, min(high, float(value)))


def validate_history_limit(raw: Any, default: int = 50, maximum: int = 100) -> int:
    """
    Parse the ``limit`` query parameter for history listings.

    Missing, non-numeric or non-positive values fall back to ``default``;
    values above ``maximum`` are capped.
    """
    if raw is None or raw == "":
        return default
    try:
        limit = int(str(raw).strip())
    except ValueError:
        verbose(_LOG, "history_limit_ignored", raw=str(raw)[:20])
        return default
    if limit < 1:
        return default
    return min(limit, maximum)


def validate_offset(raw: Any) -> int:
    """Parse a paging ``offset``; missing, non-numeric or negative values become 0."""
    if raw is None or raw == "":
        return 0
    try:
        offset = int(str(raw).strip())
    except ValueError:
        verbose(_LOG, "offset_ignored", raw=str(raw)[:20])
        return 0
    return max(offset, 0)
