"""
Catalog Query Service.

Filters the static catalog and shapes the result for display.

Filter semantics (all supplied filters must match):
    - category: exact, case-sensitive match against a category value
    - language: case-insensitive equality
    - use_case: exact membership in the record's use cases
    - search: case-insensitive substring over name, description,
      category, accent and tags

Blank values and the sentinel ``all`` mean "no constraint". Any other
value is a real constraint: a category or language that names no voice
yields an empty list.

Facets (categories, languages, accents, use cases) always describe the
whole catalog so that a client can render every filter option regardless
of the current selection.

Example:
    >>> from decible.catalog import DEFAULT_CATALOG, QueryFilters
    >>> result = DEFAULT_CATALOG.query(QueryFilters.from_params(search="british"))
    >>> result.total, result.total_all
    (5, 21)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import cached_property
from typing import Any, Dict, Iterable, List, Optional, Tuple

from decible.catalog.voices import VOICE_CATEGORIES, VOICES, VoiceRecord

ALL_SENTINEL = "all"

_USAGE_BASE = 100000
_USAGE_SPAN = 900000


def usage_count(name: str) -> int:
    """
    Deterministic pseudo usage count for display.

    Rolling 32-bit hash over the UTF-16 code units of ``name``
    (``h = h * 31 + unit`` with two's-complement wraparound), mapped into
    [100000, 999999] as ``abs(h) % 900000 + 100000``.
    """
    h = 0
    units = name.encode("utf-16-le")
    for i in range(0, len(units), 2):
        unit = units[i] | (units[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h) % _USAGE_SPAN + _USAGE_BASE


def _normalize(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    if not value or value.lower() == ALL_SENTINEL:
        return None
    return value


@dataclass(frozen=True)
class QueryFilters:
    """Normalized catalog filters. ``None`` means unconstrained."""
    category: Optional[str] = None
    language: Optional[str] = None
    use_case: Optional[str] = None
    search: Optional[str] = None

    @classmethod
    def from_params(
        cls,
        category: Optional[str] = None,
        language: Optional[str] = None,
        use_case: Optional[str] = None,
        search: Optional[str] = None,
    ) -> "QueryFilters":
        """Build filters from raw query-string values."""
        return cls(
            category=_normalize(category),
            language=_normalize(language),
            use_case=_normalize(use_case),
            search=_normalize(search),
        )

    def matches(self, voice: VoiceRecord) -> bool:
        if self.category is not None and voice.category.value != self.category:
            return False
        if self.language is not None and voice.language.lower() != self.language.lower():
            return False
        if self.use_case is not None and self.use_case not in voice.use_cases:
            return False
        if self.search is not None and not voice.matches_search(self.search):
            return False
        return True

    @property
    def is_empty(self) -> bool:
        return self.category is None and self.language is None and self.use_case is None and self.search is None


@dataclass(frozen=True)
class VoiceView:
    """A catalog record shaped for display."""
    record: VoiceRecord
    usage_count: int
    created_at: str
    preview_url: Optional[str] = None

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def name(self) -> str:
        return self.record.name

    def to_dict(self) -> Dict[str, Any]:
        r = self.record
        return {
            "id": r.id,
            "name": r.name,
            "voiceName": r.voice_name,
            "category": r.category.value,
            "accent": r.accent,
            "language": r.language,
            "gender": r.gender,
            "age": r.age,
            "description": r.description,
            "tags": list(r.tags),
            "useCases": list(r.use_cases),
            "usageCount": self.usage_count,
            "previewUrl": self.preview_url,
            "createdAt": self.created_at,
        }


@dataclass
class CatalogResult:
    voices: List[VoiceView]
    total_all: int
    categories: Tuple[str, ...]
    languages: Tuple[str, ...]
    accents: Tuple[str, ...]
    use_cases: Tuple[str, ...]
    total: int = field(init=False)

    def __post_init__(self) -> None:
        self.total = len(self.voices)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "voices": [v.to_dict() for v in self.voices],
            "total": self.total,
            "totalAll": self.total_all,
            "categories": list(self.categories),
            "languages": list(self.languages),
            "accents": list(self.accents),
            "useCases": list(self.use_cases),
        }


class VoiceCatalog:
    """
    Read-only view over a tuple of voice records.

    Safe for any number of concurrent readers: the records are frozen and
    every query builds its own result list.
    """

    def __init__(self, records: Iterable[VoiceRecord] = VOICES):
        self._records: Tuple[VoiceRecord, ...] = tuple(records)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> Tuple[VoiceRecord, ...]:
        return self._records

    @property
    def categories(self) -> Tuple[str, ...]:
        return VOICE_CATEGORIES

    @cached_property
    def languages(self) -> Tuple[str, ...]:
        return tuple(sorted({v.language for v in self._records}))

    @cached_property
    def accents(self) -> Tuple[str, ...]:
        return tuple(sorted({v.accent for v in self._records}))

    @cached_property
    def use_cases(self) -> Tuple[str, ...]:
        return tuple(sorted({uc for v in self._records for uc in v.use_cases}))

    def get(self, voice_id: str) -> Optional[VoiceRecord]:
        """Look up a record by catalog id."""
        for voice in self._records:
            if voice.id == voice_id:
                return voice
        return None

    def by_name(self, name: str) -> Optional[VoiceRecord]:
        """Look up a record by provider voice name, case-insensitively."""
        wanted = name.lower()
        for voice in self._records:
            if voice.voice_name.lower() == wanted:
                return voice
        return None

    def view(self, voice: VoiceRecord, now: Optional[datetime] = None) -> VoiceView:
        now = now or datetime.now(timezone.utc)
        return VoiceView(
            record=voice,
            usage_count=usage_count(voice.name),
            created_at=now.isoformat().replace("+00:00", "Z"),
        )

    def query(self, filters: Optional[QueryFilters] = None, now: Optional[datetime] = None) -> CatalogResult:
        """Apply ``filters`` conjunctively and return the shaped result with full-catalog facets."""
        filters = filters or QueryFilters()
        now = now or datetime.now(timezone.utc)
        matched = [self.view(v, now) for v in self._records if filters.matches(v)]
        return CatalogResult(
            voices=matched,
            total_all=len(self._records),
            categories=self.categories,
            languages=self.languages,
            accents=self.accents,
            use_cases=self.use_cases,
        )


DEFAULT_CATALOG = VoiceCatalog(VOICES)
