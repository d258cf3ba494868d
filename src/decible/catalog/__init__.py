"""Static voice catalog and its query service."""
from decible.catalog.query import (
    DEFAULT_CATALOG,
    CatalogResult,
    QueryFilters,
    VoiceCatalog,
    VoiceView,
    usage_count,
)
from decible.catalog.voices import VOICE_CATEGORIES, VOICES, VoiceCategory, VoiceRecord

__all__ = [
    "DEFAULT_CATALOG",
    "CatalogResult",
    "QueryFilters",
    "VoiceCatalog",
    "VoiceView",
    "usage_count",
    "VOICE_CATEGORIES",
    "VOICES",
    "VoiceCategory",
    "VoiceRecord",
]
