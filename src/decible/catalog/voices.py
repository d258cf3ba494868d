"""
Static voice catalog.

The catalog is a fixed tuple of immutable ``VoiceRecord`` entries built at
import time. Nothing in the process mutates it; queries always start from
the full tuple and build new lists.

Each record carries two identifiers:
    - ``id``: the lowercase catalog id used by clients ("brian")
    - ``provider_voice_id``: the premade voice id the speech provider expects
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class VoiceCategory(str, Enum):
    """Catalog categories, in display order."""
    COMMENTARY = "Commentary"
    DOCUMENTARY = "Documentary"
    STORYTELLING = "Storytelling"
    SHORT_VIDEOS = "Short Videos"
    CRIME_SUSPENSE = "Crime & Suspense"


VOICE_CATEGORIES: Tuple[str, ...] = tuple(c.value for c in VoiceCategory)


@dataclass(frozen=True)
class VoiceRecord:
    id: str
    name: str
    voice_name: str
    provider_voice_id: str
    category: VoiceCategory
    gender: str
    accent: str
    language: str
    age: str
    description: str
    use_cases: Tuple[str, ...]
    tags: Tuple[str, ...]

    def matches_search(self, needle: str) -> bool:
        """Case-insensitive substring match over name, description, category, accent and tags."""
        q = needle.lower()
        return (
            q in self.name.lower()
            or q in self.category.value.lower()
            or q in self.accent.lower()
            or q in self.description.lower()
            or any(q in tag.lower() for tag in self.tags)
        )


def _voice(
    name: str,
    provider_voice_id: str,
    category: VoiceCategory,
    gender: str,
    accent: str,
    age: str,
    description: str,
    use_cases: Tuple[str, ...],
    tags: Tuple[str, ...],
) -> VoiceRecord:
    return VoiceRecord(
        id=name.lower(),
        name=name,
        voice_name=name,
        provider_voice_id=provider_voice_id,
        category=category,
        gender=gender,
        accent=accent,
        language="English",
        age=age,
        description=description,
        use_cases=use_cases,
        tags=tags,
    )


VOICES: Tuple[VoiceRecord, ...] = (
    # Commentary
    _voice("Brian", "nPczCjzI2devNBz1zQrb", VoiceCategory.COMMENTARY, "male", "American", "Adult",
           "Natural conversational tone, great for podcasts and YouTube",
           ("youtube", "studio"),
           ("natural", "conversational", "podcast", "male", "American")),
    _voice("Chris", "iP95p4xoKVk53GoZ742B", VoiceCategory.COMMENTARY, "male", "American", "Adult",
           "Friendly, approachable male voice for commentary",
           ("youtube", "studio", "shorts"),
           ("friendly", "approachable", "casual", "male", "American")),
    _voice("Daniel", "onwK4e9ZLuTAKqWW03F9", VoiceCategory.COMMENTARY, "male", "British", "Adult",
           "Sophisticated British male voice for professional content",
           ("youtube", "documentary", "studio"),
           ("sophisticated", "British", "refined", "male")),
    _voice("Bill", "pqHfZKP75CvOlQylNhV4", VoiceCategory.COMMENTARY, "male", "American", "Middle Aged",
           "Experienced, authoritative voice for commentary",
           ("youtube", "documentary", "studio"),
           ("experienced", "authoritative", "mature", "male", "American")),
    _voice("Roger", "CwhRBWXzGAHq8TQ4Fs17", VoiceCategory.COMMENTARY, "male", "American", "Middle Aged",
           "Deep, confident male voice with a broadcast quality",
           ("youtube", "studio", "documentary"),
           ("deep", "confident", "broadcast", "male", "American")),

    # Documentary
    _voice("George", "JBFqnCBsd6RMkjVDRZzb", VoiceCategory.DOCUMENTARY, "male", "British", "Adult",
           "Classic British narrator, perfect for documentaries",
           ("documentary", "youtube"),
           ("British", "classic", "narrator", "male")),
    _voice("Liam", "TX3LPaxmHKxFdv7VOQHJ", VoiceCategory.DOCUMENTARY, "male", "Irish", "Adult",
           "Warm Irish accent, thoughtful and engaging",
           ("documentary", "youtube", "studio"),
           ("Irish", "warm", "thoughtful", "male")),
    _voice("Will", "bIHbv24MWmeRgasZH58o", VoiceCategory.DOCUMENTARY, "male", "American", "Adult",
           "Calm, measured voice for educational and documentary content",
           ("documentary", "youtube", "sleep"),
           ("calm", "measured", "educational", "male", "American")),
    _voice("Eric", "cjVigY5qzO86Huf0OWal", VoiceCategory.DOCUMENTARY, "male", "American", "Adult",
           "Rich, resonant voice for nature and history documentaries",
           ("documentary", "youtube"),
           ("rich", "resonant", "nature", "male", "American")),

    # Storytelling
    _voice("Rachel", "21m00Tcm4TlvDq8ikWAM", VoiceCategory.STORYTELLING, "female", "American", "Adult",
           "Warm, expressive female voice for storytelling",
           ("youtube", "sleep", "character"),
           ("warm", "expressive", "storytelling", "female", "American")),
    _voice("Alice", "Xb7hH8MSUJpSbSDYk0k2", VoiceCategory.STORYTELLING, "female", "British", "Adult",
           "Gentle, whimsical voice for fairy tales and stories",
           ("sleep", "character", "youtube"),
           ("gentle", "whimsical", "fairy tale", "female", "British")),
    _voice("Matilda", "XrExE9yKIg1WjnnlVkGX", VoiceCategory.STORYTELLING, "female", "Australian", "Adult",
           "Warm Australian accent, natural and engaging storyteller",
           ("youtube", "sleep", "character"),
           ("warm", "Australian", "natural", "female")),
    _voice("Callum", "N2lVS1w4EtoT3dr4eOWO", VoiceCategory.STORYTELLING, "male", "Scottish", "Adult",
           "Scottish accent, captivating voice for adventure stories",
           ("character", "youtube", "documentary"),
           ("Scottish", "captivating", "adventure", "male")),
    _voice("Lily", "pFZP5JQG7iQjIQuC4Bku", VoiceCategory.STORYTELLING, "female", "British", "Young Adult",
           "Sweet, melodic voice for bedtime and children stories",
           ("sleep", "character", "asmr"),
           ("sweet", "melodic", "bedtime", "female", "British")),

    # Short Videos
    _voice("Aria", "9BWtsMINqrJLrRacOk9x", VoiceCategory.SHORT_VIDEOS, "female", "American", "Young Adult",
           "Trendy, energetic voice perfect for reels and shorts",
           ("shorts", "youtube", "character"),
           ("trendy", "energetic", "reels", "female", "American")),
    _voice("Charlie", "IKne3meq5aSn9XLyUdCD", VoiceCategory.SHORT_VIDEOS, "male", "Australian", "Young Adult",
           "Laid-back Australian voice, great for casual short-form content",
           ("shorts", "youtube"),
           ("laid-back", "Australian", "casual", "male")),
    _voice("Jessica", "cgSgspJ2msm6clMCkdW9", VoiceCategory.SHORT_VIDEOS, "female", "American", "Young Adult",
           "Bright, relatable female voice for TikTok and YouTube Shorts",
           ("shorts", "youtube", "studio"),
           ("bright", "relatable", "social media", "female", "American")),
    _voice("River", "SAz9YHcvj6GT2YYXdXww", VoiceCategory.SHORT_VIDEOS, "neutral", "American", "Young Adult",
           "Gender-neutral, modern voice for inclusive content",
           ("shorts", "youtube", "character"),
           ("neutral", "modern", "inclusive", "American")),

    # Crime & Suspense
    _voice("Sarah", "EXAVITQu4vr4xnSDxMaL", VoiceCategory.CRIME_SUSPENSE, "female", "American", "Adult",
           "Compelling, intense voice for true crime narration",
           ("youtube", "documentary"),
           ("compelling", "intense", "true crime", "female", "American")),
    _voice("Charlotte", "XB0fDUnXU5powFXDhCwa", VoiceCategory.CRIME_SUSPENSE, "female", "British", "Adult",
           "Mysterious British voice, perfect for suspense and thriller narration",
           ("youtube", "documentary", "character"),
           ("mysterious", "British", "suspense", "female")),
    _voice("Laura", "FGY2WhTYpPnrIDTdsKH5", VoiceCategory.CRIME_SUSPENSE, "female", "American", "Adult",
           "Serious, dramatic voice for crime documentaries",
           ("youtube", "documentary"),
           ("serious", "dramatic", "crime", "female", "American")),
)
