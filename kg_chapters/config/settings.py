from __future__ import annotations

import math
from enum import Enum
from typing import List, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class RuntimeMode(str, Enum):
    """
    Overall runtime profile for the extractor.

    LIGHT    - small machines / interactive use, keep fewer concepts.
    STANDARD - default behavior (fixed concept cap).
    HEAVY    - whole books, concept cap grows with document length.
    """
    LIGHT = "light"
    STANDARD = "standard"
    HEAVY = "heavy"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
        env_prefix="CHAPTERKG_"
    )

    # ------------------------------------------------------------------
    # Candidate scoring / filtering
    # ------------------------------------------------------------------
    SCORE_THRESHOLD: float = Field(
        default=20.0,
        description="Candidates scoring at or below this value are discarded.",
    )

    EXTENDED_SCORING: bool = Field(
        default=False,
        description=(
            "Add the educational-indicator signals (definition and classification "
            "patterns, spread, explanatory contexts, generic-noun penalty) to "
            "candidate scores."
        ),
    )

    MAX_CONCEPTS: int = Field(
        default=60,
        description="Maximum number of concepts kept after scoring (STANDARD mode).",
    )

    # ------------------------------------------------------------------
    # Mention tracking
    # ------------------------------------------------------------------
    CONTEXT_RADIUS: int = Field(
        default=100,
        description="Characters of context kept on each side of a mention.",
    )

    TOC_MAX_LINE_CHARS: int = Field(
        default=80,
        description=(
            "Longest line that can still be treated as a table-of-contents "
            "entry (dotted leader or trailing page number)."
        ),
    )

    MAX_LIBRARY_MENTIONS: int = Field(
        default=5000,
        description="Stop scanning library terms once this many mentions were found.",
    )

    case_sensitive_acronyms: bool = Field(
        default=False,
        description=(
            "If True, all-uppercase library terms (e.g. 'ATP', 'DOM') only "
            "match their exact uppercase form."
        ),
    )

    disambiguation_domains: List[str] = Field(
        default_factory=lambda: ["computing", "javascript", "react", "web-development"],
        description="Library domains whose mentions must pass the context gate.",
    )

    # ------------------------------------------------------------------
    # Relationship inference
    # ------------------------------------------------------------------
    PROXIMITY_WINDOW: int = Field(
        default=500,
        description="Two mentions closer than this many characters co-occur.",
    )

    RELATIONSHIP_MIN_INDICATORS: int = Field(
        default=2,
        description="Cue hits needed before a typed (non-'related') edge is emitted.",
    )

    RELATIONSHIP_STRENGTH_SCALE: float = Field(
        default=5.0,
        description="Indicator count that maps to a relationship strength of 1.0.",
    )

    infer_library_relationships: bool = Field(
        default=True,
        description=(
            "Run relationship inference in library-guided mode as well. "
            "Disable for very large libraries where only mentions matter."
        ),
    )

    # ------------------------------------------------------------------
    # Report
    # ------------------------------------------------------------------
    READING_WPM: int = Field(
        default=200,
        description="Words per minute used for the estimated reading time.",
    )

    RECOMMENDATION_SCORE_CUTOFF: float = Field(
        default=70.0,
        description=(
            "All suggestions of a principle scoring below this value become "
            "recommendations (high-priority ones always do)."
        ),
    )

    # ------------------------------------------------------------------
    # Runtime / capability knobs
    # ------------------------------------------------------------------
    runtime_mode: RuntimeMode = Field(
        default=RuntimeMode.STANDARD,
        description="Overall runtime profile: light/standard/heavy.",
    )

    max_concepts_light: int = Field(
        default=30,
        description="Concept cap for LIGHT runtime_mode.",
    )

    API_KEY: Optional[SecretStr] = Field(
        default=None,
        description="API key for header-based auth. If None, auth is disabled.",
    )

    def concept_cap(self, word_count: int) -> int:
        """
        Runtime-mode-aware cap on the number of concepts kept.

        HEAVY grows sub-linearly with document length so whole books keep
        their most salient concepts without flooding consumers.
        """
        if self.runtime_mode == RuntimeMode.LIGHT:
            return self.max_concepts_light
        if self.runtime_mode == RuntimeMode.HEAVY:
            words = max(1, word_count)
            raw = round(180 + math.sqrt(words) * 2)
            return min(900, max(180, raw))
        return self.MAX_CONCEPTS


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Singleton-style accessor so we only construct Settings once.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


settings = get_settings()
