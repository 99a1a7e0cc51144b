# kg_chapters/models/concept.py

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Importance(str, Enum):
    CORE = "core"
    SUPPORTING = "supporting"
    DETAIL = "detail"


class MentionDepth(str, Enum):
    SHALLOW = "shallow"
    MODERATE = "moderate"
    DEEP = "deep"


class RelationshipType(str, Enum):
    RELATED = "related"
    PREREQUISITE = "prerequisite"
    CONTRASTS = "contrasts"
    EXAMPLE = "example"
    EXTENDS = "extends"


class Mention(BaseModel):
    """
    One occurrence of a concept in the source text.

    Fields
    ------
    position:
        Character offset of the match in the source text.
    matched_text:
        Literal surface form that matched (may be an alias or a
        whitespace/hyphen variant of the canonical name).
    context:
        Bounded window around the match, "..." marked when truncated.
    depth:
        Heuristic elaboration estimate for this mention.
    is_revisit:
        True for every mention after the first one of its concept.
    is_alias:
        True if the match came from an alias rather than the canonical name.
    """

    model_config = ConfigDict(frozen=True)

    position: int
    matched_text: str
    context: str
    depth: MentionDepth = MentionDepth.SHALLOW
    is_revisit: bool = False
    is_alias: bool = False


class Concept(BaseModel):
    """
    A retained concept together with every place it is mentioned.

    Invariant: `mentions` is non-empty, sorted by position, and
    `first_mention_position == mentions[0].position`.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    definition: str
    importance: Importance = Importance.DETAIL
    category: Optional[str] = None
    first_mention_position: int
    mentions: List[Mention]
    related_concepts: List[str] = Field(default_factory=list)
    prerequisites: List[str] = Field(default_factory=list)
    applications: List[str] = Field(default_factory=list)
    common_misconceptions: List[str] = Field(default_factory=list)

    @property
    def mention_count(self) -> int:
        return len(self.mentions)


class ConceptRelationship(BaseModel):
    """Directed, typed, weighted edge between two concepts."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    type: RelationshipType
    strength: float = Field(default=0.5, ge=0.0, le=1.0)

    @field_validator("strength", mode="before")
    @classmethod
    def _clamp_strength(cls, value: float) -> float:
        return min(1.0, max(0.0, float(value)))


class ConceptHierarchy(BaseModel):
    """Disjoint partition of concept ids into importance tiers."""

    model_config = ConfigDict(frozen=True)

    core: List[str] = Field(default_factory=list)
    supporting: List[str] = Field(default_factory=list)
    detail: List[str] = Field(default_factory=list)

    def tier_of(self, concept_id: str) -> Optional[Importance]:
        if concept_id in self.core:
            return Importance.CORE
        if concept_id in self.supporting:
            return Importance.SUPPORTING
        if concept_id in self.detail:
            return Importance.DETAIL
        return None


class ConceptGraph(BaseModel):
    """
    Result of one extraction call: concepts, relationships, tiers and the
    first-mention sequence.
    """

    model_config = ConfigDict(frozen=True)

    concepts: List[Concept] = Field(default_factory=list)
    relationships: List[ConceptRelationship] = Field(default_factory=list)
    hierarchy: ConceptHierarchy = Field(default_factory=ConceptHierarchy)
    sequence: List[str] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "ConceptGraph":
        return cls()

    def by_id(self) -> Dict[str, Concept]:
        return {c.id: c for c in self.concepts}

    def get(self, concept_id: str) -> Optional[Concept]:
        for concept in self.concepts:
            if concept.id == concept_id:
                return concept
        return None

    def find(self, name: str) -> Optional[Concept]:
        """Look up a concept by (case-insensitive) name."""
        wanted = name.strip().lower()
        for concept in self.concepts:
            if concept.name.lower() == wanted:
                return concept
        return None
