# kg_chapters/models/report.py

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from kg_chapters.models.concept import ConceptGraph


def _clamp_score(value: float) -> float:
    return min(100.0, max(0.0, float(value)))


class Finding(BaseModel):
    """Observation made by a principle evaluator."""
    type: str = "neutral"  # positive | warning | neutral | critical
    message: str
    severity: float = 0.0
    evidence: str = ""


class Suggestion(BaseModel):
    """Improvement proposed by a principle evaluator."""
    id: Optional[str] = None
    principle: Optional[str] = None
    priority: str = "medium"  # high | medium | low
    title: str
    description: str = ""
    implementation: str = ""
    expected_impact: str = ""
    related_concepts: List[str] = Field(default_factory=list)


class PrincipleEvaluation(BaseModel):
    """
    What an evaluator returns: one learning-principle score in [0, 100]
    plus the weight it carries in the overall score.
    """
    principle: str
    score: float
    weight: float = 1.0
    findings: List[Finding] = Field(default_factory=list)
    suggestions: List[Suggestion] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def _clamp(cls, value: float) -> float:
        return _clamp_score(value)

    @field_validator("weight", mode="before")
    @classmethod
    def _default_weight(cls, value: Optional[float]) -> float:
        return 1.0 if value is None else float(value)


class PrincipleScore(BaseModel):
    principle: str
    score: float = Field(..., ge=0.0, le=100.0)
    weight: float = 1.0
    details: List[str] = Field(default_factory=list)
    suggestions: List[Suggestion] = Field(default_factory=list)


class FailedPrinciple(BaseModel):
    """An evaluator that raised; it is left out of the overall score."""
    principle: str
    error: str


class Recommendation(BaseModel):
    id: str
    priority: str
    category: str = "enhance"
    title: str
    description: str = ""
    affected_concepts: List[str] = Field(default_factory=list)
    action_items: List[str] = Field(default_factory=list)
    expected_outcome: str = ""


class SummaryMetrics(BaseModel):
    total_words: int
    reading_time_minutes: int
    average_section_length: float
    concept_density: float = Field(
        ...,
        description="Concepts per 1000 words.",
    )
    concept_count: int
    relationship_count: int


class AnalysisReport(BaseModel):
    """
    Aggregated result of one chapter analysis: the concept graph plus every
    principle score, the weighted overall score and the recommendations.
    """
    chapter_id: str
    overall_score: float = Field(..., ge=0.0, le=100.0)
    principle_scores: List[PrincipleScore] = Field(default_factory=list)
    failed_principles: List[FailedPrinciple] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)
    concept_graph: ConceptGraph
    metrics: SummaryMetrics
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
