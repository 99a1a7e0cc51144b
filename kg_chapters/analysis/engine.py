# kg_chapters/analysis/engine.py

"""
Analysis orchestrator.

Runs concept extraction once per chapter, hands the graph to every
registered principle evaluator and folds their scores into one report.
The engine only relies on the evaluator contract (principle, score,
weight, findings, suggestions); evaluators themselves live elsewhere.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

from kg_chapters.config.settings import Settings, settings
from kg_chapters.documents import ChapterDocument
from kg_chapters.models.concept import ConceptGraph
from kg_chapters.models.report import (
    AnalysisReport,
    FailedPrinciple,
    PrincipleEvaluation,
    PrincipleScore,
    Recommendation,
    SummaryMetrics,
)
from kg_chapters.models.section import Section
from kg_chapters.nlp.concept_extraction import ConceptExtractor

logger = logging.getLogger("kg_chapters.analysis")


@runtime_checkable
class PrincipleEvaluator(Protocol):
    """Anything with `evaluate(document, concept_graph)`."""

    def evaluate(
        self,
        document: ChapterDocument,
        concept_graph: ConceptGraph,
    ) -> Union[PrincipleEvaluation, Mapping[str, Any]]:
        ...


def evaluator_name(evaluator: Any) -> str:
    for attr in ("principle", "name"):
        value = getattr(evaluator, attr, None)
        if isinstance(value, str) and value:
            return value
    return type(evaluator).__name__


def weighted_overall_score(scores: Sequence[PrincipleScore]) -> float:
    """Weighted mean of principle scores, rounded to one decimal; 0 when empty."""
    total_weight = sum(s.weight for s in scores)
    if not scores or total_weight <= 0:
        return 0.0
    mean = sum(s.score * s.weight for s in scores) / total_weight
    return round(min(100.0, max(0.0, mean)), 1)


def build_recommendations(
    scores: Sequence[PrincipleScore],
    score_cutoff: float = 70.0,
) -> List[Recommendation]:
    """
    Every high-priority suggestion, plus every suggestion of a principle
    scoring below `score_cutoff`, becomes a recommendation.
    """
    recommendations: List[Recommendation] = []
    for score in scores:
        for suggestion in score.suggestions:
            if suggestion.priority != "high" and score.score >= score_cutoff:
                continue
            rec_id = suggestion.id or f"{score.principle}-{suggestion.title[:20]}"
            recommendations.append(
                Recommendation(
                    id=rec_id,
                    priority=suggestion.priority,
                    category="enhance",
                    title=suggestion.title,
                    description=suggestion.description,
                    affected_concepts=list(suggestion.related_concepts),
                    action_items=[suggestion.implementation] if suggestion.implementation else [],
                    expected_outcome=suggestion.expected_impact,
                )
            )
    return recommendations


def compute_metrics(
    document: ChapterDocument,
    sections: Sequence[Section],
    concept_graph: ConceptGraph,
    words_per_minute: int = 200,
) -> SummaryMetrics:
    words = document.word_count
    section_lengths = [s.word_count for s in sections]
    average_section = sum(section_lengths) / len(section_lengths) if section_lengths else 0.0
    concept_count = len(concept_graph.concepts)
    return SummaryMetrics(
        total_words=words,
        reading_time_minutes=round(words / max(1, words_per_minute)),
        average_section_length=average_section,
        concept_density=concept_count / max(1.0, words / 1000.0),
        concept_count=concept_count,
        relationship_count=len(concept_graph.relationships),
    )


class AnalysisEngine:
    """
    - `analyze(document, sections=None)` -> AnalysisReport

    Evaluator failures are isolated: the failing principle is logged,
    listed under `failed_principles` and left out of the overall score.
    """

    def __init__(
        self,
        evaluators: Sequence[PrincipleEvaluator] = (),
        extractor: Optional[ConceptExtractor] = None,
        config: Optional[Settings] = None,
    ) -> None:
        self.config = config or settings
        self.evaluators: List[PrincipleEvaluator] = list(evaluators)
        self.extractor = extractor or ConceptExtractor(config=self.config)

    def register(self, evaluator: PrincipleEvaluator) -> None:
        self.evaluators.append(evaluator)

    def _run_evaluators(
        self,
        document: ChapterDocument,
        concept_graph: ConceptGraph,
    ) -> Tuple[List[PrincipleScore], List[FailedPrinciple]]:
        scores: List[PrincipleScore] = []
        failures: List[FailedPrinciple] = []

        for evaluator in self.evaluators:
            name = evaluator_name(evaluator)
            try:
                raw = evaluator.evaluate(document, concept_graph)
                evaluation = (
                    raw if isinstance(raw, PrincipleEvaluation)
                    else PrincipleEvaluation.model_validate(raw)
                )
            except Exception as exc:
                logger.exception("Evaluator %s failed for chapter %s", name, document.chapter_id)
                failures.append(FailedPrinciple(principle=name, error=f"{type(exc).__name__}: {exc}"))
                continue

            scores.append(
                PrincipleScore(
                    principle=evaluation.principle,
                    score=evaluation.score,
                    weight=evaluation.weight,
                    details=[f.message for f in evaluation.findings],
                    suggestions=list(evaluation.suggestions),
                )
            )
        return scores, failures

    def analyze(
        self,
        document: ChapterDocument,
        sections: Optional[Sequence[Section]] = None,
    ) -> AnalysisReport:
        sections = list(sections) if sections is not None else list(document.sections)

        concept_graph = self.extractor.extract(document.text, sections)
        scores, failures = self._run_evaluators(document, concept_graph)

        report = AnalysisReport(
            chapter_id=document.chapter_id,
            overall_score=weighted_overall_score(scores),
            principle_scores=scores,
            failed_principles=failures,
            recommendations=build_recommendations(scores, self.config.RECOMMENDATION_SCORE_CUTOFF),
            concept_graph=concept_graph,
            metrics=compute_metrics(document, sections, concept_graph, self.config.READING_WPM),
        )
        logger.info(
            "Analyzed chapter %s: overall %.1f over %d principles (%d failed)",
            document.chapter_id, report.overall_score, len(scores), len(failures),
        )
        return report
