# kg_chapters/nlp/scoring.py

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from kg_chapters.nlp.candidates import Candidate, split_sentences


# Signal weights. Library terms must dominate the ranking.
TF_SCALE = 100.0
TF_CAP = 30.0
HEADING_WEIGHT = 25.0
INLINE_DEFINITION_BONUS = 30.0
WORD_COUNT_WEIGHT = 5.0
WORD_COUNT_CAP = 15.0
EARLY_FRACTION = 0.1
EARLY_BONUS = 10.0
REVISIT_WEIGHT = 3.0
REVISIT_CAP = 20.0
LIBRARY_BONUS = 50.0
CHEMICAL_BONUS = 20.0
TECHNICAL_BONUS = 15.0
SHORT_WORD_PENALTY = 10.0

# Extra signals, only applied with `extended=True`.
DEFINITION_PATTERN_BONUS = 20.0
CLASSIFICATION_BONUS = 15.0
SPREAD_MIN_POSITIONS = 3
SPREAD_FRACTION = 0.3
SPREAD_BONUS = 10.0
EXPLANATORY_MIN_SENTENCES = 2
EXPLANATORY_BONUS = 12.0
GENERIC_NOUN_PENALTY = 30.0

GENERIC_PENALTY_TERMS = frozenset(
    """
    object objects property properties value values function functions
    method methods variable variables data type types
    """.split()
)

_EXPLANATORY = re.compile(
    r"\b(because|therefore|thus|means?|involves?|enables?|allows?|provides?"
    r"|results?\s+in|leads\s+to|characterized\s+by)\b",
    re.IGNORECASE,
)


@dataclass
class ScoredCandidate:
    candidate: Candidate
    score: float

    @property
    def confidence(self) -> float:
        return min(max(self.score / 100.0, 0.0), 1.0)


def score_candidate(candidate: Candidate, total_words: int, text_length: int) -> float:
    """
    Sum of independently capped salience signals for one candidate.
    """
    score = 0.0

    tf = candidate.frequency / max(1, total_words)
    score += min(tf * TF_SCALE, TF_CAP)

    score += candidate.from_heading * HEADING_WEIGHT

    if candidate.has_inline_definition:
        score += INLINE_DEFINITION_BONUS

    word_count = candidate.word_count
    score += min(word_count * WORD_COUNT_WEIGHT, WORD_COUNT_CAP)

    first = candidate.first_position
    if first is not None and first < text_length * EARLY_FRACTION:
        score += EARLY_BONUS

    if candidate.frequency > 1:
        score += min(candidate.frequency * REVISIT_WEIGHT, REVISIT_CAP)

    if candidate.is_library_term:
        score += LIBRARY_BONUS

    if candidate.is_chemical_formula:
        score += CHEMICAL_BONUS
    if candidate.is_technical_term:
        score += TECHNICAL_BONUS

    if (
        word_count == 1
        and len(candidate.term) <= 4
        and candidate.frequency < 3
        and not candidate.is_library_term
    ):
        score -= SHORT_WORD_PENALTY

    return score


def _explanatory_sentences(
    positions: Sequence[int],
    sentences: Sequence[Tuple[int, str]],
) -> int:
    starts = [offset for offset, _ in sentences]
    seen = set()
    for position in positions:
        idx = bisect_right(starts, position) - 1
        if idx >= 0:
            seen.add(idx)
    return sum(1 for idx in seen if _EXPLANATORY.search(sentences[idx][1]))


def extended_signals(
    candidate: Candidate,
    text_length: int,
    sentences: Sequence[Tuple[int, str]],
) -> float:
    """
    Educational-indicator adjustments on top of `score_candidate`:
    explicit definitions, classification, reuse across the text,
    explanatory contexts, and a penalty for bare generic nouns.
    """
    score = 0.0

    if candidate.is_definition_pattern:
        score += DEFINITION_PATTERN_BONUS
    if candidate.is_classification:
        score += CLASSIFICATION_BONUS

    positions = candidate.positions
    if len(positions) >= SPREAD_MIN_POSITIONS:
        if max(positions) - min(positions) > text_length * SPREAD_FRACTION:
            score += SPREAD_BONUS

    if _explanatory_sentences(positions, sentences) >= EXPLANATORY_MIN_SENTENCES:
        score += EXPLANATORY_BONUS

    if (
        candidate.normalized in GENERIC_PENALTY_TERMS
        and candidate.from_heading == 0
        and not candidate.inline_definitions
        and not candidate.is_library_term
    ):
        score -= GENERIC_NOUN_PENALTY

    return score


def score_and_filter(
    candidates: Iterable[Candidate],
    text: str,
    threshold: float = 20.0,
    cap: Optional[int] = 60,
    extended: bool = False,
) -> List[ScoredCandidate]:
    """
    Score every candidate, keep those above `threshold`, best first.

    Sorting is stable, so equal scores keep discovery order.
    """
    total_words = len(text.split())
    text_length = len(text)
    sentences = split_sentences(text) if extended else []

    scored = []
    for c in candidates:
        score = score_candidate(c, total_words, text_length)
        if extended:
            score += extended_signals(c, text_length, sentences)
        scored.append(ScoredCandidate(candidate=c, score=score))
    kept = [s for s in scored if s.score > threshold]
    kept.sort(key=lambda s: s.score, reverse=True)

    if cap is not None:
        kept = kept[:cap]
    return kept
