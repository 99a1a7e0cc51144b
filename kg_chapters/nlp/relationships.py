# kg_chapters/nlp/relationships.py

"""
Co-occurrence based relationship inference.

Two concepts are compared mention by mention. Mentions closer than the
proximity window co-occur; the text spanning both mentions (plus the
context radius) is then scanned for lexical cues that type the edge.
"""

from __future__ import annotations

import re
from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Pattern, Sequence, Tuple

from kg_chapters.models.concept import Concept, ConceptRelationship, Mention, RelationshipType

_PREREQUISITE_CUES = re.compile(
    r"\b(before|first|foundation|builds?\s+on|requires?|prerequisites?)\b", re.IGNORECASE
)
_CONTRAST_CUES = re.compile(
    r"\b(unlike|whereas|in\s+contrast|however|but|different\s+from)\b", re.IGNORECASE
)

# Up to a few list items may sit between "such as" and the example.
_LIST_GAP = r"(?:[\w\-]+,?\s+(?:and\s+|or\s+)?){0,4}?"


@dataclass
class PairEvidence:
    """Cue counts for one unordered concept pair."""
    cooccurrences: int = 0
    prerequisite: int = 0
    contrasts: int = 0
    first_is_example: int = 0
    second_is_example: int = 0


def _surface_alternation(concept: Concept) -> str:
    forms = {concept.name.lower()}
    forms.update(m.matched_text.lower() for m in concept.mentions)
    parts = []
    for form in sorted(forms, key=lambda f: (-len(f), f)):
        words = [w for w in re.split(r"[\s\-]+", form) if w]
        if words:
            parts.append(r"[\s\-]+".join(re.escape(w) for w in words))
    return "(?:" + "|".join(parts) + ")"


def example_templates(general: str, example: str) -> List[Pattern[str]]:
    """
    Sentence templates in which `example` is an instance of `general`.

    Both arguments are surface alternations from `_surface_alternation`.
    """
    g, e = general, example
    return [
        re.compile(rf"\b{g}\b,?\s+such\s+as\s+{_LIST_GAP}{e}\b", re.IGNORECASE),
        re.compile(rf"\b{g}\b,?\s+like\s+{_LIST_GAP}{e}\b", re.IGNORECASE),
        re.compile(rf"\b{g}\b\s*\(\s*e\.g\.,?\s*{_LIST_GAP}{e}\b", re.IGNORECASE),
        re.compile(rf"\b{e}\b\s+is\s+an?\s+example\s+of\s+{g}\b", re.IGNORECASE),
        re.compile(rf"\b{e}\b\s+exemplifies\s+{g}\b", re.IGNORECASE),
    ]


def _count(patterns: Iterable[Pattern[str]], window: str) -> int:
    return sum(len(p.findall(window)) for p in patterns)


def _mention_end(mention: Mention) -> int:
    return mention.position + len(mention.matched_text)


def collect_pair_evidence(
    first: Concept,
    second: Concept,
    text: str,
    proximity: int = 500,
    radius: int = 100,
    alternations: Optional[Mapping[str, str]] = None,
) -> PairEvidence:
    """
    Scan every pair of nearby mentions of `first` and `second`.

    `first` is the concept introduced earlier; prerequisite cues only count
    when its mention precedes the other one. Example templates are compiled
    only once the pair is known to co-occur.
    """
    evidence = PairEvidence()
    if not first.mentions or not second.mentions:
        return evidence

    windows: List[Tuple[Mention, Mention, str]] = []
    second_positions = [m.position for m in second.mentions]
    for a in first.mentions:
        lo = bisect_right(second_positions, a.position - proximity)
        hi = bisect_left(second_positions, a.position + proximity)
        for b in second.mentions[lo:hi]:
            start = max(0, min(a.position, b.position) - radius)
            end = min(len(text), max(_mention_end(a), _mention_end(b)) + radius)
            windows.append((a, b, text[start:end]))

    if not windows:
        return evidence

    if alternations is None:
        alternations = {}
    first_alt = alternations.get(first.id) or _surface_alternation(first)
    second_alt = alternations.get(second.id) or _surface_alternation(second)
    first_is_example = example_templates(second_alt, first_alt)
    second_is_example = example_templates(first_alt, second_alt)

    for a, b, window in windows:
        evidence.cooccurrences += 1
        if a.position < b.position:
            evidence.prerequisite += len(_PREREQUISITE_CUES.findall(window))
        evidence.contrasts += len(_CONTRAST_CUES.findall(window))
        evidence.first_is_example += _count(first_is_example, window)
        evidence.second_is_example += _count(second_is_example, window)

    return evidence


def classify_pair(
    first: Concept,
    second: Concept,
    evidence: PairEvidence,
    min_indicators: int = 2,
    strength_scale: float = 5.0,
) -> List[ConceptRelationship]:
    """
    Turn pair evidence into edges.

    Precedence: prerequisite, contrasts, example, then plain "related"
    (emitted in both directions).
    """
    if evidence.cooccurrences == 0:
        return []

    def strength(count: int) -> float:
        return min(1.0, count / max(strength_scale, 1e-9))

    if evidence.prerequisite >= min_indicators:
        return [ConceptRelationship(
            source=first.id, target=second.id,
            type=RelationshipType.PREREQUISITE, strength=strength(evidence.prerequisite),
        )]

    if evidence.contrasts >= min_indicators:
        return [ConceptRelationship(
            source=first.id, target=second.id,
            type=RelationshipType.CONTRASTS, strength=strength(evidence.contrasts),
        )]

    if max(evidence.first_is_example, evidence.second_is_example) >= min_indicators:
        if evidence.second_is_example >= evidence.first_is_example:
            example, general, count = second, first, evidence.second_is_example
        else:
            example, general, count = first, second, evidence.first_is_example
        return [ConceptRelationship(
            source=example.id, target=general.id,
            type=RelationshipType.EXAMPLE, strength=strength(count),
        )]

    s = strength(evidence.cooccurrences)
    return [
        ConceptRelationship(source=first.id, target=second.id, type=RelationshipType.RELATED, strength=s),
        ConceptRelationship(source=second.id, target=first.id, type=RelationshipType.RELATED, strength=s),
    ]


def infer_relationships(
    concepts: Sequence[Concept],
    text: str,
    proximity: int = 500,
    radius: int = 100,
    min_indicators: int = 2,
    strength_scale: float = 5.0,
) -> List[ConceptRelationship]:
    """Infer typed edges for every unordered pair of concepts."""
    alternations = {c.id: _surface_alternation(c) for c in concepts if c.mentions}
    relationships: List[ConceptRelationship] = []
    for i in range(len(concepts)):
        for j in range(i + 1, len(concepts)):
            a, b = concepts[i], concepts[j]
            # Orient the pair by introduction order.
            if (b.first_mention_position, j) < (a.first_mention_position, i):
                a, b = b, a
            evidence = collect_pair_evidence(a, b, text, proximity, radius, alternations)
            relationships.extend(
                classify_pair(a, b, evidence, min_indicators, strength_scale)
            )
    return relationships


def _append_unique(values: List[str], item: str) -> None:
    if item not in values:
        values.append(item)


def link_concepts(
    concepts: Sequence[Concept],
    relationships: Sequence[ConceptRelationship],
) -> List[Concept]:
    """
    Mirror edges onto the concepts themselves.

    prerequisite A -> B  : B.prerequisites += A
    example E -> G       : G.applications += E, both become related
    related / contrasts  : source.related_concepts += target
    """
    fields: Dict[str, Tuple[List[str], List[str], List[str]]] = {
        c.id: (list(c.prerequisites), list(c.related_concepts), list(c.applications))
        for c in concepts
    }

    for rel in relationships:
        if rel.source not in fields or rel.target not in fields:
            continue
        if rel.type == RelationshipType.PREREQUISITE:
            _append_unique(fields[rel.target][0], rel.source)
        elif rel.type == RelationshipType.EXAMPLE:
            _append_unique(fields[rel.target][2], rel.source)
            _append_unique(fields[rel.target][1], rel.source)
            _append_unique(fields[rel.source][1], rel.target)
        elif rel.type == RelationshipType.CONTRASTS:
            _append_unique(fields[rel.source][1], rel.target)
            _append_unique(fields[rel.target][1], rel.source)
        else:
            _append_unique(fields[rel.source][1], rel.target)

    return [
        c.model_copy(update={
            "prerequisites": fields[c.id][0],
            "related_concepts": fields[c.id][1],
            "applications": fields[c.id][2],
        })
        for c in concepts
    ]
