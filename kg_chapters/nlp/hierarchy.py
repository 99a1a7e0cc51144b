# kg_chapters/nlp/hierarchy.py

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

from kg_chapters.models.concept import Concept, ConceptHierarchy, Importance

CORE_FRACTION = 0.2
SUPPORTING_FRACTION = 0.3


def rank_score(concept: Concept) -> float:
    """Mention count first, earliness of the first mention as tie-breaker."""
    return len(concept.mentions) * 10 + (1000 - concept.first_mention_position) * 0.01


def build_hierarchy(concepts: Sequence[Concept]) -> Tuple[ConceptHierarchy, List[Concept]]:
    """
    Partition concepts into core / supporting / detail tiers.

    The top ceil(20%) by rank_score are core, the next ceil(30%) supporting,
    the rest detail. Returns the hierarchy and copies of the concepts with
    `importance` overwritten; input order is preserved.
    """
    ranked = sorted(range(len(concepts)), key=lambda i: rank_score(concepts[i]), reverse=True)

    n_core = math.ceil(len(concepts) * CORE_FRACTION)
    n_supporting = math.ceil(len(concepts) * SUPPORTING_FRACTION)

    tiers = {}
    for rank, idx in enumerate(ranked):
        if rank < n_core:
            tiers[idx] = Importance.CORE
        elif rank < n_core + n_supporting:
            tiers[idx] = Importance.SUPPORTING
        else:
            tiers[idx] = Importance.DETAIL

    hierarchy = ConceptHierarchy(
        core=[concepts[i].id for i in ranked if tiers[i] == Importance.CORE],
        supporting=[concepts[i].id for i in ranked if tiers[i] == Importance.SUPPORTING],
        detail=[concepts[i].id for i in ranked if tiers[i] == Importance.DETAIL],
    )
    updated = [
        c.model_copy(update={"importance": tiers[i]})
        for i, c in enumerate(concepts)
    ]
    return hierarchy, updated


def build_sequence(concepts: Sequence[Concept]) -> List[str]:
    """Concept ids ordered by first mention; ties keep input order."""
    return [c.id for c in sorted(concepts, key=lambda c: c.first_mention_position)]
