# kg_chapters/nlp/concept_extraction.py

from __future__ import annotations

import logging
import re
import time
from enum import Enum
from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Tuple, Union

from kg_chapters.config.settings import Settings, settings
from kg_chapters.models.concept import Concept, ConceptGraph, ConceptRelationship, Importance, Mention
from kg_chapters.models.library import ConceptDefinition, ConceptLibrary, deduplicate_definitions
from kg_chapters.models.section import Section
from kg_chapters.nlp.candidates import Candidate, CandidatePool, discover_candidates, seed_library_terms
from kg_chapters.nlp.disambiguation import ContextValidatorRegistry, default_registry
from kg_chapters.nlp.hierarchy import build_hierarchy, build_sequence
from kg_chapters.nlp.mentions import build_mentions
from kg_chapters.nlp.relationships import infer_relationships, link_concepts
from kg_chapters.nlp.scoring import score_and_filter
from kg_chapters.nlp.term_matcher import TermMatch, TermPatternTable, match_terms
from kg_chapters.nlp.vocabulary import DEFAULT_VOCABULARY, VocabularyConfig, normalize_term

logger = logging.getLogger("kg_chapters.extraction")

LibraryInput = Union[ConceptLibrary, Sequence[ConceptDefinition], None]


class ExtractionMode(str, Enum):
    """
    AUTO      - library-guided when a usable library is given, else discovery.
    DISCOVERY - vocabulary-free mining; a library only pre-seeds candidates.
    LIBRARY   - only library terms become concepts (falls back to discovery
                when the library is empty).
    """
    AUTO = "auto"
    DISCOVERY = "discovery"
    LIBRARY = "library"


_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    return _SLUG.sub("-", value.lower()).strip("-")


def definition_text(definition: ConceptDefinition) -> str:
    """Description, else "category - subcategory", else the name."""
    if definition.description and definition.description.strip():
        return definition.description.strip()
    if definition.category and definition.subcategory:
        return f"{definition.category} - {definition.subcategory}"
    if definition.category:
        return definition.category
    return definition.name


class _PhaseTimer:
    """Collects per-phase durations for the DEBUG log."""

    def __init__(self) -> None:
        self.timings: Dict[str, float] = {}
        self._last = time.perf_counter()

    def mark(self, phase: str) -> None:
        now = time.perf_counter()
        self.timings[phase] = (now - self._last) * 1000.0
        self._last = now

    def log(self) -> None:
        for phase, ms in self.timings.items():
            logger.debug("extraction phase %s took %.1f ms", phase, ms)


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------

class ConceptExtractor:
    """
    Turn chapter text into a ConceptGraph.

    Both modes share scoring, mention tracking, hierarchy and sequence; the
    mode only decides where candidates come from and whether relationship
    inference runs.

    - `extract(text, sections)` -> ConceptGraph
    """

    def __init__(
        self,
        library: LibraryInput = None,
        domain: Optional[str] = None,
        mode: ExtractionMode = ExtractionMode.AUTO,
        config: Optional[Settings] = None,
        vocabulary: VocabularyConfig = DEFAULT_VOCABULARY,
        validators: Optional[ContextValidatorRegistry] = None,
    ) -> None:
        self.config = config or settings
        self.vocabulary = vocabulary
        self.validators = validators or default_registry()
        self.mode = ExtractionMode(mode)

        needs_disambiguation: Optional[bool] = None
        if isinstance(library, ConceptLibrary):
            definitions = list(library.concepts)
            domain = domain or library.domain
            needs_disambiguation = library.needs_disambiguation
        else:
            definitions = list(library or [])

        self.domain = (domain or "custom").strip().lower() or "custom"
        self.definitions: List[ConceptDefinition] = [
            d for d in deduplicate_definitions(definitions, self.domain) if d.name.strip()
        ]

        if needs_disambiguation is None:
            needs_disambiguation = self.domain in {d.lower() for d in self.config.disambiguation_domains}
        self.needs_disambiguation = needs_disambiguation

    # ------------------------------------------------------------------
    # Mode resolution
    # ------------------------------------------------------------------

    @property
    def effective_mode(self) -> ExtractionMode:
        if self.mode == ExtractionMode.DISCOVERY:
            return ExtractionMode.DISCOVERY
        if not self.definitions:
            if self.mode == ExtractionMode.LIBRARY:
                logger.warning("Library mode requested without usable definitions; using discovery")
            return ExtractionMode.DISCOVERY
        return ExtractionMode.LIBRARY

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, text: str, sections: Sequence[Section] = ()) -> ConceptGraph:
        text = text or ""
        if not text.strip():
            return ConceptGraph.empty()

        timer = _PhaseTimer()
        table = TermPatternTable(self.config.case_sensitive_acronyms)
        mode = self.effective_mode
        cap = self.config.concept_cap(len(text.split()))

        if mode == ExtractionMode.LIBRARY:
            concepts = self._extract_library(text, sections, table, cap, timer)
            run_relationships = self.config.infer_library_relationships
        else:
            concepts = self._extract_discovery(text, sections, table, cap, timer)
            run_relationships = True

        relationships: List[ConceptRelationship] = []
        if run_relationships and len(concepts) > 1:
            relationships = infer_relationships(
                concepts,
                text,
                proximity=self.config.PROXIMITY_WINDOW,
                radius=self.config.CONTEXT_RADIUS,
                min_indicators=self.config.RELATIONSHIP_MIN_INDICATORS,
                strength_scale=self.config.RELATIONSHIP_STRENGTH_SCALE,
            )
            concepts = link_concepts(concepts, relationships)
        timer.mark("relationships")

        hierarchy, concepts = build_hierarchy(concepts)
        sequence = build_sequence(concepts)
        timer.mark("hierarchy")

        timer.log()
        logger.info(
            "Extracted %d concepts, %d relationships (%s mode, %d chars)",
            len(concepts), len(relationships), mode.value, len(text),
        )
        return ConceptGraph(
            concepts=concepts,
            relationships=relationships,
            hierarchy=hierarchy,
            sequence=sequence,
        )

    # ------------------------------------------------------------------
    # Discovery mode
    # ------------------------------------------------------------------

    def _extract_discovery(
        self,
        text: str,
        sections: Sequence[Section],
        table: TermPatternTable,
        cap: int,
        timer: _PhaseTimer,
    ) -> List[Concept]:
        pool = discover_candidates(text, sections, self.vocabulary, self.definitions, table)
        timer.mark("candidates")

        scored = score_and_filter(
            pool, text, self.config.SCORE_THRESHOLD, cap, extended=self.config.EXTENDED_SCORING,
        )
        timer.mark("scoring")

        concepts: List[Concept] = []
        for item in scored:
            candidate = item.candidate
            matches = match_terms(text, candidate.term, candidate.aliases, table)
            mentions = build_mentions(
                text,
                matches,
                radius=self.config.CONTEXT_RADIUS,
                toc_max_line_chars=self.config.TOC_MAX_LINE_CHARS,
            )
            if not mentions:
                continue

            concepts.append(Concept(
                id=f"concept-{len(concepts) + 1}",
                name=candidate.term,
                definition=self._discovered_definition(candidate, len(mentions)),
                category=candidate.category,
                first_mention_position=mentions[0].position,
                mentions=mentions,
            ))
        timer.mark("mentions")
        return concepts

    @staticmethod
    def _discovered_definition(candidate: Candidate, mention_count: int) -> str:
        if candidate.inline_definitions:
            return candidate.inline_definitions[0]
        if candidate.category:
            return candidate.category
        return f"A key concept in this material (mentioned {mention_count} times)"

    # ------------------------------------------------------------------
    # Library-guided mode
    # ------------------------------------------------------------------

    def _extract_library(
        self,
        text: str,
        sections: Sequence[Section],
        table: TermPatternTable,
        cap: int,
        timer: _PhaseTimer,
    ) -> List[Concept]:
        pool = seed_library_terms(text, CandidatePool(self.vocabulary), self.definitions, table)
        self._credit_headings(pool, sections, table)
        timer.mark("candidates")

        scored = score_and_filter(
            pool, text, self.config.SCORE_THRESHOLD, cap, extended=self.config.EXTENDED_SCORING,
        )
        timer.mark("scoring")

        by_key = {normalize_term(d.name): d for d in self.definitions}
        budget = self.config.MAX_LIBRARY_MENTIONS
        used_ids: Dict[str, int] = {}
        built: List[Tuple[ConceptDefinition, Concept]] = []

        for item in scored:
            definition = by_key.get(item.candidate.normalized)
            if definition is None:
                continue
            if budget <= 0:
                logger.warning(
                    "Library mention cap (%d) reached; skipping remaining concepts",
                    self.config.MAX_LIBRARY_MENTIONS,
                )
                break

            matches = match_terms(text, definition.name, definition.aliases, table)
            if len(matches) > budget:
                matches = matches[:budget]
            mentions = self._library_mentions(text, definition, matches)
            if not mentions:
                logger.debug("Dropping %r: no mention passed the context gate", definition.name)
                continue
            budget -= len(mentions)

            concept = Concept(
                id=self._unique_id(definition, used_ids),
                name=definition.name,
                definition=definition_text(definition),
                importance=definition.importance or Importance.DETAIL,
                category=definition.category or None,
                first_mention_position=mentions[0].position,
                mentions=mentions,
                common_misconceptions=list(definition.misconceptions),
            )
            built.append((definition, concept))
        timer.mark("mentions")

        return self._resolve_related(built)

    def _library_mentions(
        self, text: str, definition: ConceptDefinition, matches: List[TermMatch]
    ) -> List[Mention]:
        validator = None
        if self.needs_disambiguation:
            validator = self.validators.validator_for(self.domain, definition.name)
        return build_mentions(
            text,
            matches,
            radius=self.config.CONTEXT_RADIUS,
            validator=validator,
            toc_max_line_chars=self.config.TOC_MAX_LINE_CHARS,
        )

    def _credit_headings(self, pool: CandidatePool, sections: Sequence[Section], table: TermPatternTable) -> None:
        for candidate in pool:
            for section in sections:
                heading = section.heading or ""
                if heading and match_terms(heading, candidate.term, candidate.aliases, table):
                    candidate.from_heading += 1

    def _unique_id(self, definition: ConceptDefinition, used: Dict[str, int]) -> str:
        base = (definition.id or "").strip() or f"{slugify(self.domain)}-{slugify(definition.name) or 'concept'}"
        count = used.get(base, 0) + 1
        used[base] = count
        return base if count == 1 else f"{base}-{count}"

    @staticmethod
    def _resolve_related(built: List[Tuple[ConceptDefinition, Concept]]) -> List[Concept]:
        """Map library `related_concepts` names onto the ids of retained concepts."""
        ids_by_name = {normalize_term(c.name): c.id for _, c in built}
        for definition, concept in built:
            for alias in definition.aliases:
                ids_by_name.setdefault(normalize_term(alias), concept.id)

        resolved: List[Concept] = []
        for definition, concept in built:
            related: List[str] = []
            for name in definition.related_concepts:
                target = ids_by_name.get(normalize_term(name))
                if target and target != concept.id and target not in related:
                    related.append(target)
            resolved.append(concept.model_copy(update={"related_concepts": related}))
        return resolved


# ---------------------------------------------------------------------------
# Singleton extractor + convenience API
# ---------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_concept_extractor() -> ConceptExtractor:
    """
    Return a singleton vocabulary-free ConceptExtractor using global settings.
    """
    return ConceptExtractor(config=settings)


def extract_concept_graph(
    text: str,
    sections: Sequence[Section] = (),
    library: LibraryInput = None,
    domain: Optional[str] = None,
    mode: ExtractionMode = ExtractionMode.AUTO,
    config: Optional[Settings] = None,
) -> ConceptGraph:
    """
    Global convenience wrapper.

    Without a library (and default config) the singleton extractor is reused.
    """
    if library is None and config is None and mode == ExtractionMode.AUTO:
        extractor = get_concept_extractor()
    else:
        extractor = ConceptExtractor(library=library, domain=domain, mode=mode, config=config)
    return extractor.extract(text, sections)
