# kg_chapters/nlp/candidates.py

"""
Vocabulary-free candidate discovery.

Each mining stage takes the text and the shared CandidatePool, adds what it
finds, and returns the pool. Stages only ever add; scoring and filtering
happen later in `kg_chapters.nlp.scoring`.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from kg_chapters.models.library import ConceptDefinition
from kg_chapters.models.section import Section
from kg_chapters.nlp.term_matcher import TermPatternTable, find_term_positions, match_terms
from kg_chapters.nlp.vocabulary import (
    DEFAULT_VOCABULARY,
    VocabularyConfig,
    is_valid_concept,
    normalize_term,
    strip_leading_determiners,
)


# ---------------------------------------------------------------------------
# Candidate record + pool
# ---------------------------------------------------------------------------

@dataclass
class Candidate:
    """
    A provisionally discovered term.

    Attributes:
        term: Display form (first surface form seen, or the library name).
        normalized: Lowercase pool key.
        frequency: Raw number of hits across all mining stages.
        from_heading: How many section headings contain the term.
        inline_definitions: Definition snippets captured from the text.
        positions: Raw character offsets of the hits.
    """
    term: str
    normalized: str
    frequency: int = 0
    from_heading: int = 0
    inline_definitions: List[str] = field(default_factory=list)
    positions: List[int] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)
    category: Optional[str] = None
    is_library_term: bool = False
    is_technical_term: bool = False
    is_chemical_formula: bool = False
    is_definition_pattern: bool = False
    is_classification: bool = False

    @property
    def has_inline_definition(self) -> bool:
        return bool(self.inline_definitions)

    @property
    def word_count(self) -> int:
        return len(self.term.split())

    @property
    def first_position(self) -> Optional[int]:
        return min(self.positions) if self.positions else None


class CandidatePool:
    """
    Ordered map from normalized term to Candidate.

    `aliases` folds alias keys into their canonical library key so an alias
    found by a later stage credits the library concept.
    """

    def __init__(
        self,
        vocabulary: VocabularyConfig = DEFAULT_VOCABULARY,
        aliases: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.vocabulary = vocabulary
        self.aliases: Dict[str, str] = dict(aliases or {})
        self._items: Dict[str, Candidate] = {}

    def __contains__(self, normalized: str) -> bool:
        return self.key_for(normalized) in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Candidate]:
        return iter(list(self._items.values()))

    def key_for(self, normalized: str) -> str:
        return self.aliases.get(normalized, normalized)

    def get(self, normalized: str) -> Optional[Candidate]:
        return self._items.get(self.key_for(normalized))

    def library_keys(self) -> frozenset:
        return frozenset(
            [k for k, c in self._items.items() if c.is_library_term] + list(self.aliases)
        )

    def add(
        self,
        normalized: str,
        original: str,
        positions: Sequence[int] = (),
        *,
        count: int = 1,
        definition: Optional[str] = None,
        technical: bool = False,
        chemical: bool = False,
    ) -> Optional[Candidate]:
        """Create or update a candidate; stopwords never enter the pool."""
        if not normalized or normalized in self.vocabulary.stopwords:
            return None

        key = self.key_for(normalized)
        candidate = self._items.get(key)
        if candidate is None:
            candidate = Candidate(term=original.strip(), normalized=key)
            self._items[key] = candidate

        candidate.frequency += count
        candidate.positions.extend(positions)
        if definition:
            candidate.inline_definitions.append(definition)
        candidate.is_technical_term = candidate.is_technical_term or technical
        candidate.is_chemical_formula = candidate.is_chemical_formula or chemical
        return candidate

    def values(self) -> List[Candidate]:
        return list(self._items.values())


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_SENTENCE = re.compile(r"[^.!?]+")

# "X is a/an/the Y"
_DEFINITION = re.compile(r"(\w+(?:[ \t]+\w+){0,3})\s+is\s+(?:a|an|the)\s+([^.!?]+)", re.IGNORECASE)
# "X refers to Y"
_REFERS_TO = re.compile(r"(\w+(?:[ \t]+\w+){0,3})\s+refers?\s+to\s+([^.!?]+)", re.IGNORECASE)
# "X means Y" / "X is defined as Y" / "X can be defined as Y"
_MEANS = re.compile(
    r"(\w+(?:[ \t]+\w+){0,3})\s+(?:means?|can\s+be\s+defined\s+as|is\s+defined\s+as)\s+([^.!?]+)",
    re.IGNORECASE,
)
# "X is a type/kind/form/example of Y"
_CLASSIFICATION = re.compile(
    r"(\w+(?:[ \t]+\w+){0,3})\s+is\s+(?:a|an)\s+(?:type|kind|form|example|instance|category)\s+of\s+([^.!?]+)",
    re.IGNORECASE,
)
# "X is (the) process/method/technique of Y" / "... by which Y"
_PROCESS = re.compile(
    r"(\w+(?:[ \t]+\w+){0,3})\s+is\s+(?:the\s+)?(?:process|method|technique|procedure)"
    r"\s+(?:of|by\s+which|in\s+which)\s+([^.!?]+)",
    re.IGNORECASE,
)
_CAPITALIZED = re.compile(r"(?:^|\s)([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)")
_CHEMICAL = re.compile(r"\b([A-Z][a-z]?(?:[0-9₀-₉]|[A-Z][a-z]?)*)\b")
_TECHNICAL = re.compile(r"\b([a-z]+(?:[ \t]+[a-z]+){1,2})\s+(?:is|are|refers?|means?|involves?)\s")

_DOTTED_ID = re.compile(r"(?<![\w$])[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)+(?![\w$])")
_BARE_ID = re.compile(r"(?<![\w$.])[A-Za-z_$][A-Za-z0-9_$]{3,}(?![\w$])")
_CAMEL = re.compile(r"[a-z][A-Z]")

_WORD_TOKEN = re.compile(r"[a-z0-9]+")
_HEADING_TOKEN = re.compile(r"[A-Za-z][A-Za-z0-9'\-]*")


def split_sentences(text: str) -> List[Tuple[int, str]]:
    """Split on . ! ? and return (offset, sentence) pairs for non-blank sentences."""
    return [(m.start(), m.group(0)) for m in _SENTENCE.finditer(text) if m.group(0).strip()]


# ---------------------------------------------------------------------------
# Mining stages
# ---------------------------------------------------------------------------

def seed_library_terms(
    text: str,
    pool: CandidatePool,
    definitions: Sequence[ConceptDefinition],
    table: TermPatternTable,
) -> CandidatePool:
    """Whole-word scan for known library terms (name and aliases)."""
    canonical_keys = {normalize_term(d.name) for d in definitions}
    for definition in definitions:
        key = normalize_term(definition.name)
        if not key:
            continue
        for alias in definition.aliases:
            alias_key = normalize_term(alias)
            if alias_key and alias_key not in canonical_keys:
                pool.aliases.setdefault(alias_key, key)

        matches = match_terms(text, definition.name, definition.aliases, table)
        if not matches:
            continue

        candidate = pool.add(key, definition.name, [m.start for m in matches], count=len(matches))
        if candidate is None:
            continue
        candidate.term = definition.name
        candidate.is_library_term = True
        candidate.aliases = list(definition.aliases)
        candidate.category = definition.category or None
    return pool


def heading_phrases(heading: str, vocabulary: VocabularyConfig) -> List[str]:
    """
    Break a heading into content-word phrases.

    "Osmosis and Diffusion" -> ["Osmosis", "Diffusion"];
    "Chapter 3: The Periodic Table" -> ["Chapter", "Periodic Table"].
    """
    phrases: List[str] = []
    run: List[str] = []
    last_end = 0

    for m in _HEADING_TOKEN.finditer(heading):
        word = m.group(0)
        gap = heading[last_end:m.start()]
        last_end = m.end()
        breaks = bool(re.search(r"[^\s\-]", gap))
        if breaks and run:
            phrases.append(" ".join(run))
            run = []
        if word.lower() in vocabulary.stopwords:
            if run:
                phrases.append(" ".join(run))
                run = []
            continue
        run.append(word)

    if run:
        phrases.append(" ".join(run))
    return phrases


def mine_headings(
    text: str,
    pool: CandidatePool,
    sections: Sequence[Section],
    table: TermPatternTable,
    vocabulary: VocabularyConfig = DEFAULT_VOCABULARY,
) -> CandidatePool:
    """Every heading phrase is a strong salience signal."""
    library_keys = pool.library_keys()
    for section in sections:
        for phrase in heading_phrases(section.heading or "", vocabulary):
            normalized = normalize_term(phrase)
            if not is_valid_concept(normalized, vocabulary, library_keys):
                continue
            positions = find_term_positions(text, phrase, table)[:1]
            candidate = pool.add(normalized, phrase, positions)
            if candidate is not None:
                candidate.from_heading += 1
    return pool


def mine_frequent_ngrams(
    text: str,
    pool: CandidatePool,
    vocabulary: VocabularyConfig = DEFAULT_VOCABULARY,
    min_count: int = 2,
    max_bigrams: int = 25,
    max_trigrams: int = 15,
) -> CandidatePool:
    """
    Add repeated bigrams/trigrams of adjacent content words.

    Punctuation or an excluded word between two tokens breaks the run.
    """
    lowered = text.lower()
    tokens = [(m.group(0), m.start(), m.end()) for m in _WORD_TOKEN.finditer(lowered)]

    def usable(tok: str) -> bool:
        return len(tok) > 2 and not vocabulary.is_excluded(tok)

    def adjacent(i: int) -> bool:
        gap = lowered[tokens[i][2]:tokens[i + 1][1]]
        return re.fullmatch(r"[\s\-]+", gap) is not None

    counts: Dict[int, Counter] = {2: Counter(), 3: Counter()}
    positions: Dict[str, List[int]] = {}

    for i in range(len(tokens)):
        for n in (2, 3):
            if i + n > len(tokens):
                continue
            window = tokens[i:i + n]
            if not all(usable(t[0]) for t in window):
                continue
            if not all(adjacent(j) for j in range(i, i + n - 1)):
                continue
            phrase = " ".join(t[0] for t in window)
            counts[n][phrase] += 1
            positions.setdefault(phrase, []).append(tokens[i][1])

    library_keys = pool.library_keys()
    for n, cap in ((2, max_bigrams), (3, max_trigrams)):
        ranked = [
            (phrase, c)
            for phrase, c in counts[n].most_common()
            if c >= min_count
            and not all(w in vocabulary.generic_nouns for w in phrase.split())
            and is_valid_concept(phrase, vocabulary, library_keys)
        ]
        for phrase, c in ranked[:cap]:
            if phrase in pool:
                continue
            pool.add(phrase, phrase, positions[phrase], count=c)
    return pool


def _looks_like_code(identifier: str) -> bool:
    return (
        "_" in identifier
        or "$" in identifier
        or any(ch.isdigit() for ch in identifier)
        or _CAMEL.search(identifier) is not None
    )


def mine_code_identifiers(
    text: str,
    pool: CandidatePool,
    vocabulary: VocabularyConfig = DEFAULT_VOCABULARY,
) -> CandidatePool:
    """Dotted identifiers (Object.create) and code-shaped bare identifiers (toString)."""
    found: Dict[str, Tuple[str, List[int]]] = {}

    for m in _DOTTED_ID.finditer(text):
        ident = m.group(0)
        segments = ident.split(".")
        if len(ident) < 4 or max(len(s) for s in segments) < 3:
            continue
        found.setdefault(ident.lower(), (ident, []))[1].append(m.start())

    for m in _BARE_ID.finditer(text):
        ident = m.group(0)
        if not _looks_like_code(ident) or ident.isdigit():
            continue
        found.setdefault(ident.lower(), (ident, []))[1].append(m.start())

    for normalized, (original, hits) in found.items():
        if vocabulary.is_excluded(normalized):
            continue
        pool.add(normalized, original, hits, count=len(hits))
    return pool


def _add_defined_term(
    pool: CandidatePool,
    raw_term: str,
    definition: str,
    position: int,
    vocabulary: VocabularyConfig,
    library_keys: frozenset,
    classification: bool = False,
) -> None:
    term = strip_leading_determiners(raw_term.strip(), vocabulary)
    normalized = normalize_term(term)
    if not is_valid_concept(normalized, vocabulary, library_keys):
        return
    candidate = pool.add(normalized, term, [position], definition=definition.strip())
    if candidate is None:
        return
    if classification:
        candidate.is_classification = True
    else:
        candidate.is_definition_pattern = True


def mine_sentences(
    text: str,
    pool: CandidatePool,
    vocabulary: VocabularyConfig = DEFAULT_VOCABULARY,
) -> CandidatePool:
    """Sentence-level pattern mining: definitions, capitalized runs, formulas, technical phrases."""
    library_keys = pool.library_keys()

    for offset, sentence in split_sentences(text):
        for m in _CLASSIFICATION.finditer(sentence):
            _add_defined_term(
                pool, m.group(1), f"Type of {m.group(2).strip()}",
                offset + m.start(1), vocabulary, library_keys, classification=True,
            )
        for m in _PROCESS.finditer(sentence):
            _add_defined_term(
                pool, m.group(1), f"Process: {m.group(2).strip()}",
                offset + m.start(1), vocabulary, library_keys,
            )
        for pattern in (_DEFINITION, _REFERS_TO, _MEANS):
            for m in pattern.finditer(sentence):
                _add_defined_term(
                    pool, m.group(1), m.group(2), offset + m.start(1), vocabulary, library_keys,
                )

        for m in _CAPITALIZED.finditer(sentence):
            phrase = m.group(1)
            normalized = normalize_term(phrase)
            if is_valid_concept(normalized, vocabulary, library_keys):
                pool.add(normalized, phrase, [offset + m.start(1)])

        for m in _CHEMICAL.finditer(sentence):
            formula = m.group(1)
            capitals = sum(1 for ch in formula if ch.isupper())
            has_digit = any(ch.isdigit() for ch in formula)
            if len(formula) > 10 or not (has_digit or capitals >= 2):
                continue
            if not re.search(r"[A-Z][a-z0-9₀-₉]", formula):
                continue
            pool.add(formula.lower(), formula, [offset + m.start(1)], chemical=True)

        for m in _TECHNICAL.finditer(sentence):
            phrase = strip_leading_determiners(m.group(1), vocabulary)
            normalized = normalize_term(phrase)
            if " " not in normalized:
                continue
            if is_valid_concept(normalized, vocabulary, library_keys):
                pool.add(normalized, phrase, [offset + m.start(1)], technical=True)

    return pool


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def discover_candidates(
    text: str,
    sections: Sequence[Section] = (),
    vocabulary: VocabularyConfig = DEFAULT_VOCABULARY,
    library: Sequence[ConceptDefinition] = (),
    table: Optional[TermPatternTable] = None,
) -> CandidatePool:
    """
    Run every mining stage over `text` and return the accumulated pool.

    `library` is an optional partial vocabulary used as a pre-seed.
    """
    table = table or TermPatternTable()
    pool = CandidatePool(vocabulary)

    pool = seed_library_terms(text, pool, library, table)
    pool = mine_headings(text, pool, sections, table, vocabulary)
    pool = mine_frequent_ngrams(text, pool, vocabulary)
    pool = mine_code_identifiers(text, pool, vocabulary)
    pool = mine_sentences(text, pool, vocabulary)
    return pool
