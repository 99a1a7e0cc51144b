# kg_chapters/nlp/term_matcher.py

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

from kg_chapters.nlp.vocabulary import normalize_term

# Inner whitespace/hyphens of a term match any run of whitespace/hyphens.
_TERM_SPLIT = re.compile(r"[\s\-]+")
_GAP = r"[\s\-]+"


@dataclass(frozen=True)
class TermMatch:
    start: int
    end: int
    matched_text: str
    is_alias: bool = False


def is_acronym(term: str) -> bool:
    """All-uppercase terms with at least two letters ("ATP", "DNA", "HTTP/2")."""
    letters = re.sub(r"[^A-Za-z]", "", term)
    return len(letters) >= 2 and letters == letters.upper()


def build_term_pattern(term: str, case_sensitive: bool = False) -> Optional[Pattern[str]]:
    """
    Compile a whole-word pattern for `term`.

    Every literal character is escaped; returns None when the term has no
    usable content so callers can skip it.
    """
    parts = [p for p in _TERM_SPLIT.split(term.strip()) if p]
    if not parts:
        return None

    body = _GAP.join(re.escape(p) for p in parts)
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile(rf"(?<!\w){body}(?!\w)", flags)


class TermPatternTable:
    """
    Per-extraction cache of compiled term patterns.

    Discovery and mention tracking both go through the same table so a term
    is compiled once and matched with identical semantics everywhere.
    """

    def __init__(self, case_sensitive_acronyms: bool = False) -> None:
        self.case_sensitive_acronyms = case_sensitive_acronyms
        self._patterns: Dict[Tuple[str, bool], Optional[Pattern[str]]] = {}

    def __len__(self) -> int:
        return len(self._patterns)

    def get(self, term: str) -> Optional[Pattern[str]]:
        case_sensitive = self.case_sensitive_acronyms and is_acronym(term)
        key = (term.strip() if case_sensitive else normalize_term(term), case_sensitive)
        if key not in self._patterns:
            self._patterns[key] = build_term_pattern(term, case_sensitive=case_sensitive)
        return self._patterns[key]


def iter_term_matches(
    text: str,
    term: str,
    table: TermPatternTable,
    is_alias: bool = False,
) -> Iterable[TermMatch]:
    pattern = table.get(term)
    if pattern is None:
        return
    for m in pattern.finditer(text):
        yield TermMatch(start=m.start(), end=m.end(), matched_text=m.group(0), is_alias=is_alias)


def find_term_positions(text: str, term: str, table: TermPatternTable) -> List[int]:
    """Start offsets of every whole-word occurrence of `term`."""
    return [m.start for m in iter_term_matches(text, term, table)]


def match_terms(
    text: str,
    canonical: str,
    aliases: Iterable[str],
    table: TermPatternTable,
) -> List[TermMatch]:
    """
    Match a canonical term and its aliases, one match per start offset.

    At a shared offset the canonical match beats any alias; among aliases
    the longest surface form wins.
    """
    by_start: Dict[int, TermMatch] = {}

    def record(match: TermMatch) -> None:
        existing = by_start.get(match.start)
        if existing is None:
            by_start[match.start] = match
        elif existing.is_alias and not match.is_alias:
            by_start[match.start] = match
        elif existing.is_alias == match.is_alias and len(match.matched_text) > len(existing.matched_text):
            by_start[match.start] = match

    for match in iter_term_matches(text, canonical, table, is_alias=False):
        record(match)
    for alias in aliases:
        if not alias or not alias.strip():
            continue
        for match in iter_term_matches(text, alias, table, is_alias=True):
            record(match)

    return [by_start[k] for k in sorted(by_start)]
