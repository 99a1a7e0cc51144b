# kg_chapters/nlp/mentions.py

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from kg_chapters.models.concept import Mention, MentionDepth
from kg_chapters.nlp.disambiguation import ContextValidator
from kg_chapters.nlp.term_matcher import TermMatch

ELLIPSIS = "..."

_EXPLANATORY_CUES = re.compile(r"\b(because|therefore|results\s+in|means|involves)\b", re.IGNORECASE)
_EXAMPLE_CUES = re.compile(r"(\bfor\s+example\b|\bsuch\s+as\b|\be\.g\.|\bincluding\b)", re.IGNORECASE)

_DOTTED_LEADER = re.compile(r"\.{4,}|(?:\.\s){3,}")
_PAGE_NUMBER = re.compile(r"\d+\s*$")
_SHORT_PAGE_LINE = re.compile(r"^\S.*\s+\d+\s*$")


def context_window(text: str, start: int, end: int, radius: int = 100) -> str:
    """
    Slice `radius` characters on each side of [start, end).

    The slice is stripped and marked with "..." on any side that was cut.
    """
    lo = max(0, start - radius)
    hi = min(len(text), end + radius)
    window = text[lo:hi].strip()
    if lo > 0:
        window = ELLIPSIS + window
    if hi < len(text):
        window = window + ELLIPSIS
    return window


def _line_at(text: str, position: int) -> str:
    line_start = text.rfind("\n", 0, position) + 1
    line_end = text.find("\n", position)
    if line_end == -1:
        line_end = len(text)
    return text[line_start:line_end]


def is_toc_entry(
    text: str,
    position: int,
    max_line_chars: int = 80,
    short_line_chars: int = 30,
) -> bool:
    """
    True when the line holding `position` looks like a table-of-contents
    entry.

    Either a dotted leader followed by a page number ("Introduction .... 4"),
    or a line shorter than `short_line_chars` ending in a page number
    ("Cell Transport  12"). Wrapped prose that happens to end in a number
    ("...atomic number 11") is not an entry.
    """
    line = _line_at(text, position).strip()
    if not line or len(line) > max_line_chars:
        return False
    if _DOTTED_LEADER.search(line) and _PAGE_NUMBER.search(line):
        return True
    return len(line) < short_line_chars and _SHORT_PAGE_LINE.match(line) is not None


def estimate_depth(context: str) -> MentionDepth:
    explains = _EXPLANATORY_CUES.search(context) is not None
    exemplifies = _EXAMPLE_CUES.search(context) is not None
    if explains and exemplifies:
        return MentionDepth.DEEP
    if explains or exemplifies:
        return MentionDepth.MODERATE
    return MentionDepth.SHALLOW


def build_mentions(
    text: str,
    matches: Iterable[TermMatch],
    radius: int = 100,
    validator: Optional[ContextValidator] = None,
    toc_max_line_chars: int = 80,
) -> List[Mention]:
    """
    Turn raw term matches into Mention records.

    Table-of-contents hits and hits whose window fails `validator` are
    dropped. The result is sorted by position; every mention after the
    first is a revisit.
    """
    kept: List[tuple] = []
    for match in sorted(matches, key=lambda m: m.start):
        if is_toc_entry(text, match.start, toc_max_line_chars):
            continue
        window = context_window(text, match.start, match.end, radius)
        if validator is not None and not validator(window):
            continue
        kept.append((match, window))

    return [
        Mention(
            position=match.start,
            matched_text=match.matched_text,
            context=window,
            depth=estimate_depth(window),
            is_revisit=i > 0,
            is_alias=match.is_alias,
        )
        for i, (match, window) in enumerate(kept)
    ]
