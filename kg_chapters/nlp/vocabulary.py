# kg_chapters/nlp/vocabulary.py

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import AbstractSet, FrozenSet


# ---------------------------------------------------------------------------
# Word lists
# ---------------------------------------------------------------------------

_STOPWORDS = frozenset(
    """
    the a an this that these those each every some any
    and or but nor so yet for
    in on at to from by with about against between into through during
    before after above below up down out off over under near far around
    behind beyond within without of
    i you he she it we they who what which whom whose my your his her its
    our their mine yours theirs ours myself yourself himself herself itself
    ourselves themselves
    is are am was were be been being have has had having do does did doing
    will would shall should may might must can could ought
    how when where why very too much many more most less least only just
    even also still already finally always never sometimes often usually
    rarely seldom
    all both few other another such same own different various several
    certain similar particular
    instead rather otherwise moreover furthermore additionally likewise
    similarly conversely nonetheless nevertheless meanwhile accordingly
    consequently subsequently previously formerly later earlier recently
    ultimately eventually initially originally generally specifically
    particularly especially namely indeed certainly surely obviously
    clearly essentially basically primarily mainly mostly largely partly
    partially
    not no yes there here then now well however therefore thus hence
    whereas although though because since if unless until while as than
    like
    """.split()
)

_NON_CONCEPTS = frozenset(
    """
    think notice remember understand learn know see look read write explain
    ask answer reduce
    question example section chapter introduction conclusion summary note
    tip hint practice exercise review test quiz problem solution step part
    figure table diagram graph chart image page contents appendix
    following above below next previous first second third last final
    finally initial
    main key important basic simple complex easy hard difficult quick slow
    new old good bad better best worse worst
    popular common rare frequent unusual normal typical standard regular
    ordinary special unique general specific particular certain various
    different similar same other another such own several few many much
    some little large small big tiny huge great long short high low deep
    shallow wide narrow thick thin heavy light strong weak soft rough smooth
    hot cold warm cool wet dry clean dirty full empty open closed complete
    incomplete whole partial total entire perfect imperfect pure mixed
    complicated
    right wrong correct incorrect true false
    instead rather otherwise moreover furthermore however therefore thus
    hence then now later earlier before after during meanwhile eventually
    ultimately initially originally previously subsequently recently
    formerly
    very quite really actually generally specifically particularly
    especially mainly mostly largely partly partially completely entirely
    totally absolutely exactly precisely
    perhaps maybe probably possibly definitely surely clearly obviously
    indeed essentially basically primarily
    """.split()
)

_GENERIC_NOUNS = frozenset(
    """
    object objects property properties value values function functions
    method methods variable variables data type types concept concepts
    thing things item items array arrays string strings number numbers
    element elements name names
    """.split()
)

_COMMON_VERBS = frozenset(
    """
    create add remove set get use make call return change move take give
    show tell become seem feel leave put bring begin start stop end happen
    occur exist appear continue follow remain stay keep hold
    """.split()
)

_LY_NOUNS = frozenset(
    """
    anomaly rally ally family assembly monopoly melancholy folly jelly belly
    butterfly supply reply
    """.split()
)

# Phrase shapes that are grammatical fragments rather than concepts.
_FRAGMENT_PATTERNS = (
    re.compile(r"^(the|a|an|this|that|these|those)\s+"),
    re.compile(r"\s+(the|a|an|of|to|from|in|on|at)$"),
    re.compile(r"^(of|to|from|in|on|at|with|by)\s+"),
    re.compile(r"\s+and\s+"),
    re.compile(r"^because\s+"),
)

_VERB_ARTICLE_NOUN = re.compile(
    r"^(create|add|remove|set|get|use|make|call|return)\s+(a|an|the)\s+"
    r"(object|property|function|method|variable|array|string)s?$"
)


@dataclass(frozen=True)
class VocabularyConfig:
    """
    Immutable word lists used by candidate discovery.

    Tests can pass smaller lists to keep expectations obvious.
    """
    stopwords: FrozenSet[str] = field(default=_STOPWORDS)
    non_concepts: FrozenSet[str] = field(default=_NON_CONCEPTS)
    generic_nouns: FrozenSet[str] = field(default=_GENERIC_NOUNS)
    common_verbs: FrozenSet[str] = field(default=_COMMON_VERBS)
    ly_nouns: FrozenSet[str] = field(default=_LY_NOUNS)

    def is_excluded(self, normalized: str) -> bool:
        """True for stopwords and document-structure / descriptor words."""
        return normalized in self.stopwords or normalized in self.non_concepts


DEFAULT_VOCABULARY = VocabularyConfig()


def normalize_term(text: str) -> str:
    """Lowercase, trim, and collapse inner whitespace."""
    return " ".join(text.lower().split())


def strip_leading_determiners(phrase: str, vocabulary: VocabularyConfig) -> str:
    """Drop leading stopwords ("the", "a", "this"...) from a captured phrase."""
    words = phrase.split()
    while words and words[0].lower() in vocabulary.stopwords:
        words.pop(0)
    return " ".join(words)


def is_valid_concept(
    normalized: str,
    vocabulary: VocabularyConfig = DEFAULT_VOCABULARY,
    library_keys: AbstractSet[str] = frozenset(),
) -> bool:
    """
    Decide whether a normalized term may enter the candidate pool.

    Accepted: known library terms, multi-word phrases that are not
    grammatical fragments, and single words of at least five characters
    that are not stopwords, descriptors, adverbs, generic nouns or verbs.
    """
    if not normalized:
        return False
    if normalized in library_keys:
        return True
    if vocabulary.is_excluded(normalized):
        return False

    if " " in normalized:
        if any(p.search(normalized) for p in _FRAGMENT_PATTERNS):
            return False
        if _VERB_ARTICLE_NOUN.match(normalized):
            return False
        words = normalized.split()
        if all(
            vocabulary.is_excluded(w) or w in vocabulary.generic_nouns
            for w in words
        ):
            return False
        return True

    if normalized.endswith("ly") and normalized not in vocabulary.ly_nouns:
        return False
    if normalized in vocabulary.generic_nouns or normalized in vocabulary.common_verbs:
        return False
    return len(normalized) >= 5
