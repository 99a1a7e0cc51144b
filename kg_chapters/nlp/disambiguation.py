# kg_chapters/nlp/disambiguation.py

"""
Context gates for ambiguous library terms.

In programming-heavy domains words like "promise" or "state" are also plain
English. A validator looks at the mention's context window and decides
whether the mention is a real use of the concept.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, Iterable, Optional, Pattern, Tuple

ContextValidator = Callable[[str], bool]

ANY_DOMAIN = "*"

_PROGRAMMING_KEYWORDS = re.compile(
    r"\b(function|const|let|var|return|async|await|class|import|export|def|"
    r"lambda|null|undefined|typeof|instanceof|console|callback)\b",
    re.IGNORECASE,
)
_CODE_PUNCTUATION = re.compile(r"\(\s*\)|\[\s*\]|\{[^{}]*\}|=>|::|->")


def patterns_validator(patterns: Iterable[str]) -> ContextValidator:
    """Validator that passes when any of the regexes occurs in the window."""
    compiled: Tuple[Pattern[str], ...] = tuple(re.compile(p, re.IGNORECASE) for p in patterns)

    def _validate(window: str) -> bool:
        return any(p.search(window) for p in compiled)

    return _validate


def generic_code_validator(window: str) -> bool:
    """Fallback gate: programming keywords or code punctuation nearby."""
    return bool(_PROGRAMMING_KEYWORDS.search(window) or _CODE_PUNCTUATION.search(window))


_TERM_PATTERNS: Dict[str, Tuple[str, ...]] = {
    "promise": (
        r"\b(async|await)\b",
        r"\.then\s*\(",
        r"\.catch\s*\(",
        r"\.finally\s*\(",
        r"new\s+promise\s*\(",
        r"promise\.(all|race|any|allsettled|resolve|reject)\b",
        r"\b(resolve|reject)\b",
    ),
    "function": (
        r"\bfunction\s+\w+\s*\(",
        r"\bfunction\s*\(",
        r"=>",
        r"\barrow\s+function",
        r"\bcallback",
        r"\b(return|invoke|invoked|parameter|argument)s?\b",
    ),
    "state": (
        r"\b(useState|setState|useReducer)\b",
        r"\bthis\.state\b",
        r"\bstate\s+(management|variable|update|hook)",
        r"\bcomponent\s+state\b",
    ),
    "object": (
        r"\bnew\s+\w+\s*\(",
        r"\.\w+\s*=",
        r"\{\s*\w+\s*:",
        r"\b(class|instance|property|properties|prototype)\b",
    ),
    "class": (
        r"\bclass\s+[A-Z]\w*",
        r"\bextends\b",
        r"\bimplements\b",
        r"\bconstructor\b",
    ),
    "method": (
        r"\bmethod\s+\w+\s*\(",
        r"\.\w+\s*\(",
        r"\b(class|instance|static)\s+methods?\b",
    ),
    "variable": (
        r"\b(var|let|const)\b",
        r"\bvariables?\s+(declaration|assignment|name|scope)",
    ),
    "interface": (
        r"\binterface\s+[A-Z]\w*",
        r"\bimplements\b",
        r"\b(api|user)\s+interface\b",
    ),
    "semantic": (
        r"\bsemantic\s+(versioning|version|web|html|meaning)",
        r"\bsemver\b",
    ),
}


class ContextValidatorRegistry:
    """
    (domain, term) -> validator lookup with a wildcard domain and a default.

    Lookup order: exact (domain, term), then (ANY_DOMAIN, term), then the
    default validator.
    """

    def __init__(self, default: ContextValidator = generic_code_validator) -> None:
        self.default = default
        self._validators: Dict[Tuple[str, str], ContextValidator] = {}

    def register(self, term: str, validator: ContextValidator, domain: str = ANY_DOMAIN) -> None:
        self._validators[(domain.lower(), term.strip().lower())] = validator

    def validator_for(self, domain: Optional[str], term: str) -> ContextValidator:
        key_term = term.strip().lower()
        if domain:
            exact = self._validators.get((domain.lower(), key_term))
            if exact is not None:
                return exact
        return self._validators.get((ANY_DOMAIN, key_term), self.default)

    def __contains__(self, item: Tuple[str, str]) -> bool:
        domain, term = item
        return (domain.lower(), term.strip().lower()) in self._validators


def default_registry() -> ContextValidatorRegistry:
    registry = ContextValidatorRegistry()
    for term, patterns in _TERM_PATTERNS.items():
        registry.register(term, patterns_validator(patterns))
    return registry
