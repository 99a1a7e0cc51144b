# kg_chapters/models/library.py

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from kg_chapters.models.concept import Importance

PathLike = Union[str, Path]


class ConceptDefinition(BaseModel):
    """
    A known concept of a domain vocabulary.

    Fields
    ------
    name:
        Canonical display name ("Valence Electrons").
    aliases:
        Alternative surface forms that also count as mentions.
    category / subcategory:
        Used for the definition text when no description is given.
    importance:
        Expected importance; only a provisional hint, the hierarchy
        builder decides the final tier.
    related_concepts:
        Names of concepts that usually co-occur with this one.
    """

    id: Optional[str] = None
    name: str
    aliases: List[str] = Field(default_factory=list)
    category: str = ""
    subcategory: Optional[str] = None
    importance: Optional[Importance] = None
    description: Optional[str] = None
    related_concepts: List[str] = Field(default_factory=list)
    misconceptions: List[str] = Field(default_factory=list)

    def surface_forms(self) -> List[str]:
        return [self.name, *self.aliases]


class ConceptLibrary(BaseModel):
    """
    Domain vocabulary supplied by the caller.

    `needs_disambiguation` forces (or disables) the context gate; when left
    as None the domain name decides (see Settings.disambiguation_domains).
    """

    domain: str = "custom"
    version: str = "1.0"
    concepts: List[ConceptDefinition] = Field(default_factory=list)
    needs_disambiguation: Optional[bool] = None

    def is_empty(self) -> bool:
        return not any(c.name.strip() for c in self.concepts)


def _dedup_key(definition: ConceptDefinition, domain: str) -> str:
    id_key = (definition.id or "").strip().lower()
    if id_key:
        return id_key
    name_key = (definition.name or "").strip().lower()
    if name_key:
        return f"{domain}:{name_key}"
    return ""


def deduplicate_definitions(
    definitions: Iterable[ConceptDefinition],
    domain: str = "custom",
) -> List[ConceptDefinition]:
    """
    Collapse duplicate definitions (same id, or same name within a domain).

    When two entries collide, the one carrying an explicit id wins, then the
    one with the longer description. First-seen order is preserved.
    """
    unique: Dict[str, ConceptDefinition] = {}

    for definition in definitions:
        key = _dedup_key(definition, domain)
        if not key:
            continue

        existing = unique.get(key)
        if existing is None:
            unique[key] = definition
            continue

        existing_desc = len(existing.description or "")
        incoming_desc = len(definition.description or "")
        prefer_incoming = (bool(definition.id) and not existing.id) or (
            incoming_desc > existing_desc
        )
        if prefer_incoming:
            unique[key] = definition

    return list(unique.values())


def load_library(path: PathLike) -> ConceptLibrary:
    """
    Load a ConceptLibrary from a JSON file.

    Accepts either a full library object ({"domain": ..., "concepts": [...]})
    or a bare list of concept definitions.
    """
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Could not read concept library {p}: {exc}") from exc

    if isinstance(raw, list):
        raw = {"domain": p.stem, "concepts": raw}

    try:
        return ConceptLibrary.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid concept library {p}: {exc}") from exc
