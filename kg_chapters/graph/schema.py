# kg_chapters/graph/schema.py

from enum import Enum


class NodeType(str, Enum):
    CONCEPT = "concept"


class EdgeType(str, Enum):
    # One edge type per inferred relationship type
    CONCEPT_RELATED_TO = "CONCEPT_RELATED_TO"
    CONCEPT_PREREQUISITE_OF = "CONCEPT_PREREQUISITE_OF"
    CONCEPT_CONTRASTS_WITH = "CONCEPT_CONTRASTS_WITH"
    CONCEPT_EXAMPLE_OF = "CONCEPT_EXAMPLE_OF"
    CONCEPT_EXTENDS = "CONCEPT_EXTENDS"
