# kg_chapters/graph/builder.py

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import networkx as nx

from kg_chapters.graph.schema import EdgeType, NodeType
from kg_chapters.models.concept import Concept, ConceptGraph, RelationshipType

logger = logging.getLogger("kg_chapters.graph")

_EDGE_TYPES: Dict[RelationshipType, EdgeType] = {
    RelationshipType.RELATED: EdgeType.CONCEPT_RELATED_TO,
    RelationshipType.PREREQUISITE: EdgeType.CONCEPT_PREREQUISITE_OF,
    RelationshipType.CONTRASTS: EdgeType.CONCEPT_CONTRASTS_WITH,
    RelationshipType.EXAMPLE: EdgeType.CONCEPT_EXAMPLE_OF,
    RelationshipType.EXTENDS: EdgeType.CONCEPT_EXTENDS,
}


def concept_node_id(concept_id: str) -> str:
    """Return the canonical node id for a concept."""
    return f"concept:{concept_id}"


def _add_concept_node(G: nx.MultiDiGraph, concept: Concept) -> str:
    node_id = concept_node_id(concept.id)
    attrs = {
        "type": NodeType.CONCEPT.value,
        "concept_id": concept.id,
        "name": concept.name,
        "definition": concept.definition,
        "importance": concept.importance.value,
        "category": concept.category,
        "mention_count": concept.mention_count,
        "first_mention_position": concept.first_mention_position,
    }
    if node_id in G:
        G.nodes[node_id].update(attrs)
    else:
        G.add_node(node_id, **attrs)
    return node_id


def _ensure_edge(
    G: nx.MultiDiGraph,
    src: str,
    dst: str,
    edge_type: EdgeType,
    **attrs,
) -> None:
    """
    Add an edge of a given type if it doesn't exist yet (based on src, dst, type).
    If it exists, update its attributes.
    """
    for _, v, data in G.edges(src, data=True):
        if v == dst and data.get("type") == edge_type.value:
            data.update(attrs)
            return

    G.add_edge(src, dst, type=edge_type.value, **attrs)


def concept_graph_to_networkx(
    graph: ConceptGraph,
    existing_graph: Optional[nx.MultiDiGraph] = None,
) -> nx.MultiDiGraph:
    """
    Project a ConceptGraph onto a MultiDiGraph.

    Nodes are concepts (`concept:<id>`), edges carry the relationship type
    as `type` plus `relationship` and `strength` attributes. Relationships
    pointing at unknown concepts are skipped.
    """
    G = existing_graph if existing_graph is not None else nx.MultiDiGraph()

    for concept in graph.concepts:
        _add_concept_node(G, concept)

    for rel in graph.relationships:
        src = concept_node_id(rel.source)
        dst = concept_node_id(rel.target)
        if src not in G or dst not in G:
            logger.debug("Skipping edge %s -> %s: unknown concept", rel.source, rel.target)
            continue
        _ensure_edge(
            G,
            src,
            dst,
            _EDGE_TYPES[rel.type],
            relationship=rel.type.value,
            strength=rel.strength,
        )

    return G


def prerequisite_order(graph: ConceptGraph) -> List[str]:
    """
    Learning order over prerequisite edges.

    Topological order of the prerequisite subgraph, ties broken by first
    mention. Falls back to the first-mention sequence when the prerequisite
    edges form a cycle.
    """
    sequence = list(graph.sequence) or [c.id for c in graph.concepts]
    rank = {cid: i for i, cid in enumerate(sequence)}

    D = nx.DiGraph()
    D.add_nodes_from(sequence)
    for rel in graph.relationships:
        if rel.type == RelationshipType.PREREQUISITE and rel.source in rank and rel.target in rank:
            D.add_edge(rel.source, rel.target)

    try:
        return list(nx.lexicographical_topological_sort(D, key=lambda n: rank[n]))
    except nx.NetworkXUnfeasible:
        logger.warning("Prerequisite edges contain a cycle; using first-mention order")
        return sequence
