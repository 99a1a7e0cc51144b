# tests/test_graph_builder.py

from kg_chapters.graph.builder import concept_graph_to_networkx, concept_node_id, prerequisite_order
from kg_chapters.graph.schema import EdgeType, NodeType
from kg_chapters.models.concept import (
    Concept,
    ConceptGraph,
    ConceptRelationship,
    Mention,
    RelationshipType,
)


def make_concept(concept_id: str, position: int) -> Concept:
    return Concept(
        id=concept_id,
        name=concept_id.title(),
        definition="",
        first_mention_position=position,
        mentions=[Mention(position=position, matched_text=concept_id, context="")],
    )


def make_graph(relationships):
    concepts = [make_concept("atoms", 30), make_concept("bonds", 10), make_concept("molecules", 20)]
    return ConceptGraph(
        concepts=concepts,
        relationships=relationships,
        sequence=["bonds", "molecules", "atoms"],
    )


def test_concept_graph_to_networkx():
    graph = make_graph([
        ConceptRelationship(source="atoms", target="molecules", type=RelationshipType.PREREQUISITE, strength=0.4),
        ConceptRelationship(source="bonds", target="missing", type=RelationshipType.RELATED),
    ])

    G = concept_graph_to_networkx(graph)

    assert G.number_of_nodes() == 3
    node = G.nodes[concept_node_id("atoms")]
    assert node["type"] == NodeType.CONCEPT.value
    assert node["name"] == "Atoms"
    assert node["mention_count"] == 1

    edges = list(G.edges(data=True))
    assert len(edges) == 1
    src, dst, data = edges[0]
    assert (src, dst) == ("concept:atoms", "concept:molecules")
    assert data["type"] == EdgeType.CONCEPT_PREREQUISITE_OF.value
    assert data["strength"] == 0.4


def test_projection_does_not_duplicate_edges():
    graph = make_graph([
        ConceptRelationship(source="atoms", target="molecules", type=RelationshipType.RELATED),
    ])
    G = concept_graph_to_networkx(graph)
    concept_graph_to_networkx(graph, existing_graph=G)

    assert G.number_of_edges() == 1


def test_prerequisite_order_respects_edges():
    graph = make_graph([
        ConceptRelationship(source="atoms", target="molecules", type=RelationshipType.PREREQUISITE),
    ])

    # bonds has no prerequisite and comes first in the sequence
    assert prerequisite_order(graph) == ["bonds", "atoms", "molecules"]


def test_prerequisite_order_without_edges_is_sequence():
    assert prerequisite_order(make_graph([])) == ["bonds", "molecules", "atoms"]


def test_prerequisite_cycle_falls_back_to_sequence():
    graph = make_graph([
        ConceptRelationship(source="atoms", target="molecules", type=RelationshipType.PREREQUISITE),
        ConceptRelationship(source="molecules", target="atoms", type=RelationshipType.PREREQUISITE),
    ])

    assert prerequisite_order(graph) == ["bonds", "molecules", "atoms"]
