# tests/test_concept_extraction.py

from kg_chapters.config.settings import Settings
from kg_chapters.documents import sections_from_markdown
from kg_chapters.models.concept import ConceptGraph
from kg_chapters.models.library import ConceptDefinition, ConceptLibrary
from kg_chapters.nlp.concept_extraction import (
    ConceptExtractor,
    ExtractionMode,
    definition_text,
    extract_concept_graph,
    slugify,
)


def test_empty_text_gives_empty_graph():
    graph = ConceptExtractor().extract("   \n\t ")

    assert graph == ConceptGraph.empty()
    assert graph.concepts == [] and graph.sequence == [] and graph.relationships == []


def test_discovery_mode_on_chapter(chapter_text):
    graph = ConceptExtractor().extract(chapter_text, sections_from_markdown(chapter_text))

    osmosis = graph.find("osmosis")
    assert osmosis is not None
    assert osmosis.definition == "process where molecules move across a membrane"
    assert osmosis.mention_count == 3
    assert all(c.id.startswith("concept-") for c in graph.concepts)
    assert graph.find("diffusion") is not None


def test_graph_invariants(chapter_text):
    graph = ConceptExtractor().extract(chapter_text, sections_from_markdown(chapter_text))
    ids = [c.id for c in graph.concepts]

    for concept in graph.concepts:
        positions = [m.position for m in concept.mentions]
        assert positions == sorted(positions)
        assert concept.first_mention_position == positions[0]
        assert [m.is_revisit for m in concept.mentions] == [False] + [True] * (len(positions) - 1)

    h = graph.hierarchy
    assert sorted(h.core + h.supporting + h.detail) == sorted(ids)
    assert len(set(h.core + h.supporting + h.detail)) == len(ids)

    assert sorted(graph.sequence) == sorted(ids)
    by_id = graph.by_id()
    firsts = [by_id[cid].first_mention_position for cid in graph.sequence]
    assert firsts == sorted(firsts)

    for rel in graph.relationships:
        assert rel.source in by_id and rel.target in by_id
        assert 0.0 <= rel.strength <= 1.0


def test_extraction_is_deterministic(chapter_text):
    sections = sections_from_markdown(chapter_text)
    first = ConceptExtractor().extract(chapter_text, sections)
    second = ConceptExtractor().extract(chapter_text, sections)

    assert first.model_dump_json() == second.model_dump_json()


def test_light_mode_caps_concepts(chapter_text):
    config = Settings(runtime_mode="light", max_concepts_light=2)
    graph = ConceptExtractor(config=config).extract(chapter_text, sections_from_markdown(chapter_text))

    assert len(graph.concepts) <= 2


def test_library_mode_canonical_over_alias():
    library = ConceptLibrary(
        domain="chemistry",
        concepts=[
            ConceptDefinition(
                name="Valence Electrons",
                aliases=["valence"],
                description="Outer-shell electrons",
            )
        ],
    )
    text = "Valence electrons determine bonding. Atoms share valence electrons. The valence of carbon is four."

    graph = ConceptExtractor(library=library).extract(text)

    assert len(graph.concepts) == 1
    concept = graph.concepts[0]
    assert concept.id == "chemistry-valence-electrons"
    assert concept.name == "Valence Electrons"
    assert concept.definition == "Outer-shell electrons"
    assert [m.is_alias for m in concept.mentions] == [False, False, True]
    assert concept.mentions[0].matched_text == "Valence electrons"


def test_library_ids_are_unique_and_related_names_resolve():
    library = [
        ConceptDefinition(name="Cell Wall", related_concepts=["Osmosis"]),
        ConceptDefinition(name="Cell-Wall"),
        ConceptDefinition(name="Osmosis", category="Transport", subcategory="Passive"),
    ]
    text = "The cell wall resists osmosis. Osmosis pushes water against the cell wall."

    graph = ConceptExtractor(library=library, domain="bio").extract(text)
    ids = {c.name: c.id for c in graph.concepts}

    assert ids["Cell Wall"] == "bio-cell-wall"
    assert ids["Cell-Wall"] == "bio-cell-wall-2"
    assert graph.find("osmosis").definition == "Transport - Passive"
    assert ids["Osmosis"] in graph.get("bio-cell-wall").related_concepts


def test_library_relationships_can_be_disabled():
    library = [ConceptDefinition(name="Metals"), ConceptDefinition(name="Sodium")]
    text = "Metals such as sodium react with water. Metals such as sodium react with water."

    enabled = ConceptExtractor(library=library, domain="chemistry").extract(text)
    assert any(r.type.value == "example" for r in enabled.relationships)

    config = Settings(infer_library_relationships=False)
    disabled = ConceptExtractor(library=library, domain="chemistry", config=config).extract(text)
    assert disabled.relationships == []


def test_empty_library_falls_back_to_discovery():
    assert ConceptExtractor(library=[]).effective_mode == ExtractionMode.DISCOVERY
    assert (
        ConceptExtractor(library=ConceptLibrary(concepts=[]), mode=ExtractionMode.LIBRARY).effective_mode
        == ExtractionMode.DISCOVERY
    )
    assert ConceptExtractor(library=[ConceptDefinition(name="Osmosis")]).effective_mode == ExtractionMode.LIBRARY


def test_discovery_mode_can_be_seeded_by_library(chapter_text):
    library = [ConceptDefinition(name="Membrane", category="Cell structure")]
    graph = ConceptExtractor(library=library, mode=ExtractionMode.DISCOVERY).extract(chapter_text)

    membrane = graph.find("membrane")
    assert membrane is not None
    assert membrane.id.startswith("concept-")
    assert membrane.definition == "Cell structure"


def test_helpers():
    assert slugify("Valence Electrons!") == "valence-electrons"
    assert definition_text(ConceptDefinition(name="Ion")) == "Ion"
    assert definition_text(ConceptDefinition(name="Ion", category="Chemistry")) == "Chemistry"


def test_convenience_wrapper(chapter_text):
    graph = extract_concept_graph(chapter_text)
    assert graph.find("osmosis") is not None
