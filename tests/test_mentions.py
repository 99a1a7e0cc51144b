# tests/test_mentions.py

import re

from kg_chapters.models.concept import MentionDepth
from kg_chapters.models.library import ConceptDefinition
from kg_chapters.nlp.concept_extraction import ConceptExtractor
from kg_chapters.nlp.mentions import build_mentions, context_window, estimate_depth, is_toc_entry
from kg_chapters.nlp.term_matcher import TermMatch


def test_context_window_marks_truncation():
    assert context_window("abcdefghij", 4, 5, radius=2) == "...cdefg..."
    assert context_window("abcdefghij", 0, 1, radius=2) == "abc..."
    assert context_window("abc", 1, 2, radius=50) == "abc"


def test_toc_lines_detected():
    text = "Introduction ....... 4\nThe Introduction explains the goals of this book in some detail."
    assert is_toc_entry(text, 0)
    assert not is_toc_entry(text, text.index("Introduction", 1))
    assert is_toc_entry("Cell Transport  12", 0)


def test_code_ellipsis_is_not_a_dotted_leader():
    assert not is_toc_entry("const p = new Promise((resolve) => {...})", 14)


def test_estimate_depth():
    assert estimate_depth("it works because of X, for example Y") == MentionDepth.DEEP
    assert estimate_depth("metals such as sodium") == MentionDepth.MODERATE
    assert estimate_depth("osmosis again") == MentionDepth.SHALLOW


def test_build_mentions_sorts_flags_and_gates():
    text = "alpha ok ... alpha no ... alpha ok"
    matches = [
        TermMatch(start=26, end=31, matched_text="alpha", is_alias=True),
        TermMatch(start=0, end=5, matched_text="alpha"),
        TermMatch(start=13, end=18, matched_text="alpha"),
    ]

    mentions = build_mentions(text, matches, radius=4, validator=lambda window: "ok" in window)

    assert [m.position for m in mentions] == [0, 26]
    assert [m.is_revisit for m in mentions] == [False, True]
    assert [m.is_alias for m in mentions] == [False, True]


def test_toc_occurrence_excluded_from_mentions():
    text = (
        "Contents\n"
        "Introduction ....... 4\n"
        "\n"
        "Introduction\n"
        "This Introduction covers the basics of cells and tissues for new readers of biology.\n"
    )
    extractor = ConceptExtractor(library=[ConceptDefinition(name="Introduction")], domain="biology")
    graph = extractor.extract(text)

    assert len(graph.concepts) == 1
    concept = graph.concepts[0]
    toc_position = text.index("Introduction")
    heading_position = text.index("Introduction", toc_position + 1)

    assert all(m.position != toc_position for m in concept.mentions)
    assert len(concept.mentions) == 2
    assert concept.first_mention_position == heading_position


def test_disambiguation_gate_rejects_plain_english():
    library = [ConceptDefinition(name="Promise", category="async")]
    extractor = ConceptExtractor(library=library, domain="computing")

    assert extractor.extract("I promise to finish the report.").concepts == []

    graph = extractor.extract("const p = new Promise((resolve) => {...})")
    assert len(graph.concepts) == 1
    assert len(graph.concepts[0].mentions) == 1


def test_no_gate_outside_programming_domains():
    library = [ConceptDefinition(name="Promise")]
    graph = ConceptExtractor(library=library, domain="literature").extract(
        "I promise to finish the report."
    )
    assert len(graph.concepts) == 1


def test_wrapped_prose_ending_in_number_is_not_toc():
    text = (
        "Sodium is a soft metal with atomic number 11\n"
        "and it reacts violently with water to form sodium hydroxide and hydrogen gas.\n"
        "Albert Einstein wrote about sodium in 1905\n"
        "and chemists still study sodium today.\n"
    )
    assert not is_toc_entry(text, 0)
    assert not is_toc_entry(text, text.index("Albert"))

    extractor = ConceptExtractor(library=[ConceptDefinition(name="Sodium")], domain="chemistry")
    graph = extractor.extract(text)

    concept = graph.concepts[0]
    expected = [m.start() for m in re.finditer(r"\bsodium\b", text, re.IGNORECASE)]
    assert [m.position for m in concept.mentions] == expected
    assert concept.first_mention_position == 0
