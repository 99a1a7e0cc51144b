# tests/test_candidates.py

from kg_chapters.models.library import ConceptDefinition
from kg_chapters.models.section import Section
from kg_chapters.nlp.candidates import (
    CandidatePool,
    discover_candidates,
    heading_phrases,
    mine_code_identifiers,
    mine_frequent_ngrams,
    mine_headings,
    mine_sentences,
    seed_library_terms,
    split_sentences,
)
from kg_chapters.nlp.term_matcher import TermPatternTable
from kg_chapters.nlp.vocabulary import DEFAULT_VOCABULARY


def test_definitional_sentence_is_captured():
    pool = discover_candidates("Osmosis is a process where molecules move across a membrane.")

    candidate = pool.get("osmosis")
    assert candidate is not None
    assert candidate.normalized == "osmosis"
    assert candidate.has_inline_definition
    assert candidate.inline_definitions[0] == "process where molecules move across a membrane"


def test_classification_sentence_gets_type_definition():
    pool = mine_sentences("Glucose is a type of sugar.", CandidatePool())

    assert pool.get("glucose").inline_definitions[0] == "Type of sugar"
    assert pool.get("glucose").is_classification


def test_example_and_instance_sentences_are_classifications():
    pool = mine_sentences(
        "Sodium is an example of alkali metals. Helium is an instance of noble gases.",
        CandidatePool(),
    )

    assert pool.get("sodium").inline_definitions[0] == "Type of alkali metals"
    assert pool.get("helium").inline_definitions[0] == "Type of noble gases"
    assert pool.get("sodium").is_classification


def test_process_sentence_gets_process_definition():
    pool = mine_sentences("Diffusion is the process by which particles spread out.", CandidatePool())

    candidate = pool.get("diffusion")
    assert candidate.inline_definitions[0] == "Process: particles spread out"
    assert candidate.is_definition_pattern
    assert not candidate.is_classification

    pool = mine_sentences("Titration is the method of measuring concentration.", CandidatePool())
    assert pool.get("titration").inline_definitions[0] == "Process: measuring concentration"


def test_split_sentences_keeps_offsets():
    text = "One here. Two there!"
    assert split_sentences(text) == [(0, "One here"), (9, " Two there")]


def test_heading_phrases_split_at_stopwords():
    assert heading_phrases("Osmosis and Diffusion", DEFAULT_VOCABULARY) == ["Osmosis", "Diffusion"]
    assert heading_phrases("Chapter 3: The Periodic Table", DEFAULT_VOCABULARY) == [
        "Chapter",
        "Periodic Table",
    ]


def test_mine_headings_credits_heading_phrases():
    text = "The periodic table organizes elements."
    pool = mine_headings(
        text,
        CandidatePool(),
        [Section(heading="Chapter 1: The Periodic Table")],
        TermPatternTable(),
    )

    candidate = pool.get("periodic table")
    assert candidate.from_heading == 1
    assert candidate.positions == [4]
    assert "chapter" not in pool


def test_frequent_ngrams_need_adjacent_repeats():
    text = "Cell membrane controls transport. The cell membrane is thin."
    pool = mine_frequent_ngrams(text, CandidatePool())

    assert pool.get("cell membrane").frequency == 2
    assert "membrane controls" not in pool


def test_code_identifiers():
    text = "Call Object.create to build it, then toString and my_var. Also e.g. stays."
    pool = mine_code_identifiers(text, CandidatePool())

    assert pool.get("object.create").term == "Object.create"
    assert "tostring" in pool
    assert "my_var" in pool
    assert "e.g" not in pool
    assert "also" not in pool


def test_chemical_formulas():
    pool = mine_sentences("Water is H2O. Salt is NaCl.", CandidatePool())

    assert pool.get("h2o").is_chemical_formula
    assert pool.get("nacl").is_chemical_formula
    assert "water" not in pool or not pool.get("water").is_chemical_formula


def test_library_aliases_fold_into_canonical_key():
    definitions = [ConceptDefinition(name="Valence Electrons", aliases=["valence shell electrons"])]
    pool = seed_library_terms(
        "The valence shell electrons matter.", CandidatePool(), definitions, TermPatternTable()
    )

    candidate = pool.get("valence electrons")
    assert candidate.is_library_term
    assert candidate.frequency == 1
    assert pool.get("valence shell electrons") is candidate


def test_stopwords_never_enter_pool():
    pool = CandidatePool()
    assert pool.add("the", "The", [0]) is None
    assert len(pool) == 0
