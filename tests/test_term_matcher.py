# tests/test_term_matcher.py

from kg_chapters.nlp.term_matcher import (
    TermPatternTable,
    build_term_pattern,
    find_term_positions,
    is_acronym,
    match_terms,
)


def test_degenerate_terms_are_skipped():
    assert build_term_pattern("") is None
    assert build_term_pattern("  - ") is None
    assert find_term_positions("some text", "   ", TermPatternTable()) == []


def test_whitespace_and_hyphen_variants_match():
    pattern = build_term_pattern("cell membrane")
    assert pattern.search("the cell-membrane is thin")
    assert pattern.search("the Cell   membrane is thin")


def test_matches_whole_words_only():
    table = TermPatternTable()
    assert find_term_positions("ionic bonds and ion channels", "ion", table) == [16]


def test_regex_metacharacters_are_literal():
    table = TermPatternTable()
    assert find_term_positions("I like C++ a lot", "C++", table) == [7]
    assert find_term_positions("a.b and axb", "a.b", table) == [0]


def test_case_sensitive_acronyms():
    assert is_acronym("ATP")
    assert not is_acronym("Atp")

    text = "The atp and ATP"
    assert find_term_positions(text, "ATP", TermPatternTable()) == [4, 12]
    assert find_term_positions(text, "ATP", TermPatternTable(case_sensitive_acronyms=True)) == [12]


def test_pattern_table_caches_by_normalized_term():
    table = TermPatternTable()
    first = table.get("Cell Membrane")
    assert table.get("cell  membrane") is first
    assert len(table) == 1


def test_canonical_beats_alias_at_same_offset():
    text = "Valence electrons determine bonding. The valence shell is outermost."
    matches = match_terms(text, "Valence Electrons", ["valence"], TermPatternTable())

    assert [m.start for m in matches] == [0, text.index("valence shell")]
    assert matches[0].matched_text == "Valence electrons"
    assert matches[0].is_alias is False
    assert matches[1].is_alias is True


def test_longest_alias_wins():
    matches = match_terms("the cell wall", "plant cell wall", ["cell", "cell wall"], TermPatternTable())

    assert len(matches) == 1
    assert matches[0].matched_text == "cell wall"
    assert matches[0].is_alias is True
