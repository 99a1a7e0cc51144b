# tests/test_disambiguation.py

from kg_chapters.nlp.disambiguation import (
    ContextValidatorRegistry,
    default_registry,
    generic_code_validator,
)


def test_term_specific_gates():
    registry = default_registry()
    promise = registry.validator_for("computing", "Promise")

    assert promise("fetch() returns a promise you can await")
    assert promise("chain it with .then(handle)")
    assert not promise("I promise to finish the report.")


def test_generic_fallback_for_unknown_terms():
    registry = default_registry()
    closure = registry.validator_for("javascript", "closure")

    assert closure is generic_code_validator
    assert closure("const counter = makeCounter();")
    assert closure("x => x + 1")
    assert not closure("the store will close at noon")


def test_domain_specific_registration_wins():
    registry = ContextValidatorRegistry()
    registry.register("state", lambda window: "redux" in window.lower(), domain="react")

    assert ("react", "state") in registry
    assert registry.validator_for("react", "State")("Redux keeps state")
    assert registry.validator_for("vue", "state") is registry.default
