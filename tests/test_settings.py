# tests/test_settings.py

from kg_chapters.config.settings import Settings, RuntimeMode, get_settings


def test_get_settings_is_singleton():
    assert get_settings() is get_settings()


def test_runtime_mode_defaults():
    """
    Default mode is STANDARD and the concept cap is the fixed MAX_CONCEPTS.
    """
    settings = Settings()

    assert settings.runtime_mode == RuntimeMode.STANDARD
    assert settings.concept_cap(10_000) == settings.MAX_CONCEPTS == 60
    assert settings.SCORE_THRESHOLD == 20.0
    assert settings.infer_library_relationships is True


def test_concept_cap_per_mode():
    assert Settings(runtime_mode=RuntimeMode.LIGHT).concept_cap(10_000) == 30

    heavy = Settings(runtime_mode=RuntimeMode.HEAVY)
    assert heavy.concept_cap(10_000) == 380
    assert heavy.concept_cap(1) == 182
    assert heavy.concept_cap(10_000_000) == 900


def test_runtime_mode_env_override(monkeypatch):
    """
    Ensure settings can be overridden via environment variables.
    """
    monkeypatch.setenv("CHAPTERKG_RUNTIME_MODE", "light")
    monkeypatch.setenv("CHAPTERKG_SCORE_THRESHOLD", "35")

    settings = Settings()
    assert settings.runtime_mode == RuntimeMode.LIGHT
    assert settings.SCORE_THRESHOLD == 35.0
