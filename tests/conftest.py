"""pytest global fixtures: test environment isolation."""

import pytest


@pytest.fixture(autouse=True)
def no_real_apis(monkeypatch):
    """Disable real APIs (LLM + HTTP tools) so tests never depend on external services."""
    monkeypatch.delenv("DASHSCOPE_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.delenv("EXTERNAL_TOOLS", raising=False)
    monkeypatch.delenv("TOOL_ALLOWLIST", raising=False)
    monkeypatch.delenv("STRICT_EXTERNAL_DATA", raising=False)
    monkeypatch.delenv("NOMAD_STORE", raising=False)
    monkeypatch.delenv("REDIS_URL", raising=False)
    # Reset the LLM singleton and shared caches so every test starts clean.
    from nomad.infrastructure.cache import city_cache, place_cache, weather_cache
    from nomad.infrastructure.llm_factory import reset_llm

    reset_llm()
    for cache in (city_cache, place_cache, weather_cache):
        cache.clear()
    yield
    reset_llm()
