import pytest

from nomad.adapters import tool_factory
from nomad.shared.exceptions import KeyMissingError, ToolError


def test_defaults_are_offline(monkeypatch):
    tools = tool_factory.build_tools()
    assert tools.generator.__name__.endswith(".template")
    assert tools.places.__name__.endswith(".mock")
    assert tools.weather.__name__.endswith(".mock")
    assert tools.currency.__name__.endswith(".mock")


def test_llm_key_selects_model_generator(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-000000000")
    assert tool_factory.get_generator().__name__.endswith(".llm")


def test_external_tools_load_real_adapters(monkeypatch):
    monkeypatch.setenv("EXTERNAL_TOOLS", "true")
    assert tool_factory.get_places_tool().__name__.endswith(".nominatim")
    assert tool_factory.get_weather_tool().__name__.endswith(".open_meteo")
    assert tool_factory.get_currency_tool().__name__.endswith(".frankfurter")


def test_allowlist_disables_optional_tools(monkeypatch):
    monkeypatch.setenv("TOOL_ALLOWLIST", "ai,places")
    tools = tool_factory.build_tools()
    assert tools.places is not None
    assert tools.weather is None
    assert tools.currency is None


def test_allowlist_without_ai_blocks_generation(monkeypatch):
    monkeypatch.setenv("TOOL_ALLOWLIST", "places")
    with pytest.raises(ToolError):
        tool_factory.get_generator()


def test_strict_mode_refuses_silent_fallbacks(monkeypatch):
    monkeypatch.setenv("STRICT_EXTERNAL_DATA", "true")
    with pytest.raises(KeyMissingError):
        tool_factory.get_generator()
    with pytest.raises(ToolError):
        tool_factory.get_places_tool()


def test_describe_active_tools(monkeypatch):
    assert tool_factory.describe_active_tools() == {
        "ai": "template",
        "places": "mock",
        "weather": "mock",
        "currency": "mock",
        "strict_external_data": "false",
    }
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-000000000")
    monkeypatch.setenv("DASHSCOPE_API_KEY", "ds-test")
    monkeypatch.setenv("EXTERNAL_TOOLS", "1")
    monkeypatch.setenv("TOOL_ALLOWLIST", "ai,weather")
    described = tool_factory.describe_active_tools()
    assert described["ai"] == "dashscope"
    assert described["weather"] == "open_meteo"
    assert described["places"] == "disabled"
