"""Adapter tests: generation backends and HTTP tools (network stubbed)."""

from __future__ import annotations

import datetime as dt

import httpx
import pytest

import nomad.adapters.currency.frankfurter as frankfurter
import nomad.adapters.generation.llm as llm_generator
import nomad.adapters.places.nominatim as nominatim
import nomad.adapters.weather.open_meteo as open_meteo
from nomad.adapters.currency import mock as mock_currency
from nomad.adapters.generation import template
from nomad.adapters.places import mock as mock_places
from nomad.adapters.weather import mock as mock_weather
from nomad.application.generation import DAY_JSON_SCHEMA
from nomad.security.http_client import SecureHttpClient
from nomad.shared.exceptions import ToolError
from nomad.tools.interfaces import CurrencyLookup, PlaceLookup, TextGenerator, WeatherLookup

HINT = {
    "name": "Rome#1",
    "destination": "Rome",
    "required_days": 2,
    "start_date": "2026-11-02",
    "start_day": 3,
    "interests": ["food"],
    "json_schema": DAY_JSON_SCHEMA,
}


def test_modules_satisfy_port_protocols():
    assert isinstance(template, TextGenerator)
    assert isinstance(llm_generator, TextGenerator)
    assert isinstance(mock_places, PlaceLookup)
    assert isinstance(nominatim, PlaceLookup)
    assert isinstance(mock_weather, WeatherLookup)
    assert isinstance(open_meteo, WeatherLookup)
    assert isinstance(mock_currency, CurrencyLookup)
    assert isinstance(frankfurter, CurrencyLookup)


def test_template_generator_is_deterministic():
    first = template.generate("sys", "user", HINT)
    second = template.generate("sys", "user", HINT)
    assert first == second
    assert [d["day"] for d in first["days"]] == [3, 4]
    assert first["days"][1]["date"] == "2026-11-03"
    assert all(len(d["activities"]) == 4 for d in first["days"])


# ── llm ────────────────────────────


@pytest.mark.parametrize(
    "content",
    [
        '{"days": []}',
        '```json\n{"days": []}\n```',
        'Sure! Here is the plan:\n{"days": []}\nEnjoy.',
    ],
)
def test_parse_json_object_tolerates_fences_and_chatter(content):
    assert llm_generator.parse_json_object(content) == {"days": []}


@pytest.mark.parametrize("content", ["no json here", "[1, 2, 3]", "{broken"])
def test_parse_json_object_rejects_non_objects(content):
    with pytest.raises(ToolError):
        llm_generator.parse_json_object(content)


class _FakeReply:
    def __init__(self, content):
        self.content = content


class _FakeLLM:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.messages = None

    def invoke(self, messages):
        self.messages = messages
        if self.error:
            raise self.error
        return _FakeReply(self.content)


def test_llm_generate_sends_schema_and_parses_reply(monkeypatch):
    fake = _FakeLLM('{"days": [{"title": "t", "activities": []}]}')
    monkeypatch.setattr(llm_generator, "get_llm", lambda: fake)
    payload = llm_generator.generate("You plan trips.", "Plan Rome", HINT)
    assert payload["days"][0]["title"] == "t"
    role, system = fake.messages[0]
    assert role == "system"
    assert '"required": ["days"]' in system
    assert fake.messages[1] == ("human", "Plan Rome")


def test_llm_generate_redacts_provider_errors(monkeypatch):
    fake = _FakeLLM(error=RuntimeError("401 for key sk-abcdefghijklmnop"))
    monkeypatch.setattr(llm_generator, "get_llm", lambda: fake)
    with pytest.raises(ToolError) as exc_info:
        llm_generator.generate("sys", "user", HINT)
    assert "sk-abcdefghijklmnop" not in str(exc_info.value)


def test_llm_generate_without_provider_is_a_tool_error(monkeypatch):
    monkeypatch.setattr(llm_generator, "get_llm", lambda: None)
    with pytest.raises(ToolError):
        llm_generator.generate("sys", "user", HINT)


# ── http tools ────────────────────────────


def test_nominatim_lookup_maps_first_result(monkeypatch):
    captured = {}

    def fake_get(url, *, params=None, headers=None):
        captured.update(params)
        return [{
            "name": "Colosseum",
            "display_name": "Colosseo, Piazza del Colosseo, Roma, Italia",
            "lat": "41.89",
            "lon": "12.49",
            "address": {"country_code": "it"},
        }]

    monkeypatch.setattr(nominatim._http, "get", fake_get)
    result = nominatim.lookup("Colosseum", "Rome")
    assert captured["q"] == "Colosseum, Rome"
    assert result.address.startswith("Colosseo")
    assert result.country_code == "IT"
    assert result.coordinates.lat == pytest.approx(41.89)


def test_nominatim_not_found_and_bad_shape(monkeypatch):
    monkeypatch.setattr(nominatim._http, "get", lambda url, **kw: [])
    assert nominatim.lookup("Nowhere Cafe") is None
    monkeypatch.setattr(nominatim._http, "get", lambda url, **kw: {"error": "x"})
    with pytest.raises(ToolError):
        nominatim.lookup("Nowhere Cafe")


def test_open_meteo_forecast(monkeypatch):
    start = dt.date.today() + dt.timedelta(days=1)

    def fake_get(url, *, params=None, headers=None):
        if "geocoding" in url:
            return {"results": [{"latitude": 41.9, "longitude": 12.5}]}
        return {
            "daily": {
                "time": [start.isoformat(), (start + dt.timedelta(days=1)).isoformat()],
                "weathercode": [0, 61],
                "temperature_2m_max": [21.4, 18.0],
                "temperature_2m_min": [12.6, None],
            }
        }

    monkeypatch.setattr(open_meteo._http, "get", fake_get)
    result = open_meteo.forecast("Rome", start, start + dt.timedelta(days=1))
    assert result == {start: "Clear, 13-21°C"}


def test_open_meteo_beyond_horizon_returns_nothing(monkeypatch):
    def fail_get(*args, **kwargs):
        raise AssertionError("no request expected")

    monkeypatch.setattr(open_meteo._http, "get", fail_get)
    far = dt.date.today() + dt.timedelta(days=60)
    assert open_meteo.forecast("Rome", far, far + dt.timedelta(days=2)) == {}


def test_frankfurter_quote(monkeypatch):
    monkeypatch.setattr(
        frankfurter._http, "get", lambda url, **kw: {"amount": 1.0, "base": "USD", "date": "2026-10-16", "rates": {"EUR": 0.91}}
    )
    quote = frankfurter.quote("usd", "Paris")
    assert (quote.base, quote.currency, quote.rate) == ("USD", "EUR", 0.91)
    assert quote.as_of == dt.date(2026, 10, 16)
    assert frankfurter.quote("EUR", "Paris") is None
    assert frankfurter.quote("USD", "Atlantis") is None


def test_mock_tools():
    assert mock_places.lookup("Eiffel Tower").country_code == "FR"
    assert mock_places.lookup("Unknown Bistro") is None
    forecast = mock_weather.forecast("Sydney", dt.date(2027, 1, 10), dt.date(2027, 1, 11))
    assert len(forecast) == 2
    assert all("°C" in value for value in forecast.values())
    assert mock_currency.quote("USD", "Tokyo").rate == 150.0


def test_http_client_retries_server_errors_and_redacts():
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        return httpx.Response(503, json={"error": "busy"})

    client = SecureHttpClient(tool_name="places", max_retries=1, transport=httpx.MockTransport(handler))
    with pytest.raises(ToolError) as exc_info:
        client.get("https://example.test/search?key=supersecret")
    assert calls["n"] == 2
    assert "supersecret" not in str(exc_info.value)


def test_http_client_does_not_retry_client_errors():
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        return httpx.Response(404)

    client = SecureHttpClient(tool_name="places", max_retries=2, transport=httpx.MockTransport(handler))
    with pytest.raises(ToolError) as exc_info:
        client.get("https://example.test/search")
    assert calls["n"] == 1
    assert exc_info.value.status_code == 404


def test_http_client_applies_timeout_and_retry_caps(monkeypatch):
    monkeypatch.setenv("TOOL_HTTP_TIMEOUT_CAP_SECONDS", "5")
    monkeypatch.setenv("TOOL_HTTP_TIMEOUT_FLOOR_SECONDS", "1")
    monkeypatch.setenv("TOOL_HTTP_RETRY_CAP", "1")

    client = SecureHttpClient(timeout=30, max_retries=5, tool_name="test")
    assert client._timeout == 5.0
    assert client._max_retries == 1
