"""Concrete tool selection and wiring.

Real adapters are used when ``EXTERNAL_TOOLS`` is enabled, mock adapters
otherwise. ``STRICT_EXTERNAL_DATA`` turns every silent fallback into an error.
``TOOL_ALLOWLIST`` limits which optional tools are wired at all; a tool left
out of the allowlist is simply not used.
"""

from __future__ import annotations

import importlib
import logging
import os
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Optional

from nomad.adapters.currency import mock as mock_currency
from nomad.adapters.generation import template as template_generator
from nomad.adapters.places import mock as mock_places
from nomad.adapters.weather import mock as mock_weather
from nomad.config.settings import resolve_llm_provider, strict_external_data_enabled
from nomad.infrastructure.llm_factory import is_llm_available
from nomad.security.redact import redact_sensitive
from nomad.shared.exceptions import KeyMissingError, ToolError

_logger = logging.getLogger("nomad.tools")
_DEFAULT_ALLOWLIST = {"ai", "places", "weather", "currency"}
_TRUTHY = {"1", "true", "yes", "on"}


def _external_tools_enabled() -> bool:
    return os.getenv("EXTERNAL_TOOLS", "").strip().lower() in _TRUTHY


def _tool_allowlist() -> set[str]:
    raw = os.getenv("TOOL_ALLOWLIST", "")
    if not raw.strip():
        return set(_DEFAULT_ALLOWLIST)
    values = {item.strip().lower() for item in raw.split(",") if item.strip()}
    return values or set(_DEFAULT_ALLOWLIST)


def _is_allowed(tool_name: str) -> bool:
    return tool_name in _tool_allowlist()


def _raise_if_strict_without_external(tool_name: str) -> None:
    if strict_external_data_enabled() and not _external_tools_enabled():
        raise ToolError(tool_name, "STRICT_EXTERNAL_DATA=true requires EXTERNAL_TOOLS=true")


def _load_real(tool_name: str, module: str, fallback: ModuleType) -> ModuleType:
    try:
        return importlib.import_module(module)
    except Exception as exc:
        if strict_external_data_enabled():
            raise ToolError(tool_name, f"Failed to load adapter: {redact_sensitive(str(exc))}") from None
        _logger.warning("Failed to load %s adapter, fallback to mock: %s", tool_name, redact_sensitive(str(exc)))
        return fallback


def get_generator():
    if not _is_allowed("ai"):
        raise ToolError("ai", "Tool blocked by TOOL_ALLOWLIST: ai")
    if is_llm_available():
        from nomad.adapters.generation import llm as llm_generator

        return llm_generator
    if strict_external_data_enabled():
        raise KeyMissingError("OPENAI_API_KEY")
    return template_generator


def get_places_tool():
    if not _is_allowed("places"):
        return None
    _raise_if_strict_without_external("places")
    if _external_tools_enabled():
        return _load_real("places", "nomad.adapters.places.nominatim", mock_places)
    return mock_places


def get_weather_tool():
    if not _is_allowed("weather"):
        return None
    _raise_if_strict_without_external("weather")
    if _external_tools_enabled():
        return _load_real("weather", "nomad.adapters.weather.open_meteo", mock_weather)
    return mock_weather


def get_currency_tool():
    if not _is_allowed("currency"):
        return None
    _raise_if_strict_without_external("currency")
    if _external_tools_enabled():
        return _load_real("currency", "nomad.adapters.currency.frankfurter", mock_currency)
    return mock_currency


@dataclass
class ToolSet:
    generator: Any
    places: Optional[Any] = None
    weather: Optional[Any] = None
    currency: Optional[Any] = None


def build_tools() -> ToolSet:
    return ToolSet(
        generator=get_generator(),
        places=get_places_tool(),
        weather=get_weather_tool(),
        currency=get_currency_tool(),
    )


def describe_active_tools() -> dict[str, str]:
    external = _external_tools_enabled()
    allowed = _tool_allowlist()

    def _mode(name: str, real: str) -> str:
        if name not in allowed:
            return "disabled"
        return real if external else "mock"

    return {
        "ai": resolve_llm_provider(),
        "places": _mode("places", "nominatim"),
        "weather": _mode("weather", "open_meteo"),
        "currency": _mode("currency", "frankfurter"),
        "strict_external_data": "true" if strict_external_data_enabled() else "false",
    }


__all__ = [
    "ToolSet",
    "build_tools",
    "describe_active_tools",
    "get_currency_tool",
    "get_generator",
    "get_places_tool",
    "get_weather_tool",
]
