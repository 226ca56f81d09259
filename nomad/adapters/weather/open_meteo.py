"""Real weather adapter backed by the Open-Meteo geocoding and forecast APIs."""

from __future__ import annotations

import datetime as dt
import logging

from nomad.infrastructure.cache import make_cache_key, weather_cache
from nomad.security.http_client import SecureHttpClient
from nomad.tools.interfaces import ToolError

_GEOCODE_URL = "https://geocoding-api.open-meteo.com/v1/search"
_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
_logger = logging.getLogger("nomad.weather")

# Open-Meteo only forecasts this far ahead.
FORECAST_HORIZON_DAYS = 16

_WMO_CONDITIONS: dict[int, str] = {
    0: "Clear",
    1: "Mostly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Fog",
    51: "Light drizzle",
    53: "Drizzle",
    55: "Heavy drizzle",
    61: "Light rain",
    63: "Rain",
    65: "Heavy rain",
    71: "Light snow",
    73: "Snow",
    75: "Heavy snow",
    80: "Rain showers",
    81: "Rain showers",
    82: "Violent rain showers",
    95: "Thunderstorm",
    96: "Thunderstorm with hail",
    99: "Thunderstorm with hail",
}

_http = SecureHttpClient(tool_name="weather", max_retries=1)


def _geocode(place: str) -> tuple[float, float]:
    key = "geo:" + make_cache_key(place.lower())
    cached = weather_cache.get(key)
    if cached is not None:
        return cached
    data = _http.get(_GEOCODE_URL, params={"name": place, "count": 1, "format": "json"})
    results = data.get("results") if isinstance(data, dict) else None
    if not results:
        raise ToolError("weather", f"place not found: {place}")
    coords = (float(results[0]["latitude"]), float(results[0]["longitude"]))
    weather_cache.set(key, coords)
    return coords


def describe(code: int, high: float, low: float) -> str:
    return f"{_WMO_CONDITIONS.get(code, 'Mixed')}, {round(low)}-{round(high)}°C"


def forecast(place: str, start: dt.date, end: dt.date) -> dict[dt.date, str]:
    horizon = dt.date.today() + dt.timedelta(days=FORECAST_HORIZON_DAYS - 1)
    if start > horizon:
        _logger.debug("Trip to %s starts beyond the forecast horizon", place)
        return {}
    lat, lon = _geocode(place)
    data = _http.get(
        _FORECAST_URL,
        params={
            "latitude": lat,
            "longitude": lon,
            "daily": "weathercode,temperature_2m_max,temperature_2m_min",
            "timezone": "auto",
            "start_date": start.isoformat(),
            "end_date": min(end, horizon).isoformat(),
        },
    )
    daily = data.get("daily") if isinstance(data, dict) else None
    if not daily:
        raise ToolError("weather", "forecast response has no daily data")

    result: dict[dt.date, str] = {}
    for day, code, high, low in zip(
        daily.get("time", []),
        daily.get("weathercode", []),
        daily.get("temperature_2m_max", []),
        daily.get("temperature_2m_min", []),
    ):
        if code is None or high is None or low is None:
            continue
        result[dt.date.fromisoformat(day)] = describe(int(code), float(high), float(low))
    return result
