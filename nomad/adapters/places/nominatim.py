"""Real place lookup backed by the OpenStreetMap Nominatim search API."""

from __future__ import annotations

import logging
import os
from typing import Optional

from nomad.security.http_client import SecureHttpClient
from nomad.tools.interfaces import Coordinates, PlaceResult, ToolError

_BASE_URL = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org/search")
_logger = logging.getLogger("nomad.places")

_http = SecureHttpClient(tool_name="places", max_retries=1)


def _to_result(item: dict) -> Optional[PlaceResult]:
    address = str(item.get("display_name") or "").strip()
    if not address:
        return None
    coords = None
    try:
        coords = Coordinates(lat=float(item["lat"]), lon=float(item["lon"]))
    except (KeyError, TypeError, ValueError):
        coords = None
    country = (item.get("address") or {}).get("country_code")
    return PlaceResult(
        name=str(item.get("name") or address.split(",")[0]).strip(),
        address=address,
        coordinates=coords,
        country_code=country.upper() if country else None,
    )


def lookup(name: str, near: Optional[str] = None) -> Optional[PlaceResult]:
    query = f"{name}, {near}" if near else name
    data = _http.get(
        _BASE_URL,
        params={"q": query, "format": "jsonv2", "limit": 1, "addressdetails": 1},
    )
    if not isinstance(data, list):
        raise ToolError("places", "unexpected response shape from nominatim")
    if not data:
        _logger.debug("No place found for %s", query)
        return None
    return _to_result(data[0])
