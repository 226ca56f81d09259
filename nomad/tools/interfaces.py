"""Port protocols and I/O schemas for the external collaborators."""

from __future__ import annotations

import datetime as dt
from typing import Any, Awaitable, Callable, Optional, Protocol, Union, runtime_checkable

from pydantic import BaseModel, Field

from nomad.domain.models import ProgressEvent
from nomad.shared.exceptions import ToolError


class Coordinates(BaseModel):
    lat: float
    lon: float


class PlaceResult(BaseModel):
    name: str
    address: str
    coordinates: Optional[Coordinates] = None
    country_code: Optional[str] = Field(default=None, description="ISO 3166-1 alpha-2, upper case")


class CurrencyQuote(BaseModel):
    base: str
    currency: str
    rate: float
    as_of: Optional[dt.date] = None


@runtime_checkable
class TextGenerator(Protocol):
    """Produces structured itinerary content for one destination chunk."""

    def generate(self, system_prompt: str, user_prompt: str, schema_hint: dict[str, Any]) -> dict[str, Any]: ...


@runtime_checkable
class PlaceLookup(Protocol):
    def lookup(self, name: str, near: Optional[str] = None) -> Optional[PlaceResult]: ...


@runtime_checkable
class WeatherLookup(Protocol):
    def forecast(self, place: str, start: dt.date, end: dt.date) -> dict[dt.date, str]: ...


@runtime_checkable
class CurrencyLookup(Protocol):
    def quote(self, base: str, destination: str) -> Optional[CurrencyQuote]: ...


ProgressSink = Callable[[ProgressEvent], Union[None, Awaitable[None]]]


__all__ = [
    "Coordinates",
    "CurrencyLookup",
    "CurrencyQuote",
    "PlaceLookup",
    "PlaceResult",
    "ProgressSink",
    "TextGenerator",
    "ToolError",
    "WeatherLookup",
]
