"""Place name to ISO 4217 currency code."""

from __future__ import annotations

from typing import Optional

CURRENCY_BY_PLACE: dict[str, str] = {
    # countries
    "united states": "USD", "canada": "CAD", "mexico": "MXN", "brazil": "BRL", "argentina": "ARS",
    "chile": "CLP", "peru": "PEN", "costa rica": "CRC", "nicaragua": "NIO",
    "united kingdom": "GBP", "scotland": "GBP", "ireland": "EUR", "france": "EUR", "germany": "EUR",
    "italy": "EUR", "spain": "EUR", "portugal": "EUR", "greece": "EUR", "croatia": "EUR",
    "denmark": "DKK", "norway": "NOK", "sweden": "SEK", "iceland": "ISK", "turkey": "TRY",
    "japan": "JPY", "thailand": "THB", "vietnam": "VND", "australia": "AUD", "new zealand": "NZD",
    "south africa": "ZAR", "morocco": "MAD", "egypt": "EGP", "kenya": "KES", "ethiopia": "ETB",
    "madagascar": "MGA", "zimbabwe": "USD",
    # cities
    "new york": "USD", "los angeles": "USD", "san francisco": "USD", "chicago": "USD", "boston": "USD",
    "miami": "USD", "seattle": "USD", "las vegas": "USD", "new orleans": "USD", "san diego": "USD",
    "toronto": "CAD", "vancouver": "CAD", "montreal": "CAD", "mexico city": "MXN",
    "rio de janeiro": "BRL", "sao paulo": "BRL", "buenos aires": "ARS", "lima": "PEN", "cusco": "PEN",
    "london": "GBP", "edinburgh": "GBP", "dublin": "EUR", "paris": "EUR", "berlin": "EUR",
    "munich": "EUR", "rome": "EUR", "florence": "EUR", "venice": "EUR", "milan": "EUR", "naples": "EUR",
    "madrid": "EUR", "barcelona": "EUR", "seville": "EUR", "lisbon": "EUR", "porto": "EUR",
    "amsterdam": "EUR", "vienna": "EUR", "athens": "EUR", "helsinki": "EUR",
    "prague": "CZK", "budapest": "HUF", "zurich": "CHF", "copenhagen": "DKK", "stockholm": "SEK",
    "oslo": "NOK", "reykjavik": "ISK", "istanbul": "TRY", "dubai": "AED", "tel aviv": "ILS",
    "cairo": "EGP", "marrakech": "MAD", "nairobi": "KES", "cape town": "ZAR",
    "tokyo": "JPY", "kyoto": "JPY", "osaka": "JPY", "seoul": "KRW", "beijing": "CNY", "shanghai": "CNY",
    "hong kong": "HKD", "bangkok": "THB", "singapore": "SGD", "kuala lumpur": "MYR", "bali": "IDR",
    "ho chi minh city": "VND", "sydney": "AUD", "melbourne": "AUD", "auckland": "NZD",
}


def currency_for(place: str) -> Optional[str]:
    return CURRENCY_BY_PLACE.get(place.strip().lower())
