"""Mock weather adapter with simple hemisphere/month climate profiles."""

from __future__ import annotations

import datetime as dt
import hashlib

# Month -> (condition, high, low, rain probability) for the northern hemisphere.
NORTHERN_CLIMATE: dict[int, tuple[str, float, float, float]] = {
    1: ("Overcast", 6, -1, 0.25),
    2: ("Overcast", 8, 0, 0.25),
    3: ("Partly cloudy", 12, 3, 0.25),
    4: ("Partly cloudy", 16, 6, 0.30),
    5: ("Mostly clear", 21, 10, 0.25),
    6: ("Clear", 25, 14, 0.20),
    7: ("Clear", 28, 17, 0.15),
    8: ("Clear", 27, 17, 0.15),
    9: ("Mostly clear", 23, 13, 0.20),
    10: ("Partly cloudy", 17, 9, 0.30),
    11: ("Overcast", 11, 4, 0.30),
    12: ("Overcast", 7, 1, 0.30),
}

SOUTHERN_PLACES = {
    "sydney", "melbourne", "auckland", "new zealand", "australia", "cape town", "south africa",
    "buenos aires", "argentina", "santiago", "chile", "lima", "peru", "cusco", "rio de janeiro",
    "sao paulo", "brazil", "zimbabwe", "madagascar",
}


def _condition(base: str, rain_prob: float, seed: str) -> str:
    h = int(hashlib.md5(seed.encode()).hexdigest()[:8], 16)
    if h < int(rain_prob * 0xFFFFFFFF):
        return "Rain showers" if rain_prob > 0.25 else "Light rain"
    return base


def forecast(place: str, start: dt.date, end: dt.date) -> dict[dt.date, str]:
    southern = place.strip().lower() in SOUTHERN_PLACES
    result: dict[dt.date, str] = {}
    day = start
    while day <= end:
        month = ((day.month + 5) % 12) + 1 if southern else day.month
        base, high, low, rain_prob = NORTHERN_CLIMATE[month]
        condition = _condition(base, rain_prob, f"{place.lower()}:{day.isoformat()}")
        result[day] = f"{condition}, {round(low)}-{round(high)}°C"
        day += dt.timedelta(days=1)
    return result
