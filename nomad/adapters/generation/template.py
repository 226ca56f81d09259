"""Deterministic itinerary content used when no model is configured."""

from __future__ import annotations

import datetime as dt
import hashlib
from typing import Any

_SLOTS = ("09:00", "12:30", "14:30", "19:00")

# (morning, afternoon) activity templates keyed by interest tag.
_INTEREST_TEMPLATES: dict[str, list[tuple[str, str, str]]] = {
    "culture": [
        ("Visit the {city} National Museum", "{city} National Museum", "culture"),
        ("Walk through the historic old town", "{city} Old Town", "culture"),
    ],
    "food": [
        ("Food tour of the central market", "{city} Central Market", "food"),
        ("Cooking class with a local chef", "{city} Cooking School", "food"),
    ],
    "nature": [
        ("Morning hike in the nearest park", "{city} Botanical Garden", "nature"),
        ("Sunset at a viewpoint over the city", "{city} Lookout", "nature"),
    ],
    "nightlife": [
        ("Evening in the bar district", "{city} Night Quarter", "nightlife"),
    ],
    "shopping": [
        ("Browse local boutiques and craft shops", "{city} Artisan Market", "shopping"),
    ],
    "adventure": [
        ("Guided adventure excursion", "{city} Adventure Center", "nature"),
    ],
    "museums": [
        ("Morning at the city art museum", "{city} Museum of Art", "culture"),
    ],
    "history": [
        ("Guided history walk", "{city} Historic Quarter", "culture"),
    ],
    "art": [
        ("Gallery hopping in the arts district", "{city} Contemporary Gallery", "culture"),
    ],
    "architecture": [
        ("Architecture walk past the landmark buildings", "{city} Town Hall", "sightseeing"),
    ],
    "beaches": [
        ("Swim and sunbathe at the beach", "{city} Beach", "nature"),
    ],
    "hiking": [
        ("Day hike on a scenic trail", "{city} Ridge Trail", "nature"),
    ],
    "relaxation": [
        ("Unwind at a spa", "{city} Thermal Baths", "free_time"),
    ],
    "wine": [
        ("Wine tasting at a local cellar", "{city} Wine Cellar", "food"),
    ],
}

_DEFAULT_TEMPLATES: list[tuple[str, str, str]] = [
    ("Explore the city centre on foot", "{city} City Centre", "sightseeing"),
    ("Visit the main landmark", "{city} Cathedral", "sightseeing"),
    ("Relax in a neighbourhood cafe", "{city} Cafe District", "free_time"),
    ("Walking tour of the waterfront", "{city} Waterfront", "sightseeing"),
]


def _pick(options: list[tuple[str, str, str]], seed: str, offset: int) -> tuple[str, str, str]:
    digest = int(hashlib.md5(seed.encode()).hexdigest()[:8], 16)
    return options[(digest + offset) % len(options)]


def generate(system_prompt: str, user_prompt: str, schema_hint: dict[str, Any]) -> dict[str, Any]:
    city = str(schema_hint.get("destination") or "the city")
    days = int(schema_hint.get("required_days") or 1)
    start_day = int(schema_hint.get("start_day") or 1)
    start_date = dt.date.fromisoformat(str(schema_hint.get("start_date") or dt.date.today().isoformat()))
    interests = [i for i in schema_hint.get("interests") or [] if i in _INTEREST_TEMPLATES]

    pool = list(_DEFAULT_TEMPLATES)
    for interest in interests:
        pool = _INTEREST_TEMPLATES[interest] + pool

    result_days = []
    for i in range(days):
        number = start_day + i
        morning = _pick(pool, f"{city}:{number}:am", 0)
        afternoon = _pick(pool, f"{city}:{number}:pm", 1)
        if afternoon == morning:
            afternoon = _pick(pool, f"{city}:{number}:pm", 2)
        activities = [
            {"time": _SLOTS[0], "description": morning[0].format(city=city),
             "venueName": morning[1].format(city=city), "category": morning[2]},
            {"time": _SLOTS[1], "description": f"Lunch at a local restaurant in {city}", "category": "food"},
            {"time": _SLOTS[2], "description": afternoon[0].format(city=city),
             "venueName": afternoon[1].format(city=city), "category": afternoon[2]},
            {"time": _SLOTS[3], "description": f"Dinner in {city}", "category": "food"},
        ]
        result_days.append({
            "day": number,
            "date": (start_date + dt.timedelta(days=i)).isoformat(),
            "title": f"Day {number} - {city}",
            "activities": activities,
        })
    return {"destination": city, "days": result_days}
