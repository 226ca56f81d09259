"""Prompt building and response normalisation for destination generation."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Optional

from nomad.config.settings import OrchestratorSettings
from nomad.domain.constants import DEGRADED_ACTIVITY, DEGRADED_DAY_TITLE
from nomad.domain.enums import ActivityCategory
from nomad.domain.models import Activity, ItineraryDay, TripIntent
from nomad.shared.exceptions import ToolError

SYSTEM_PROMPT = (
    "You are a travel planner. Generate a detailed day-by-day itinerary for the requested "
    "destination. Return only valid JSON matching the schema you are given."
)

_CATEGORY_ALIASES: dict[str, ActivityCategory] = {
    "attraction": ActivityCategory.SIGHTSEEING,
    "sightseeing": ActivityCategory.SIGHTSEEING,
    "landmark": ActivityCategory.SIGHTSEEING,
    "food": ActivityCategory.FOOD,
    "restaurant": ActivityCategory.FOOD,
    "dining": ActivityCategory.FOOD,
    "cafe": ActivityCategory.FOOD,
    "culture": ActivityCategory.CULTURE,
    "museum": ActivityCategory.CULTURE,
    "history": ActivityCategory.CULTURE,
    "nature": ActivityCategory.NATURE,
    "park": ActivityCategory.NATURE,
    "outdoors": ActivityCategory.NATURE,
    "shopping": ActivityCategory.SHOPPING,
    "market": ActivityCategory.SHOPPING,
    "nightlife": ActivityCategory.NIGHTLIFE,
    "bar": ActivityCategory.NIGHTLIFE,
    "travel": ActivityCategory.TRANSPORT,
    "transport": ActivityCategory.TRANSPORT,
    "transfer": ActivityCategory.TRANSPORT,
    "accommodation": ActivityCategory.ACCOMMODATION,
    "hotel": ActivityCategory.ACCOMMODATION,
    "leisure": ActivityCategory.FREE_TIME,
    "free_time": ActivityCategory.FREE_TIME,
    "relax": ActivityCategory.FREE_TIME,
}

DAY_JSON_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["days"],
    "properties": {
        "destination": {"type": "string"},
        "days": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["title", "activities"],
                "properties": {
                    "day": {"type": "integer"},
                    "date": {"type": "string", "format": "date"},
                    "title": {"type": "string"},
                    "activities": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["time", "description"],
                            "properties": {
                                "time": {"type": "string"},
                                "description": {"type": "string"},
                                "venueName": {"type": "string"},
                                "category": {"type": "string"},
                            },
                        },
                    },
                },
            },
        },
    },
}


@dataclass(frozen=True)
class GenerationStep:
    """One generator call: a contiguous run of days in one destination."""

    destination_index: int
    destination: str
    chunk_index: int
    days: int
    start_day: int
    start_date: dt.date

    @property
    def name(self) -> str:
        return f"{self.destination}#{self.chunk_index + 1}"


def use_progressive(intent: TripIntent, settings: OrchestratorSettings) -> bool:
    total = intent.total_duration_days or 0
    return total > settings.progressive_threshold_days or len(intent.destinations) > 1


def plan_steps(
    intent: TripIntent, settings: OrchestratorSettings, progressive: Optional[bool] = None
) -> list[list[GenerationStep]]:
    """Per destination, the generator calls needed to cover it.

    ``intent`` must already be resolved: every destination has a duration and
    the start date is set. A single-call plan (``progressive`` false) asks for
    each destination in one request, however long it is.
    """
    if intent.start_date is None:
        raise ValueError("intent must be resolved before planning")
    if progressive is None:
        progressive = use_progressive(intent, settings)
    chunk_size = max(1, settings.max_days_per_call)
    plan: list[list[GenerationStep]] = []
    day_cursor = 1
    for index, destination in enumerate(intent.destinations):
        remaining = destination.requested_duration_days or 0
        steps: list[GenerationStep] = []
        chunk_index = 0
        while remaining > 0:
            size = min(chunk_size, remaining) if progressive else remaining
            steps.append(GenerationStep(
                destination_index=index,
                destination=destination.name,
                chunk_index=chunk_index,
                days=size,
                start_day=day_cursor,
                start_date=intent.start_date + dt.timedelta(days=day_cursor - 1),
            ))
            day_cursor += size
            remaining -= size
            chunk_index += 1
        plan.append(steps)
    return plan


def build_user_prompt(step: GenerationStep, intent: TripIntent) -> str:
    last_day = step.start_day + step.days - 1
    interests = ", ".join(intent.interests) or "a balanced mix"
    budget = intent.budget_tier.value if intent.budget_tier else "medium"
    travelers = intent.travelers
    party = f"{travelers.adults} adult(s)" + (f" and {travelers.children} child(ren)" if travelers.children else "")
    return (
        f"Create EXACTLY {step.days} days of itinerary for {step.destination}.\n"
        f"Start date: {step.start_date.isoformat()}\n"
        f"Day numbers run from {step.start_day} to {last_day}.\n"
        f"Travelers: {party}. Budget: {budget}. Interests: {interests}.\n"
        "Give each day 4-6 activities (morning, lunch, afternoon, evening) with specific venue names.\n"
        "Do not include street addresses; they are looked up separately.\n"
        "Categories: sightseeing, food, culture, nature, shopping, nightlife, transport, accommodation, free_time."
    )


def build_schema_hint(step: GenerationStep, intent: TripIntent) -> dict[str, Any]:
    return {
        "name": step.name,
        "destination": step.destination,
        "required_days": step.days,
        "start_date": step.start_date.isoformat(),
        "start_day": step.start_day,
        "interests": list(intent.interests),
        "budget": intent.budget_tier.value if intent.budget_tier else None,
        "json_schema": DAY_JSON_SCHEMA,
    }


def _category(raw: Any) -> ActivityCategory:
    token = str(raw or "").strip().lower().replace(" ", "_")
    try:
        return ActivityCategory(token)
    except ValueError:
        return _CATEGORY_ALIASES.get(token, ActivityCategory.ACTIVITY)


def _activity(raw: Any) -> Optional[Activity]:
    if not isinstance(raw, dict):
        return None
    description = str(raw.get("description") or raw.get("name") or "").strip()
    if not description:
        return None
    venue = raw.get("venueName") or raw.get("venue_name") or raw.get("venue")
    # Addresses from the generator are never trusted.
    return Activity(
        time=str(raw.get("time") or "").strip(),
        description=description,
        category=_category(raw.get("category")),
        venue_name=str(venue).strip() if venue else None,
    )


def degraded_day(destination: str, day_number: int, date: Optional[dt.date]) -> ItineraryDay:
    return ItineraryDay(
        day_number=day_number,
        date=date,
        destination_name=destination,
        title=DEGRADED_DAY_TITLE.format(city=destination),
        activities=[
            Activity(
                time="10:00",
                description=DEGRADED_ACTIVITY.format(city=destination),
                category=ActivityCategory.FREE_TIME,
            )
        ],
        degraded=True,
    )


def degraded_days(step: GenerationStep) -> list[ItineraryDay]:
    return [
        degraded_day(step.destination, step.start_day + i, step.start_date + dt.timedelta(days=i))
        for i in range(step.days)
    ]


def normalize_days(payload: Any, step: GenerationStep) -> list[ItineraryDay]:
    """Coerce generator output into exactly ``step.days`` days.

    Extra days are dropped and missing days are padded with placeholder days.
    Raises ``ToolError`` when the payload holds no usable day at all.
    """
    raw_days = payload.get("days") if isinstance(payload, dict) else None
    if not isinstance(raw_days, list):
        raise ToolError("ai", f"response for {step.name} has no days list")

    days: list[ItineraryDay] = []
    for raw in raw_days[: step.days]:
        if not isinstance(raw, dict):
            continue
        activities = [a for a in (_activity(item) for item in raw.get("activities") or []) if a is not None]
        if not activities:
            continue
        offset = len(days)
        days.append(ItineraryDay(
            day_number=step.start_day + offset,
            date=step.start_date + dt.timedelta(days=offset),
            destination_name=step.destination,
            title=str(raw.get("title") or f"Day {step.start_day + offset} - {step.destination}").strip(),
            activities=activities,
        ))
    if not days:
        raise ToolError("ai", f"response for {step.name} has no usable days")

    while len(days) < step.days:
        offset = len(days)
        days.append(degraded_day(step.destination, step.start_day + offset, step.start_date + dt.timedelta(days=offset)))
    return days
