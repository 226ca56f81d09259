"""Required fields, question wording and example phrasings."""

from __future__ import annotations

from nomad.domain.enums import FIELD_ORDER, IntentField
from nomad.domain.models import TripIntent

# Only these block generation; everything else gets a default.
REQUIRED_FIELDS: tuple[IntentField, ...] = (IntentField.ORIGIN, IntentField.DESTINATION)

FIELD_LABELS: dict[IntentField, str] = {
    IntentField.ORIGIN: "departure city",
    IntentField.DESTINATION: "destination",
    IntentField.DATES: "travel dates",
    IntentField.DURATION: "trip length",
    IntentField.TRAVELERS: "number of travelers",
    IntentField.BUDGET: "budget",
}

FIELD_QUESTIONS: dict[IntentField, str] = {
    IntentField.ORIGIN: "Where will you be travelling from?",
    IntentField.DESTINATION: "Where would you like to go?",
    IntentField.DATES: "When would you like to leave?",
    IntentField.DURATION: "How many days would you like to spend?",
    IntentField.TRAVELERS: "How many people are travelling?",
    IntentField.BUDGET: "What budget are you working with: budget, mid-range or luxury?",
}

FIELD_EXAMPLES: dict[IntentField, str] = {
    IntentField.ORIGIN: "from New York",
    IntentField.DESTINATION: "3 days in Paris, then 2 days in Rome",
    IntentField.DATES: "from March 3 to March 10",
    IntentField.DURATION: "Paris for 4 days and Rome for 3 days",
    IntentField.TRAVELERS: "2 adults and 1 child",
    IntentField.BUDGET: "a mid-range trip",
}


def field_rank(field: IntentField) -> int:
    return FIELD_ORDER.index(field)


def check_missing(intent: TripIntent) -> list[IntentField]:
    """Required fields still missing, most critical first."""
    missing: list[IntentField] = []
    if not (intent.origin or "").strip():
        missing.append(IntentField.ORIGIN)
    if not intent.destinations:
        missing.append(IntentField.DESTINATION)
    return sorted(missing, key=field_rank)


def pick_awaiting_field(missing: list[IntentField], priority: list[IntentField]) -> IntentField | None:
    """The single field to ask about next under the configured priority."""
    for field in priority:
        if field in missing:
            return field
    return missing[0] if missing else None
