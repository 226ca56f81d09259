"""Domain enums."""

from enum import Enum


class BudgetTier(str, Enum):
    BUDGET = "budget"
    MEDIUM = "medium"
    LUXURY = "luxury"


class IntentField(str, Enum):
    ORIGIN = "origin"
    DESTINATION = "destination"
    DATES = "dates"
    DURATION = "duration"
    TRAVELERS = "travelers"
    BUDGET = "budget"


# Most critical first. Validation output is always sorted by this order.
FIELD_ORDER: tuple[IntentField, ...] = (
    IntentField.ORIGIN,
    IntentField.DESTINATION,
    IntentField.DATES,
    IntentField.DURATION,
    IntentField.TRAVELERS,
    IntentField.BUDGET,
)


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DialogStatus(str, Enum):
    GATHERING = "gathering"
    READY = "ready"
    GENERATING = "generating"
    ANSWERED = "answered"
    FAILED = "failed"


class ResponseType(str, Enum):
    QUESTION = "question"
    READY = "ready"
    ERROR = "error"


class DraftStage(str, Enum):
    INITIALIZED = "initialized"
    VALIDATING = "validating"
    PARSING = "parsing"
    GENERATING = "generating"
    ENHANCING = "enhancing"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    ERROR = "error"


DRAFT_STAGE_ORDER: tuple[DraftStage, ...] = (
    DraftStage.INITIALIZED,
    DraftStage.VALIDATING,
    DraftStage.PARSING,
    DraftStage.GENERATING,
    DraftStage.ENHANCING,
    DraftStage.FINALIZING,
    DraftStage.COMPLETE,
)

TERMINAL_DRAFT_STAGES = frozenset({DraftStage.COMPLETE, DraftStage.ERROR})


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class ActivityCategory(str, Enum):
    SIGHTSEEING = "sightseeing"
    FOOD = "food"
    CULTURE = "culture"
    NATURE = "nature"
    SHOPPING = "shopping"
    NIGHTLIFE = "nightlife"
    TRANSPORT = "transport"
    ACCOMMODATION = "accommodation"
    FREE_TIME = "free_time"
    ACTIVITY = "activity"


class AssemblyStatus(str, Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


class ProgressStatus(str, Enum):
    STARTED = "started"
    CITY_COMPLETE = "city_complete"
    CITY_FAILED = "city_failed"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
    FAILED = "failed"
