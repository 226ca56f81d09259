"""Domain package exports."""

from nomad.domain.constants import ADDRESS_NA
from nomad.domain.enums import (
    ActivityCategory,
    AssemblyStatus,
    BudgetTier,
    CircuitState,
    DialogStatus,
    DraftStage,
    IntentField,
    ProgressStatus,
    ResponseType,
    Severity,
)
from nomad.domain.exceptions import (
    DomainError,
    DraftCorrupt,
    ExtractionAmbiguous,
    GenerationFailed,
    UpstreamUnavailable,
    ValidationFailed,
)
from nomad.domain.models import (
    Activity,
    ConversationState,
    Destination,
    DestinationSegment,
    DraftItinerary,
    DraftMetadata,
    ErrorResponse,
    ItineraryAssembly,
    ItineraryDay,
    ProgressEvent,
    Travelers,
    TripIntent,
    Turn,
    ValidationIssue,
)

__all__ = [
    "ADDRESS_NA",
    "Activity",
    "ActivityCategory",
    "AssemblyStatus",
    "BudgetTier",
    "CircuitState",
    "ConversationState",
    "Destination",
    "DestinationSegment",
    "DialogStatus",
    "DomainError",
    "DraftCorrupt",
    "DraftItinerary",
    "DraftMetadata",
    "DraftStage",
    "ErrorResponse",
    "ExtractionAmbiguous",
    "GenerationFailed",
    "IntentField",
    "ItineraryAssembly",
    "ItineraryDay",
    "ProgressEvent",
    "ProgressStatus",
    "ResponseType",
    "Severity",
    "Travelers",
    "TripIntent",
    "Turn",
    "UpstreamUnavailable",
    "ValidationFailed",
    "ValidationIssue",
]
