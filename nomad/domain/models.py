"""Pydantic domain models."""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from nomad.domain.constants import (
    ADDRESS_NA,
    CONVERSATION_SCHEMA_VERSION,
    DEFAULT_ADULTS,
    DEFAULT_CHILDREN,
    DRAFT_SCHEMA_VERSION,
)
from nomad.domain.enums import (
    ActivityCategory,
    AssemblyStatus,
    BudgetTier,
    DialogStatus,
    DraftStage,
    IntentField,
    ProgressStatus,
    Severity,
)


class Travelers(BaseModel):
    adults: int = DEFAULT_ADULTS
    children: int = DEFAULT_CHILDREN

    @property
    def total(self) -> int:
        return self.adults + self.children


class Destination(BaseModel):
    name: str
    requested_duration_days: Optional[int] = None
    start_offset_days: Optional[int] = None

    def key(self) -> str:
        return self.name.strip().lower()


class TripIntent(BaseModel):
    origin: Optional[str] = None
    return_to: Optional[str] = None
    destinations: list[Destination] = Field(default_factory=list)
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    requested_total_days: Optional[int] = None
    travelers: Travelers = Field(default_factory=Travelers)
    budget_tier: Optional[BudgetTier] = None
    budget_amount: Optional[float] = None
    interests: list[str] = Field(default_factory=list)
    inconsistent: bool = False

    @property
    def total_duration_days(self) -> Optional[int]:
        durations = [d.requested_duration_days for d in self.destinations]
        if durations and all(d is not None for d in durations):
            return sum(durations)  # type: ignore[arg-type]
        if self.requested_total_days is not None:
            return self.requested_total_days
        if self.start_date and self.end_date and self.end_date >= self.start_date:
            return (self.end_date - self.start_date).days + 1
        return None

    def destination_names(self) -> list[str]:
        return [d.name for d in self.destinations]

    def has_required_fields(self) -> bool:
        return bool(self.origin) and bool(self.destinations)


class ValidationIssue(BaseModel):
    code: str
    field: IntentField
    severity: Severity = Severity.MEDIUM
    message: str = ""
    suggestions: list[str] = Field(default_factory=list)


class Turn(BaseModel):
    user_text: str
    system_summary: str = ""


class ConversationState(BaseModel):
    schema_version: int = CONVERSATION_SCHEMA_VERSION
    session_id: str = ""
    status: DialogStatus = DialogStatus.GATHERING
    partial_intent: TripIntent = Field(default_factory=TripIntent)
    turn_history: list[Turn] = Field(default_factory=list)
    missing_fields: list[IntentField] = Field(default_factory=list)
    awaiting_field: Optional[IntentField] = None
    created_at: float = 0.0
    updated_at: float = 0.0


class DraftMetadata(BaseModel):
    origin: Optional[str] = None
    destinations: list[str] = Field(default_factory=list)
    total_days: Optional[int] = None
    error: Optional[str] = None
    retry_count: int = 0


class DraftItinerary(BaseModel):
    schema_version: int = DRAFT_SCHEMA_VERSION
    id: str
    session_id: str = ""
    prompt: str = ""
    stage: DraftStage = DraftStage.INITIALIZED
    partial_data: dict[str, Any] = Field(default_factory=dict)
    final_data: Optional[dict[str, Any]] = None
    metadata: DraftMetadata = Field(default_factory=DraftMetadata)
    timestamp: float
    last_updated: float

    @model_validator(mode="after")
    def _clamp_last_updated(self) -> "DraftItinerary":
        if self.last_updated < self.timestamp:
            self.last_updated = self.timestamp
        return self


class Activity(BaseModel):
    time: str = ""
    description: str
    category: ActivityCategory = ActivityCategory.ACTIVITY
    venue_name: Optional[str] = None
    address: str = ADDRESS_NA

    @field_validator("address", mode="before")
    @classmethod
    def _blank_address_is_na(cls, value: Any) -> str:
        text = str(value or "").strip()
        return text or ADDRESS_NA


class ItineraryDay(BaseModel):
    day_number: int = 1
    date: Optional[dt.date] = None
    destination_name: str
    title: str = ""
    activities: list[Activity] = Field(default_factory=list)
    weather: Optional[str] = None
    degraded: bool = False


class DestinationSegment(BaseModel):
    name: str
    start_day: int
    end_day: int
    degraded: bool = False
    currency: Optional[str] = None
    exchange_rate: Optional[float] = None

    @property
    def day_count(self) -> int:
        return self.end_day - self.start_day + 1


class ItineraryAssembly(BaseModel):
    origin: Optional[str] = None
    return_to: Optional[str] = None
    days: list[ItineraryDay] = Field(default_factory=list)
    segments: list[DestinationSegment] = Field(default_factory=list)
    status: AssemblyStatus = AssemblyStatus.COMPLETE
    draft_id: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)

    @property
    def total_days(self) -> int:
        return len(self.days)


class ProgressEvent(BaseModel):
    status: ProgressStatus
    city: Optional[str] = None
    days_generated: int = 0
    progress: int = 0
    data: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: bool = True
    code: str = "UNKNOWN"
    message: str = ""
    details: list[str] = Field(default_factory=list)
