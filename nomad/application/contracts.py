"""Application request/response contracts."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from nomad.domain.enums import IntentField, ResponseType
from nomad.domain.models import ConversationState, ValidationIssue


class DialogResponse(BaseModel):
    type: ResponseType
    message: str = ""
    missing_fields: list[IntentField] = Field(default_factory=list)
    awaiting_field: Optional[IntentField] = None
    issues: list[ValidationIssue] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict)
    state: ConversationState
