"""Canonical graph state type for one dialog turn."""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional, TypedDict


class GraphState(TypedDict, total=False):
    """Single source of truth for the LangGraph turn state schema."""

    text: str
    today: dt.date
    hint: Optional[str]
    intent: dict[str, Any]
    issues: list[dict[str, Any]]
    missing_fields: list[str]
    matched_rules: list[str]
    awaiting_field: Optional[str]
    resolved_intent: Optional[dict[str, Any]]
    applied_defaults: list[str]
    response_type: str
    message: str


__all__ = ["GraphState"]
