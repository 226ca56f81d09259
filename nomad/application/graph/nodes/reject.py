"""Reject node: explain why the request cannot be planned as stated."""

from __future__ import annotations

from typing import Any

from nomad.domain.models import ValidationIssue
from nomad.parsing.intent import blocking_issues


def reject_node(state: dict[str, Any]) -> dict[str, Any]:
    issues = blocking_issues([ValidationIssue.model_validate(raw) for raw in state.get("issues", [])])
    lines = ["I can't plan this trip as described yet."]
    for issue in issues:
        line = issue.message
        if issue.suggestions:
            line += " " + " ".join(issue.suggestions)
        lines.append(f"- {line}")
    return {
        "awaiting_field": issues[0].field.value if issues else None,
        "response_type": "error",
        "message": "\n".join(lines),
    }
