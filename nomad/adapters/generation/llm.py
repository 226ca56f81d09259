"""Text generation through the configured chat model."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from nomad.infrastructure.llm_factory import get_llm
from nomad.security.redact import redact_sensitive
from nomad.shared.exceptions import ToolError

_logger = logging.getLogger("nomad.generation")

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def parse_json_object(content: str) -> dict[str, Any]:
    """Decode a model reply into a JSON object, tolerating ``` fences and chatter."""
    content = (content or "").strip()
    if content.startswith("```"):
        lines = content.split("\n")
        content = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
    try:
        value = json.loads(content)
    except json.JSONDecodeError:
        match = _JSON_OBJECT_RE.search(content)
        if match is None:
            raise ToolError("ai", "model reply is not JSON") from None
        try:
            value = json.loads(match.group(0))
        except json.JSONDecodeError:
            raise ToolError("ai", "model reply is not valid JSON") from None
    if not isinstance(value, dict):
        raise ToolError("ai", f"expected a JSON object, got {type(value).__name__}")
    return value


def generate(system_prompt: str, user_prompt: str, schema_hint: dict[str, Any]) -> dict[str, Any]:
    llm = get_llm()
    if llm is None:
        raise ToolError("ai", "no LLM provider configured")

    schema = json.dumps(schema_hint.get("json_schema") or {}, ensure_ascii=False)
    system = f"{system_prompt}\nRespond with a JSON object matching this schema:\n{schema}"
    try:
        resp = llm.invoke([("system", system), ("human", user_prompt)])
    except Exception as exc:
        raise ToolError("ai", f"model call failed: {redact_sensitive(str(exc))}") from None

    content = resp.content if hasattr(resp, "content") else str(resp)
    payload = parse_json_object(content if isinstance(content, str) else str(content))
    days = payload.get("days")
    _logger.debug(
        "Generated %s for %s (%s days requested)",
        len(days) if isinstance(days, list) else 0,
        schema_hint.get("name"),
        schema_hint.get("required_days"),
    )
    return payload
