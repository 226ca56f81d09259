"""Structured run events as JSON lines.

Every line carries ``event``, ``trace_id`` and ``ts``; extra fields bound with
``bind()`` are merged into each line. Lines pass through ``redact_sensitive``
before they are written.
"""

from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from typing import IO, Any, Callable, Optional

from nomad.security.redact import redact_sensitive

_fallback = logging.getLogger("nomad.events")


class StructuredLogger:
    """JSON-line logger for orchestration runs, keyed by ``trace_id``."""

    def __init__(
        self,
        trace_id: Optional[str] = None,
        output: Optional[IO[str]] = None,
        clock: Callable[[], float] = time.time,
        **fields: Any,
    ):
        self.trace_id = trace_id or uuid.uuid4().hex[:8]
        self._output = output
        self._clock = clock
        self._fields = fields
        self._started: dict[str, float] = {}

    def bind(self, **fields: Any) -> "StructuredLogger":
        """Logger sharing this trace id whose lines also carry ``fields``."""
        return StructuredLogger(self.trace_id, self._output, self._clock, **{**self._fields, **fields})

    def _emit(self, event: str, **payload: Any) -> None:
        record = {"event": event, "trace_id": self.trace_id, "ts": round(self._clock(), 3), **self._fields, **payload}
        line = redact_sensitive(json.dumps(record, ensure_ascii=False, default=str))
        stream = self._output or sys.stderr
        try:
            stream.write(line + "\n")
            stream.flush()
        except (OSError, ValueError) as exc:
            # closed or broken stream
            _fallback.warning("event %s dropped: %s", event, exc)

    def node_start(self, node_name: str, **extra: Any) -> None:
        self._started[node_name] = self._clock()
        self._emit("node_start", node=node_name, **extra)

    def node_end(self, node_name: str, *, issues_count: int = 0, **extra: Any) -> None:
        began = self._started.pop(node_name, None)
        elapsed = None if began is None else round((self._clock() - began) * 1000, 1)
        self._emit("node_end", node=node_name, duration_ms=elapsed, issues_count=issues_count, **extra)

    def tool_call(self, tool_name: str, **extra: Any) -> None:
        self._emit("tool_call", tool=tool_name, **extra)

    def warning(self, node_name: str, message: str, **extra: Any) -> None:
        self._emit("warning", node=node_name, message=message, **extra)

    def error(self, node_name: str, error: str, **extra: Any) -> None:
        self._emit("error", node=node_name, error=error, **extra)

    def summary(self, **extra: Any) -> None:
        self._emit("summary", **extra)


_current: Optional[StructuredLogger] = None


def get_logger(trace_id: Optional[str] = None) -> StructuredLogger:
    """Process-wide logger; a new ``trace_id`` starts a fresh one."""
    global _current
    if _current is None or (trace_id and trace_id != _current.trace_id):
        _current = StructuredLogger(trace_id=trace_id)
    return _current
