"""Dialog controller: one question at a time until the trip can be planned.

``process_message`` runs one turn through the compiled LangGraph turn graph
and returns a ``DialogResponse`` together with the next ``ConversationState``.
The input state is never mutated. Unexpected errors inside the graph are
caught here and answered with a single clarifying question, so a turn never
raises to the caller.
"""

from __future__ import annotations

import datetime as dt
import logging
import time
import uuid
from typing import Any, Callable, Optional

from pydantic import ValidationError

from nomad.application.contracts import DialogResponse
from nomad.application.graph.workflow import compile_graph
from nomad.config.settings import Settings
from nomad.domain.constants import CONVERSATION_SCHEMA_VERSION
from nomad.domain.enums import DialogStatus, IntentField, ResponseType
from nomad.domain.models import ConversationState, TripIntent, Turn, ValidationIssue
from nomad.infrastructure.kv_store import KeyValueStore
from nomad.parsing.requirements import FIELD_QUESTIONS, check_missing, pick_awaiting_field

_logger = logging.getLogger("nomad.dialog")

_STATUS_BY_RESPONSE = {
    ResponseType.QUESTION: DialogStatus.GATHERING,
    ResponseType.READY: DialogStatus.READY,
    ResponseType.ERROR: DialogStatus.FAILED,
}


class DialogController:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        graph: Any = None,
        clock: Callable[[], float] = time.time,
    ):
        self._settings = settings or Settings()
        self._graph = graph if graph is not None else compile_graph(self._settings)
        self._clock = clock

    def new_state(self, session_id: Optional[str] = None, now: Optional[float] = None) -> ConversationState:
        ts = self._clock() if now is None else now
        return ConversationState(session_id=session_id or uuid.uuid4().hex[:12], created_at=ts, updated_at=ts)

    def process_message(
        self,
        text: str,
        state: Optional[ConversationState] = None,
        now: Optional[dt.datetime] = None,
    ) -> DialogResponse:
        now = now or dt.datetime.fromtimestamp(self._clock())
        working = state.model_copy(deep=True) if state is not None else self.new_state(now=now.timestamp())
        if not working.created_at:
            working.created_at = now.timestamp()

        try:
            result = self._graph.invoke({
                "text": text,
                "today": now.date(),
                "hint": working.awaiting_field.value if working.awaiting_field else None,
                "intent": working.partial_intent.model_dump(mode="json"),
            })
            return self._respond(working, text, now, result)
        except Exception:
            _logger.exception("Dialog turn failed; falling back to a single question")
            return self._fallback(working, text, now)

    def _respond(
        self, working: ConversationState, text: str, now: dt.datetime, result: dict[str, Any]
    ) -> DialogResponse:
        response_type = ResponseType(result.get("response_type", ResponseType.QUESTION.value))
        intent = TripIntent.model_validate(result.get("intent") or {})
        issues = [ValidationIssue.model_validate(raw) for raw in result.get("issues", [])]
        missing = [IntentField(f) for f in result.get("missing_fields", [])]
        awaiting = IntentField(result["awaiting_field"]) if result.get("awaiting_field") else None
        message = str(result.get("message") or "")

        working.partial_intent = intent
        working.missing_fields = missing
        working.awaiting_field = awaiting if response_type == ResponseType.QUESTION else None
        working.status = _STATUS_BY_RESPONSE[response_type]
        working.updated_at = now.timestamp()
        working.turn_history.append(Turn(user_text=text, system_summary=message))

        context: dict[str, Any] = {"matched_rules": list(result.get("matched_rules", []))}
        if response_type == ResponseType.READY:
            context["intent"] = result.get("resolved_intent")
            context["applied_defaults"] = list(result.get("applied_defaults", []))

        return DialogResponse(
            type=response_type,
            message=message,
            missing_fields=missing,
            awaiting_field=working.awaiting_field,
            issues=issues,
            context=context,
            state=working,
        )

    def _fallback(self, working: ConversationState, text: str, now: dt.datetime) -> DialogResponse:
        priority = self._settings.dialog.question_priority
        missing = check_missing(working.partial_intent) or [priority[0]]
        awaiting = pick_awaiting_field(missing, priority) or IntentField.DESTINATION
        message = FIELD_QUESTIONS[awaiting]

        working.missing_fields = missing
        working.awaiting_field = awaiting
        working.status = DialogStatus.GATHERING
        working.updated_at = now.timestamp()
        working.turn_history.append(Turn(user_text=text, system_summary=message))
        return DialogResponse(
            type=ResponseType.QUESTION,
            message=message,
            missing_fields=missing,
            awaiting_field=awaiting,
            context={"fallback": True},
            state=working,
        )

    # ── transitions driven by generation ────────────────────────────

    def _with_status(self, state: ConversationState, status: DialogStatus, summary: str = "") -> ConversationState:
        updated = state.model_copy(deep=True)
        updated.status = status
        updated.awaiting_field = None
        updated.updated_at = self._clock()
        if summary and updated.turn_history:
            updated.turn_history[-1].system_summary = summary
        return updated

    def mark_generating(self, state: ConversationState) -> ConversationState:
        if state.status == DialogStatus.GENERATING:
            return state.model_copy(deep=True)
        return self._with_status(state, DialogStatus.GENERATING)

    def mark_answered(self, state: ConversationState, summary: str = "") -> ConversationState:
        return self._with_status(state, DialogStatus.ANSWERED, summary)

    def mark_failed(self, state: ConversationState, reason: str = "") -> ConversationState:
        return self._with_status(state, DialogStatus.FAILED, reason)


class ConversationRepository:
    """Per-session conversation state on top of a key-value store."""

    def __init__(self, store: KeyValueStore, ttl: Optional[float] = None):
        self._store = store
        self._ttl = ttl

    @staticmethod
    def _key(session_id: str) -> str:
        return f"conversation:{session_id}"

    def load(self, session_id: str) -> Optional[ConversationState]:
        raw = self._store.get(self._key(session_id))
        if raw is None:
            return None
        if raw.get("schema_version") != CONVERSATION_SCHEMA_VERSION:
            _logger.warning("Discarding conversation %s with schema_version %r", session_id, raw.get("schema_version"))
            return None
        try:
            return ConversationState.model_validate(raw)
        except ValidationError as exc:
            _logger.warning("Discarding unreadable conversation %s: %s", session_id, exc)
            return None

    def save(self, state: ConversationState) -> None:
        self._store.put(self._key(state.session_id), state.model_dump(mode="json"), ttl=self._ttl)

    def delete(self, session_id: str) -> None:
        self._store.delete(self._key(session_id))
