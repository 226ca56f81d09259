"""Draft itinerary tracking for crash and timeout recovery.

Each session keeps a short list of drafts in the key-value store under
``drafts:<session_id>``. The active draft is written through on every update
and re-saved by a background thread every ``autosave_seconds`` so an
interrupted run leaves a recoverable checkpoint behind.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from nomad.config.settings import DraftSettings
from nomad.domain.constants import DRAFT_SCHEMA_VERSION
from nomad.domain.enums import DRAFT_STAGE_ORDER, TERMINAL_DRAFT_STAGES, DraftStage
from nomad.domain.exceptions import DraftCorrupt
from nomad.domain.models import DraftItinerary, DraftMetadata
from nomad.infrastructure.kv_store import KeyValueStore

_logger = logging.getLogger("nomad.drafts")


def _stage_rank(stage: DraftStage) -> int:
    if stage == DraftStage.ERROR:
        return len(DRAFT_STAGE_ORDER)
    return DRAFT_STAGE_ORDER.index(stage)


def _parse_draft(raw: Any) -> DraftItinerary:
    draft_id = str(raw.get("id", "?")) if isinstance(raw, dict) else "?"
    if not isinstance(raw, dict):
        raise DraftCorrupt(draft_id, "record is not an object")
    if raw.get("schema_version") != DRAFT_SCHEMA_VERSION:
        raise DraftCorrupt(draft_id, f"unsupported schema_version {raw.get('schema_version')!r}")
    try:
        return DraftItinerary.model_validate(raw)
    except ValidationError as exc:
        raise DraftCorrupt(draft_id, str(exc)) from None


class DraftManager:
    def __init__(
        self,
        store: KeyValueStore,
        session_id: str = "default",
        settings: Optional[DraftSettings] = None,
        clock: Callable[[], float] = time.time,
        autosave: bool = True,
    ):
        self._store = store
        self.session_id = session_id
        self._settings = settings or DraftSettings()
        self._clock = clock
        self._autosave_enabled = autosave and self._settings.autosave_seconds > 0
        self._lock = threading.RLock()
        self._active: Optional[DraftItinerary] = None
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def storage_key(self) -> str:
        return f"drafts:{self.session_id}"

    @property
    def current_draft_id(self) -> Optional[str]:
        with self._lock:
            return self._active.id if self._active else None

    @property
    def current_stage(self) -> Optional[DraftStage]:
        with self._lock:
            return self._active.stage if self._active else None

    # ── storage ────────────────────────────

    def _read_all(self) -> list[DraftItinerary]:
        record = self._store.get(self.storage_key)
        if not record:
            return []
        drafts: list[DraftItinerary] = []
        for raw in record.get("drafts") or []:
            try:
                drafts.append(_parse_draft(raw))
            except DraftCorrupt as exc:
                _logger.warning("Skipping unreadable draft in %s: %s", self.storage_key, exc)
        return drafts

    def _prune(self, drafts: list[DraftItinerary]) -> list[DraftItinerary]:
        now = self._clock()
        fresh = [d for d in drafts if now - d.timestamp < self._settings.expiry_seconds]
        fresh.sort(key=lambda d: d.timestamp, reverse=True)
        dropped = len(drafts) - min(len(fresh), self._settings.max_drafts)
        if dropped > 0:
            _logger.debug("Pruned %d drafts from %s", dropped, self.storage_key)
        return fresh[: self._settings.max_drafts]

    def _write_all(self, drafts: list[DraftItinerary]) -> None:
        kept = self._prune(drafts)
        self._store.put(
            self.storage_key,
            {"drafts": [d.model_dump(mode="json") for d in kept]},
            ttl=self._settings.expiry_seconds,
        )

    def _save(self, draft: DraftItinerary) -> None:
        drafts = [d for d in self._read_all() if d.id != draft.id]
        drafts.append(draft)
        self._write_all(drafts)

    # ── lifecycle ────────────────────────────

    def start_draft(self, prompt: str, metadata: Optional[Union[DraftMetadata, dict[str, Any]]] = None) -> str:
        now = self._clock()
        draft = DraftItinerary(
            id=f"draft_{int(now * 1000)}_{uuid.uuid4().hex[:7]}",
            session_id=self.session_id,
            prompt=prompt,
            stage=DraftStage.INITIALIZED,
            metadata=self._merged_metadata(DraftMetadata(), metadata),
            timestamp=now,
            last_updated=now,
        )
        with self._lock:
            self._save(draft)
            self._active = draft
        self._start_autosave()
        _logger.info("New draft started: %s", draft.id)
        return draft.id

    @staticmethod
    def _merged_metadata(
        current: DraftMetadata, update: Optional[Union[DraftMetadata, dict[str, Any]]]
    ) -> DraftMetadata:
        if update is None:
            return current
        values = update.model_dump(exclude_unset=True) if isinstance(update, DraftMetadata) else dict(update)
        return current.model_copy(update={k: v for k, v in values.items() if v is not None})

    def update_draft(
        self,
        stage: DraftStage,
        partial_data: Optional[dict[str, Any]] = None,
        metadata: Optional[Union[DraftMetadata, dict[str, Any]]] = None,
    ) -> bool:
        """Advance the active draft. Returns False when the update was refused."""
        with self._lock:
            draft = self._active
            if draft is None:
                return False
            if draft.stage in TERMINAL_DRAFT_STAGES:
                _logger.debug("Ignoring update to finished draft %s", draft.id)
                return False
            if _stage_rank(stage) < _stage_rank(draft.stage):
                _logger.warning(
                    "Refusing to move draft %s backwards from %s to %s",
                    draft.id,
                    draft.stage.value,
                    stage.value,
                )
                return False
            updated = draft.model_copy(deep=True)
            updated.stage = stage
            updated.last_updated = self._clock()
            if partial_data:
                updated.partial_data = {**updated.partial_data, **partial_data}
            updated.metadata = self._merged_metadata(updated.metadata, metadata)
            self._save(updated)
            self._active = updated
        _logger.debug("Draft %s -> %s", updated.id, stage.value)
        return True

    def complete_draft(self, final_data: dict[str, Any]) -> bool:
        with self._lock:
            draft = self._active
            if draft is None:
                return False
            if not self.update_draft(DraftStage.COMPLETE):
                return False
            completed = self._active.model_copy(update={"final_data": final_data})  # type: ignore[union-attr]
            self._save(completed)
            self._active = None
        self._stop_autosave()
        _logger.info("Draft completed: %s", draft.id)
        return True

    def fail_draft(self, reason: str) -> bool:
        with self._lock:
            draft = self._active
            if draft is None or draft.stage in TERMINAL_DRAFT_STAGES:
                return False
            self.update_draft(
                DraftStage.ERROR,
                metadata={"error": reason, "retry_count": draft.metadata.retry_count + 1},
            )
            self._active = None
        self._stop_autosave()
        _logger.error("Draft failed: %s (%s)", draft.id, reason)
        return True

    def suspend(self) -> Optional[str]:
        """Checkpoint the active draft at its current stage and stop tracking it."""
        with self._lock:
            draft = self._active
            if draft is None:
                return None
            self.flush()
            self._active = None
        self._stop_autosave()
        _logger.info("Draft suspended at %s: %s", draft.stage.value, draft.id)
        return draft.id

    def resume_draft(self, draft_id: str) -> Optional[DraftItinerary]:
        draft = self.get_draft(draft_id)
        if draft is None or draft.stage in TERMINAL_DRAFT_STAGES:
            return None
        with self._lock:
            self._active = draft
        self._start_autosave()
        _logger.info("Draft resumed: %s at %s", draft_id, draft.stage.value)
        return draft

    # ── queries ────────────────────────────

    def get_draft(self, draft_id: str) -> Optional[DraftItinerary]:
        for draft in self.list_drafts():
            if draft.id == draft_id:
                return draft
        return None

    def list_drafts(self) -> list[DraftItinerary]:
        """Unexpired drafts, newest first."""
        with self._lock:
            return self._prune(self._read_all())

    def get_incomplete_drafts(self) -> list[DraftItinerary]:
        now = self._clock()
        return [
            d
            for d in self.list_drafts()
            if d.stage not in TERMINAL_DRAFT_STAGES
            and now - d.last_updated < self._settings.recovery_window_seconds
        ]

    def delete_draft(self, draft_id: str) -> None:
        with self._lock:
            self._write_all([d for d in self._read_all() if d.id != draft_id])
            was_active = self._active is not None and self._active.id == draft_id
            if was_active:
                self._active = None
        if was_active:
            self._stop_autosave()
        _logger.info("Draft deleted: %s", draft_id)

    def clear_all(self) -> None:
        with self._lock:
            self._store.delete(self.storage_key)
            self._active = None
        self._stop_autosave()
        _logger.info("All drafts cleared for %s", self.session_id)

    # ── auto-save ────────────────────────────

    def flush(self) -> bool:
        """Persist the active draft once, refreshing its ``last_updated``."""
        with self._lock:
            draft = self._active
            if draft is None:
                return False
            refreshed = draft.model_copy(update={"last_updated": self._clock()})
            self._save(refreshed)
            self._active = refreshed
        return True

    def _autosave_loop(self, stop: threading.Event) -> None:
        while not stop.wait(self._settings.autosave_seconds):
            try:
                self.flush()
            except Exception as exc:
                _logger.warning("Draft auto-save failed for %s: %s", self.session_id, exc)

    def _start_autosave(self) -> None:
        if not self._autosave_enabled:
            return
        self._stop_autosave()
        stop = threading.Event()
        thread = threading.Thread(
            target=self._autosave_loop,
            args=(stop,),
            name=f"draft-autosave-{self.session_id}",
            daemon=True,
        )
        self._stop_event, self._thread = stop, thread
        thread.start()

    def _stop_autosave(self) -> None:
        stop, thread = self._stop_event, self._thread
        self._stop_event, self._thread = None, None
        if stop is not None:
            stop.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1.0)

    @property
    def autosave_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def close(self) -> None:
        self._stop_autosave()
