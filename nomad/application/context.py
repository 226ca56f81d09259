"""Application context for dependency injection."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from nomad.adapters.tool_factory import ToolSet, build_tools
from nomad.application.dialog import ConversationRepository, DialogController
from nomad.application.orchestrator import ProgressiveOrchestrator
from nomad.config.settings import Settings, load_settings
from nomad.drafts.manager import DraftManager
from nomad.infrastructure.kv_store import KeyValueStore, build_store
from nomad.infrastructure.logging import StructuredLogger, get_logger
from nomad.resilience.circuit import CircuitRegistry


@dataclass
class AppContext:
    settings: Settings
    store: KeyValueStore
    circuits: CircuitRegistry
    tools: ToolSet
    conversations: ConversationRepository
    clock: Callable[[], float] = time.time
    _dialog: Optional[DialogController] = field(default=None, init=False, repr=False)
    _dialog_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def get_dialog(self) -> DialogController:
        if self._dialog is None:
            with self._dialog_lock:
                if self._dialog is None:
                    self._dialog = DialogController(self.settings, clock=self.clock)
        return self._dialog

    def draft_manager(self, session_id: str, autosave: bool = True) -> DraftManager:
        return DraftManager(self.store, session_id, self.settings.drafts, clock=self.clock, autosave=autosave)

    def orchestrator(self, logger: Optional[StructuredLogger] = None, **overrides: Any) -> ProgressiveOrchestrator:
        return ProgressiveOrchestrator(
            generator=overrides.get("generator", self.tools.generator),
            circuits=self.circuits,
            places=overrides.get("places", self.tools.places),
            weather=overrides.get("weather", self.tools.weather),
            currency=overrides.get("currency", self.tools.currency),
            settings=self.settings.orchestrator,
            limits=self.settings.limits,
            logger=logger or get_logger(),
        )


def make_app_context(settings: Optional[Settings] = None, tools: Optional[ToolSet] = None) -> AppContext:
    settings = settings or load_settings()
    store = build_store(settings.store)
    return AppContext(
        settings=settings,
        store=store,
        circuits=CircuitRegistry(settings.circuits),
        tools=tools or build_tools(),
        conversations=ConversationRepository(store, ttl=settings.store.ttl_seconds),
    )
