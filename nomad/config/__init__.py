"""Runtime configuration helpers."""

from nomad.config.settings import (
    CircuitPolicy,
    DialogSettings,
    DraftSettings,
    IntentLimits,
    OrchestratorSettings,
    Settings,
    StoreSettings,
    load_settings,
    resolve_llm_provider,
)

__all__ = [
    "CircuitPolicy",
    "DialogSettings",
    "DraftSettings",
    "IntentLimits",
    "OrchestratorSettings",
    "Settings",
    "StoreSettings",
    "load_settings",
    "resolve_llm_provider",
]
