"""Runtime settings resolved from environment variables.

Every threshold the planner relies on (circuit tolerance, draft retention,
orchestration budgets, "too complex" cut-offs) is configuration; call sites
receive these models instead of reading constants.
"""

from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field

from nomad.domain.enums import IntentField

_TRUTHY = {"1", "true", "yes", "on"}

CIRCUIT_DEPENDENCIES = ("ai", "places", "weather", "currency")


def _is_enabled(value: str | None) -> bool:
    return bool(value and value.strip().lower() in _TRUTHY)


def _is_configured(value: str | None) -> bool:
    return bool(value and value.strip())


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not _is_configured(raw):
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not _is_configured(raw):
        return default
    try:
        return float(str(raw).strip())
    except ValueError:
        return default


class CircuitPolicy(BaseModel):
    threshold: int = 5
    cooldown_seconds: float = 60.0
    reset_window_seconds: float = 60.0


class DraftSettings(BaseModel):
    max_drafts: int = 5
    expiry_seconds: float = 24 * 3600.0
    recovery_window_seconds: float = 3600.0
    autosave_seconds: float = 5.0


class IntentLimits(BaseModel):
    max_destinations: int = 5
    max_total_days: int = 30
    default_destination_days: int = 3
    default_start_lead_days: int = 7


class OrchestratorSettings(BaseModel):
    progressive_threshold_days: int = 7
    max_days_per_call: int = 7
    fanout: int = 2
    max_retries: int = 2
    pacing_seconds: float = 0.5
    call_timeout_seconds: float = 45.0
    budget_seconds: float = 120.0
    verify_addresses: bool = True
    home_currency: str = "USD"


class DialogSettings(BaseModel):
    question_priority: list[IntentField] = Field(
        default_factory=lambda: [IntentField.DESTINATION, IntentField.ORIGIN]
    )


class StoreSettings(BaseModel):
    backend: str = "memory"
    ttl_seconds: float = 1800.0
    max_entries: int = 1000
    sqlite_path: str = "data/nomad.sqlite3"
    redis_url: Optional[str] = None


class Settings(BaseModel):
    circuits: dict[str, CircuitPolicy] = Field(
        default_factory=lambda: {name: CircuitPolicy() for name in CIRCUIT_DEPENDENCIES}
    )
    drafts: DraftSettings = Field(default_factory=DraftSettings)
    limits: IntentLimits = Field(default_factory=IntentLimits)
    orchestrator: OrchestratorSettings = Field(default_factory=OrchestratorSettings)
    dialog: DialogSettings = Field(default_factory=DialogSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    strict_external_data: bool = False


def _load_circuit_policy(name: str) -> CircuitPolicy:
    prefix = f"CIRCUIT_{name.upper()}_"
    default = CircuitPolicy()
    return CircuitPolicy(
        threshold=_env_int(prefix + "THRESHOLD", _env_int("CIRCUIT_THRESHOLD", default.threshold)),
        cooldown_seconds=_env_float(
            prefix + "COOLDOWN_SECONDS", _env_float("CIRCUIT_COOLDOWN_SECONDS", default.cooldown_seconds)
        ),
        reset_window_seconds=_env_float(
            prefix + "RESET_SECONDS", _env_float("CIRCUIT_RESET_SECONDS", default.reset_window_seconds)
        ),
    )


def _load_question_priority() -> list[IntentField]:
    raw = os.getenv("DIALOG_QUESTION_PRIORITY", "")
    if not raw.strip():
        return DialogSettings().question_priority
    fields: list[IntentField] = []
    for item in raw.split(","):
        token = item.strip().lower()
        try:
            field = IntentField(token)
        except ValueError:
            continue
        if field in (IntentField.ORIGIN, IntentField.DESTINATION) and field not in fields:
            fields.append(field)
    for required in (IntentField.DESTINATION, IntentField.ORIGIN):
        if required not in fields:
            fields.append(required)
    return fields


def load_settings() -> Settings:
    """Build a fresh ``Settings`` snapshot from the current environment."""
    drafts = DraftSettings()
    limits = IntentLimits()
    orch = OrchestratorSettings()
    store = StoreSettings()

    backend = str(os.getenv("NOMAD_STORE") or "").strip().lower()
    redis_url = os.getenv("REDIS_URL")
    if backend not in {"memory", "sqlite", "redis"}:
        backend = "redis" if _is_configured(redis_url) else "memory"

    return Settings(
        circuits={name: _load_circuit_policy(name) for name in CIRCUIT_DEPENDENCIES},
        drafts=DraftSettings(
            max_drafts=_env_int("DRAFT_MAX_COUNT", drafts.max_drafts),
            expiry_seconds=_env_float("DRAFT_EXPIRY_SECONDS", drafts.expiry_seconds),
            recovery_window_seconds=_env_float("DRAFT_RECOVERY_SECONDS", drafts.recovery_window_seconds),
            autosave_seconds=_env_float("DRAFT_AUTOSAVE_SECONDS", drafts.autosave_seconds),
        ),
        limits=IntentLimits(
            max_destinations=_env_int("TRIP_MAX_DESTINATIONS", limits.max_destinations),
            max_total_days=_env_int("TRIP_MAX_TOTAL_DAYS", limits.max_total_days),
            default_destination_days=_env_int("TRIP_DEFAULT_DESTINATION_DAYS", limits.default_destination_days),
            default_start_lead_days=_env_int("TRIP_DEFAULT_START_LEAD_DAYS", limits.default_start_lead_days),
        ),
        orchestrator=OrchestratorSettings(
            progressive_threshold_days=_env_int(
                "PROGRESSIVE_THRESHOLD_DAYS", orch.progressive_threshold_days
            ),
            max_days_per_call=_env_int("GENERATION_MAX_DAYS_PER_CALL", orch.max_days_per_call),
            fanout=max(1, _env_int("GENERATION_FANOUT", orch.fanout)),
            max_retries=max(0, _env_int("GENERATION_MAX_RETRIES", orch.max_retries)),
            pacing_seconds=_env_float("GENERATION_PACING_SECONDS", orch.pacing_seconds),
            call_timeout_seconds=_env_float("GENERATION_CALL_TIMEOUT_SECONDS", orch.call_timeout_seconds),
            budget_seconds=_env_float("GENERATION_BUDGET_SECONDS", orch.budget_seconds),
            verify_addresses=not _is_configured(os.getenv("VERIFY_ADDRESSES"))
            or _is_enabled(os.getenv("VERIFY_ADDRESSES")),
            home_currency=str(os.getenv("HOME_CURRENCY") or orch.home_currency).strip().upper(),
        ),
        dialog=DialogSettings(question_priority=_load_question_priority()),
        store=StoreSettings(
            backend=backend,
            ttl_seconds=_env_float("SESSION_TTL_SECONDS", store.ttl_seconds),
            max_entries=_env_int("SESSION_MAX_SESSIONS", store.max_entries),
            sqlite_path=str(os.getenv("NOMAD_SQLITE_PATH") or store.sqlite_path),
            redis_url=redis_url if _is_configured(redis_url) else None,
        ),
        strict_external_data=_is_enabled(os.getenv("STRICT_EXTERNAL_DATA")),
    )


def resolve_llm_provider() -> str:
    if _is_configured(os.getenv("DASHSCOPE_API_KEY")):
        return "dashscope"
    if _is_configured(os.getenv("OPENAI_API_KEY")):
        return "openai"
    if _is_configured(os.getenv("LLM_API_KEY")):
        return "llm_compatible"
    return "template"


def strict_external_data_enabled() -> bool:
    return _is_enabled(os.getenv("STRICT_EXTERNAL_DATA"))
