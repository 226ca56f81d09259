"""Progressive itinerary orchestration.

Destinations are generated concurrently (bounded by ``fanout``) but always
delivered in trip order. A destination whose generation fails is replaced by
placeholder days so the rest of the trip still arrives; only a first
destination with no content at all aborts the run. Cancellation and the
overall time budget both return the prefix delivered so far.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import inspect
import logging
import time
import weakref
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, TypeVar

from nomad.application.generation import (
    SYSTEM_PROMPT,
    GenerationStep,
    build_schema_hint,
    build_user_prompt,
    degraded_days,
    normalize_days,
    plan_steps,
    use_progressive,
)
from nomad.config.settings import IntentLimits, OrchestratorSettings
from nomad.domain.constants import ADDRESS_NA
from nomad.domain.enums import AssemblyStatus, DraftStage, IntentField, ProgressStatus
from nomad.domain.exceptions import GenerationFailed, ValidationFailed
from nomad.domain.models import (
    DestinationSegment,
    ItineraryAssembly,
    ItineraryDay,
    ProgressEvent,
    TripIntent,
    ValidationIssue,
)
from nomad.drafts.manager import DraftManager
from nomad.infrastructure.cache import MemoryCache, city_cache, city_cache_key, make_cache_key, place_cache
from nomad.infrastructure.logging import StructuredLogger, get_logger
from nomad.parsing.intent import resolve_intent, validate_intent
from nomad.resilience.circuit import CircuitRegistry
from nomad.tools.interfaces import (
    CurrencyLookup,
    PlaceLookup,
    ProgressSink,
    TextGenerator,
    WeatherLookup,
)

_logger = logging.getLogger("nomad.orchestrator")

T = TypeVar("T")


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...


@dataclass
class DestinationOutcome:
    index: int
    name: str
    days: list[ItineraryDay] = field(default_factory=list)
    degraded: bool = False
    failed: bool = False
    skipped: bool = False
    error: str = ""


class ProgressiveOrchestrator:
    def __init__(
        self,
        generator: TextGenerator,
        circuits: CircuitRegistry,
        places: Optional[PlaceLookup] = None,
        weather: Optional[WeatherLookup] = None,
        currency: Optional[CurrencyLookup] = None,
        settings: Optional[OrchestratorSettings] = None,
        limits: Optional[IntentLimits] = None,
        logger: Optional[StructuredLogger] = None,
        cache: Optional[MemoryCache] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._generator = generator
        self._circuits = circuits
        self._places = places
        self._weather = weather
        self._currency = currency
        self._settings = settings or OrchestratorSettings()
        self._limits = limits or IntentLimits()
        self._log = logger or get_logger()
        self._cache = cache if cache is not None else city_cache
        self._clock = clock
        # Destination tasks this orchestrator stopped itself; their interrupted
        # calls are not dependency failures.
        self._withdrawn: "weakref.WeakSet[asyncio.Task[Any]]" = weakref.WeakSet()

    # ── public entry ────────────────────────────

    async def generate(
        self,
        intent: TripIntent,
        *,
        today: dt.date,
        draft: Optional[DraftManager] = None,
        on_progress: Optional[ProgressSink] = None,
        cancel_event: Optional[CancelSignal] = None,
        prompt: str = "",
    ) -> ItineraryAssembly:
        self._log.node_start("orchestrate")
        deadline = self._clock() + self._settings.budget_seconds

        issues = validate_intent(intent, self._limits)
        if not intent.destinations and not any(i.code == "missing_field" for i in issues):
            issues.append(ValidationIssue(
                code="missing_field", field=IntentField.DESTINATION, message="No destinations to plan"
            ))
        if issues:
            self._log.node_end("orchestrate", issues_count=len(issues), status="rejected")
            raise ValidationFailed(issues)

        frozen, applied = resolve_intent(intent, today, self._limits)
        total_days = frozen.total_duration_days or 0
        progressive = use_progressive(frozen, self._settings)
        plan = plan_steps(frozen, self._settings, progressive)
        names = frozen.destination_names()

        if draft is not None:
            if draft.current_draft_id is None:
                draft.start_draft(prompt)
            draft.update_draft(DraftStage.VALIDATING)
            draft.update_draft(
                DraftStage.PARSING,
                metadata={"origin": frozen.origin, "destinations": names, "total_days": total_days},
            )

        self._log.summary(
            strategy="progressive" if progressive else "single",
            destinations=names,
            total_days=total_days,
            calls=sum(len(steps) for steps in plan),
            defaults=applied,
        )
        await self._emit(on_progress, ProgressEvent(
            status=ProgressStatus.STARTED,
            progress=0,
            data={"destinations": names, "total_days": total_days, "progressive": progressive},
        ))

        semaphore = asyncio.Semaphore(max(1, self._settings.fanout))
        tasks = [
            asyncio.create_task(self._run_destination(i, name, plan[i], frozen, semaphore, cancel_event, deadline))
            for i, name in enumerate(names)
        ]

        delivered: list[DestinationOutcome] = []
        status: Optional[AssemblyStatus] = None
        try:
            for index, task in enumerate(tasks):
                remaining = deadline - self._clock()
                try:
                    outcome = await asyncio.wait_for(asyncio.shield(task), timeout=max(remaining, 0.0))
                except asyncio.TimeoutError:
                    status = AssemblyStatus.TIMED_OUT
                    break
                if outcome.skipped:
                    status = AssemblyStatus.CANCELLED if _is_set(cancel_event) else AssemblyStatus.TIMED_OUT
                    break
                if outcome.failed and index == 0:
                    await self._abort(tasks, withdraw=True)
                    reason = outcome.error or "no content generated"
                    draft_id = draft.current_draft_id if draft is not None else None
                    if draft is not None:
                        draft.fail_draft(reason)
                    self._log.error("orchestrate", f"first destination failed: {reason}", destination=outcome.name)
                    await self._emit(on_progress, ProgressEvent(
                        status=ProgressStatus.FAILED,
                        city=outcome.name,
                        progress=0,
                        data={"error": reason},
                    ))
                    self._log.node_end("orchestrate", issues_count=1, status="failed")
                    raise GenerationFailed(outcome.name, reason, draft_id=draft_id)
                delivered.append(outcome)
                await self._deliver(outcome, delivered, len(names), frozen, today, draft, on_progress)
        finally:
            pending = [t for t in tasks if not t.done()]
            if pending and status == AssemblyStatus.CANCELLED:
                # In-flight destinations finish; their results are not delivered.
                await asyncio.gather(*pending, return_exceptions=True)
            elif pending:
                await self._abort(pending, withdraw=status == AssemblyStatus.TIMED_OUT)

        assembly = self._assemble(frozen, delivered, status, today)
        assembly.warnings.extend(f"default applied: {name}" for name in applied)

        if status in (AssemblyStatus.CANCELLED, AssemblyStatus.TIMED_OUT):
            if draft is not None:
                assembly.draft_id = draft.suspend()
            event_status = ProgressStatus.CANCELLED if status == AssemblyStatus.CANCELLED else ProgressStatus.TIMED_OUT
            self._log.warning("orchestrate", f"run ended early: {status.value}", days=assembly.total_days)
            await self._emit(on_progress, ProgressEvent(
                status=event_status,
                days_generated=assembly.total_days,
                progress=_progress(len(delivered), len(names)),
                data={"itinerary": assembly.model_dump(mode="json")},
            ))
            self._log.node_end("orchestrate", status=status.value, days=assembly.total_days)
            return assembly

        if draft is not None:
            draft.update_draft(DraftStage.ENHANCING)
        await self._enhance(assembly, frozen)
        if draft is not None:
            draft.update_draft(DraftStage.FINALIZING)
            assembly.draft_id = draft.current_draft_id
            draft.complete_draft(assembly.model_dump(mode="json"))

        await self._emit(on_progress, ProgressEvent(
            status=ProgressStatus.COMPLETE,
            days_generated=assembly.total_days,
            progress=100,
            data={"itinerary": assembly.model_dump(mode="json")},
        ))
        self._log.node_end(
            "orchestrate",
            issues_count=sum(1 for s in assembly.segments if s.degraded),
            status=assembly.status.value,
            days=assembly.total_days,
        )
        return assembly

    # ── per destination ────────────────────────────

    async def _run_destination(
        self,
        index: int,
        name: str,
        steps: list[GenerationStep],
        intent: TripIntent,
        semaphore: asyncio.Semaphore,
        cancel_event: Optional[CancelSignal],
        deadline: float,
    ) -> DestinationOutcome:
        outcome = DestinationOutcome(index=index, name=name)
        for step in steps:
            async with semaphore:
                if _is_set(cancel_event) or self._clock() >= deadline:
                    outcome.skipped = True
                    return outcome
                generated = await self._generate_step(step, intent)
            if generated is None:
                outcome.degraded = True
                outcome.days.extend(degraded_days(step))
            else:
                outcome.days.extend(generated)
        outcome.failed = all(day.degraded for day in outcome.days)
        if outcome.degraded and not outcome.error:
            outcome.error = f"generation unavailable for {name}"
        if not outcome.failed:
            await self._verify_addresses(outcome.days)
        return outcome

    async def _generate_step(self, step: GenerationStep, intent: TripIntent) -> Optional[list[ItineraryDay]]:
        budget = intent.budget_tier.value if intent.budget_tier else None
        key = city_cache_key(step.destination, step.days, step.start_day, intent.interests, budget)
        cached = self._cache.get(key)
        if cached is not None:
            self._log.tool_call("ai", step=step.name, cache_hit=True)
            return [ItineraryDay.model_validate(day) for day in cached]

        circuit = self._circuits.get("ai")
        user_prompt = build_user_prompt(step, intent)
        hint = build_schema_hint(step, intent)
        attempts = 1 + max(0, self._settings.max_retries)
        for attempt in range(1, attempts + 1):
            if attempt > 1:
                await asyncio.sleep(self._settings.pacing_seconds)
            if not circuit.can_call():
                self._log.warning("generate", f"ai circuit open, degrading {step.name}")
                return None
            self._log.tool_call("ai", step=step.name, attempt=attempt)
            try:
                payload = await asyncio.wait_for(
                    asyncio.to_thread(self._generator.generate, SYSTEM_PROMPT, user_prompt, hint),
                    timeout=self._settings.call_timeout_seconds,
                )
                days = normalize_days(payload, step)
            except asyncio.CancelledError:
                if asyncio.current_task() not in self._withdrawn:
                    circuit.fail()
                raise
            except Exception as exc:
                reason = "timeout" if isinstance(exc, asyncio.TimeoutError) else str(exc)
                self._log.warning("generate", f"{step.name} attempt {attempt} failed: {reason}")
                circuit.fail()
                continue
            circuit.success()
            self._cache.set(key, [day.model_dump(mode="json") for day in days])
            return days
        return None

    async def _guarded(self, dependency: str, fn: Callable[..., T], *args: Any) -> Optional[T]:
        """Run a sync port call under the named circuit; None when refused or failed."""
        circuit = self._circuits.get(dependency)
        if not circuit.can_call():
            return None
        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(fn, *args), timeout=self._settings.call_timeout_seconds
            )
        except asyncio.CancelledError:
            if asyncio.current_task() not in self._withdrawn:
                circuit.fail()
            raise
        except Exception as exc:
            self._log.warning(dependency, f"lookup failed: {exc}")
            circuit.fail()
            return None
        circuit.success()
        return result

    async def _verify_addresses(self, days: list[ItineraryDay]) -> None:
        for day in days:
            for activity in day.activities:
                activity.address = ADDRESS_NA
        if self._places is None or not self._settings.verify_addresses:
            return
        resolved: dict[tuple[str, str], str] = {}
        for day in days:
            for activity in day.activities:
                if not activity.venue_name:
                    continue
                lookup_key = (activity.venue_name.lower(), day.destination_name.lower())
                if lookup_key not in resolved:
                    resolved[lookup_key] = await self._lookup_address(activity.venue_name, day.destination_name)
                activity.address = resolved[lookup_key]

    async def _lookup_address(self, venue: str, city: str) -> str:
        key = "place:" + make_cache_key(venue.lower(), city.lower())
        cached = place_cache.get(key)
        if cached is not None:
            return cached
        result = await self._guarded("places", self._places.lookup, venue, city)  # type: ignore[union-attr]
        address = result.address.strip() if result is not None and result.address else ""
        if not address:
            return ADDRESS_NA
        place_cache.set(key, address)
        return address

    # ── delivery and assembly ────────────────────────────

    async def _deliver(
        self,
        outcome: DestinationOutcome,
        delivered: list[DestinationOutcome],
        total: int,
        intent: TripIntent,
        today: dt.date,
        draft: Optional[DraftManager],
        on_progress: Optional[ProgressSink],
    ) -> None:
        partial = self._assemble(intent, delivered, None, today)
        if draft is not None:
            draft.update_draft(
                DraftStage.GENERATING,
                partial_data={
                    "days": [day.model_dump(mode="json") for day in partial.days],
                    "segments": [seg.model_dump(mode="json") for seg in partial.segments],
                },
            )
        segment = partial.segments[-1]
        city_days = partial.days[segment.start_day - 1 : segment.end_day]
        status = ProgressStatus.CITY_FAILED if outcome.degraded else ProgressStatus.CITY_COMPLETE
        if outcome.degraded:
            self._log.warning("orchestrate", f"{outcome.name} degraded: {outcome.error}")
        await self._emit(on_progress, ProgressEvent(
            status=status,
            city=outcome.name,
            days_generated=partial.total_days,
            progress=_progress(len(delivered), total),
            data={
                "index": outcome.index,
                "days": [day.model_dump(mode="json") for day in city_days],
                "error": outcome.error if outcome.degraded else None,
            },
        ))

    def _assemble(
        self,
        intent: TripIntent,
        delivered: list[DestinationOutcome],
        status: Optional[AssemblyStatus],
        today: dt.date,
    ) -> ItineraryAssembly:
        """Renumber and date every delivered day in trip order."""
        days: list[ItineraryDay] = []
        segments: list[DestinationSegment] = []
        warnings: list[str] = []
        start = intent.start_date or today
        for outcome in delivered:
            first = len(days) + 1
            for day in outcome.days:
                number = len(days) + 1
                days.append(day.model_copy(update={
                    "day_number": number,
                    "date": start + dt.timedelta(days=number - 1),
                }))
            segments.append(DestinationSegment(
                name=outcome.name,
                start_day=first,
                end_day=len(days),
                degraded=outcome.degraded,
            ))
            if outcome.degraded:
                warnings.append(f"{outcome.name}: placeholder days used ({outcome.error})")
        if status is None:
            status = AssemblyStatus.PARTIAL if any(s.degraded for s in segments) else AssemblyStatus.COMPLETE
        return ItineraryAssembly(
            origin=intent.origin,
            return_to=intent.return_to or intent.origin,
            days=days,
            segments=segments,
            status=status,
            warnings=warnings,
        )

    async def _enhance(self, assembly: ItineraryAssembly, intent: TripIntent) -> None:
        by_name: dict[str, list[ItineraryDay]] = {}
        for day in assembly.days:
            by_name.setdefault(day.destination_name, []).append(day)

        if self._weather is not None:
            missing_weather = False
            for segment in assembly.segments:
                days = [d for d in by_name.get(segment.name, []) if segment.start_day <= d.day_number <= segment.end_day]
                if not days or days[0].date is None or days[-1].date is None:
                    continue
                forecast = await self._guarded("weather", self._weather.forecast, segment.name, days[0].date, days[-1].date)
                if not forecast:
                    missing_weather = True
                    continue
                for day in days:
                    day.weather = forecast.get(day.date)  # type: ignore[arg-type]
            if missing_weather:
                assembly.warnings.append("weather unavailable for some destinations")

        if self._currency is not None:
            home = self._settings.home_currency
            quotes: dict[str, Any] = {}
            for segment in assembly.segments:
                if segment.name not in quotes:
                    quotes[segment.name] = await self._guarded("currency", self._currency.quote, home, segment.name)
                quote = quotes[segment.name]
                if quote is None:
                    continue
                segment.currency = quote.currency
                segment.exchange_rate = quote.rate

    # ── helpers ────────────────────────────

    async def _emit(self, sink: Optional[ProgressSink], event: ProgressEvent) -> None:
        if sink is None:
            return
        try:
            result = sink(event)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            # A broken consumer must not take the run down with it.
            self._log.warning("progress", f"progress sink failed on {event.status.value}: {exc}")
            _logger.warning("Progress sink raised: %s", exc)

    async def _abort(self, tasks: list["asyncio.Task[DestinationOutcome]"], withdraw: bool = False) -> None:
        for task in tasks:
            if withdraw:
                self._withdrawn.add(task)
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


def _is_set(signal: Optional[CancelSignal]) -> bool:
    return bool(signal is not None and signal.is_set())


def _progress(done: int, total: int) -> int:
    if total <= 0:
        return 0
    return min(90, 10 + int(80 * done / total))
