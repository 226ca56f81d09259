"""nomad CLI entry point with multi-turn conversation."""

from __future__ import annotations

import argparse
import asyncio
import datetime as dt
import json
import sys
from typing import Optional

from dotenv import load_dotenv

from nomad.application.context import AppContext, make_app_context
from nomad.domain.enums import ProgressStatus, ResponseType
from nomad.domain.exceptions import GenerationFailed, ValidationFailed
from nomad.domain.models import ConversationState, ItineraryAssembly, ProgressEvent, TripIntent
from nomad.infrastructure.logging import get_logger

load_dotenv()


def _print_progress(event: ProgressEvent) -> None:
    if event.status == ProgressStatus.STARTED:
        names = ", ".join(event.data.get("destinations", []))
        print(f"\n... planning {event.data.get('total_days', '?')} days: {names}")
    elif event.status == ProgressStatus.CITY_COMPLETE:
        print(f"  [{event.progress:>3}%] {event.city} ready ({event.days_generated} days so far)")
    elif event.status == ProgressStatus.CITY_FAILED:
        print(f"  [{event.progress:>3}%] {event.city} unavailable, placeholder days used")
    elif event.status in (ProgressStatus.CANCELLED, ProgressStatus.TIMED_OUT):
        print(f"  stopped early ({event.status.value}) after {event.days_generated} days")


def format_itinerary(assembly: ItineraryAssembly) -> str:
    """Readable text rendering of an assembled itinerary."""
    lines: list[str] = []
    route = " -> ".join(seg.name for seg in assembly.segments)
    lines.append(f"{assembly.total_days}-day trip: {route}")
    if assembly.origin:
        lines.append(f"From {assembly.origin}, returning to {assembly.return_to or assembly.origin}")
    lines.append("=" * 50)

    for day in assembly.days:
        header = f"\nDay {day.day_number}"
        if day.date:
            header += f" ({day.date.isoformat()})"
        header += f"  {day.destination_name}"
        if day.weather:
            header += f"  |  {day.weather}"
        lines.append(header)
        if day.title:
            lines.append(f"   {day.title}")
        lines.append("-" * 50)
        for activity in day.activities:
            venue = f"  @ {activity.venue_name}" if activity.venue_name else ""
            lines.append(f"  {activity.time or '--:--'}  {activity.description}{venue}")
            if activity.venue_name:
                lines.append(f"         {activity.address}")

    rates = [s for s in assembly.segments if s.currency and s.exchange_rate]
    if rates or assembly.warnings:
        lines.append("\n" + "=" * 50)
    for segment in rates:
        lines.append(f"{segment.name}: 1 unit home currency = {segment.exchange_rate:.2f} {segment.currency}")
    if assembly.warnings:
        lines.append("Notes: " + "; ".join(assembly.warnings))
    if assembly.status.value != "complete":
        lines.append(f"[status: {assembly.status.value}]")
    return "\n".join(lines)


def _run_generation(ctx: AppContext, state: ConversationState, intent: TripIntent, prompt: str) -> bool:
    drafts = ctx.draft_manager(state.session_id)
    orchestrator = ctx.orchestrator(logger=get_logger().bind(session=state.session_id))
    try:
        assembly = asyncio.run(orchestrator.generate(
            intent,
            today=dt.date.today(),
            draft=drafts,
            on_progress=_print_progress,
            prompt=prompt,
        ))
    except ValidationFailed as exc:
        print("\nCannot plan this trip: " + str(exc))
        return False
    except GenerationFailed as exc:
        print(f"\nGeneration failed: {exc}")
        if exc.draft_id:
            print(f"(draft {exc.draft_id} kept for inspection)")
        return False
    finally:
        drafts.close()

    print("\n" + format_itinerary(assembly))
    with open("itinerary_output.json", "w", encoding="utf-8") as f:
        json.dump(assembly.model_dump(mode="json"), f, ensure_ascii=False, indent=2)
    print("\n--- Raw JSON saved to itinerary_output.json ---")
    return True


def _show_incomplete(ctx: AppContext, session_id: str) -> None:
    drafts = ctx.draft_manager(session_id, autosave=False)
    pending = drafts.get_incomplete_drafts()
    if not pending:
        print("No interrupted drafts to recover.")
        return
    for draft in pending:
        days = len(draft.partial_data.get("days", []))
        names = ", ".join(draft.metadata.destinations) or "?"
        print(f"- {draft.id}  stage={draft.stage.value}  {names}  ({days} days drafted)")


def _turn(ctx: AppContext, state: Optional[ConversationState], text: str) -> tuple[ConversationState, bool]:
    """Run one dialog turn; returns the next state and whether a plan was produced."""
    dialog = ctx.get_dialog()
    response = dialog.process_message(text, state)
    state = response.state
    if response.type == ResponseType.QUESTION:
        print("\n> " + response.message)
        ctx.conversations.save(state)
        return state, False
    if response.type == ResponseType.ERROR:
        print("\n! " + response.message)
        ctx.conversations.save(state)
        return state, False

    print("\n> " + response.message)
    intent = TripIntent.model_validate(response.context.get("intent") or {})
    state = dialog.mark_generating(state)
    ctx.conversations.save(state)
    done = _run_generation(ctx, state, intent, text)
    state = dialog.mark_answered(state) if done else dialog.mark_failed(state, "generation failed")
    ctx.conversations.save(state)
    return state, done


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="nomad", description="Conversational trip planner")
    parser.add_argument("request", nargs="*", help="single-turn trip request")
    parser.add_argument("--session", default="cli_session", help="conversation session id")
    parser.add_argument("--trace", default=None, help="trace id for structured logs")
    parser.add_argument("--resume", action="store_true", help="list interrupted drafts and exit")
    args = parser.parse_args(argv)

    get_logger(args.trace)
    ctx = make_app_context()

    if args.resume:
        _show_incomplete(ctx, args.session)
        return 0

    # single-shot mode
    if args.request:
        _, done = _turn(ctx, None, " ".join(args.request))
        return 0 if done else 1

    print("nomad trip planner")
    print("=" * 50)
    print("Describe your trip to start planning, type quit to exit\n")

    state = ctx.conversations.load(args.session) or ctx.get_dialog().new_state(args.session)
    while True:
        try:
            user_input = input("\nyou: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            break

        if not user_input:
            continue
        if user_input.lower() in ("quit", "exit", "q"):
            print("Bye!")
            break

        state, done = _turn(ctx, state, user_input)
        if done:
            print("\n--- Itinerary ready. Describe another trip, or quit ---")
            ctx.conversations.delete(args.session)
            state = ctx.get_dialog().new_state(args.session)
    return 0


if __name__ == "__main__":
    sys.exit(main())
