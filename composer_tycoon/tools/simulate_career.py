"""Headless autopilot that plays a composer career for tuning runs."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..catalog import COMPOSITION_FORMS, INSTRUMENTATIONS, MUSICIAN_COSTS, VENUES
from ..models import (
    CompositionForm,
    CompositionStyle,
    GameState,
    Instrumentation,
    MusicianQuality,
    PremiereSetup,
    VenueType,
    format_date,
)
from ..persistence import MemorySaveStore, SaveStore, SqliteSaveStore
from ..premieres import premiere_cost
from ..publishing import can_afford_revival
from ..rng import DeterministicRNG, RandomSource, default_rng, randint
from ..service import GameService
from ..upgrades import available_upgrades

logger = logging.getLogger(__name__)

UPGRADE_RESERVE = 150
_MUSICIAN_PREFERENCE = (
    MusicianQuality.PROFESSIONAL,
    MusicianQuality.COMPETENT,
    MusicianQuality.AMATEUR,
)


def _instrumentation_for(form: CompositionForm) -> Instrumentation:
    best = COMPOSITION_FORMS[form].best_instrumentation
    return best[0] if best else Instrumentation.SOLO_PIANO


def choose_form(state: GameState) -> CompositionForm:
    """Most demanding form the composer may attempt and could afford to premiere."""

    cheapest_stage = VENUES[VenueType.SALON].cost + MUSICIAN_COSTS[MusicianQuality.AMATEUR].cost
    candidates = [
        form
        for form, spec in COMPOSITION_FORMS.items()
        if spec.required_reputation <= state.stats.reputation
        and cheapest_stage + INSTRUMENTATIONS[_instrumentation_for(form)].cost
        <= state.stats.money
    ]
    if not candidates:
        return CompositionForm.PIANO_SONATA
    return max(candidates, key=lambda f: COMPOSITION_FORMS[f].difficulty)


def choose_premiere(state: GameState) -> Optional[PremiereSetup]:
    """Most prestigious affordable venue, then the best affordable musicians."""

    work = state.pending_premiere
    if work is None:
        return None
    patron = next((p for p in state.patrons if work.form in p.preferred_forms), None)
    venues = sorted(
        (v for v in VENUES.values() if v.required_reputation <= state.stats.reputation),
        key=lambda v: v.prestige,
        reverse=True,
    )
    for venue in venues:
        for musicians in _MUSICIAN_PREFERENCE:
            setup = PremiereSetup(
                venue=venue.type,
                musician_quality=musicians,
                dedicated_to=patron.id if patron else None,
            )
            if premiere_cost(work, setup) <= state.stats.money:
                return setup
    return None


def _maybe_buy_upgrade(service: GameService) -> None:
    state = service.state
    affordable = [
        u for u in available_upgrades(state) if state.stats.money - u.cost >= UPGRADE_RESERVE
    ]
    if affordable:
        service.purchase_upgrade(min(affordable, key=lambda u: u.cost).id)


def take_turn(service: GameService, rng: RandomSource) -> None:
    """Perform the single most pressing action for the current state."""

    state = service.state
    if state.current_event is not None:
        service.resolve_event(randint(rng, 0, len(state.current_event.choices) - 1))
        return
    if state.pending_revival is not None:
        if can_afford_revival(state, service.settings):
            service.accept_revival()
        else:
            service.decline_revival()
        return
    if state.pending_premiere is not None:
        setup = choose_premiere(state)
        if setup is None:
            service.pass_week()
        else:
            service.schedule_premiere(
                setup.venue, setup.musician_quality, dedicated_to=setup.dedicated_to
            )
        return

    _maybe_buy_upgrade(service)
    state = service.state
    work = state.work_in_progress
    if work is None:
        form = choose_form(state)
        service.start_composition(form, CompositionStyle.EARLY_ROMANTIC, _instrumentation_for(form))
    elif work.weeks_spent >= COMPOSITION_FORMS[work.form].base_weeks:
        service.finish_composition()
    else:
        service.work_week()


def summarize(state: GameState) -> Dict[str, Any]:
    best = max(state.completed_works, key=lambda w: w.quality, default=None)
    return {
        "composer": state.composer_name,
        "date": format_date(state.current_date),
        "money": state.stats.money,
        "reputation": state.stats.reputation,
        "works": len(state.completed_works),
        "revivals": sum(1 for w in state.completed_works if w.is_revival),
        "best_work": {"title": best.title, "quality": best.quality} if best else None,
        "milestones": list(state.achieved_milestones),
        "weekly_publisher_income": state.weekly_publisher_income,
        "game_over": state.is_game_over,
        "game_over_reason": state.game_over_reason,
    }


def run_simulation(
    *,
    weeks: int,
    name: str = "Ludwig",
    rng: RandomSource | None = None,
    store: SaveStore | None = None,
) -> Dict[str, Any]:
    """Play ``weeks`` weeks of autopilot and return a summary with notifications."""

    rng = rng or default_rng()
    service = GameService(store=store or MemorySaveStore(), rng=rng, autosave=False)
    service.new_game(name)
    start = service.state.current_date.total_weeks()
    notifications: List[str] = []
    # Every action either passes a week or moves a work or decision forward.
    max_actions = weeks * 10 + 10
    for _ in range(max_actions):
        state = service.state
        if state.is_game_over or state.current_date.total_weeks() - start >= weeks:
            break
        take_turn(service, rng)
        notifications.extend(service.drain_notifications())
    service.save_game()
    summary = summarize(service.state)
    summary["notifications"] = notifications
    return summary


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play an autopilot composer career.")
    parser.add_argument("--weeks", type=int, default=104, help="Weeks to simulate (default: 104).")
    parser.add_argument("--seed", type=int, help="Seed for a reproducible run.")
    parser.add_argument("--name", default="Ludwig", help="Composer name.")
    parser.add_argument("--db", type=Path, help="SQLite file to save the final state into.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:  # pragma: no cover - CLI entry point
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    rng = DeterministicRNG(args.seed) if args.seed is not None else None
    store = SqliteSaveStore(args.db) if args.db else None
    summary = run_simulation(weeks=args.weeks, name=args.name, rng=rng, store=store)
    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
