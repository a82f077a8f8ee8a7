"""Weekly state machine: game creation, the calendar tick and the event log."""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import replace
from typing import List, Optional

from .catalog import OPPOSITE_TRENDS, initial_patrons, initial_upgrades
from .config import Settings, get_settings
from .models import (
    ComposerStats,
    GameDate,
    GameState,
    LogEntry,
    LogType,
    Skills,
    StatType,
    TasteState,
    TasteTrend,
    adjust_stat,
)
from .publishing import process_publisher_income
from .rng import RandomSource, chance, choose, default_rng, randint

logger = logging.getLogger(__name__)


def create_initial_state(composer_name: str, settings: Settings | None = None) -> GameState:
    """Fresh career in Vienna, January 1820."""

    settings = settings or get_settings()
    state = GameState(
        composer_name=composer_name,
        current_date=GameDate(
            year=settings.start_year,
            month=settings.start_month,
            week=settings.start_week,
        ),
        stats=ComposerStats(**settings.start_stats),
        skills=Skills(**settings.start_skills),
        tastes=TasteState(
            current=[TasteTrend(t) for t in settings.start_trends],
            intensity=settings.start_taste_intensity,
        ),
        patrons=initial_patrons(),
        upgrades=initial_upgrades(),
    )
    return add_log_entry(
        state,
        f"{composer_name} begins their journey as a composer in {settings.start_city}.",
        LogType.SYSTEM,
        limit=settings.log_limit,
    )


def add_log_entry(
    state: GameState,
    text: str,
    type: LogType = LogType.SYSTEM,
    *,
    limit: Optional[int] = None,
) -> GameState:
    """Return ``state`` with a new entry at the head of its log.

    The log keeps the ``limit`` most recent entries, newest first.
    """

    if limit is None:
        limit = get_settings().log_limit
    entry = LogEntry(
        id=f"log_{uuid.uuid4().hex[:12]}",
        date=state.current_date,
        text=text,
        type=type,
    )
    return replace(state, event_log=[entry, *state.event_log][:limit])


def shift_tastes(
    tastes: TasteState,
    rng: RandomSource | None = None,
    settings: Settings | None = None,
) -> TasteState:
    """Maybe swap one active trend for a new one and sharpen public taste.

    The newcomer is never already active and never the opposite of the trend
    that stays, so an opposing pair cannot be active together.
    """

    rng = rng or default_rng()
    settings = settings or get_settings()
    if not chance(rng, settings.taste_drift_chance):
        return tastes

    trends: List[TasteTrend] = list(tastes.current)
    index = randint(rng, 0, len(trends) - 1)
    remaining = [t for i, t in enumerate(trends) if i != index]
    blocked = set(trends) | {OPPOSITE_TRENDS[t] for t in remaining}
    available = [t for t in TasteTrend if t not in blocked]
    if available:
        previous = trends[index]
        trends[index] = choose(rng, available)
        logger.debug("Taste shifted from %s to %s", previous.value, trends[index].value)
    return TasteState(
        current=trends,
        intensity=min(settings.taste_intensity_cap, tastes.intensity + settings.taste_intensity_step),
    )


def advance_week(
    state: GameState,
    rng: RandomSource | None = None,
    settings: Settings | None = None,
) -> GameState:
    """Run one weekly tick and return the resulting state.

    The input is left untouched. Random draws happen in a fixed order: taste
    drift (quarter starts only), inspiration, revival rolls, then the old age
    roll.
    """

    rng = rng or default_rng()
    settings = settings or get_settings()
    new_state = copy.deepcopy(state)

    new_state.current_date = state.current_date.next_week()
    if new_state.current_date.is_quarter_start():
        new_state.tastes = shift_tastes(new_state.tastes, rng, settings)

    stats = new_state.stats
    recovery = min(settings.health_regen, stats.max_health - stats.health)
    adjust_stat(stats, StatType.HEALTH, max(0, recovery))

    if chance(rng, settings.inspiration_rise_chance):
        adjust_stat(stats, StatType.INSPIRATION, settings.inspiration_rise)
    else:
        adjust_stat(stats, StatType.INSPIRATION, -settings.inspiration_fall)

    tick = process_publisher_income(
        new_state.completed_works, new_state.pending_revival, rng, settings
    )
    new_state.weekly_publisher_income = tick.income
    adjust_stat(stats, StatType.MONEY, tick.income)
    if tick.revival is not None and new_state.pending_revival is None:
        new_state.pending_revival = tick.revival
        logger.info("Revival offered for %s", tick.revival.work_title)

    if (
        not new_state.is_game_over
        and new_state.current_date.year >= settings.old_age_year
        and chance(rng, settings.old_age_chance)
    ):
        new_state.is_game_over = True
        new_state.game_over_reason = settings.old_age_reason
        logger.info("%s %s", new_state.composer_name, settings.old_age_reason)

    logger.debug(
        "Advanced to %d/%d/%d: health=%.0f inspiration=%.0f publisher=%d",
        new_state.current_date.year,
        new_state.current_date.month,
        new_state.current_date.week,
        stats.health,
        stats.inspiration,
        tick.income,
    )
    return new_state


__all__ = ["add_log_entry", "advance_week", "create_initial_state", "shift_tastes"]
