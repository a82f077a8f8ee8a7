"""Composition lifecycle: starting a work, weekly phase work and finishing."""

from __future__ import annotations

import copy
import logging
import math
from dataclasses import replace

from .catalog import COMPOSITION_FORMS
from .config import Settings, get_settings
from .models import (
    CompositionForm,
    CompositionPhases,
    CompositionStyle,
    ComposerStats,
    GameState,
    Instrumentation,
    LogType,
    PHASE_NAMES,
    Skills,
    WorkInProgress,
)
from .press import generate_work_title
from .rng import RandomSource
from .simulation import add_log_entry

logger = logging.getLogger(__name__)


def default_allocation() -> CompositionPhases:
    return CompositionPhases(sketching=25, orchestration=25, rehearsal_prep=25, revision=25)


def validate_allocation(allocation: CompositionPhases) -> None:
    """Raise ``ValueError`` unless the shares are non-negative and total 100."""

    if any(share < 0 for share in allocation.values()):
        raise ValueError("Phase shares cannot be negative")
    if allocation.total() != 100:
        raise ValueError(f"Phase shares must total 100, got {allocation.total():g}")


def new_work(
    form: CompositionForm,
    style: CompositionStyle,
    instrumentation: Instrumentation,
    work_number: int,
    rng: RandomSource | None = None,
) -> WorkInProgress:
    return WorkInProgress(
        form=form,
        style=style,
        instrumentation=instrumentation,
        title=generate_work_title(form, work_number, rng),
    )


def start_composition(
    state: GameState,
    form: CompositionForm,
    style: CompositionStyle,
    instrumentation: Instrumentation,
    rng: RandomSource | None = None,
) -> GameState:
    work = new_work(form, style, instrumentation, len(state.completed_works), rng)
    logger.info("Started %s (%s)", work.title, form.value)
    new_state = replace(state, work_in_progress=work)
    return add_log_entry(new_state, f'Began work on "{work.title}".', LogType.COMPOSITION)


def weekly_phase_points(
    stats: ComposerStats, skills: Skills, settings: Settings | None = None
) -> int:
    """Phase points earned by one week of work at current inspiration and productivity."""

    settings = settings or get_settings()
    earned = math.floor((stats.inspiration / 10) * (skills.productivity / 10))
    return max(settings.min_weekly_points, earned)


def apply_phase_points(
    work: WorkInProgress, allocation: CompositionPhases, points: int
) -> WorkInProgress:
    phases = CompositionPhases(
        **{
            name: getattr(work.phases, name) + math.floor(points * getattr(allocation, name) / 100)
            for name in PHASE_NAMES
        }
    )
    return replace(work, phases=phases, weeks_spent=work.weeks_spent + 1)


def work_week(
    state: GameState,
    allocation: CompositionPhases | None = None,
    settings: Settings | None = None,
) -> GameState:
    """Spend a week on the active work; the calendar is advanced separately.

    Without an active work the state is returned unchanged.
    """

    if state.work_in_progress is None:
        return state
    allocation = allocation or default_allocation()
    validate_allocation(allocation)
    points = weekly_phase_points(state.stats, state.skills, settings)
    new_state = copy.deepcopy(state)
    new_state.work_in_progress = apply_phase_points(new_state.work_in_progress, allocation, points)
    logger.debug("Worked on %s for %d points", new_state.work_in_progress.title, points)
    return new_state


def weeks_required(form: CompositionForm, settings: Settings | None = None) -> int:
    """Minimum weeks of work before a piece of ``form`` may be finished."""

    settings = settings or get_settings()
    return math.ceil(COMPOSITION_FORMS[form].base_weeks * settings.finish_share)


def can_finish(work: WorkInProgress, settings: Settings | None = None) -> bool:
    return work.weeks_spent >= weeks_required(work.form, settings)


def finish_composition(state: GameState) -> GameState:
    """Move the active work to the premiere queue."""

    work = state.work_in_progress
    if work is None:
        return state
    new_state = replace(state, work_in_progress=None, pending_premiere=work)
    logger.info("Finished %s after %d weeks", work.title, work.weeks_spent)
    return add_log_entry(
        new_state, f'Completed "{work.title}". Ready for premiere.', LogType.COMPOSITION
    )


__all__ = [
    "apply_phase_points",
    "can_finish",
    "default_allocation",
    "finish_composition",
    "new_work",
    "start_composition",
    "validate_allocation",
    "weekly_phase_points",
    "weeks_required",
    "work_week",
]
