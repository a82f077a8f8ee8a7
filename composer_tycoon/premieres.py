"""Premiere costs and turning a finished work into a premiered one."""

from __future__ import annotations

import copy
import logging
import uuid
from typing import Dict, Optional, Tuple

from .catalog import INSTRUMENTATIONS, MUSICIAN_COSTS, VENUES
from .config import Settings, get_settings
from .models import (
    CompletedWork,
    GameState,
    LogType,
    MultiplierTarget,
    PremiereSetup,
    SkillType,
    StatType,
    WorkInProgress,
    adjust_stat,
)
from .rng import RandomSource
from .scoring import PremiereOutcome, calculate_premiere_success, round_half_up
from .simulation import add_log_entry
from .upgrades import multiplier_for

logger = logging.getLogger(__name__)


def premiere_cost(work: WorkInProgress, setup: PremiereSetup) -> int:
    """Venue hire, advertising, musicians and instrument hire together."""

    return (
        VENUES[setup.venue].cost
        + setup.advertising_spent
        + MUSICIAN_COSTS[setup.musician_quality].cost
        + INSTRUMENTATIONS[work.instrumentation].cost
    )


def skill_gains(work: WorkInProgress, quality: int, dedicated: bool) -> Dict[SkillType, int]:
    return {
        SkillType.MELODY: 1 if quality >= 60 else 0,
        SkillType.HARMONY: 1 if quality >= 50 else 0,
        SkillType.ORCHESTRATION: 2 if INSTRUMENTATIONS[work.instrumentation].orchestral else 0,
        SkillType.FORM: 1 if quality >= 70 else 0,
        SkillType.PRODUCTIVITY: 1,
        SkillType.SOCIAL: 1 if dedicated else 0,
    }


def apply_premiere(
    state: GameState,
    setup: PremiereSetup,
    rng: RandomSource | None = None,
    settings: Settings | None = None,
    *,
    luck: Optional[int] = None,
) -> Tuple[GameState, CompletedWork]:
    """Premiere the pending work and settle its costs and rewards.

    Callers check that a work is pending and that the premiere is affordable.
    Returns the new state and the work as recorded in it.
    """

    work = state.pending_premiere
    if work is None:
        raise ValueError("No work is awaiting its premiere")
    settings = settings or get_settings()
    outcome: PremiereOutcome = calculate_premiere_success(
        work, state.skills, state.tastes, setup, rng, luck=luck
    )

    new_state = copy.deepcopy(state)
    new_state.pending_premiere = None
    earnings = round_half_up(outcome.earnings * multiplier_for(state, MultiplierTarget.EARNINGS))
    reputation_gained = round_half_up(
        outcome.reputation_gained * multiplier_for(state, MultiplierTarget.REPUTATION)
    )
    inspiration_boost = round_half_up(
        settings.premiere_inspiration_boost
        * multiplier_for(state, MultiplierTarget.INSPIRATION)
    )

    patron = new_state.find_patron(setup.dedicated_to) if setup.dedicated_to else None
    if patron is not None:
        patron.strengthen(settings.dedication_relationship_gain)

    stats = new_state.stats
    adjust_stat(stats, StatType.MONEY, earnings - premiere_cost(work, setup))
    adjust_stat(stats, StatType.REPUTATION, reputation_gained)
    adjust_stat(stats, StatType.INSPIRATION, inspiration_boost)
    for skill, gain in skill_gains(work, outcome.quality, patron is not None).items():
        if gain:
            new_state.skills.adjust(skill, gain)

    completed = CompletedWork(
        id=f"work_{uuid.uuid4().hex[:12]}",
        title=work.title,
        form=work.form,
        style=work.style,
        instrumentation=work.instrumentation,
        quality=outcome.quality,
        premiere_date=new_state.current_date,
        venue=setup.venue,
        earnings=earnings,
        reputation_gained=reputation_gained,
        review=outcome.review,
        factors=outcome.factors,
        dedicated_to=patron.name if patron is not None else None,
        popularity=outcome.initial_popularity,
        weeks_since_premiere=0,
        total_publisher_earnings=0,
    )
    new_state.completed_works.append(completed)
    logger.info(
        "Premiered %s at %s: quality=%d earnings=%d reputation=%d",
        completed.title,
        setup.venue.value,
        completed.quality,
        earnings,
        reputation_gained,
    )
    new_state = add_log_entry(
        new_state,
        f'Premiered "{completed.title}" at {VENUES[setup.venue].name}. Quality: {completed.quality}.',
        LogType.PREMIERE,
        limit=settings.log_limit,
    )
    return new_state, completed


__all__ = ["apply_premiere", "premiere_cost", "skill_gains"]
