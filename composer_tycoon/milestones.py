"""Career milestones unlocked once and announced to the player."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Tuple

from .config import Settings, get_settings
from .models import CompositionForm, GameState, LogType
from .simulation import add_log_entry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Milestone:
    id: str
    name: str
    condition: Callable[[GameState], bool]


MILESTONES: List[Milestone] = [
    Milestone("first_work", "First Performance", lambda s: len(s.completed_works) >= 1),
    Milestone("reputation_25", "Rising Talent", lambda s: s.stats.reputation >= 25),
    Milestone("reputation_50", "Established Composer", lambda s: s.stats.reputation >= 50),
    Milestone("reputation_100", "Minor Famous Composer", lambda s: s.stats.reputation >= 100),
    Milestone("five_works", "Prolific Artist", lambda s: len(s.completed_works) >= 5),
    Milestone(
        "symphony_premiere",
        "Symphonist",
        lambda s: any(w.form == CompositionForm.SYMPHONY for w in s.completed_works),
    ),
    Milestone("wealthy", "Comfortable Living", lambda s: s.stats.money >= 1000),
    Milestone(
        "patron_favor",
        "Patron's Favorite",
        lambda s: any(p.relationship >= 50 for p in s.patrons),
    ),
]


def check_milestones(
    state: GameState, settings: Settings | None = None
) -> Tuple[GameState, List[str]]:
    """Record every newly satisfied milestone.

    Returns the updated state and the display names unlocked by this call,
    in table order. Predicates are evaluated against the state as passed in.
    """

    settings = settings or get_settings()
    new_state = state
    unlocked: List[str] = []
    for milestone in MILESTONES:
        if milestone.id in state.achieved_milestones or not milestone.condition(state):
            continue
        unlocked.append(milestone.name)
        new_state = replace(
            new_state,
            achieved_milestones=[*new_state.achieved_milestones, milestone.id],
        )
        new_state = add_log_entry(
            new_state,
            f"Achievement unlocked: {milestone.name}!",
            LogType.SYSTEM,
            limit=settings.log_limit,
        )
        logger.info("Milestone reached: %s", milestone.name)
    return new_state, unlocked


__all__ = ["MILESTONES", "Milestone", "check_milestones"]
