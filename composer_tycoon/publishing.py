"""Publisher royalties, popularity decay and revivals of forgotten works."""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from .catalog import COMPOSITION_FORMS
from .config import Settings, get_settings
from .models import (
    CompletedWork,
    GameState,
    RevivalOpportunity,
    ScoreFactors,
    StatType,
    adjust_stat,
)
from .press import generate_review
from .rng import RandomSource, chance, default_rng, randint
from .scoring import round_half_up

logger = logging.getLogger(__name__)

REVIVAL_LUCK_RANGE = (0, 9)


@dataclass
class PublisherTick:
    """Result of one week of publisher activity."""

    income: int
    revival: Optional[RevivalOpportunity] = None


def weekly_income(work: CompletedWork) -> int:
    difficulty = COMPOSITION_FORMS[work.form].difficulty
    popularity = work.popularity or 0
    return round_half_up(difficulty * 0.5 * (work.quality / 100) * (popularity / 100) * 2)


def popularity_decay(work: CompletedWork) -> float:
    """Weekly popularity loss; harder and better works fade more slowly."""

    difficulty = COMPOSITION_FORMS[work.form].difficulty
    return max(0.3, max(0.5, 3 - difficulty * 0.4) - (work.quality / 100) * 0.5)


def revived_work_ids(works: List[CompletedWork]) -> Set[str]:
    return {w.original_work_id for w in works if w.is_revival and w.original_work_id}


def is_revival_candidate(
    work: CompletedWork, revived: Set[str], settings: Settings | None = None
) -> bool:
    settings = settings or get_settings()
    return (
        work.popularity == 0
        and work.weeks_since_premiere >= settings.revival_min_weeks
        and work.quality >= settings.revival_min_quality
        and not work.is_revival
        and work.id not in revived
    )


def process_publisher_income(
    works: List[CompletedWork],
    pending_revival: Optional[RevivalOpportunity],
    rng: RandomSource | None = None,
    settings: Settings | None = None,
) -> PublisherTick:
    """Age every work by a week, pay royalties and maybe offer a revival.

    ``works`` is updated in place. A revival is only rolled for while none is
    pending, and the first eligible work to succeed wins.
    """

    rng = rng or default_rng()
    settings = settings or get_settings()
    revived = revived_work_ids(works)
    offer: Optional[RevivalOpportunity] = None
    total = 0

    for work in works:
        work.weeks_since_premiere += 1
        if work.popularity is None:
            work.popularity = min(100, work.quality + 20)
        if work.total_publisher_earnings is None:
            work.total_publisher_earnings = 0

        if work.popularity > 0:
            income = weekly_income(work)
            total += income
            work.total_publisher_earnings += income
            work.popularity = max(0, work.popularity - popularity_decay(work))

        if (
            pending_revival is None
            and offer is None
            and is_revival_candidate(work, revived, settings)
            and chance(rng, settings.revival_chance)
        ):
            offer = RevivalOpportunity(
                work_id=work.id,
                work_title=work.title,
                original_quality=work.quality,
            )

    if total:
        logger.debug("Publisher income this week: %d", total)
    return PublisherTick(income=total, revival=offer)


def can_afford_revival(state: GameState, settings: Settings | None = None) -> bool:
    settings = settings or get_settings()
    return (
        state.stats.money >= settings.revival_money_cost
        and state.stats.inspiration >= settings.revival_inspiration_cost
    )


def accept_revival(
    state: GameState,
    rng: RandomSource | None = None,
    settings: Settings | None = None,
) -> Tuple[GameState, Optional[CompletedWork]]:
    """Stage the pending revival, paying its costs and recording a new work.

    Returns the new state and the revival. Without a pending revival the state
    comes back unchanged; when the original work is gone the offer is dropped
    and no revival is returned.
    """

    if state.pending_revival is None:
        return state, None
    rng = rng or default_rng()
    settings = settings or get_settings()
    new_state = copy.deepcopy(state)
    opportunity = new_state.pending_revival
    new_state.pending_revival = None
    original = new_state.find_work(opportunity.work_id)
    if original is None:
        logger.warning("Revival target %s no longer exists", opportunity.work_id)
        return new_state, None

    adjust_stat(new_state.stats, StatType.MONEY, -settings.revival_money_cost)
    adjust_stat(new_state.stats, StatType.INSPIRATION, -settings.revival_inspiration_cost)

    skills = new_state.skills
    quality_boost = round_half_up((skills.melody + skills.harmony) / 10)
    luck = randint(rng, *REVIVAL_LUCK_RANGE)
    raw = original.quality + quality_boost + luck
    quality = min(100, raw)
    earnings = round_half_up(quality * 5)
    reputation_gained = round_half_up(quality / 10)

    revival = CompletedWork(
        id=f"work_{uuid.uuid4().hex[:12]}",
        title=f"{original.title} (Revival)",
        form=original.form,
        style=original.style,
        instrumentation=original.instrumentation,
        quality=quality,
        premiere_date=new_state.current_date,
        venue=original.venue,
        earnings=earnings,
        reputation_gained=reputation_gained,
        review=generate_review(quality, original.form, original.style, rng),
        factors=ScoreFactors(
            base_quality=original.quality,
            skill_bonus=quality_boost + luck,
            trend_alignment=0,
            venue_match=0,
            musician_quality=0,
            patron_bonus=0,
            soft_cap_adjustment=quality - raw,
        ),
        popularity=min(100, quality + 10),
        weeks_since_premiere=0,
        total_publisher_earnings=0,
        is_revival=True,
        original_work_id=original.id,
    )
    new_state.completed_works.append(revival)
    adjust_stat(new_state.stats, StatType.MONEY, earnings)
    adjust_stat(new_state.stats, StatType.REPUTATION, reputation_gained)
    logger.info("Revived %s at quality %d", original.title, quality)
    return new_state, revival


def decline_revival(state: GameState) -> GameState:
    if state.pending_revival is None:
        return state
    new_state = copy.deepcopy(state)
    new_state.pending_revival = None
    return new_state


__all__ = [
    "PublisherTick",
    "accept_revival",
    "can_afford_revival",
    "decline_revival",
    "is_revival_candidate",
    "popularity_decay",
    "process_publisher_income",
    "revived_work_ids",
    "weekly_income",
]
