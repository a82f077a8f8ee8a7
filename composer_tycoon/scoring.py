"""Composition quality and premiere scoring rules."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .catalog import COMPOSITION_FORMS, INSTRUMENTATIONS, MUSICIAN_COSTS, STYLES, TREND_EFFECTS, VENUES
from .models import (
    CompositionPhases,
    Instrumentation,
    MusicianQuality,
    PremiereSetup,
    ScoreFactors,
    Skills,
    TasteState,
    VenueType,
    WorkInProgress,
    clamp,
)
from .press import generate_review, generate_work_title
from .rng import RandomSource, default_rng, randint

logger = logging.getLogger(__name__)

BASE_QUALITY_CAP = 75
LUCK_RANGE = (-10, 8)
DIMINISHING_THRESHOLD = 15
SOFT_CAP_THRESHOLD = 85
PATRON_BONUS = 5
NEUTRAL_INTENSITY = 50


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""

    return int(math.floor(value + 0.5))


def phase_balance(phases: CompositionPhases) -> float:
    """1.0 for a perfect 25% split across phases, lower as the split skews."""

    total = phases.total()
    if total == 0:
        return 0.0
    deviations = [abs(value / total - 0.25) for value in phases.values()]
    return 1 - (sum(deviations) / 4) * 4


def diminished(skill: float) -> float:
    if skill <= DIMINISHING_THRESHOLD:
        return skill
    return DIMINISHING_THRESHOLD + (skill - DIMINISHING_THRESHOLD) * 0.5


def calculate_base_quality(
    work: WorkInProgress,
    skills: Skills,
    rng: RandomSource | None = None,
    *,
    luck: Optional[int] = None,
) -> int:
    """Quality of the score itself before any premiere bonuses, in ``0..75``.

    ``luck`` overrides the random term, which otherwise is drawn uniformly
    from -10..8.
    """

    form = COMPOSITION_FORMS[work.form]
    modifiers = STYLES[work.style].modifiers

    total_points = work.phases.total()
    balance = phase_balance(work.phases)

    contributions = [
        diminished(skills.melody) * modifiers.melody,
        diminished(skills.harmony) * modifiers.harmony,
        diminished(skills.orchestration) * modifiers.orchestration,
        diminished(skills.form),
    ]
    skill_average = sum(contributions) / len(contributions)
    efficiency = min(1.2, total_points / (form.base_weeks * 8))

    quality = skill_average * 0.4 + balance * 12 + efficiency * 20
    quality -= (form.difficulty - 1) * 3
    if luck is None:
        luck = randint(rng or default_rng(), *LUCK_RANGE)
    quality += luck
    return round_half_up(clamp(quality, 0, BASE_QUALITY_CAP))


def calculate_trend_alignment(work: WorkInProgress, tastes: TasteState) -> int:
    alignment = 0
    for trend in tastes.current:
        effects = TREND_EFFECTS[trend]
        if work.form in effects.forms:
            alignment += 15
        if work.style in effects.styles:
            alignment += 10
    return round_half_up(alignment * (tastes.intensity / NEUTRAL_INTENSITY))


def calculate_venue_match(work: WorkInProgress, venue_type: VenueType) -> int:
    venue = VENUES[venue_type]
    if work.form in venue.best_for:
        return 20
    complexity = INSTRUMENTATIONS[work.instrumentation].complexity
    if venue.capacity < 100 and complexity > 3:
        return -15
    if venue.capacity > 1000 and complexity < 2:
        return -10
    return 5


def calculate_musician_quality_bonus(
    quality: MusicianQuality, instrumentation: Instrumentation
) -> int:
    multiplier = MUSICIAN_COSTS[quality].multiplier
    complexity = INSTRUMENTATIONS[instrumentation].complexity
    # Better musicians matter more for complex works.
    base_bonus = (multiplier - 1) * 30
    complexity_bonus = (complexity - 1) * 2 * (multiplier - 0.7)
    return round_half_up(base_bonus + complexity_bonus)


def calculate_skill_bonus(skills: Skills) -> int:
    average = (skills.melody + skills.harmony + skills.orchestration + skills.form) / 4
    return max(0, round_half_up((average - DIMINISHING_THRESHOLD) * 0.3))


def apply_soft_cap(raw_total: int) -> int:
    """Halve (rounding down) whatever exceeds 85, then clamp to ``0..100``."""

    if raw_total > SOFT_CAP_THRESHOLD:
        capped = SOFT_CAP_THRESHOLD + math.floor((raw_total - SOFT_CAP_THRESHOLD) * 0.5)
    else:
        capped = raw_total
    return int(clamp(capped, 0, 100))


@dataclass(frozen=True)
class PremiereOutcome:
    quality: int
    factors: ScoreFactors
    earnings: int
    reputation_gained: int
    review: str
    initial_popularity: int

    @property
    def raw_total(self) -> int:
        return self.factors.raw_total()


def calculate_premiere_success(
    work: WorkInProgress,
    skills: Skills,
    tastes: TasteState,
    setup: PremiereSetup,
    rng: RandomSource | None = None,
    *,
    luck: Optional[int] = None,
) -> PremiereOutcome:
    rng = rng or default_rng()
    venue = VENUES[setup.venue]
    form = COMPOSITION_FORMS[work.form]

    factors = ScoreFactors(
        base_quality=calculate_base_quality(work, skills, rng, luck=luck),
        skill_bonus=calculate_skill_bonus(skills),
        trend_alignment=calculate_trend_alignment(work, tastes),
        venue_match=calculate_venue_match(work, setup.venue),
        musician_quality=calculate_musician_quality_bonus(
            setup.musician_quality, work.instrumentation
        ),
        patron_bonus=PATRON_BONUS if setup.dedicated_to else 0,
    )
    raw_total = factors.raw_total()
    quality = apply_soft_cap(raw_total)
    factors.soft_cap_adjustment = quality - raw_total

    earnings = round_half_up(
        venue.capacity * (quality / 100) * 0.8 + setup.advertising_spent * 2
    )
    reputation_gained = round_half_up(
        form.difficulty * (quality / 100) * 3 + venue.prestige * 2
    )
    initial_popularity = min(100, round_half_up(quality * 0.8 + venue.prestige * 5))
    review = generate_review(quality, work.form, work.style, rng)

    logger.debug(
        "Scored %s: raw=%d quality=%d earnings=%d reputation=%d",
        work.title,
        raw_total,
        quality,
        earnings,
        reputation_gained,
    )
    return PremiereOutcome(
        quality=quality,
        factors=factors,
        earnings=earnings,
        reputation_gained=reputation_gained,
        review=review,
        initial_popularity=initial_popularity,
    )


__all__ = [
    "PremiereOutcome",
    "apply_soft_cap",
    "calculate_base_quality",
    "calculate_musician_quality_bonus",
    "calculate_premiere_success",
    "calculate_skill_bonus",
    "calculate_trend_alignment",
    "calculate_venue_match",
    "diminished",
    "generate_work_title",
    "phase_balance",
    "round_half_up",
]
