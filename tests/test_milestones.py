"""Tests for milestone evaluation."""
from __future__ import annotations

from dataclasses import replace

from composer_tycoon.config import get_settings
from composer_tycoon.milestones import MILESTONES, check_milestones
from composer_tycoon.models import (
    CompletedWork,
    CompositionForm,
    CompositionStyle,
    GameDate,
    Instrumentation,
    ScoreFactors,
    VenueType,
)
from composer_tycoon.simulation import create_initial_state


def _work(form=CompositionForm.PIANO_SONATA, work_id="w1"):
    return CompletedWork(
        id=work_id,
        title="Work",
        form=form,
        style=CompositionStyle.CLASSICAL,
        instrumentation=Instrumentation.SOLO_PIANO,
        quality=60,
        premiere_date=GameDate(1820, 0, 1),
        venue=VenueType.SALON,
        earnings=10,
        reputation_gained=3,
        review="Fine.",
        factors=ScoreFactors(60, 0, 0, 0, 0, 0),
    )


def test_milestone_table_order():
    assert [m.id for m in MILESTONES] == [
        "first_work",
        "reputation_25",
        "reputation_50",
        "reputation_100",
        "five_works",
        "symphony_premiere",
        "wealthy",
        "patron_favor",
    ]


def test_fresh_career_has_no_milestones():
    state, unlocked = check_milestones(create_initial_state("Ludwig"))

    assert unlocked == []
    assert state.achieved_milestones == []


def test_new_milestones_are_reported_in_order_and_logged():
    state = create_initial_state("Ludwig")
    state.stats.reputation = 55
    state.completed_works.append(_work())

    state, unlocked = check_milestones(state)

    assert unlocked == ["First Performance", "Rising Talent", "Established Composer"]
    assert state.achieved_milestones == ["first_work", "reputation_25", "reputation_50"]
    assert state.event_log[0].text == "Achievement unlocked: Established Composer!"


def test_check_milestones_is_idempotent():
    state = create_initial_state("Ludwig")
    state.stats.money = 1500
    state.patrons[0].relationship = 50

    state, first = check_milestones(state)
    state, second = check_milestones(state)

    assert first == ["Comfortable Living", "Patron's Favorite"]
    assert second == []
    assert len(state.achieved_milestones) == len(set(state.achieved_milestones))


def test_symphony_and_prolific_milestones():
    state = create_initial_state("Ludwig")
    for index in range(4):
        state.completed_works.append(_work(work_id=f"w{index}"))
    state.completed_works.append(_work(CompositionForm.SYMPHONY, work_id="w9"))

    _, unlocked = check_milestones(state)

    assert unlocked == ["First Performance", "Prolific Artist", "Symphonist"]


def test_milestone_log_respects_configured_limit():
    settings = replace(get_settings(), log_limit=2)
    state = create_initial_state("Ludwig")
    state.stats.reputation = 55
    state.completed_works.append(_work())

    state, unlocked = check_milestones(state, settings)

    assert len(unlocked) == 3
    assert [e.text for e in state.event_log] == [
        "Achievement unlocked: Established Composer!",
        "Achievement unlocked: Rising Talent!",
    ]
