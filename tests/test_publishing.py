"""Tests for publisher royalties, popularity decay and revivals."""
from __future__ import annotations

from dataclasses import replace

import pytest

from composer_tycoon.models import (
    CompletedWork,
    CompositionForm,
    CompositionStyle,
    GameDate,
    Instrumentation,
    RevivalOpportunity,
    ScoreFactors,
    VenueType,
)
from composer_tycoon.publishing import (
    accept_revival,
    decline_revival,
    popularity_decay,
    process_publisher_income,
    weekly_income,
)
from composer_tycoon.rng import ScriptedRNG
from composer_tycoon.simulation import advance_week, create_initial_state


def _completed(
    work_id="w1",
    form=CompositionForm.PIANO_SONATA,
    quality=70,
    popularity=0.0,
    weeks=60,
    is_revival=False,
    original_work_id=None,
):
    return CompletedWork(
        id=work_id,
        title="Sonata in C major, Op. 1",
        form=form,
        style=CompositionStyle.CLASSICAL,
        instrumentation=Instrumentation.SOLO_PIANO,
        quality=quality,
        premiere_date=GameDate(1820, 1, 1),
        venue=VenueType.SALON,
        earnings=20,
        reputation_gained=5,
        review="Fine.",
        factors=ScoreFactors(quality, 0, 0, 0, 0, 0),
        popularity=popularity,
        weeks_since_premiere=weeks,
        total_publisher_earnings=0,
        is_revival=is_revival,
        original_work_id=original_work_id,
    )


def test_weekly_income_formula():
    work = _completed(quality=80, popularity=50)
    # 2 x 0.5 x 0.8 x 0.5 x 2 = 0.8
    assert weekly_income(work) == 1


@pytest.mark.parametrize(
    "form,quality,expected",
    [
        (CompositionForm.PIANO_SONATA, 80, 1.8),
        (CompositionForm.LIED, 0, 2.6),
        (CompositionForm.SYMPHONY, 100, 0.5),
        (CompositionForm.OPERA, 100, 0.3),
    ],
)
def test_popularity_decay(form, quality, expected):
    assert popularity_decay(_completed(form=form, quality=quality)) == pytest.approx(expected)


def test_tick_pays_royalties_and_decays_popularity():
    work = _completed(quality=80, popularity=50, weeks=3)

    tick = process_publisher_income([work], None, ScriptedRNG([0.9]))

    assert tick.income == 1
    assert tick.revival is None
    assert work.total_publisher_earnings == 1
    assert work.weeks_since_premiere == 4
    assert work.popularity == pytest.approx(48.2)


def test_popularity_never_goes_negative():
    work = _completed(popularity=0.2, weeks=3)

    process_publisher_income([work], None, ScriptedRNG([0.9]))

    assert work.popularity == 0


def test_legacy_works_get_defaults():
    work = _completed(quality=60, weeks=3)
    work.popularity = None
    work.total_publisher_earnings = None

    process_publisher_income([work], None, ScriptedRNG([0.9]))

    assert work.popularity == pytest.approx(80 - popularity_decay(work))
    assert work.total_publisher_earnings is not None


def test_eligible_work_can_be_revived():
    work = _completed(weeks=51)

    tick = process_publisher_income([work], None, ScriptedRNG([0.0]))

    assert tick.revival == RevivalOpportunity(work_id="w1", work_title=work.title, original_quality=70)


@pytest.mark.parametrize(
    "overrides",
    [
        {"popularity": 5.0},
        {"weeks": 10},
        {"quality": 49},
        {"is_revival": True, "original_work_id": "w0"},
    ],
)
def test_ineligible_works_are_never_revived(overrides):
    work = _completed(**overrides)

    tick = process_publisher_income([work], None, ScriptedRNG([0.0]))

    assert tick.revival is None


def test_already_revived_work_is_skipped():
    original = _completed()
    revival = _completed(work_id="w2", popularity=40, weeks=1, is_revival=True, original_work_id="w1")

    tick = process_publisher_income([original, revival], None, ScriptedRNG([0.0]))

    assert tick.revival is None


def test_pending_revival_blocks_new_offers():
    pending = RevivalOpportunity(work_id="other", work_title="Other", original_quality=90)

    tick = process_publisher_income([_completed()], pending, ScriptedRNG([0.0]))

    assert tick.revival is None


def test_low_quality_work_never_revived_over_many_weeks():
    state = create_initial_state("Fanny")
    state.completed_works.append(_completed(quality=49))
    always = ScriptedRNG([0.0])
    for _ in range(200):
        state = advance_week(state, always)
        assert state.pending_revival is None


def test_advance_week_offers_revival_and_pays_income():
    state = create_initial_state("Fanny")
    state.completed_works.append(_completed(weeks=60))
    state.completed_works.append(_completed(work_id="w2", quality=80, popularity=50, weeks=3))

    advanced = advance_week(state, ScriptedRNG([0.0]))

    assert advanced.pending_revival is not None
    assert advanced.pending_revival.work_id == "w1"
    assert advanced.weekly_publisher_income == 1
    assert advanced.stats.money == 101


def test_accept_revival_creates_linked_work():
    state = create_initial_state("Fanny")
    state.completed_works.append(_completed())
    state = replace(state, pending_revival=RevivalOpportunity("w1", "Sonata in C major, Op. 1", 70))

    revived, work = accept_revival(state, ScriptedRNG([0.0]))

    assert revived.completed_works[-1] is work

    # melody 10 + harmony 10 gives a boost of 2, luck 0
    assert work.quality == 72
    assert work.earnings == 360
    assert work.reputation_gained == 7
    assert work.popularity == 82
    assert work.is_revival
    assert work.original_work_id == "w1"
    assert work.title == "Sonata in C major, Op. 1 (Revival)"
    assert work.factors.total() == 72
    assert revived.pending_revival is None
    assert revived.stats.money == 100 - 50 + 360
    assert revived.stats.inspiration == 30
    assert revived.stats.reputation == 7
    assert len(state.completed_works) == 1


def test_revival_quality_caps_at_one_hundred():
    state = create_initial_state("Fanny")
    state.completed_works.append(_completed(quality=98))
    state = replace(state, pending_revival=RevivalOpportunity("w1", "Sonata", 98))

    _, work = accept_revival(state, ScriptedRNG([0.95]))

    assert work.quality == 100
    assert work.factors.soft_cap_adjustment == -9
    assert work.factors.total() == 100


def test_decline_revival_clears_offer():
    state = create_initial_state("Fanny")
    state = replace(state, pending_revival=RevivalOpportunity("w1", "Sonata", 70))

    assert decline_revival(state).pending_revival is None
    assert state.pending_revival is not None


def test_accept_revival_of_missing_work_drops_offer():
    state = create_initial_state("Fanny")
    state = replace(state, pending_revival=RevivalOpportunity("gone", "Lost Sonata", 70))

    updated, work = accept_revival(state, ScriptedRNG([0.0]))

    assert work is None
    assert updated.pending_revival is None
    assert updated.completed_works == []
    assert updated.stats.money == 100
