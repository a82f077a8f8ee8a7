"""Tests for the autopilot career tool."""
from __future__ import annotations

from composer_tycoon.composition import new_work
from composer_tycoon.models import (
    CompositionForm,
    CompositionStyle,
    Instrumentation,
    MusicianQuality,
    VenueType,
)
from composer_tycoon.persistence import SqliteSaveStore
from composer_tycoon.rng import DeterministicRNG
from composer_tycoon.simulation import create_initial_state
from composer_tycoon.tools import simulate_career


def test_run_simulation_advances_requested_weeks():
    summary = simulate_career.run_simulation(weeks=30, rng=DeterministicRNG(7))

    assert summary["composer"] == "Ludwig"
    assert summary["date"] == "August, Week 3, 1820"
    assert not summary["game_over"]
    assert isinstance(summary["notifications"], list)


def test_run_simulation_is_reproducible_for_a_seed():
    first = simulate_career.run_simulation(weeks=40, rng=DeterministicRNG(42))
    second = simulate_career.run_simulation(weeks=40, rng=DeterministicRNG(42))

    assert first == second


def test_run_simulation_saves_final_state(tmp_path):
    store = SqliteSaveStore(tmp_path / "career.db")

    summary = simulate_career.run_simulation(
        weeks=8, name="Clara", rng=DeterministicRNG(1), store=store
    )

    loaded = store.load()
    assert loaded is not None
    assert loaded.composer_name == "Clara"
    assert summary["works"] == len(loaded.completed_works)


def test_choose_form_and_premiere_for_a_beginner():
    state = create_initial_state("Clara")
    assert simulate_career.choose_form(state) == CompositionForm.PIANO_SONATA
    assert simulate_career.choose_premiere(state) is None


def test_choose_premiere_prefers_best_affordable_setup():
    state = create_initial_state("Clara")
    state.pending_premiere = new_work(
        CompositionForm.PIANO_SONATA, CompositionStyle.CLASSICAL, Instrumentation.SOLO_PIANO, 0
    )

    setup = simulate_career.choose_premiere(state)

    assert setup.venue is VenueType.SALON
    assert setup.musician_quality is MusicianQuality.COMPETENT
    assert setup.dedicated_to == "countess_erdody"


def test_parse_args_defaults():
    args = simulate_career._parse_args([])

    assert args.weeks == 104
    assert args.seed is None
    assert args.db is None
    assert args.log_level == "WARNING"
