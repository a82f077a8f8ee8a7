"""High-level game service orchestrating player actions."""

from __future__ import annotations

import logging
from collections import deque
from typing import List, Mapping, Optional, Union

from .catalog import COMPOSITION_FORMS, VENUES
from .composition import (
    can_finish,
    finish_composition,
    start_composition,
    validate_allocation,
    weeks_required,
    work_week,
)
from .config import Settings, get_settings
from .events import apply_event_choice, get_random_event
from .milestones import check_milestones
from .models import (
    CompletedWork,
    CompositionForm,
    CompositionPhases,
    CompositionStyle,
    GameState,
    Instrumentation,
    LogType,
    MusicianQuality,
    PremiereSetup,
    VenueType,
    format_money,
)
from .persistence import MemorySaveStore, SaveStore
from .premieres import apply_premiere, premiere_cost
from .publishing import accept_revival, can_afford_revival, decline_revival
from .rng import RandomSource, default_rng
from .simulation import add_log_entry, advance_week, create_initial_state
from .upgrades import purchase_upgrade

logger = logging.getLogger(__name__)

Allocation = Union[CompositionPhases, Mapping[str, float]]


class ActionRejected(ValueError):
    """Raised when a player action does not meet its preconditions."""


class GameService:
    """Holds the current game and applies player actions to it."""

    IDLE_WEEK_TEXT = "A week passed in quiet contemplation."

    def __init__(
        self,
        store: SaveStore | None = None,
        rng: RandomSource | None = None,
        settings: Settings | None = None,
        autosave: bool = True,
    ) -> None:
        self.settings = settings or get_settings()
        self.store: SaveStore = store or MemorySaveStore()
        self.autosave = autosave
        self._rng = rng or default_rng()
        self._state: Optional[GameState] = None
        self._notifications: deque[str] = deque()

    # Game lifecycle ----------------------------------------------------
    @property
    def has_game(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> GameState:
        if self._state is None:
            raise ActionRejected("No game in progress")
        return self._state

    def new_game(self, composer_name: str) -> GameState:
        name = composer_name.strip()
        if not name:
            raise ActionRejected("A composer needs a name")
        self._notifications.clear()
        self._commit(create_initial_state(name, self.settings))
        logger.info("New career started for %s", name)
        return self.state

    def load_game(self) -> bool:
        state = self.store.load()
        if state is None:
            return False
        self._state = state
        self._notifications.clear()
        logger.info("Loaded career of %s", state.composer_name)
        return True

    def save_game(self) -> bool:
        return self.store.save(self.state)

    def has_saved_game(self) -> bool:
        return self.store.exists()

    def reset_saved_game(self) -> bool:
        return self.store.clear()

    def drain_notifications(self) -> List[str]:
        messages = list(self._notifications)
        self._notifications.clear()
        return messages

    # Weekly loop -------------------------------------------------------
    def pass_week(self) -> GameState:
        state = self._require_active()
        self._ensure_no_event(state)
        state = advance_week(state, self._rng, self.settings)
        state = add_log_entry(state, self.IDLE_WEEK_TEXT, LogType.SYSTEM, limit=self.settings.log_limit)
        self._commit(self._after_week(state))
        return self.state

    def work_week(self, allocation: Allocation | None = None) -> GameState:
        state = self._require_active()
        self._ensure_no_event(state)
        if state.work_in_progress is None:
            raise ActionRejected("You are not composing anything")
        phases = self._coerce_allocation(allocation)
        state = work_week(state, phases, self.settings)
        state = advance_week(state, self._rng, self.settings)
        self._commit(self._after_week(state))
        return self.state

    # Composition -------------------------------------------------------
    def start_composition(
        self,
        form: Union[CompositionForm, str],
        style: Union[CompositionStyle, str],
        instrumentation: Union[Instrumentation, str],
    ) -> GameState:
        state = self._require_active()
        form = CompositionForm(form)
        style = CompositionStyle(style)
        instrumentation = Instrumentation(instrumentation)
        if state.work_in_progress is not None:
            raise ActionRejected("You are already composing a work")
        if state.pending_premiere is not None:
            raise ActionRejected("Premiere your finished work before starting another")
        required = COMPOSITION_FORMS[form].required_reputation
        if state.stats.reputation < required:
            raise ActionRejected(
                f"A {COMPOSITION_FORMS[form].name} requires {required} reputation"
            )
        self._commit(start_composition(state, form, style, instrumentation, self._rng))
        return self.state

    def finish_composition(self) -> GameState:
        state = self._require_active()
        work = state.work_in_progress
        if work is None:
            raise ActionRejected("You are not composing anything")
        if not can_finish(work, self.settings):
            raise ActionRejected(
                f"Work for at least {weeks_required(work.form, self.settings)} weeks first"
            )
        self._commit(finish_composition(state))
        return self.state

    def schedule_premiere(
        self,
        venue: Union[VenueType, str],
        musician_quality: Union[MusicianQuality, str],
        dedicated_to: Optional[str] = None,
        advertising_spent: int = 0,
    ) -> CompletedWork:
        state = self._require_active()
        work = state.pending_premiere
        if work is None:
            raise ActionRejected("No finished work is awaiting a premiere")
        setup = PremiereSetup(
            venue=VenueType(venue),
            musician_quality=MusicianQuality(musician_quality),
            dedicated_to=dedicated_to or None,
            advertising_spent=int(advertising_spent),
        )
        if setup.advertising_spent < 0:
            raise ActionRejected("Advertising spend cannot be negative")
        venue_spec = VENUES[setup.venue]
        if state.stats.reputation < venue_spec.required_reputation:
            raise ActionRejected(
                f"{venue_spec.name} requires {venue_spec.required_reputation} reputation"
            )
        if setup.dedicated_to and state.find_patron(setup.dedicated_to) is None:
            raise ActionRejected(f"Unknown patron {setup.dedicated_to}")
        cost = premiere_cost(work, setup)
        if state.stats.money < cost:
            raise ActionRejected(f"The premiere costs {format_money(cost)}")

        state, completed = apply_premiere(state, setup, self._rng, self.settings)
        self._commit(self._record_milestones(state))
        return completed

    # Events and upgrades -----------------------------------------------
    def resolve_event(self, choice_index: int) -> GameState:
        state = self._require_active()
        event = state.current_event
        if event is None:
            raise ActionRejected("There is no event to respond to")
        if not 0 <= choice_index < len(event.choices):
            raise ActionRejected(f"Invalid choice {choice_index} for {event.title}")
        choice = event.choices[choice_index]
        state = apply_event_choice(state, choice)
        state.current_event = None
        state = add_log_entry(
            state, f'{event.title}: Chose "{choice.text}"', LogType.EVENT, limit=self.settings.log_limit
        )
        logger.info("Resolved %s with choice %d", event.id, choice_index)
        self._commit(self._record_milestones(state))
        return self.state

    def purchase_upgrade(self, upgrade_id: str) -> GameState:
        state = self._require_active()
        upgrade = state.find_upgrade(upgrade_id)
        if upgrade is None:
            raise ActionRejected(f"Unknown upgrade {upgrade_id}")
        if upgrade.purchased:
            raise ActionRejected(f"{upgrade.name} is already yours")
        if state.stats.reputation < upgrade.required_reputation:
            raise ActionRejected(
                f"{upgrade.name} requires {upgrade.required_reputation} reputation"
            )
        if state.stats.money < upgrade.cost:
            raise ActionRejected(f"{upgrade.name} costs {format_money(upgrade.cost)}")
        self._commit(self._record_milestones(purchase_upgrade(state, upgrade_id)))
        return self.state

    # Revivals ----------------------------------------------------------
    def accept_revival(self) -> CompletedWork:
        state = self._require_active()
        if state.pending_revival is None:
            raise ActionRejected("No revival is on offer")
        if not can_afford_revival(state, self.settings):
            raise ActionRejected(
                f"A revival needs {format_money(self.settings.revival_money_cost)} and "
                f"{self.settings.revival_inspiration_cost} inspiration"
            )
        opportunity = state.pending_revival
        if state.find_work(opportunity.work_id) is None:
            raise ActionRejected(f'"{opportunity.work_title}" is no longer in your catalogue')
        state, revival = accept_revival(state, self._rng, self.settings)
        state = add_log_entry(
            state,
            f'Revived "{revival.title}". Quality: {revival.quality}.',
            LogType.PREMIERE,
            limit=self.settings.log_limit,
        )
        self._commit(self._record_milestones(state))
        return revival

    def decline_revival(self) -> GameState:
        state = self._require_active()
        opportunity = state.pending_revival
        if opportunity is None:
            raise ActionRejected("No revival is on offer")
        state = decline_revival(state)
        state = add_log_entry(
            state,
            f'Declined to revive "{opportunity.work_title}".',
            LogType.SYSTEM,
            limit=self.settings.log_limit,
        )
        self._commit(state)
        return self.state

    # Internals ---------------------------------------------------------
    def _require_active(self) -> GameState:
        state = self.state
        if state.is_game_over:
            raise ActionRejected(f"The game is over: {state.composer_name} {state.game_over_reason}")
        return state

    @staticmethod
    def _ensure_no_event(state: GameState) -> None:
        if state.current_event is not None:
            raise ActionRejected(f"Respond to {state.current_event.title} first")

    @staticmethod
    def _coerce_allocation(allocation: Allocation | None) -> Optional[CompositionPhases]:
        if allocation is None:
            return None
        if isinstance(allocation, CompositionPhases):
            phases = allocation
        else:
            try:
                phases = CompositionPhases(**{k: float(v) for k, v in allocation.items()})
            except TypeError as exc:
                raise ActionRejected(f"Unknown phase in allocation: {exc}") from exc
        try:
            validate_allocation(phases)
        except ValueError as exc:
            raise ActionRejected(str(exc)) from exc
        return phases

    def _after_week(self, state: GameState) -> GameState:
        previous = self._state
        if state.pending_revival is not None and (
            previous is None or previous.pending_revival is None
        ):
            self._notify(f'Revival opportunity: "{state.pending_revival.work_title}"')
        if state.is_game_over:
            message = f"{state.composer_name} {state.game_over_reason}."
            state = add_log_entry(state, message, LogType.SYSTEM, limit=self.settings.log_limit)
            self._notify(f"Game over: {message}")
        elif state.current_event is None:
            event = get_random_event(state.stats.reputation, self._rng, self.settings)
            if event is not None:
                state.current_event = event
        return self._record_milestones(state)

    def _record_milestones(self, state: GameState) -> GameState:
        state, unlocked = check_milestones(state, self.settings)
        for name in unlocked:
            self._notify(name)
        return state

    def _notify(self, message: str) -> None:
        logger.info(message)
        self._notifications.append(message)

    def _commit(self, state: GameState) -> None:
        self._state = state
        if self.autosave:
            self.store.save(state)


__all__ = ["ActionRejected", "GameService"]
