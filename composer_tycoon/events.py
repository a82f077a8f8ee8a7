"""Narrative events drawn during the weekly loop."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .config import Settings, get_settings
from .models import (
    EventChoice,
    EventEffect,
    EventRequirements,
    GameEvent,
    GameState,
    SkillEffect,
    SkillType,
    StatEffect,
    StatType,
    adjust_stat,
)
from .rng import RandomSource, chance, choose, default_rng

logger = logging.getLogger(__name__)

_DATA_PATH = Path(__file__).parent / "data"


def parse_event_effect(entry: Dict[str, Any]) -> EventEffect:
    kind = entry["type"]
    value = float(entry["value"])
    description = str(entry.get("description", ""))
    if kind == "stat":
        return StatEffect(target=StatType(entry["target"]), value=value, description=description)
    if kind == "skill":
        return SkillEffect(target=SkillType(entry["target"]), value=value, description=description)
    raise ValueError(f"Unknown event effect type: {kind}")


def _parse_event(entry: Dict[str, Any]) -> GameEvent:
    requirements = entry.get("requirements")
    return GameEvent(
        id=entry["id"],
        title=entry["title"],
        description=entry["description"].strip(),
        choices=[
            EventChoice(
                text=choice["text"],
                tooltip=choice.get("tooltip"),
                effects=[parse_event_effect(effect) for effect in choice.get("effects", [])],
            )
            for choice in entry["choices"]
        ],
        requirements=(
            EventRequirements(min_reputation=requirements.get("min_reputation"))
            if requirements
            else None
        ),
    )


def load_events(path: Path | None = None) -> List[GameEvent]:
    path = path or _DATA_PATH / "events.yaml"
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return [_parse_event(entry) for entry in data.get("events", [])]


GAME_EVENTS: List[GameEvent] = load_events()


def eligible_events(reputation: float, events: Optional[List[GameEvent]] = None) -> List[GameEvent]:
    pool = GAME_EVENTS if events is None else events
    return [event for event in pool if event.is_available(reputation)]


def get_random_event(
    reputation: float,
    rng: RandomSource | None = None,
    settings: Settings | None = None,
    events: Optional[List[GameEvent]] = None,
) -> Optional[GameEvent]:
    """Roll for this week's event; ``None`` most weeks."""

    rng = rng or default_rng()
    settings = settings or get_settings()
    if not chance(rng, settings.event_chance):
        return None
    candidates = eligible_events(reputation, events)
    if not candidates:
        return None
    event = choose(rng, candidates)
    logger.debug("Drew event %s", event.id)
    return event


def apply_effect(state: GameState, effect: EventEffect) -> None:
    if isinstance(effect, StatEffect):
        adjust_stat(state.stats, effect.target, effect.value)
    elif isinstance(effect, SkillEffect):
        state.skills.adjust(effect.target, effect.value)
    else:
        raise TypeError(f"Unhandled event effect {effect!r}")


def apply_event_choice(state: GameState, choice: EventChoice) -> GameState:
    """Return a copy of ``state`` with every effect of ``choice`` applied."""

    new_state = copy.deepcopy(state)
    for effect in choice.effects:
        apply_effect(new_state, effect)
    return new_state


__all__ = [
    "GAME_EVENTS",
    "apply_effect",
    "apply_event_choice",
    "eligible_events",
    "get_random_event",
    "load_events",
    "parse_event_effect",
]
