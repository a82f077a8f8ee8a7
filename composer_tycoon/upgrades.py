"""Upgrade purchases and the multipliers they grant."""

from __future__ import annotations

import copy
import logging
from typing import List

from .models import (
    GameState,
    LogType,
    Multiplier,
    MultiplierTarget,
    SkillBoost,
    StatBoost,
    StatType,
    Upgrade,
    UpgradeEffect,
    adjust_stat,
)
from .simulation import add_log_entry

logger = logging.getLogger(__name__)


def available_upgrades(state: GameState) -> List[Upgrade]:
    """Unpurchased upgrades whose reputation gate is met."""

    return [
        u
        for u in state.upgrades
        if not u.purchased and state.stats.reputation >= u.required_reputation
    ]


def apply_upgrade_effect(state: GameState, effect: UpgradeEffect) -> None:
    if isinstance(effect, StatBoost):
        adjust_stat(state.stats, effect.target, effect.value)
    elif isinstance(effect, SkillBoost):
        state.skills.adjust(effect.target, effect.value)
    elif isinstance(effect, Multiplier):
        # Consulted at premiere time through multiplier_for.
        pass
    else:
        raise TypeError(f"Unhandled upgrade effect {effect!r}")


def purchase_upgrade(state: GameState, upgrade_id: str) -> GameState:
    """Buy ``upgrade_id``; callers check price, gate and prior purchase."""

    new_state = copy.deepcopy(state)
    upgrade = new_state.find_upgrade(upgrade_id)
    if upgrade is None:
        raise KeyError(upgrade_id)
    adjust_stat(new_state.stats, StatType.MONEY, -upgrade.cost)
    for effect in upgrade.effects:
        apply_upgrade_effect(new_state, effect)
    upgrade.purchased = True
    logger.info("Purchased %s for %d", upgrade.name, upgrade.cost)
    return add_log_entry(new_state, f"Purchased: {upgrade.name}", LogType.UPGRADE)


def multiplier_for(state: GameState, target: MultiplierTarget) -> float:
    """Combined multiplier from purchased upgrades; 1.0 when none apply."""

    total = 1.0
    for upgrade in state.upgrades:
        if not upgrade.purchased:
            continue
        for effect in upgrade.effects:
            if isinstance(effect, Multiplier) and effect.target is target:
                total *= effect.value
    return total


__all__ = ["apply_upgrade_effect", "available_upgrades", "multiplier_for", "purchase_upgrade"]
