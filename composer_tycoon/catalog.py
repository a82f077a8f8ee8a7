"""Static reference tables and starting rosters."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, FrozenSet, List

import yaml

from .models import (
    CompositionForm,
    CompositionStyle,
    Instrumentation,
    Multiplier,
    MultiplierTarget,
    MusicianQuality,
    Patron,
    SkillBoost,
    SkillType,
    StatBoost,
    StatType,
    TasteTrend,
    Upgrade,
    UpgradeCategory,
    UpgradeEffect,
    VenueType,
)

_DATA_PATH = Path(__file__).parent / "data"


@dataclass(frozen=True)
class FormSpec:
    name: str
    difficulty: int
    base_weeks: int
    required_reputation: int
    description: str
    best_instrumentation: List[Instrumentation]


@dataclass(frozen=True)
class StyleModifiers:
    melody: float
    harmony: float
    orchestration: float


@dataclass(frozen=True)
class StyleSpec:
    name: str
    description: str
    modifiers: StyleModifiers


@dataclass(frozen=True)
class InstrumentationSpec:
    name: str
    cost: int
    complexity: float
    orchestral: bool = False


@dataclass(frozen=True)
class VenueSpec:
    type: VenueType
    name: str
    capacity: int
    prestige: int
    cost: int
    required_reputation: int
    best_for: List[CompositionForm]


@dataclass(frozen=True)
class MusicianSpec:
    cost: int
    multiplier: float


@dataclass(frozen=True)
class TrendSpec:
    opposite: TasteTrend
    forms: FrozenSet[CompositionForm]
    styles: FrozenSet[CompositionStyle]


def _load_yaml_resource(filename: str) -> Dict[str, Any]:
    with (_DATA_PATH / filename).open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _build_forms(raw: Dict[str, Any]) -> Dict[CompositionForm, FormSpec]:
    return {
        CompositionForm(key): FormSpec(
            name=entry["name"],
            difficulty=int(entry["difficulty"]),
            base_weeks=int(entry["base_weeks"]),
            required_reputation=int(entry["required_reputation"]),
            description=entry.get("description", ""),
            best_instrumentation=[Instrumentation(i) for i in entry.get("best_instrumentation", [])],
        )
        for key, entry in raw.items()
    }


def _build_styles(raw: Dict[str, Any]) -> Dict[CompositionStyle, StyleSpec]:
    return {
        CompositionStyle(key): StyleSpec(
            name=entry["name"],
            description=entry.get("description", ""),
            modifiers=StyleModifiers(**{k: float(v) for k, v in entry["modifiers"].items()}),
        )
        for key, entry in raw.items()
    }


def _build_instrumentations(raw: Dict[str, Any]) -> Dict[Instrumentation, InstrumentationSpec]:
    return {
        Instrumentation(key): InstrumentationSpec(
            name=entry["name"],
            cost=int(entry["cost"]),
            complexity=float(entry["complexity"]),
            orchestral=bool(entry.get("orchestral", False)),
        )
        for key, entry in raw.items()
    }


def _build_venues(raw: Dict[str, Any]) -> Dict[VenueType, VenueSpec]:
    return {
        VenueType(key): VenueSpec(
            type=VenueType(key),
            name=entry["name"],
            capacity=int(entry["capacity"]),
            prestige=int(entry["prestige"]),
            cost=int(entry["cost"]),
            required_reputation=int(entry["required_reputation"]),
            best_for=[CompositionForm(f) for f in entry.get("best_for", [])],
        )
        for key, entry in raw.items()
    }


def _build_musicians(raw: Dict[str, Any]) -> Dict[MusicianQuality, MusicianSpec]:
    return {
        MusicianQuality(key): MusicianSpec(cost=int(entry["cost"]), multiplier=float(entry["multiplier"]))
        for key, entry in raw.items()
    }


def _build_trends(raw: Dict[str, Any]) -> Dict[TasteTrend, TrendSpec]:
    return {
        TasteTrend(key): TrendSpec(
            opposite=TasteTrend(entry["opposite"]),
            forms=frozenset(CompositionForm(f) for f in entry.get("forms", [])),
            styles=frozenset(CompositionStyle(s) for s in entry.get("styles", [])),
        )
        for key, entry in raw.items()
    }


_REFERENCE = _load_yaml_resource("reference.yaml")

COMPOSITION_FORMS: Dict[CompositionForm, FormSpec] = _build_forms(_REFERENCE["forms"])
STYLES: Dict[CompositionStyle, StyleSpec] = _build_styles(_REFERENCE["styles"])
INSTRUMENTATIONS: Dict[Instrumentation, InstrumentationSpec] = _build_instrumentations(
    _REFERENCE["instrumentations"]
)
VENUES: Dict[VenueType, VenueSpec] = _build_venues(_REFERENCE["venues"])
MUSICIAN_COSTS: Dict[MusicianQuality, MusicianSpec] = _build_musicians(_REFERENCE["musicians"])
TREND_EFFECTS: Dict[TasteTrend, TrendSpec] = _build_trends(_REFERENCE["trends"])
OPPOSITE_TRENDS: Dict[TasteTrend, TasteTrend] = {
    trend: spec.opposite for trend, spec in TREND_EFFECTS.items()
}


def parse_upgrade_effect(entry: Dict[str, Any]) -> UpgradeEffect:
    kind = entry["type"]
    value = float(entry["value"])
    if kind == "stat_boost":
        return StatBoost(target=StatType(entry["target"]), value=value)
    if kind == "skill_boost":
        return SkillBoost(target=SkillType(entry["target"]), value=value)
    if kind == "multiplier":
        return Multiplier(target=MultiplierTarget(entry["target"]), value=value)
    raise ValueError(f"Unknown upgrade effect type: {kind}")


def initial_patrons() -> List[Patron]:
    """Fresh patron roster with neutral relationships."""

    data = _load_yaml_resource("patrons.yaml")
    return [
        Patron(
            id=entry["id"],
            name=entry["name"],
            title=entry["title"],
            preferred_forms=[CompositionForm(f) for f in entry["preferred_forms"]],
            preferred_style=CompositionStyle(entry["preferred_style"]),
            generosity=int(entry["generosity"]),
            relationship=float(entry.get("relationship", 0)),
        )
        for entry in data["patrons"]
    ]


def initial_upgrades() -> List[Upgrade]:
    """Fresh upgrade catalogue with nothing purchased."""

    data = _load_yaml_resource("upgrades.yaml")
    return [
        Upgrade(
            id=entry["id"],
            name=entry["name"],
            description=entry.get("description", ""),
            category=UpgradeCategory(entry["category"]),
            cost=int(entry["cost"]),
            effects=[parse_upgrade_effect(effect) for effect in entry.get("effects", [])],
            required_reputation=int(entry.get("required_reputation", 0)),
        )
        for entry in data["upgrades"]
    ]


__all__ = [
    "FormSpec",
    "StyleSpec",
    "StyleModifiers",
    "InstrumentationSpec",
    "VenueSpec",
    "MusicianSpec",
    "TrendSpec",
    "COMPOSITION_FORMS",
    "STYLES",
    "INSTRUMENTATIONS",
    "VENUES",
    "MUSICIAN_COSTS",
    "TREND_EFFECTS",
    "OPPOSITE_TRENDS",
    "parse_upgrade_effect",
    "initial_patrons",
    "initial_upgrades",
]
