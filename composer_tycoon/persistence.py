"""Save slots: JSON snapshots of the whole game state."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from .catalog import parse_upgrade_effect
from .events import parse_event_effect
from .models import (
    CompletedWork,
    ComposerStats,
    CompositionForm,
    CompositionPhases,
    CompositionStyle,
    EventChoice,
    EventEffect,
    EventRequirements,
    GameDate,
    GameEvent,
    GameState,
    Instrumentation,
    LogEntry,
    LogType,
    Multiplier,
    Patron,
    RevivalOpportunity,
    ScoreFactors,
    SkillBoost,
    SkillEffect,
    Skills,
    StatBoost,
    StatEffect,
    TasteState,
    TasteTrend,
    Upgrade,
    UpgradeCategory,
    UpgradeEffect,
    VenueType,
    WorkInProgress,
)

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1

_DB_SCHEMA = """
CREATE TABLE IF NOT EXISTS saves (
    slot TEXT PRIMARY KEY,
    version INTEGER NOT NULL,
    saved_at TEXT NOT NULL,
    payload TEXT NOT NULL
);
"""

_LOAD_ERRORS = (
    sqlite3.Error,
    json.JSONDecodeError,
    AttributeError,
    KeyError,
    TypeError,
    ValueError,
)
_DUMP_ERRORS = (TypeError, ValueError)
_SAVE_ERRORS = (sqlite3.Error, TypeError, ValueError)


# Encoding ---------------------------------------------------------------
def _date_to_dict(date: GameDate) -> Dict[str, int]:
    return {"year": date.year, "month": date.month, "week": date.week}


def _phases_to_dict(phases: CompositionPhases) -> Dict[str, float]:
    return {
        "sketching": phases.sketching,
        "orchestration": phases.orchestration,
        "rehearsal_prep": phases.rehearsal_prep,
        "revision": phases.revision,
    }


def _wip_to_dict(work: Optional[WorkInProgress]) -> Optional[Dict[str, Any]]:
    if work is None:
        return None
    return {
        "form": work.form.value,
        "style": work.style.value,
        "instrumentation": work.instrumentation.value,
        "title": work.title,
        "phases": _phases_to_dict(work.phases),
        "weeks_spent": work.weeks_spent,
    }


def _factors_to_dict(factors: ScoreFactors) -> Dict[str, int]:
    return {
        "base_quality": factors.base_quality,
        "skill_bonus": factors.skill_bonus,
        "trend_alignment": factors.trend_alignment,
        "venue_match": factors.venue_match,
        "musician_quality": factors.musician_quality,
        "patron_bonus": factors.patron_bonus,
        "soft_cap_adjustment": factors.soft_cap_adjustment,
    }


def _work_to_dict(work: CompletedWork) -> Dict[str, Any]:
    return {
        "id": work.id,
        "title": work.title,
        "form": work.form.value,
        "style": work.style.value,
        "instrumentation": work.instrumentation.value,
        "quality": work.quality,
        "premiere_date": _date_to_dict(work.premiere_date),
        "venue": work.venue.value,
        "earnings": work.earnings,
        "reputation_gained": work.reputation_gained,
        "review": work.review,
        "factors": _factors_to_dict(work.factors),
        "dedicated_to": work.dedicated_to,
        "popularity": work.popularity,
        "weeks_since_premiere": work.weeks_since_premiere,
        "total_publisher_earnings": work.total_publisher_earnings,
        "is_revival": work.is_revival,
        "original_work_id": work.original_work_id,
    }


def _upgrade_effect_to_dict(effect: UpgradeEffect) -> Dict[str, Any]:
    if isinstance(effect, StatBoost):
        kind = "stat_boost"
    elif isinstance(effect, SkillBoost):
        kind = "skill_boost"
    elif isinstance(effect, Multiplier):
        kind = "multiplier"
    else:
        raise TypeError(f"Unhandled upgrade effect {effect!r}")
    return {"type": kind, "target": effect.target.value, "value": effect.value}


def _event_effect_to_dict(effect: EventEffect) -> Dict[str, Any]:
    if isinstance(effect, StatEffect):
        kind = "stat"
    elif isinstance(effect, SkillEffect):
        kind = "skill"
    else:
        raise TypeError(f"Unhandled event effect {effect!r}")
    return {
        "type": kind,
        "target": effect.target.value,
        "value": effect.value,
        "description": effect.description,
    }


def _event_to_dict(event: Optional[GameEvent]) -> Optional[Dict[str, Any]]:
    if event is None:
        return None
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "choices": [
            {
                "text": choice.text,
                "tooltip": choice.tooltip,
                "effects": [_event_effect_to_dict(e) for e in choice.effects],
            }
            for choice in event.choices
        ],
        "requirements": (
            {"min_reputation": event.requirements.min_reputation}
            if event.requirements is not None
            else None
        ),
    }


def state_to_dict(state: GameState) -> Dict[str, Any]:
    """Plain JSON-ready snapshot of ``state``, tagged with the format version."""

    stats = state.stats
    skills = state.skills
    revival = state.pending_revival
    return {
        "format_version": FORMAT_VERSION,
        "composer_name": state.composer_name,
        "current_date": _date_to_dict(state.current_date),
        "stats": {
            "money": stats.money,
            "reputation": stats.reputation,
            "inspiration": stats.inspiration,
            "health": stats.health,
            "max_health": stats.max_health,
            "connections": stats.connections,
        },
        "skills": {
            "melody": skills.melody,
            "harmony": skills.harmony,
            "orchestration": skills.orchestration,
            "form": skills.form,
            "productivity": skills.productivity,
            "social": skills.social,
        },
        "tastes": {
            "current": [t.value for t in state.tastes.current],
            "intensity": state.tastes.intensity,
        },
        "patrons": [
            {
                "id": p.id,
                "name": p.name,
                "title": p.title,
                "preferred_forms": [f.value for f in p.preferred_forms],
                "preferred_style": p.preferred_style.value,
                "generosity": p.generosity,
                "relationship": p.relationship,
            }
            for p in state.patrons
        ],
        "upgrades": [
            {
                "id": u.id,
                "name": u.name,
                "description": u.description,
                "category": u.category.value,
                "cost": u.cost,
                "effects": [_upgrade_effect_to_dict(e) for e in u.effects],
                "required_reputation": u.required_reputation,
                "purchased": u.purchased,
            }
            for u in state.upgrades
        ],
        "work_in_progress": _wip_to_dict(state.work_in_progress),
        "pending_premiere": _wip_to_dict(state.pending_premiere),
        "completed_works": [_work_to_dict(w) for w in state.completed_works],
        "event_log": [
            {
                "id": entry.id,
                "date": _date_to_dict(entry.date),
                "text": entry.text,
                "type": entry.type.value,
            }
            for entry in state.event_log
        ],
        "current_event": _event_to_dict(state.current_event),
        "pending_revival": (
            {
                "work_id": revival.work_id,
                "work_title": revival.work_title,
                "original_quality": revival.original_quality,
            }
            if revival is not None
            else None
        ),
        "achieved_milestones": list(state.achieved_milestones),
        "weekly_publisher_income": state.weekly_publisher_income,
        "is_game_over": state.is_game_over,
        "game_over_reason": state.game_over_reason,
    }


# Decoding ---------------------------------------------------------------
def _date_from_dict(data: Dict[str, Any]) -> GameDate:
    return GameDate(year=int(data["year"]), month=int(data["month"]), week=int(data["week"]))


def _wip_from_dict(data: Optional[Dict[str, Any]]) -> Optional[WorkInProgress]:
    if data is None:
        return None
    return WorkInProgress(
        form=CompositionForm(data["form"]),
        style=CompositionStyle(data["style"]),
        instrumentation=Instrumentation(data["instrumentation"]),
        title=data["title"],
        phases=CompositionPhases(**data["phases"]),
        weeks_spent=int(data["weeks_spent"]),
    )


def _work_from_dict(data: Dict[str, Any]) -> CompletedWork:
    return CompletedWork(
        id=data["id"],
        title=data["title"],
        form=CompositionForm(data["form"]),
        style=CompositionStyle(data["style"]),
        instrumentation=Instrumentation(data["instrumentation"]),
        quality=int(data["quality"]),
        premiere_date=_date_from_dict(data["premiere_date"]),
        venue=VenueType(data["venue"]),
        earnings=int(data["earnings"]),
        reputation_gained=int(data["reputation_gained"]),
        review=data["review"],
        factors=ScoreFactors(**data["factors"]),
        dedicated_to=data.get("dedicated_to"),
        popularity=data.get("popularity"),
        weeks_since_premiere=int(data.get("weeks_since_premiere", 0)),
        total_publisher_earnings=data.get("total_publisher_earnings"),
        is_revival=bool(data.get("is_revival", False)),
        original_work_id=data.get("original_work_id"),
    )


def _event_from_dict(data: Optional[Dict[str, Any]]) -> Optional[GameEvent]:
    if data is None:
        return None
    requirements = data.get("requirements")
    return GameEvent(
        id=data["id"],
        title=data["title"],
        description=data["description"],
        choices=[
            EventChoice(
                text=choice["text"],
                tooltip=choice.get("tooltip"),
                effects=[parse_event_effect(e) for e in choice["effects"]],
            )
            for choice in data["choices"]
        ],
        requirements=(
            EventRequirements(min_reputation=requirements.get("min_reputation"))
            if requirements
            else None
        ),
    )


def state_from_dict(data: Dict[str, Any]) -> GameState:
    """Rebuild a :class:`GameState`; raises ``ValueError`` on a foreign format."""

    if not isinstance(data, dict):
        raise ValueError(f"Save payload must be an object, got {type(data).__name__}")
    version = data.get("format_version")
    if version != FORMAT_VERSION:
        raise ValueError(f"Unsupported save format {version!r}")
    revival = data.get("pending_revival")
    patrons: List[Patron] = [
        Patron(
            id=p["id"],
            name=p["name"],
            title=p["title"],
            preferred_forms=[CompositionForm(f) for f in p["preferred_forms"]],
            preferred_style=CompositionStyle(p["preferred_style"]),
            generosity=int(p["generosity"]),
            relationship=float(p["relationship"]),
        )
        for p in data["patrons"]
    ]
    upgrades: List[Upgrade] = [
        Upgrade(
            id=u["id"],
            name=u["name"],
            description=u.get("description", ""),
            category=UpgradeCategory(u["category"]),
            cost=int(u["cost"]),
            effects=[parse_upgrade_effect(e) for e in u["effects"]],
            required_reputation=int(u["required_reputation"]),
            purchased=bool(u["purchased"]),
        )
        for u in data["upgrades"]
    ]
    return GameState(
        composer_name=data["composer_name"],
        current_date=_date_from_dict(data["current_date"]),
        stats=ComposerStats(**data["stats"]),
        skills=Skills(**data["skills"]),
        tastes=TasteState(
            current=[TasteTrend(t) for t in data["tastes"]["current"]],
            intensity=float(data["tastes"]["intensity"]),
        ),
        patrons=patrons,
        upgrades=upgrades,
        work_in_progress=_wip_from_dict(data.get("work_in_progress")),
        pending_premiere=_wip_from_dict(data.get("pending_premiere")),
        completed_works=[_work_from_dict(w) for w in data.get("completed_works", [])],
        event_log=[
            LogEntry(
                id=entry["id"],
                date=_date_from_dict(entry["date"]),
                text=entry["text"],
                type=LogType(entry["type"]),
            )
            for entry in data.get("event_log", [])
        ],
        current_event=_event_from_dict(data.get("current_event")),
        pending_revival=(
            RevivalOpportunity(
                work_id=revival["work_id"],
                work_title=revival["work_title"],
                original_quality=int(revival["original_quality"]),
            )
            if revival
            else None
        ),
        achieved_milestones=list(data.get("achieved_milestones", [])),
        weekly_publisher_income=int(data.get("weekly_publisher_income", 0)),
        is_game_over=bool(data.get("is_game_over", False)),
        game_over_reason=data.get("game_over_reason"),
    )


def dumps_state(state: GameState) -> str:
    return json.dumps(state_to_dict(state))


def loads_state(payload: str) -> GameState:
    return state_from_dict(json.loads(payload))


# Stores -----------------------------------------------------------------
class SaveStore(Protocol):
    """A single save slot holding one serialized game."""

    def save(self, state: GameState) -> bool: ...

    def load(self) -> Optional[GameState]: ...

    def exists(self) -> bool: ...

    def clear(self) -> bool: ...


class MemorySaveStore:
    """Keeps the serialized game in memory; handy for tests and previews."""

    def __init__(self) -> None:
        self._payload: Optional[str] = None

    def save(self, state: GameState) -> bool:
        try:
            self._payload = dumps_state(state)
        except _DUMP_ERRORS as exc:
            logger.warning("Failed to serialize %s: %s", state.composer_name, exc)
            return False
        return True

    def load(self) -> Optional[GameState]:
        if self._payload is None:
            return None
        try:
            return loads_state(self._payload)
        except _LOAD_ERRORS as exc:
            logger.warning("Discarding unreadable save: %s", exc)
            return None

    def exists(self) -> bool:
        return self._payload is not None

    def clear(self) -> bool:
        self._payload = None
        return True


class SqliteSaveStore:
    """Stores saves as JSON blobs in a SQLite table keyed by slot."""

    def __init__(self, db_path: Path, slot: str = "default") -> None:
        self._db_path = Path(db_path)
        self._slot = slot

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def slot(self) -> str:
        return self._slot

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.executescript(_DB_SCHEMA)
        return conn

    def save(self, state: GameState) -> bool:
        saved_at = datetime.now(timezone.utc).isoformat()
        try:
            payload = dumps_state(state)
            with closing(self._connect()) as conn:
                conn.execute(
                    "REPLACE INTO saves (slot, version, saved_at, payload) VALUES (?, ?, ?, ?)",
                    (self._slot, FORMAT_VERSION, saved_at, payload),
                )
                conn.commit()
        except _SAVE_ERRORS as exc:
            logger.warning("Failed to save slot %s: %s", self._slot, exc)
            return False
        logger.info("Saved %s to slot %s", state.composer_name, self._slot)
        return True

    def load(self) -> Optional[GameState]:
        try:
            with closing(self._connect()) as conn:
                row = conn.execute(
                    "SELECT version, payload FROM saves WHERE slot = ?",
                    (self._slot,),
                ).fetchone()
            if not row:
                return None
            if row[0] != FORMAT_VERSION:
                logger.warning("Slot %s holds unsupported save version %s", self._slot, row[0])
                return None
            return loads_state(row[1])
        except _LOAD_ERRORS as exc:
            logger.warning("Failed to load slot %s: %s", self._slot, exc)
            return None

    def exists(self) -> bool:
        try:
            with closing(self._connect()) as conn:
                row = conn.execute(
                    "SELECT 1 FROM saves WHERE slot = ?", (self._slot,)
                ).fetchone()
        except sqlite3.Error as exc:
            logger.warning("Failed to inspect slot %s: %s", self._slot, exc)
            return False
        return row is not None

    def clear(self) -> bool:
        try:
            with closing(self._connect()) as conn:
                conn.execute("DELETE FROM saves WHERE slot = ?", (self._slot,))
                conn.commit()
        except sqlite3.Error as exc:
            logger.warning("Failed to clear slot %s: %s", self._slot, exc)
            return False
        return True


__all__ = [
    "FORMAT_VERSION",
    "MemorySaveStore",
    "SaveStore",
    "SqliteSaveStore",
    "dumps_state",
    "loads_state",
    "state_from_dict",
    "state_to_dict",
]
