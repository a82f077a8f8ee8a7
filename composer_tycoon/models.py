"""Core data models for Composer Tycoon."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


class CompositionForm(str, Enum):
    PIANO_SONATA = "piano_sonata"
    STRING_QUARTET = "string_quartet"
    SYMPHONY = "symphony"
    LIED = "lied"
    OPERA = "opera"
    MASS = "mass"
    CONCERTO = "concerto"


class CompositionStyle(str, Enum):
    CLASSICAL = "classical"
    EARLY_ROMANTIC = "early_romantic"
    LATE_ROMANTIC = "late_romantic"


class Instrumentation(str, Enum):
    SOLO_PIANO = "solo_piano"
    CHAMBER_ENSEMBLE = "chamber_ensemble"
    SMALL_ORCHESTRA = "small_orchestra"
    FULL_ORCHESTRA = "full_orchestra"
    VOICE_AND_PIANO = "voice_and_piano"
    CHOIR_AND_ORCHESTRA = "choir_and_orchestra"


class VenueType(str, Enum):
    SALON = "salon"
    CHURCH = "church"
    SMALL_HALL = "small_hall"
    CONCERT_HALL = "concert_hall"
    OPERA_HOUSE = "opera_house"


class TasteTrend(str, Enum):
    VIRTUOSITY = "virtuosity"
    LYRICISM = "lyricism"
    SACRED = "sacred"
    SECULAR = "secular"
    NATIONALIST = "nationalist"
    COSMOPOLITAN = "cosmopolitan"


class MusicianQuality(str, Enum):
    AMATEUR = "amateur"
    COMPETENT = "competent"
    PROFESSIONAL = "professional"
    VIRTUOSO = "virtuoso"


class SkillType(str, Enum):
    MELODY = "melody"
    HARMONY = "harmony"
    ORCHESTRATION = "orchestration"
    FORM = "form"
    PRODUCTIVITY = "productivity"
    SOCIAL = "social"


class StatType(str, Enum):
    MONEY = "money"
    REPUTATION = "reputation"
    INSPIRATION = "inspiration"
    HEALTH = "health"
    MAX_HEALTH = "max_health"
    CONNECTIONS = "connections"


class UpgradeCategory(str, Enum):
    LIVING = "living"
    INSTRUMENT = "instrument"
    STAFF = "staff"
    CONNECTIONS = "connections"


class MultiplierTarget(str, Enum):
    EARNINGS = "earnings"
    REPUTATION = "reputation"
    INSPIRATION = "inspiration"


class LogType(str, Enum):
    EVENT = "event"
    PREMIERE = "premiere"
    COMPOSITION = "composition"
    UPGRADE = "upgrade"
    SYSTEM = "system"


MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
WEEKS_PER_MONTH = 4
MONTHS_PER_YEAR = 12


@dataclass(frozen=True)
class GameDate:
    """Calendar position: month is 0-11, week is 1-4."""

    year: int
    month: int
    week: int

    def next_week(self) -> "GameDate":
        year, month, week = self.year, self.month, self.week + 1
        if week > WEEKS_PER_MONTH:
            week = 1
            month += 1
            if month > MONTHS_PER_YEAR - 1:
                month = 0
                year += 1
        return GameDate(year=year, month=month, week=week)

    def total_weeks(self, epoch_year: int = 0) -> int:
        """Weeks elapsed since week 1 of January in ``epoch_year``."""

        return (
            (self.year - epoch_year) * MONTHS_PER_YEAR * WEEKS_PER_MONTH
            + self.month * WEEKS_PER_MONTH
            + (self.week - 1)
        )

    def is_quarter_start(self) -> bool:
        return self.month % 3 == 0 and self.week == 1


def format_date(date: GameDate) -> str:
    return f"{MONTH_NAMES[date.month]}, Week {date.week}, {date.year}"


def format_money(amount: float) -> str:
    return f"{int(round(amount)):,} Thalers"


@dataclass
class ComposerStats:
    money: float
    reputation: float
    inspiration: float
    health: float
    max_health: float
    connections: float


@dataclass
class Skills:
    melody: float
    harmony: float
    orchestration: float
    form: float
    productivity: float
    social: float

    def get(self, skill: SkillType) -> float:
        return getattr(self, skill.value)

    def adjust(self, skill: SkillType, delta: float) -> float:
        """Add ``delta`` to a skill, keeping it inside 0..100."""

        value = clamp(self.get(skill) + delta, 0, 100)
        setattr(self, skill.value, value)
        return value


@dataclass
class TasteState:
    current: List[TasteTrend]
    intensity: float


@dataclass
class CompositionPhases:
    sketching: float = 0
    orchestration: float = 0
    rehearsal_prep: float = 0
    revision: float = 0

    def values(self) -> List[float]:
        return [self.sketching, self.orchestration, self.rehearsal_prep, self.revision]

    def total(self) -> float:
        return sum(self.values())


PHASE_NAMES = ("sketching", "orchestration", "rehearsal_prep", "revision")


@dataclass
class WorkInProgress:
    form: CompositionForm
    style: CompositionStyle
    instrumentation: Instrumentation
    title: str
    phases: CompositionPhases = field(default_factory=CompositionPhases)
    weeks_spent: int = 0


@dataclass
class ScoreFactors:
    """Breakdown of a premiere score.

    The six named factors are the uncapped contributions. ``soft_cap_adjustment``
    is zero or negative and absorbs the soft cap and clamping, so all seven
    fields add up to the reported quality.
    """

    base_quality: int
    skill_bonus: int
    trend_alignment: int
    venue_match: int
    musician_quality: int
    patron_bonus: int
    soft_cap_adjustment: int = 0

    def raw_total(self) -> int:
        return (
            self.base_quality
            + self.skill_bonus
            + self.trend_alignment
            + self.venue_match
            + self.musician_quality
            + self.patron_bonus
        )

    def total(self) -> int:
        return self.raw_total() + self.soft_cap_adjustment


@dataclass
class CompletedWork:
    id: str
    title: str
    form: CompositionForm
    style: CompositionStyle
    instrumentation: Instrumentation
    quality: int
    premiere_date: GameDate
    venue: VenueType
    earnings: int
    reputation_gained: int
    review: str
    factors: ScoreFactors
    dedicated_to: Optional[str] = None
    # None marks records saved before publisher income existed.
    popularity: Optional[float] = None
    weeks_since_premiere: int = 0
    total_publisher_earnings: Optional[int] = None
    is_revival: bool = False
    original_work_id: Optional[str] = None


@dataclass
class Patron:
    id: str
    name: str
    title: str
    preferred_forms: List[CompositionForm]
    preferred_style: CompositionStyle
    generosity: int
    relationship: float = 0

    def strengthen(self, amount: float) -> float:
        self.relationship = clamp(self.relationship + amount, 0, 100)
        return self.relationship


@dataclass(frozen=True)
class StatBoost:
    target: StatType
    value: float


@dataclass(frozen=True)
class SkillBoost:
    target: SkillType
    value: float


@dataclass(frozen=True)
class Multiplier:
    target: MultiplierTarget
    value: float


UpgradeEffect = Union[StatBoost, SkillBoost, Multiplier]


@dataclass
class Upgrade:
    id: str
    name: str
    description: str
    category: UpgradeCategory
    cost: int
    effects: List[UpgradeEffect]
    required_reputation: int
    purchased: bool = False


@dataclass(frozen=True)
class StatEffect:
    target: StatType
    value: float
    description: str = ""


@dataclass(frozen=True)
class SkillEffect:
    target: SkillType
    value: float
    description: str = ""


EventEffect = Union[StatEffect, SkillEffect]


@dataclass(frozen=True)
class EventChoice:
    text: str
    effects: List[EventEffect]
    tooltip: Optional[str] = None


@dataclass(frozen=True)
class EventRequirements:
    min_reputation: Optional[int] = None


@dataclass(frozen=True)
class GameEvent:
    id: str
    title: str
    description: str
    choices: List[EventChoice]
    requirements: Optional[EventRequirements] = None

    def is_available(self, reputation: float) -> bool:
        if self.requirements is None or self.requirements.min_reputation is None:
            return True
        return reputation >= self.requirements.min_reputation


@dataclass(frozen=True)
class LogEntry:
    id: str
    date: GameDate
    text: str
    type: LogType


@dataclass(frozen=True)
class PremiereSetup:
    venue: VenueType
    musician_quality: MusicianQuality
    dedicated_to: Optional[str] = None
    advertising_spent: int = 0


@dataclass(frozen=True)
class RevivalOpportunity:
    work_id: str
    work_title: str
    original_quality: int


@dataclass
class GameState:
    """Aggregate root; the whole object is the unit of persistence."""

    composer_name: str
    current_date: GameDate
    stats: ComposerStats
    skills: Skills
    tastes: TasteState
    patrons: List[Patron]
    upgrades: List[Upgrade]
    work_in_progress: Optional[WorkInProgress] = None
    pending_premiere: Optional[WorkInProgress] = None
    completed_works: List[CompletedWork] = field(default_factory=list)
    event_log: List[LogEntry] = field(default_factory=list)
    current_event: Optional[GameEvent] = None
    pending_revival: Optional[RevivalOpportunity] = None
    achieved_milestones: List[str] = field(default_factory=list)
    weekly_publisher_income: int = 0
    is_game_over: bool = False
    game_over_reason: Optional[str] = None

    def find_patron(self, patron_id: str) -> Optional[Patron]:
        return next((p for p in self.patrons if p.id == patron_id), None)

    def find_upgrade(self, upgrade_id: str) -> Optional[Upgrade]:
        return next((u for u in self.upgrades if u.id == upgrade_id), None)

    def find_work(self, work_id: str) -> Optional[CompletedWork]:
        return next((w for w in self.completed_works if w.id == work_id), None)


def adjust_stat(stats: ComposerStats, stat: StatType, delta: float) -> float:
    """Apply ``delta`` to a stat with the clamp rule that stat carries."""

    if stat is StatType.MONEY:
        stats.money = max(0, stats.money + delta)
        return stats.money
    if stat is StatType.REPUTATION:
        stats.reputation = max(0, stats.reputation + delta)
        return stats.reputation
    if stat is StatType.CONNECTIONS:
        stats.connections = max(0, stats.connections + delta)
        return stats.connections
    if stat is StatType.INSPIRATION:
        stats.inspiration = clamp(stats.inspiration + delta, 0, 100)
        return stats.inspiration
    if stat is StatType.HEALTH:
        stats.health = clamp(stats.health + delta, 0, stats.max_health)
        return stats.health
    if stat is StatType.MAX_HEALTH:
        stats.max_health = max(1, stats.max_health + delta)
        stats.health = min(stats.health, stats.max_health)
        return stats.max_health
    raise TypeError(f"Unhandled stat {stat!r}")


__all__ = [
    "CompositionForm",
    "CompositionStyle",
    "Instrumentation",
    "VenueType",
    "TasteTrend",
    "MusicianQuality",
    "SkillType",
    "StatType",
    "UpgradeCategory",
    "MultiplierTarget",
    "LogType",
    "GameDate",
    "ComposerStats",
    "Skills",
    "TasteState",
    "CompositionPhases",
    "PHASE_NAMES",
    "WorkInProgress",
    "ScoreFactors",
    "CompletedWork",
    "Patron",
    "StatBoost",
    "SkillBoost",
    "Multiplier",
    "UpgradeEffect",
    "Upgrade",
    "StatEffect",
    "SkillEffect",
    "EventEffect",
    "EventChoice",
    "EventRequirements",
    "GameEvent",
    "LogEntry",
    "PremiereSetup",
    "RevivalOpportunity",
    "GameState",
    "adjust_stat",
    "clamp",
    "format_date",
    "format_money",
]
