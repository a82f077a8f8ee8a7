"""Configuration loading utilities for Composer Tycoon."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml


DEFAULT_SETTINGS_PATH = Path(__file__).parent / "data" / "settings.yaml"
_SETTINGS_ENV = "COMPOSER_TYCOON_SETTINGS"


@dataclass(frozen=True)
class Settings:
    """Typed view over the settings YAML file."""

    start_year: int
    start_month: int
    start_week: int
    start_city: str
    start_stats: Dict[str, float]
    start_skills: Dict[str, float]
    start_trends: List[str]
    start_taste_intensity: float
    log_limit: int
    event_chance: float
    health_regen: float
    inspiration_rise_chance: float
    inspiration_rise: float
    inspiration_fall: float
    taste_drift_chance: float
    taste_intensity_step: float
    taste_intensity_cap: float
    min_weekly_points: int
    finish_share: float
    premiere_inspiration_boost: float
    dedication_relationship_gain: float
    revival_money_cost: int
    revival_inspiration_cost: int
    revival_chance: float
    revival_min_weeks: int
    revival_min_quality: int
    old_age_year: int
    old_age_chance: float
    old_age_reason: str

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Settings":
        start = dict(data["start"])
        tastes = start.get("tastes", {})
        weekly = data.get("weekly", {})
        inspiration = weekly.get("inspiration", {})
        taste_cfg = data.get("tastes", {})
        composition = data.get("composition", {})
        premiere = data.get("premiere", {})
        revival = data.get("revival", {})
        old_age = data.get("old_age", {})
        return Settings(
            start_year=int(start.get("year", 1820)),
            start_month=int(start.get("month", 0)),
            start_week=int(start.get("week", 1)),
            start_city=str(start.get("city", "Vienna")),
            start_stats={k: float(v) for k, v in start["stats"].items()},
            start_skills={k: float(v) for k, v in start["skills"].items()},
            start_trends=list(tastes.get("current", ["lyricism", "cosmopolitan"])),
            start_taste_intensity=float(tastes.get("intensity", 30)),
            log_limit=int(data.get("log", {}).get("limit", 100)),
            event_chance=float(weekly.get("event_chance", 0.2)),
            health_regen=float(weekly.get("health_regen", 5)),
            inspiration_rise_chance=float(inspiration.get("rise_chance", 0.5)),
            inspiration_rise=float(inspiration.get("rise", 2)),
            inspiration_fall=float(inspiration.get("fall", 1)),
            taste_drift_chance=float(taste_cfg.get("drift_chance", 0.5)),
            taste_intensity_step=float(taste_cfg.get("intensity_step", 10)),
            taste_intensity_cap=float(taste_cfg.get("intensity_cap", 80)),
            min_weekly_points=int(composition.get("min_weekly_points", 2)),
            finish_share=float(composition.get("finish_share", 0.6)),
            premiere_inspiration_boost=float(premiere.get("inspiration_boost", 10)),
            dedication_relationship_gain=float(
                premiere.get("dedication_relationship_gain", 15)
            ),
            revival_money_cost=int(revival.get("money_cost", 50)),
            revival_inspiration_cost=int(revival.get("inspiration_cost", 20)),
            revival_chance=float(revival.get("chance", 0.03)),
            revival_min_weeks=int(revival.get("min_weeks", 52)),
            revival_min_quality=int(revival.get("min_quality", 50)),
            old_age_year=int(old_age.get("year", 1870)),
            old_age_chance=float(old_age.get("chance", 0.005)),
            old_age_reason=str(old_age.get("reason", "died of old age")),
        )


class SettingsLoader:
    """Loads and caches settings from YAML configuration files."""

    def __init__(self, path: Path | None = None) -> None:
        env_path = os.getenv(_SETTINGS_ENV)
        self._path = path or (Path(env_path) if env_path else DEFAULT_SETTINGS_PATH)
        self._cache: Settings | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self, force: bool = False) -> Settings:
        if self._cache is not None and not force:
            return self._cache
        with self._path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
        self._cache = Settings.from_dict(data)
        return self._cache


_DEFAULT_LOADER: SettingsLoader | None = None


def get_settings() -> Settings:
    """Convenience accessor for default settings."""

    global _DEFAULT_LOADER
    if _DEFAULT_LOADER is None:
        _DEFAULT_LOADER = SettingsLoader()
    return _DEFAULT_LOADER.load()


__all__ = ["Settings", "SettingsLoader", "get_settings"]
