"""Press notices: critic review pools and work title generation."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from .catalog import COMPOSITION_FORMS, STYLES
from .models import CompositionForm, CompositionStyle
from .rng import RandomSource, choose, default_rng

_DATA_PATH = Path(__file__).parent / "data"


class ReviewLibrary:
    """Loads review bands and their template pools."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DATA_PATH / "reviews.yaml"
        with self._path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        self._bands: List[Tuple[str, Optional[int]]] = [
            (str(band["name"]), int(band["below"]) if "below" in band else None)
            for band in data.get("bands", [])
        ]
        self._pools: Dict[str, List[str]] = {
            str(name): [str(t) for t in templates]
            for name, templates in (data.get("reviews") or {}).items()
        }

    @property
    def bands(self) -> List[str]:
        return [name for name, _ in self._bands]

    def band_for(self, quality: float) -> str:
        for name, below in self._bands:
            if below is None or quality < below:
                return name
        return self._bands[-1][0]

    def templates(self, band: str) -> List[str]:
        return list(self._pools.get(band, []))

    def review(
        self,
        quality: float,
        form: CompositionForm,
        style: CompositionStyle,
        rng: RandomSource,
    ) -> str:
        template = choose(rng, self._pools[self.band_for(quality)])
        return template.format(
            form=COMPOSITION_FORMS[form].name.lower(),
            style=STYLES[style].name.lower(),
        )


class TitleLibrary:
    """Musical keys, title prefixes and curated titles per form."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DATA_PATH / "titles.yaml"
        with self._path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        self.keys: List[str] = list(data["keys"])
        self.prefixes: Dict[CompositionForm, List[str]] = {
            CompositionForm(form): list(values)
            for form, values in (data.get("prefixes") or {}).items()
        }
        self.curated: Dict[CompositionForm, Tuple[str, List[str]]] = {
            CompositionForm(form): (str(entry["pattern"]), list(entry["titles"]))
            for form, entry in (data.get("curated") or {}).items()
        }

    def title(self, form: CompositionForm, work_number: int, rng: RandomSource) -> str:
        opus = 1 + int(work_number * 1.5)
        if form in self.curated:
            pattern, titles = self.curated[form]
            return pattern.format(title=choose(rng, titles), opus=opus)
        prefix = choose(rng, self.prefixes[form])
        key = choose(rng, self.keys)
        return f"{prefix} in {key}, Op. {opus}"


_REVIEWS: Optional[ReviewLibrary] = None
_TITLES: Optional[TitleLibrary] = None


def get_review_library() -> ReviewLibrary:
    global _REVIEWS
    if _REVIEWS is None:
        _REVIEWS = ReviewLibrary()
    return _REVIEWS


def get_title_library() -> TitleLibrary:
    global _TITLES
    if _TITLES is None:
        _TITLES = TitleLibrary()
    return _TITLES


def generate_review(
    quality: float,
    form: CompositionForm,
    style: CompositionStyle,
    rng: RandomSource | None = None,
) -> str:
    return get_review_library().review(quality, form, style, rng or default_rng())


def review_band(quality: float) -> str:
    """Name of the quality band: terrible, poor, mediocre, good, excellent or masterpiece."""

    return get_review_library().band_for(quality)


def generate_work_title(
    form: CompositionForm, work_number: int, rng: RandomSource | None = None
) -> str:
    """Title such as ``Sonata in C minor, Op. 4``; opera and lied use curated pools."""

    return get_title_library().title(form, work_number, rng or default_rng())


__all__ = [
    "ReviewLibrary",
    "TitleLibrary",
    "generate_review",
    "generate_work_title",
    "get_review_library",
    "get_title_library",
    "review_band",
]
