"""Injectable random sources for the simulation."""

from __future__ import annotations

import random
from typing import Iterable, List, Protocol, Sequence, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    """Anything yielding floats in ``[0, 1)``; :class:`random.Random` qualifies."""

    def random(self) -> float: ...


def randint(source: RandomSource, lower: int, upper: int) -> int:
    """Inclusive integer in ``[lower, upper]`` drawn from ``source``."""

    span = upper - lower + 1
    return lower + min(span - 1, int(source.random() * span))


def choose(source: RandomSource, seq: Sequence[T]) -> T:
    if not seq:
        raise IndexError("Cannot choose from an empty sequence")
    return seq[randint(source, 0, len(seq) - 1)]


def chance(source: RandomSource, probability: float) -> bool:
    return source.random() < probability


class DeterministicRNG:
    """Wraps :mod:`random` with deterministic replay support."""

    def __init__(self, seed: int) -> None:
        self._seed = seed & 0xFFFFFFFF
        # nosec B311 - deterministic pseudo-RNG acceptable for game mechanics
        self._random = random.Random(self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    def random(self) -> float:
        return self._random.random()


class ScriptedRNG:
    """Replays a fixed list of values, cycling when exhausted."""

    def __init__(self, values: Iterable[float]) -> None:
        self._values: List[float] = [float(v) for v in values]
        if not self._values:
            raise ValueError("ScriptedRNG needs at least one value")
        for value in self._values:
            if not 0.0 <= value < 1.0:
                raise ValueError(f"Scripted value {value} outside [0, 1)")
        self._index = 0

    @property
    def calls(self) -> int:
        return self._index

    def random(self) -> float:
        value = self._values[self._index % len(self._values)]
        self._index += 1
        return value


# nosec B311 - pseudo-RNG acceptable for game mechanics
_DEFAULT = random.Random()


def default_rng() -> RandomSource:
    return _DEFAULT


__all__ = [
    "RandomSource",
    "DeterministicRNG",
    "ScriptedRNG",
    "randint",
    "choose",
    "chance",
    "default_rng",
]
