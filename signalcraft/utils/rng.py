"""Seeded random sources for the tick loop."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Protocol

import numpy as np
from numpy.random import Generator


class RandomSource(Protocol):
    """Anything that yields uniform floats in ``[0, 1)``."""

    def next_float(self) -> float:
        ...


@dataclass
class RNGManager:
    """Manage deterministic RNG streams keyed by name."""

    seed: int
    _streams: Dict[str, Generator] = field(default_factory=dict, init=False)

    def generator(self, name: str) -> Generator:
        """Return a deterministic generator identified by ``name``."""

        if name not in self._streams:
            namespace = int.from_bytes(hashlib.sha256(name.encode("utf-8")).digest()[:8], "little")
            seq = np.random.SeedSequence([self.seed, namespace & 0xFFFFFFFF, namespace >> 32])
            self._streams[name] = np.random.default_rng(seq)
        return self._streams[name]

    def source(self, name: str) -> "GeneratorSource":
        """Return a :class:`RandomSource` view over the ``name`` stream."""

        return GeneratorSource(self.generator(name))

    def reset(self) -> None:
        """Clear cached generators."""

        self._streams.clear()


@dataclass
class GeneratorSource:
    """Adapt a numpy ``Generator`` to the :class:`RandomSource` protocol."""

    generator: Generator

    def next_float(self) -> float:
        return float(self.generator.random())


class ScriptedSource:
    """Replay a fixed sequence of draws, cycling when exhausted.

    Useful for pinning the price process to an exact path in tests.
    """

    def __init__(self, values: Iterable[float]) -> None:
        self._values: List[float] = [float(v) for v in values]
        if not self._values:
            raise ValueError("ScriptedSource needs at least one value")
        for value in self._values:
            if not 0.0 <= value < 1.0:
                raise ValueError(f"Scripted draws must lie in [0, 1), received {value}")
        self._index = 0

    def next_float(self) -> float:
        value = self._values[self._index % len(self._values)]
        self._index += 1
        return value

    @property
    def draws(self) -> int:
        """Number of values consumed so far."""

        return self._index


def seeded_source(seed: int, name: str = "market") -> GeneratorSource:
    """Shorthand for a single named stream derived from ``seed``."""

    return RNGManager(seed).source(name)


__all__ = ["RandomSource", "RNGManager", "GeneratorSource", "ScriptedSource", "seeded_source"]
