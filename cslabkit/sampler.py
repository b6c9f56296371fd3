"""K-best measurement of how many cycles a function takes."""

from __future__ import annotations

import bisect
import functools
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from cslabkit.timing import CompensatedCounter, CycleCounter


@dataclass(frozen=True)
class MeasurementConfig:
    """Parameters that control a measurement."""

    k: int = 3
    max_samples: int = 20
    epsilon: float = 0.01
    compensate: bool = False
    clear_cache: bool = False
    cache_bytes: int = 1 << 19
    cache_block: int = 32

    def __post_init__(self) -> None:
        if self.k < 1:
            raise ValueError(f"k must be at least 1, got {self.k}")
        if self.max_samples < 1:
            raise ValueError(f"max_samples must be at least 1, got {self.max_samples}")
        if self.cache_bytes < 1 or self.cache_block < 1:
            raise ValueError("cache size and block size must be positive")


class KBestSampler:
    """Keeps the ``k`` smallest samples seen so far, in ascending order."""

    def __init__(self, k: int = 3, epsilon: float = 0.01) -> None:
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        self.k = k
        self.epsilon = epsilon
        self.count = 0
        self._values: list[float] = []

    @property
    def values(self) -> list[float]:
        return list(self._values)

    def add(self, value: float) -> None:
        """Record one sample."""
        if len(self._values) < self.k:
            bisect.insort(self._values, value)
        elif value < self._values[-1]:
            self._values.pop()
            bisect.insort(self._values, value)
        self.count += 1

    def converged(self) -> bool:
        """Whether the k smallest samples lie within ``epsilon`` of each other."""
        return (
            self.count >= self.k
            and (1 + self.epsilon) * self._values[0] >= self._values[self.k - 1]
        )

    def best(self) -> float:
        """The smallest sample."""
        if not self._values:
            raise ValueError("no samples recorded")
        return self._values[0]


class CacheClearer:
    """Evicts cached data by reading through a buffer larger than the cache."""

    def __init__(self, cache_bytes: int = 1 << 19, cache_block: int = 32) -> None:
        if cache_bytes < 1 or cache_block < 1:
            raise ValueError("cache size and block size must be positive")
        self.cache_bytes = cache_bytes
        self.cache_block = cache_block
        self._buffer: Optional[bytearray] = None
        self.sink = 0

    def clear(self) -> int:
        """Touch one byte per cache block; returns how many blocks were touched."""
        if self._buffer is None:
            self._buffer = bytearray(self.cache_bytes)
        touched = self._buffer[:: self.cache_block]
        self.sink += sum(touched)
        return len(touched)


@functools.lru_cache(maxsize=1)
def _clearer(cache_bytes: int, cache_block: int) -> CacheClearer:
    return CacheClearer(cache_bytes, cache_block)


@functools.lru_cache(maxsize=1)
def _compensated_counter() -> CompensatedCounter:
    return CompensatedCounter()


def measure(
    func: Callable[..., Any],
    args: Sequence[Any] = (),
    config: Optional[MeasurementConfig] = None,
) -> float:
    """Smallest cycle count of ``func(*args)`` over repeated runs."""
    config = config or MeasurementConfig()
    sampler = KBestSampler(config.k, config.epsilon)
    counter = _compensated_counter() if config.compensate else CycleCounter()
    clearer = _clearer(config.cache_bytes, config.cache_block) if config.clear_cache else None
    while True:
        if clearer is not None:
            clearer.clear()
        counter.start()
        func(*args)
        sampler.add(counter.elapsed())
        if sampler.converged() or sampler.count >= config.max_samples:
            break
    return sampler.best()