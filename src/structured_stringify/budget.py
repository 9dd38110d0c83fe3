"""
Budget primitives: thresholds, expirations, counters and the deadline clock
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import Iterator, Optional, Union

from .short_circuit import MaxAllottedCountShortCircuit


def _check_non_negative(value: Optional[int], name: str = "value") -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected int or None for {name}, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"Expected non-negative {name}, got {value}")
    return value


@dataclass(frozen=True)
class Threshold:
    """A hard cap on some resource; ``None`` means unlimited"""

    value: Optional[int] = None

    def __post_init__(self) -> None:
        _check_non_negative(self.value)

    @property
    def is_unlimited(self) -> bool:
        return self.value is None

    @classmethod
    def coerce(cls, value: Union["Threshold", int, None]) -> "Threshold":
        """Accept a Threshold, a non-negative int or None"""
        if isinstance(value, Threshold):
            return value
        return cls(value)

    def __str__(self) -> str:
        return "unlimited" if self.value is None else str(self.value)


Threshold.UNLIMITED = Threshold(None)


@dataclass(frozen=True)
class InheritableThreshold:
    """
    A threshold that may defer to other thresholds

    An inherited threshold resolves through its fallbacks: the middle fallbacks
    are consulted nearest first (the last one given is the nearest), and the
    final fallback is used when every middle fallback is inherited as well.
    """

    value: Optional[int] = None
    is_inherited: bool = False

    def __post_init__(self) -> None:
        _check_non_negative(self.value)
        if self.is_inherited and self.value is not None:
            raise ValueError("An inherited threshold cannot carry a value")

    def get_value(
        self, final_fallback: Threshold, *middle_fallbacks: "InheritableThreshold"
    ) -> Optional[int]:
        """Resolve the effective cap"""
        for threshold in (self, *reversed(middle_fallbacks)):
            if not threshold.is_inherited:
                return threshold.value
        return final_fallback.value

    @classmethod
    def coerce(
        cls, value: Union["InheritableThreshold", Threshold, int, str, None]
    ) -> "InheritableThreshold":
        """Accept an InheritableThreshold, a Threshold, an int, None or ``"inherit"``"""
        if isinstance(value, InheritableThreshold):
            return value
        if isinstance(value, Threshold):
            return cls(value.value)
        if isinstance(value, str):
            if value.lower() == "inherit":
                return cls.INHERITED
            raise ValueError(f"Unrecognized threshold: {value!r}")
        return cls(value)

    def __str__(self) -> str:
        if self.is_inherited:
            return "inherit"
        return "unlimited" if self.value is None else str(self.value)


InheritableThreshold.UNSPECIFIED = InheritableThreshold(None)
InheritableThreshold.INHERITED = InheritableThreshold(None, True)


@dataclass(frozen=True)
class Expiration:
    """A render time budget: a duration from session start, or never"""

    value: Optional[timedelta] = None

    def __post_init__(self) -> None:
        if self.value is not None and self.value < timedelta(0):
            raise ValueError(f"Expected non-negative expiration, got {self.value}")

    @property
    def is_never(self) -> bool:
        return self.value is None

    @property
    def seconds(self) -> Optional[float]:
        return None if self.value is None else self.value.total_seconds()

    @classmethod
    def coerce(cls, value: Union["Expiration", timedelta, int, float, None]) -> "Expiration":
        """Accept an Expiration, a timedelta, a number of seconds or None (never)"""
        if isinstance(value, Expiration):
            return value
        if value is None or isinstance(value, timedelta):
            return cls(value)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Expected timedelta, seconds or None, got {type(value).__name__}")
        return cls(timedelta(seconds=value))

    @classmethod
    def from_milliseconds(cls, milliseconds: Optional[float]) -> "Expiration":
        return cls(None if milliseconds is None else timedelta(milliseconds=milliseconds))

    def __str__(self) -> str:
        return "Never" if self.value is None else str(self.value)


Expiration.NEVER = Expiration(None)


class AllottedCounter:
    """Countdown over an item budget"""

    def __init__(self, maximum: Optional[int]):
        self._current = maximum

    @classmethod
    def count(cls, maximum: Optional[int]) -> "AllottedCounter":
        return cls(maximum) if maximum is not None else cls.UNLIMITED

    @property
    def is_unlimited(self) -> bool:
        return self._current is None

    def try_decrement(self) -> bool:
        if self._current is None:
            return True
        self._current -= 1
        return self._current >= 0

    def decrement(self) -> None:
        """Consume one unit, raising a count short-circuit once exhausted"""
        if not self.try_decrement():
            raise MaxAllottedCountShortCircuit()


AllottedCounter.UNLIMITED = AllottedCounter(None)


class DeadlineClock:
    """Monotonic timer bound to an expiration that can be paused and resumed"""

    def __init__(self, expiration: Expiration):
        self._limit = expiration.seconds
        self._elapsed = 0.0
        self._started_at: Optional[float] = None if self._limit is None else time.perf_counter()
        self._is_over = False

    @property
    def is_running(self) -> bool:
        return self._started_at is not None

    @property
    def elapsed(self) -> float:
        """Elapsed seconds, excluding suspended intervals"""
        if self._started_at is None:
            return self._elapsed
        return self._elapsed + (time.perf_counter() - self._started_at)

    @property
    def is_over(self) -> bool:
        if self._is_over:
            return True
        if self._limit is None or self.elapsed <= self._limit:
            return False
        self._pause()
        self._is_over = True
        return True

    def _pause(self) -> None:
        if self._started_at is not None:
            self._elapsed += time.perf_counter() - self._started_at
            self._started_at = None

    @contextmanager
    def suspend(self) -> Iterator[None]:
        """Stop counting for the duration of the block"""
        if not self.is_running:
            yield
            return
        self._pause()
        try:
            yield
        finally:
            if not self._is_over:
                self._started_at = time.perf_counter()
