"""Monotonic time source for review ages."""

from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass(frozen=True)
class Timestamp:
    """A reading of the monotonic clock."""

    monotonic_ns: int

    def elapsed_since(self, other: Timestamp) -> float:
        """Seconds from ``other`` to this timestamp."""
        return (self.monotonic_ns - other.monotonic_ns) / 1_000_000_000


class Clock:
    """
    Process monotonic clock.

    Wall clock adjustments never expire or extend a review.
    """

    def now(self) -> Timestamp:
        return Timestamp(time.monotonic_ns())


class MockClock(Clock):
    """Clock that only moves when advanced, for deterministic timeouts."""

    def __init__(self) -> None:
        self._monotonic_ns = 0

    def now(self) -> Timestamp:
        return Timestamp(self._monotonic_ns)

    def advance(self, seconds: float) -> None:
        self._monotonic_ns += round(seconds * 1_000_000_000)


# Engines created without an explicit clock read this one
_clock: Clock = Clock()


def get_clock() -> Clock:
    return _clock


def set_clock(clock: Clock) -> None:
    """Replace the default clock (tests use a MockClock)."""
    global _clock
    _clock = clock
