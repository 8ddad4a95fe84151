"""Tests for the clock utilities."""

from __future__ import annotations

from find_reviewer.service.clock import Clock, MockClock, Timestamp, get_clock


def test_elapsed_since_in_seconds():
    assert Timestamp(2_500_000_000).elapsed_since(Timestamp(1_000_000_000)) == 1.5


def test_mock_clock_moves_only_when_advanced():
    clock = MockClock()
    start = clock.now()

    assert clock.now() == start
    clock.advance(1.5)
    assert clock.now().elapsed_since(start) == 1.5


def test_real_clock_is_monotonic():
    clock = Clock()
    first = clock.now()

    assert clock.now().elapsed_since(first) >= 0


def test_default_clock_is_replaceable(mock_clock):
    assert get_clock() is mock_clock


def test_default_clock_restored_after_mocking():
    """The mock_clock fixture does not leak into tests that don't use it."""
    assert not isinstance(get_clock(), MockClock)
