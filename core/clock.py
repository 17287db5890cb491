"""
Core Module - Clock.

============================================================
RESPONSIBILITY
============================================================
Single time source for the reputation engine.

- Stats timestamps, alert cooldowns and overdue checks all read this clock
- Tests swap in a MockClock to control cooldown expiry deterministically

============================================================
DESIGN PRINCIPLES
============================================================
- UTC only
- Injectable: components take a clock, defaulting to the global one
- Thread-safe

============================================================
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Generator, Optional
import threading


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes, leave aware ones untouched."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Abstract interface for the engine clock."""

    @abstractmethod
    def now(self) -> datetime:
        """Get current UTC datetime."""
        pass

    def hours_since(self, moment: datetime) -> float:
        """Hours elapsed between ``moment`` and now."""
        return (self.now() - ensure_utc(moment)).total_seconds() / 3600.0


# ============================================================
# SYSTEM CLOCK (PRODUCTION)
# ============================================================

class SystemClock(ClockProtocol):
    """Production clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


# ============================================================
# MOCK CLOCK (TESTING)
# ============================================================

class MockClock(ClockProtocol):
    """
    Manually driven clock for tests.

    Time only moves when ``advance`` or ``set_time`` is called.
    """

    def __init__(self, initial_time: Optional[datetime] = None):
        self._time = ensure_utc(initial_time or datetime.now(timezone.utc))
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._time

    def set_time(self, new_time: datetime) -> None:
        """Jump to an absolute time."""
        with self._lock:
            self._time = ensure_utc(new_time)

    def advance(self, seconds: float = 0, **kwargs) -> None:
        """
        Move time forward.

        Args:
            seconds: Number of seconds to advance
            **kwargs: Passed to timedelta (hours, minutes, days, ...)
        """
        with self._lock:
            self._time = self._time + timedelta(seconds=seconds, **kwargs)


# ============================================================
# CLOCK FACTORY
# ============================================================

class ClockFactory:
    """Holds the process-wide clock instance."""

    _instance: Optional[ClockProtocol] = None
    _lock = threading.Lock()

    @classmethod
    def get_clock(cls) -> ClockProtocol:
        with cls._lock:
            if cls._instance is None:
                cls._instance = SystemClock()
            return cls._instance

    @classmethod
    def set_clock(cls, clock: ClockProtocol) -> None:
        with cls._lock:
            cls._instance = clock

    @classmethod
    def reset(cls) -> None:
        with cls._lock:
            cls._instance = SystemClock()

    @classmethod
    @contextmanager
    def use_mock(
        cls,
        initial_time: Optional[datetime] = None,
    ) -> Generator[MockClock, None, None]:
        """Temporarily install a MockClock as the global clock."""
        original = cls._instance
        mock = MockClock(initial_time)
        cls.set_clock(mock)
        try:
            yield mock
        finally:
            cls._instance = original


def now_utc() -> datetime:
    """Current UTC time from the global clock."""
    return ClockFactory.get_clock().now()


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "ClockFactory",
    "ensure_utc",
    "now_utc",
]
