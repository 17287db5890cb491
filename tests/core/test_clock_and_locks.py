"""
Tests for core utilities: clock, subject locks and exceptions.
"""

import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from core.clock import ClockFactory, MockClock, SystemClock, ensure_utc, now_utc
from core.exceptions import (
    AlertNotFoundError,
    ErrorClassification,
    InvalidAlertTransitionError,
    InvalidConfigError,
    PersistenceError,
    ProviderTimeoutError,
    Severity,
)
from core.locks import SubjectLocks

from tests.conftest import FIXED_TIME


# =============================================================
# TEST: Clock
# =============================================================

class TestClock:
    """Test clock implementations."""

    def test_mock_clock_is_frozen(self):
        clock = MockClock(FIXED_TIME)
        assert clock.now() == clock.now() == FIXED_TIME

    def test_advance(self):
        clock = MockClock(FIXED_TIME)
        clock.advance(hours=2, minutes=30)
        clock.advance(30)

        assert clock.now() == FIXED_TIME + timedelta(hours=2, minutes=30, seconds=30)

    def test_set_time_naive_becomes_utc(self):
        clock = MockClock(FIXED_TIME)
        clock.set_time(datetime(2025, 2, 1, 8, 0))

        assert clock.now() == datetime(2025, 2, 1, 8, 0, tzinfo=timezone.utc)

    def test_hours_since(self):
        clock = MockClock(FIXED_TIME)
        clock.advance(hours=6)

        assert clock.hours_since(FIXED_TIME) == pytest.approx(6.0)
        assert clock.hours_since(FIXED_TIME.replace(tzinfo=None)) == pytest.approx(6.0)

    def test_system_clock_is_utc(self):
        assert SystemClock().now().tzinfo == timezone.utc

    def test_use_mock_restores_previous(self):
        original = ClockFactory.get_clock()

        with ClockFactory.use_mock(FIXED_TIME) as clock:
            assert now_utc() == FIXED_TIME
            clock.advance(hours=1)
            assert now_utc() == FIXED_TIME + timedelta(hours=1)

        assert ClockFactory.get_clock() is original

    def test_ensure_utc_keeps_aware(self):
        other = timezone(timedelta(hours=7))
        aware = datetime(2025, 1, 1, tzinfo=other)
        assert ensure_utc(aware).tzinfo is other


# =============================================================
# TEST: Subject locks
# =============================================================

class TestSubjectLocks:
    """Test per-subject serialization."""

    def test_reentrant(self):
        locks = SubjectLocks()
        with locks.hold("d1"):
            with locks.hold("d1"):
                assert locks.active_keys() == 1

        assert locks.active_keys() == 0

    def test_released_on_error(self):
        locks = SubjectLocks()
        with pytest.raises(RuntimeError):
            with locks.hold("d1"):
                raise RuntimeError("boom")

        assert locks.active_keys() == 0

    def test_same_subject_serialized(self):
        locks = SubjectLocks()
        inside = []
        overlaps = []

        def work():
            with locks.hold("d1"):
                inside.append(1)
                if len(inside) > 1:
                    overlaps.append(True)
                time.sleep(0.01)
                inside.pop()

        threads = [threading.Thread(target=work) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert overlaps == []
        assert locks.active_keys() == 0

    def test_different_subjects_independent(self):
        locks = SubjectLocks()
        entered = threading.Event()

        def other():
            with locks.hold("d2"):
                entered.set()

        with locks.hold("d1"):
            thread = threading.Thread(target=other)
            thread.start()
            assert entered.wait(timeout=1.0)
            thread.join()


# =============================================================
# TEST: Exceptions
# =============================================================

class TestExceptions:
    """Test exception metadata."""

    def test_invalid_config(self):
        error = InvalidConfigError("ReputationConfig", ["alpha must be in (0, 1)"])

        assert error.errors == ["alpha must be in (0, 1)"]
        assert "alpha" in str(error)
        assert error.is_recoverable is False
        assert error.to_dict()["context"]["config_name"] == "ReputationConfig"

    def test_provider_timeout_is_transient(self):
        error = ProviderTimeoutError("openrouter", 10.0)

        assert error.is_recoverable
        assert error.provider == "openrouter"
        assert error.context["timeout_seconds"] == 10.0

    def test_transition_error_fields(self):
        error = InvalidAlertTransitionError("a1", "assign", "resolved")

        assert error.alert_id == "a1"
        assert error.classification == ErrorClassification.NON_RECOVERABLE
        assert str(error) == "Cannot assign alert a1 in status resolved"

    def test_not_found_severity(self):
        assert AlertNotFoundError("a1").severity == Severity.LOW

    def test_cause_recorded(self):
        cause = OSError("disk full")
        data = PersistenceError("write failed", cause=cause).to_dict()

        assert data["cause"] == "disk full"
        assert data["context"]["cause_type"] == "OSError"
        assert data["severity"] == Severity.HIGH.value
