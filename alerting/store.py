"""
Alert Store.

Persistence boundary for alerts. The in-memory store serves tests
and single-process use; database.repositories holds the SQL one.
"""

import threading
from typing import Dict, List, Optional, Protocol

from .models import Alert


class AlertStore(Protocol):
    """Keyed storage for alerts."""

    def get(self, alert_id: str) -> Optional[Alert]:
        ...

    def save(self, alert: Alert) -> None:
        ...

    def list_for_subject(self, subject_id: str) -> List[Alert]:
        """All alerts for a subject, oldest first."""
        ...

    def list_all(self) -> List[Alert]:
        ...


class InMemoryAlertStore:
    """Dict-backed alert store, safe for concurrent use."""

    def __init__(self) -> None:
        self._items: Dict[str, Alert] = {}
        self._by_subject: Dict[str, List[str]] = {}
        self._lock = threading.Lock()

    def get(self, alert_id: str) -> Optional[Alert]:
        with self._lock:
            return self._items.get(alert_id)

    def save(self, alert: Alert) -> None:
        with self._lock:
            if alert.alert_id not in self._items:
                self._by_subject.setdefault(alert.subject_id, []).append(alert.alert_id)
            self._items[alert.alert_id] = alert

    def list_for_subject(self, subject_id: str) -> List[Alert]:
        with self._lock:
            return [self._items[i] for i in self._by_subject.get(subject_id, [])]

    def list_all(self) -> List[Alert]:
        with self._lock:
            return sorted(self._items.values(), key=lambda a: a.created_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


__all__ = ["AlertStore", "InMemoryAlertStore"]
