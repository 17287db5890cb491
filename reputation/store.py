"""
Subject Stats Store.

Persistence boundary for SubjectStats. The in-memory store backs
tests and single-process deployments; database.repositories holds
the SQL implementation.
"""

import threading
from typing import Dict, List, Optional, Protocol

from .models import SubjectStats


class SubjectStatsStore(Protocol):
    """Keyed storage for one SubjectStats per subject."""

    def get(self, subject_id: str) -> Optional[SubjectStats]:
        ...

    def save(self, stats: SubjectStats) -> None:
        ...

    def list_all(self) -> List[SubjectStats]:
        ...


class InMemorySubjectStatsStore:
    """Dict-backed store, safe for concurrent use."""

    def __init__(self) -> None:
        self._items: Dict[str, SubjectStats] = {}
        self._lock = threading.Lock()

    def get(self, subject_id: str) -> Optional[SubjectStats]:
        with self._lock:
            return self._items.get(subject_id)

    def save(self, stats: SubjectStats) -> None:
        with self._lock:
            self._items[stats.subject_id] = stats

    def list_all(self) -> List[SubjectStats]:
        with self._lock:
            return list(self._items.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


__all__ = ["SubjectStatsStore", "InMemorySubjectStatsStore"]
