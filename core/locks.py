"""
Core Module - Subject Locks.

============================================================
RESPONSIBILITY
============================================================
Serializes work on the same subject while letting different
subjects proceed in parallel.

- One reentrant lock per subject id, created on first use
- Entries are reference counted and dropped once idle
- Reentrancy lets the pipeline hold a subject lock across the
  tracker update and alert evaluation, both of which also lock

============================================================
"""

from contextlib import contextmanager
from typing import Dict, Generator, Hashable
import threading


class _Entry:
    __slots__ = ("lock", "refs")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.refs = 0


class SubjectLocks:
    """Registry of per-subject reentrant locks."""

    def __init__(self) -> None:
        self._entries: Dict[Hashable, _Entry] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, subject_id: Hashable) -> Generator[None, None, None]:
        """Hold the lock for ``subject_id`` for the duration of the block."""
        with self._guard:
            entry = self._entries.get(subject_id)
            if entry is None:
                entry = _Entry()
                self._entries[subject_id] = entry
            entry.refs += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.refs -= 1
                if entry.refs == 0:
                    del self._entries[subject_id]

    def active_keys(self) -> int:
        """Number of subjects currently holding or waiting on a lock."""
        with self._guard:
            return len(self._entries)


__all__ = ["SubjectLocks"]
