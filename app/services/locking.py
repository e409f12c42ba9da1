"""
Per-Book Write Locks

In-process serialization point for aggregate maintenance. Every unit of
work that mutates reviews of a book and refreshes its counters runs while
holding that book's lock, so two requests served by the same worker can
never interleave their read-modify-write of the same Book row.

Across processes the same guarantee comes from the database row lock that
app.services.ratings.lock_book takes (SELECT ... FOR UPDATE).

Locks are created on demand and dropped again when nobody holds or waits
for them, so the registry only ever contains books currently being written.
"""

import threading
from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class KeyedLock:
    """A registry of mutexes keyed by an integer id."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[int, _LockEntry] = {}

    @contextmanager
    def hold(self, key: int) -> Iterator[None]:
        """Block until the lock for `key` is free, then hold it for the block."""
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _LockEntry()
            entry.users += 1

        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[key]

    @contextmanager
    def hold_many(self, keys: Iterable[int]) -> Iterator[None]:
        """Hold several locks, always acquired in ascending key order."""
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self.hold(key))
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


_book_locks = KeyedLock()


def book_lock(book_id: int):
    """Context manager serializing aggregate writers of one book."""
    return _book_locks.hold(book_id)


def book_locks(book_ids: Iterable[int]):
    """Context manager serializing aggregate writers of several books."""
    return _book_locks.hold_many(book_ids)
