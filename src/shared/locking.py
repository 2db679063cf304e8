"""Per-aggregate locks for in-process serialisation of load-mutate-save cycles.

Two event deliveries touching the same order on different worker threads
must not interleave their read and write. Each (scope, aggregate id) pair
gets its own re-entrant lock so a handler that issues a nested command on
the same aggregate does not deadlock itself. The store's own version check
remains the last line of defence across processes.

A lock is tracked only while some thread holds or waits for it; the entry
is dropped when its last holder leaves.
"""

import threading
from contextlib import contextmanager

import structlog

from shared.exceptions import AggregateLockTimeout

logger = structlog.get_logger(__name__)

DEFAULT_LOCK_TIMEOUT = 5.0


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.RLock()
        self.holders = 0


class AggregateLocks:
    def __init__(self, timeout: float = DEFAULT_LOCK_TIMEOUT):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._entries: dict[tuple[str, str], _Entry] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    def _checkout(self, key: tuple[str, str]) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.holders += 1
            return entry

    def _checkin(self, key: tuple[str, str], entry: _Entry) -> None:
        with self._guard:
            entry.holders -= 1
            if entry.holders == 0 and self._entries.get(key) is entry:
                del self._entries[key]

    @contextmanager
    def hold(self, scope: str, aggregate_id: str, timeout: float | None = None):
        """Hold the lock for one aggregate for the duration of the block."""
        wait = self.timeout if timeout is None else timeout
        key = (scope, str(aggregate_id))
        entry = self._checkout(key)
        try:
            if not entry.lock.acquire(timeout=wait):
                logger.warning(
                    "Aggregate lock wait exceeded",
                    scope=scope,
                    aggregate_id=str(aggregate_id),
                    timeout=wait,
                )
                raise AggregateLockTimeout(scope, str(aggregate_id), wait)
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(key, entry)

    def clear(self) -> None:
        with self._guard:
            self._entries.clear()


aggregate_locks = AggregateLocks()
