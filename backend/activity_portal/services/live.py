"""
Live snapshot subscriptions.

Writers call hub.publish(<collection>) after a successful commit. A SnapshotStream
watches one or more collections and yields the full current result set (never a
delta) first on start and then whenever any watched collection's version moves.
Streams are lazy (nothing is loaded until iterated), restartable (each iteration
starts from a fresh snapshot) and stop on cancel().

Versions are process-local; with several workers each process only sees its own
writes, so streams fall back to the poll interval for cross-process freshness.
"""
import asyncio
import logging
import threading
from collections import defaultdict
from typing import Any, Callable

from activity_portal.config import settings

logger = logging.getLogger(__name__)

USERS = "users"
ACTIVITIES = "activities"
DERIVED_ADMIN_REQUESTS = "derived_admin_requests"
COMPLAINTS = "complaints"
ALERTS = "alerts"
COLLECTIONS = (USERS, ACTIVITIES, DERIVED_ADMIN_REQUESTS, COMPLAINTS, ALERTS)


class SnapshotHub:
    """Per-collection change counters. Thread-safe; publish is called from request threads."""

    def __init__(self) -> None:
        self._versions: dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def publish(self, *collections: str) -> None:
        with self._lock:
            for c in collections:
                self._versions[c] += 1
        logger.debug("Published change: %s", ", ".join(collections))

    def version(self, *collections: str) -> tuple[int, ...]:
        with self._lock:
            return tuple(self._versions[c] for c in collections)


hub = SnapshotHub()


class SnapshotStream:
    """Async iterator of full snapshots produced by `load` for the watched collections."""

    def __init__(
        self,
        collections: tuple[str, ...] | list[str],
        load: Callable[[], Any],
        *,
        source: SnapshotHub | None = None,
        poll_interval: float | None = None,
        empty: Any = None,
        max_idle_polls: int | None = None,
    ) -> None:
        self.collections = tuple(collections)
        self._load = load
        self._hub = source or hub
        self._poll_interval = settings.live_poll_interval_seconds if poll_interval is None else poll_interval
        self._empty = [] if empty is None else empty
        # Re-emit the snapshot after this many unchanged polls (picks up other workers' writes).
        self._max_idle_polls = max_idle_polls
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def _snapshot(self) -> Any:
        try:
            return await asyncio.to_thread(self._load)
        except Exception as e:
            # Keep the subscriber alive with an empty view; the next change retries the load.
            logger.warning("Live snapshot load failed for %s: %s", self.collections, e)
            return self._empty

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        self._cancelled = False
        seen = self._hub.version(*self.collections)
        yield await self._snapshot()
        idle = 0
        while not self._cancelled:
            await asyncio.sleep(self._poll_interval)
            if self._cancelled:
                break
            current = self._hub.version(*self.collections)
            idle += 1
            if current == seen and (self._max_idle_polls is None or idle < self._max_idle_polls):
                continue
            seen = current
            idle = 0
            yield await self._snapshot()
