"""Shared search state: best-known schedule and the stop signal.

Kept apart from ``optimizer`` and ``search`` so both can import it without a
cycle.  These are the only objects workers share; everything else a worker
touches is its own copy.
"""

from __future__ import annotations

import threading
import time
from typing import Optional


class Incumbent:
    """Best complete assignment found so far.

    ``makespan`` may be read without the lock (a stale, too-high value only
    delays pruning); ``offer`` is an atomic "update only if strictly better".
    """

    def __init__(self, makespan: int, starts: list[int], source: str = "initial"):
        self._lock = threading.Lock()
        self._makespan = makespan
        self._starts = list(starts)
        self.source = source
        self.improvements = 0

    @property
    def makespan(self) -> int:
        return self._makespan

    def offer(self, makespan: int, starts: list[int], source: str = "search") -> bool:
        with self._lock:
            if makespan >= self._makespan:
                return False
            self._makespan = makespan
            self._starts = list(starts)
            self.source = source
            self.improvements += 1
            return True

    def snapshot(self) -> tuple[int, list[int]]:
        with self._lock:
            return self._makespan, list(self._starts)


class Cutoff:
    """Wall-clock and node budget shared by all workers.

    ``tick`` is called once per explored node; the first caller that finds
    the budget spent sets the event, every later ``tick`` sees it.
    """

    def __init__(self, time_limit: Optional[float] = None, node_limit: Optional[int] = None):
        self.time_limit = time_limit
        self.node_limit = node_limit
        self.started = time.perf_counter()
        self._deadline = None if time_limit is None else self.started + time_limit
        self._lock = threading.Lock()
        self._nodes = 0
        self.event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self.event.is_set()

    @property
    def nodes(self) -> int:
        return self._nodes

    def elapsed(self) -> float:
        return time.perf_counter() - self.started

    def cancel(self) -> None:
        self.event.set()

    def tick(self) -> bool:
        """Account one node; True when the search has to stop."""
        if self.event.is_set():
            return True
        with self._lock:
            self._nodes += 1
            over_nodes = self.node_limit is not None and self._nodes > self.node_limit
        if over_nodes or (self._deadline is not None and time.perf_counter() >= self._deadline):
            self.event.set()
            return True
        return False
