"""In-memory per-client sliding-window rate limiter."""
from __future__ import annotations

import time
from collections import deque
from threading import Lock
from typing import Callable, Deque, Dict, Optional


class RateLimiter:
    """Tracks admitted requests per client within a sliding window.

    A single lock guards the whole client map so that the prune, compare and
    append steps for one request happen atomically. Client entries are created
    lazily and are only dropped by an explicit :meth:`evict_expired` call.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._limit = limit
        self._window = window_seconds
        self._clock = clock
        self._requests: Dict[str, Deque[float]] = {}
        self._lock = Lock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window(self) -> float:
        return self._window

    def __len__(self) -> int:
        with self._lock:
            return len(self._requests)

    def _prune(self, client_id: str, now: float) -> Deque[float]:
        # filter every entry; the clock may step backwards so order is not trusted
        q = deque(t for t in self._requests.get(client_id, ()) if now - t <= self._window)
        self._requests[client_id] = q
        return q

    def allow(self, client_id: str, now: Optional[float] = None) -> bool:
        """Return ``True`` and record the request when ``client_id`` is under its limit."""

        if now is None:
            now = self._clock()
        with self._lock:
            q = self._prune(client_id, now)
            if len(q) >= self._limit:
                return False
            q.append(now)
            return True

    def count(self, client_id: str, now: Optional[float] = None) -> int:
        """Return how many admissions ``client_id`` has inside the current window."""

        if now is None:
            now = self._clock()
        with self._lock:
            if client_id not in self._requests:
                return 0
            return len(self._prune(client_id, now))

    def evict_expired(self, now: Optional[float] = None) -> int:
        """Drop clients whose every timestamp has aged out of the window.

        Returns the number of evicted clients.
        """

        if now is None:
            now = self._clock()
        with self._lock:
            stale = []
            for client_id in list(self._requests):
                if not self._prune(client_id, now):
                    stale.append(client_id)
            for client_id in stale:
                del self._requests[client_id]
        return len(stale)
