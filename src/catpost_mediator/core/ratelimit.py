"""Sliding-window admission control keyed by token and by client address.

State lives in process memory for the lifetime of the instance. Stale
timestamps are pruned on every check; keys themselves are never evicted,
which is bounded in practice by the closed token allow-list.
"""
from __future__ import annotations
import logging
import math
import threading
import time
from typing import Callable

from catpost_mediator.core.errors import RateLimited

LOGGER = logging.getLogger("catpost.core.ratelimit")


class RateWindowEntry:
    """Recorded instants for one key; guarded by its own lock."""

    __slots__ = ("key", "timestamps", "lock")

    def __init__(self, key: str) -> None:
        self.key = key
        self.timestamps: list[float] = []
        self.lock = threading.Lock()


class SlidingWindow:
    """One keyspace: key -> RateWindowEntry."""

    def __init__(
        self,
        window_seconds: float = 60.0,
        max_requests: int = 12,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._entries: dict[str, RateWindowEntry] = {}
        self._entries_lock = threading.Lock()

    def _entry(self, key: str) -> RateWindowEntry:
        with self._entries_lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = RateWindowEntry(key)
            return entry

    def hit(self, key: str) -> tuple[bool, float]:
        """
        Record one attempt for ``key``.

        The attempt is recorded before the comparison, so rejected attempts
        still occupy a slot until they age out.

        Returns:
            Whether the attempt is admitted, and seconds until the oldest
            recorded attempt for the key leaves the window.
        """
        entry = self._entry(key)
        with entry.lock:
            now = self._clock()
            entry.timestamps = [t for t in entry.timestamps if now - t < self.window_seconds]
            entry.timestamps.append(now)
            wait = max(0.0, entry.timestamps[0] + self.window_seconds - now)
            return len(entry.timestamps) <= self.max_requests, wait

    def __len__(self) -> int:
        with self._entries_lock:
            return len(self._entries)


class RateLimiter:
    """Admits a request only if both the token and the address keyspace do."""

    def __init__(
        self,
        window_seconds: float = 60.0,
        max_requests: int = 12,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.by_token = SlidingWindow(window_seconds, max_requests, clock)
        self.by_address = SlidingWindow(window_seconds, max_requests, clock)

    def check(self, token: str, address: str) -> None:
        # both keyspaces always record the attempt
        token_ok, token_wait = self.by_token.hit(token)
        address_ok, address_wait = self.by_address.hit(address)
        if token_ok and address_ok:
            return
        LOGGER.warning("Rate limit exceeded (token=%s address=%s)", not token_ok, not address_ok)
        # Retry-After covers both keyspaces so it does not reveal which one tripped
        wait = max(token_wait, address_wait)
        raise RateLimited("Rate limit exceeded", retry_after=max(1, math.ceil(wait)))
