# src/marketpulse/shared/throttle.py
"""
Command Throttle - Per-chat Sliding Window Limiter

Every /update request triggers several upstream API calls, so on-demand
reports are limited per chat. The limiter keeps a sliding window of request
timestamps per key; it is thread-safe and takes an injectable clock.

Files that USE this module:
- marketpulse.adapters.telegram.handlers (throttles /update per chat)

Files that this module USES:
- None (pure utility implementation)
"""
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Hashable, Optional


class CommandThrottle:
    """Allow at most ``max_calls`` per ``window_seconds`` for each key."""

    def __init__(
        self,
        max_calls: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self._clock = clock
        self._calls: Dict[Hashable, Deque[float]] = {}
        self._lock = threading.Lock()

    def _prune(self, key: Hashable, now: float) -> Deque[float]:
        """Drop expired timestamps; keys left with none are forgotten."""
        calls = self._calls.get(key)
        if calls is None:
            return deque()
        cutoff = now - self.window_seconds
        while calls and calls[0] <= cutoff:
            calls.popleft()
        if not calls:
            del self._calls[key]
        return calls

    def allow(self, key: Hashable) -> bool:
        """
        Record a call for ``key`` if it is within the limit.

        Returns:
            True if the call is allowed, False if the key is throttled
            (a rejected call is not recorded)
        """
        with self._lock:
            now = self._clock()
            calls = self._prune(key, now)
            if len(calls) >= self.max_calls:
                return False
            calls.append(now)
            self._calls[key] = calls
            return True

    def retry_after(self, key: Hashable) -> Optional[float]:
        """Seconds until ``key`` may call again, or None if it is not throttled."""
        with self._lock:
            now = self._clock()
            calls = self._prune(key, now)
            if len(calls) < self.max_calls:
                return None
            return calls[0] + self.window_seconds - now

    def __len__(self) -> int:
        """Number of keys with calls inside the current window."""
        with self._lock:
            return len(self._calls)
