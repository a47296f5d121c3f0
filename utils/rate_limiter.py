"""
Keyed fixed-window rate limiter.

One instance is created per application in create_app() and stored on
app.extensions['lookup_rate_limiter']. Swap it for a shared store when
running more than one process.
"""

import threading
import time
from typing import Callable


class FixedWindowRateLimiter:
    """
    Allow at most max_attempts hits per key inside a fixed window.

    The window starts on the first hit for a key and resets once it has
    elapsed. Counting is guarded by a lock so simultaneous hits for the same
    key never lose an increment.

    Args:
        max_attempts: Hits allowed per window
        window_seconds: Window length
        clock: Monotonic clock (injectable for tests)
    """

    # Expired entries are swept once the store grows past this many keys
    SWEEP_THRESHOLD = 10000

    def __init__(self, max_attempts: int, window_seconds: float,
                 clock: Callable[[], float] = time.monotonic):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.clock = clock
        self._entries = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        """
        Record an attempt for key.

        Returns:
            True if the attempt is allowed, False if the budget is spent
        """
        with self._lock:
            now = self.clock()
            if len(self._entries) > self.SWEEP_THRESHOLD:
                self._sweep(now)

            entry = self._entries.get(key)
            if entry is None or now >= entry['reset_at']:
                self._entries[key] = {'count': 1, 'reset_at': now + self.window_seconds}
                return True

            if entry['count'] >= self.max_attempts:
                return False

            entry['count'] += 1
            return True

    def remaining(self, key: str) -> int:
        """Attempts left in the current window for key."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self.clock() >= entry['reset_at']:
                return self.max_attempts
            return max(0, self.max_attempts - entry['count'])

    def reset(self, key: str = None) -> None:
        """Forget one key, or every key when none is given."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def _sweep(self, now: float) -> None:
        expired = [k for k, v in self._entries.items() if now >= v['reset_at']]
        for k in expired:
            del self._entries[k]
