"""In-memory per-client request limiting for the HTTP endpoint.

Sliding window per client key. Fine for a single-instance deployment;
nothing is shared between processes.
"""
import logging
import threading
import time
from collections import defaultdict

from clausereview.config import RATE_LIMIT_MAX, RATE_LIMIT_WINDOW

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 300


class ClientRateLimiter:
    def __init__(self, max_requests=RATE_LIMIT_MAX, window_seconds=RATE_LIMIT_WINDOW):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        # client key -> request timestamps inside the window
        self.requests = defaultdict(list)
        self.last_cleanup = time.time()
        self._lock = threading.Lock()

    def _prune(self, key, now):
        timestamps = self.requests[key]
        timestamps[:] = [ts for ts in timestamps if now - ts < self.window_seconds]
        return timestamps

    def check(self, key) -> bool:
        """
        Record a request for ``key``.
        Returns True if allowed, False if the client is over its limit.
        """
        now = time.time()
        with self._lock:
            timestamps = self._prune(key, now)
            if len(timestamps) >= self.max_requests:
                return False
            timestamps.append(now)
            self._cleanup_if_needed(now)
        return True

    def retry_after(self, key) -> int:
        """Whole seconds until the oldest request in the window expires."""
        now = time.time()
        with self._lock:
            timestamps = self._prune(key, now)
            if len(timestamps) < self.max_requests:
                return 0
            return max(1, int(timestamps[0] + self.window_seconds - now + 0.999))

    def status(self, key) -> dict:
        now = time.time()
        with self._lock:
            timestamps = self._prune(key, now)
            return {
                "requests": len(timestamps),
                "limit": self.max_requests,
                "remaining": max(0, self.max_requests - len(timestamps)),
                "window": self.window_seconds,
            }

    def _cleanup_if_needed(self, now):
        if now - self.last_cleanup < CLEANUP_INTERVAL_SECONDS:
            return
        self.last_cleanup = now

        inactive = [
            key
            for key, timestamps in self.requests.items()
            if not timestamps or now - timestamps[-1] > self.window_seconds * 2
        ]
        for key in inactive:
            del self.requests[key]
        if inactive:
            logger.info("🧹 Client limiter cleanup: removed %d idle clients", len(inactive))
