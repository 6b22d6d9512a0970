"""Per-provider token bucket.

``acquire`` never fails: it waits exactly as long as one token needs to
accrue. Refill, consume and reservation run in a single critical section
under a plain ``threading.Lock`` with no ``await`` inside it, so the
bucket is safe whether callers share one event loop or come from several
threads.
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class TokenBucket:
    capacity: int
    refill_rate: float  # tokens per second
    tokens: float
    last_refill: float  # time.monotonic()
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def refill(self, now):
        # last_refill may sit in the future while a waiter holds a reservation
        elapsed = max(0.0, now - self.last_refill)
        self.tokens = min(self.tokens + elapsed * self.refill_rate, float(self.capacity))
        self.last_refill = max(self.last_refill, now)

    def take(self, now):
        """Consume one token, reserving a future one if empty.

        Returns the seconds the caller has to wait before proceeding.
        """
        self.refill(now)
        if self.tokens >= 1:
            self.tokens -= 1
            return 0.0

        reserved_ahead = self.last_refill - now
        wait = reserved_ahead + (1 - self.tokens) / self.refill_rate
        self.tokens = 0.0
        self.last_refill = now + wait
        return wait


class TokenBucketLimiter:
    """Token buckets keyed by provider name, created on first use.

    Usage:
        limiter = TokenBucketLimiter(capacity=10, refill_rate=2)
        await limiter.acquire("groq")   # returns once a token is ours
    """

    def __init__(self, capacity=10, refill_rate=2.0):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if refill_rate <= 0:
            raise ValueError("refill_rate must be positive")
        self.capacity = capacity
        self.refill_rate = refill_rate
        self._buckets: dict[str, TokenBucket] = {}
        self._buckets_lock = threading.Lock()

    def _get_bucket(self, name: str) -> TokenBucket:
        with self._buckets_lock:
            bucket = self._buckets.get(name)
            if bucket is None:
                bucket = TokenBucket(
                    capacity=self.capacity,
                    refill_rate=self.refill_rate,
                    tokens=float(self.capacity),
                    last_refill=time.monotonic(),
                )
                self._buckets[name] = bucket
            return bucket

    async def acquire(self, name: str) -> float:
        """Wait until a token for ``name`` is available and consume it.

        Returns:
            Seconds spent waiting (0.0 when a token was on hand).
        """
        bucket = self._get_bucket(name)
        with bucket.lock:
            wait = bucket.take(time.monotonic())

        if wait > 0:
            logger.debug("⏳ %s throttled locally for %.3fs", name, wait)
            await asyncio.sleep(wait)
        return wait

    def try_acquire(self, name: str) -> bool:
        """Consume a token only if one is available right now."""
        bucket = self._get_bucket(name)
        with bucket.lock:
            bucket.refill(time.monotonic())
            if bucket.tokens >= 1:
                bucket.tokens -= 1
                return True
            return False

    def get_stats(self, name: str) -> dict:
        bucket = self._get_bucket(name)
        with bucket.lock:
            bucket.refill(time.monotonic())
            return {
                "provider": name,
                "tokens": round(bucket.tokens, 3),
                "capacity": bucket.capacity,
                "refill_rate": bucket.refill_rate,
            }

    def get_all_stats(self) -> list[dict]:
        with self._buckets_lock:
            names = list(self._buckets)
        return [self.get_stats(name) for name in names]
