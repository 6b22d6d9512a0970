import asyncio
import logging
from dataclasses import dataclass

from clausereview.ai.errors import ProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_delay: float = 1.0  # seconds
    max_delay: float = 10.0
    backoff_factor: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def backoff(self, attempt):
        """Exponential delay after the ``attempt``-th failure (1-based)."""
        return min(self.initial_delay * self.backoff_factor ** (attempt - 1), self.max_delay)

    def delay_for(self, attempt, error):
        # A provider-supplied hint replaces the computed delay outright.
        if error.retry_after_ms is not None:
            return error.retry_after_ms / 1000
        return self.backoff(attempt)

    def should_retry(self, error):
        return error.retryable


DEFAULT_POLICY = RetryPolicy()


async def with_retry(operation, policy=None, *, provider=None):
    """Run ``operation`` (a zero-argument coroutine function) with retries.

    Only classified ``ProviderError``s are retried; anything else is a bug
    and propagates straight away. After the last attempt the final error is
    raised unchanged.
    """
    policy = policy or DEFAULT_POLICY
    attempt = 1
    while True:
        try:
            return await operation()
        except ProviderError as exc:
            if not policy.should_retry(exc):
                raise
            if attempt >= policy.max_attempts:
                logger.warning(
                    "⚠️ %s gave up after %s attempts: %s",
                    provider or exc.provider,
                    attempt,
                    exc,
                )
                raise
            delay = policy.delay_for(attempt, exc)
            logger.warning(
                "⚠️ %s %s (attempt %s/%s), retrying in %.2fs",
                provider or exc.provider,
                exc.kind.value,
                attempt,
                policy.max_attempts,
                delay,
            )
            await asyncio.sleep(delay)
            attempt += 1
