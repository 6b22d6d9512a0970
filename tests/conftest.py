import pytest

from clausereview.ai.base import Provider, ReviewKind, ReviewRequest
from clausereview.ai.rate_limiter import TokenBucketLimiter
from clausereview.ai.retry import RetryPolicy


class FakeProvider(Provider):
    """Scripted provider: plays ``outcomes`` in order, repeating the last one."""

    def __init__(self, name, priority=1, outcomes=None):
        super().__init__(priority)
        self.name = name
        self.outcomes = list(outcomes or [f"analysis from {name}"])
        self.calls = 0
        self.validations = 0
        self.prompts = []

    def validate_request(self, request):
        self.validations += 1
        super().validate_request(request)

    async def call_once(self, prompt):
        self.calls += 1
        self.prompts.append(prompt)
        outcome = self.outcomes[min(self.calls, len(self.outcomes)) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def fast_retry():
    return RetryPolicy(max_attempts=3, initial_delay=0, max_delay=0)


@pytest.fixture
def roomy_limiter():
    return TokenBucketLimiter(capacity=100, refill_rate=1000)


@pytest.fixture
def review_request():
    return ReviewRequest.create("The Supplier may terminate at any time.", ReviewKind.RISKS)
