import logging

from clausereview.ai.cerebras_provider import CerebrasProvider
from clausereview.ai.errors import ConfigurationError
from clausereview.ai.fallback import ProviderFallback
from clausereview.ai.groq_provider import GroqProvider
from clausereview.ai.rate_limiter import TokenBucketLimiter
from clausereview.ai.retry import RetryPolicy
from clausereview.ai.sambanova_provider import SambaNovaProvider
from clausereview.config import (
    LIMITER_CAPACITY,
    LIMITER_REFILL_RATE,
    PROVIDER_ORDER,
    RETRY_BACKOFF_FACTOR,
    RETRY_INITIAL_DELAY,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_DELAY,
)

logger = logging.getLogger(__name__)

PROVIDER_CLASSES = {
    "groq": GroqProvider,
    "cerebras": CerebrasProvider,
    "sambanova": SambaNovaProvider,
}


def build_providers(order=None):
    """Instantiate every provider in ``order`` that has credentials.

    Position in the order becomes the provider's priority.
    """
    providers = []
    for position, provider_name in enumerate(order or PROVIDER_ORDER, start=1):
        provider_class = PROVIDER_CLASSES.get(provider_name)
        if provider_class is None:
            logger.warning("Skipping unknown provider %s", provider_name)
            continue
        try:
            providers.append(provider_class(priority=position))
        except ValueError as exc:
            logger.warning("Skipping %s provider: %s", provider_name, exc)
    return providers


def build_fallback(providers=None, limiter=None, retry_policy=None):
    providers = build_providers() if providers is None else providers
    if not providers:
        raise ConfigurationError(
            "❌ No AI services configured. Please provide at least one API key."
        )
    limiter = limiter or TokenBucketLimiter(
        capacity=LIMITER_CAPACITY,
        refill_rate=LIMITER_REFILL_RATE,
    )
    retry_policy = retry_policy or RetryPolicy(
        max_attempts=RETRY_MAX_ATTEMPTS,
        initial_delay=RETRY_INITIAL_DELAY,
        max_delay=RETRY_MAX_DELAY,
        backoff_factor=RETRY_BACKOFF_FACTOR,
    )
    fallback = ProviderFallback(providers, limiter=limiter, retry_policy=retry_policy)
    logger.info("🧠 AI providers: %s", ", ".join(fallback.provider_names))
    return fallback
