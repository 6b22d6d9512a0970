import logging

from clausereview.ai.base import ReviewResult
from clausereview.ai.errors import (
    AllProvidersFailedError,
    ConfigurationError,
    ErrorKind,
    ProviderError,
)
from clausereview.ai.rate_limiter import TokenBucketLimiter
from clausereview.ai.retry import RetryPolicy, with_retry

logger = logging.getLogger(__name__)


class ProviderFallback:
    """Runs a review against providers in priority order until one succeeds.

    Each attempt is: local token bucket, then ``call_once`` wrapped in the
    retry policy. Attempts are strictly sequential. A request naming a
    configured provider goes to that provider only.
    """

    def __init__(self, providers, limiter=None, retry_policy=None):
        if not providers:
            raise ConfigurationError(
                "No AI services configured. Please provide at least one API key."
            )
        names = [provider.name for provider in providers]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate providers configured: {', '.join(duplicates)}")

        # sorted() is stable: equal priorities keep registration order
        self.providers = sorted(providers, key=lambda provider: provider.priority)
        self._by_name = {provider.name: provider for provider in self.providers}
        self.limiter = limiter or TokenBucketLimiter()
        self.retry_policy = retry_policy or RetryPolicy()

    @property
    def provider_names(self):
        return [provider.name for provider in self.providers]

    def get_provider(self, name):
        if not name:
            return None
        return self._by_name.get(name.strip().lower())

    async def _attempt(self, provider, request):
        await self.limiter.acquire(provider.name)
        try:
            prompt = provider.generate_prompt(request)
            analysis = await with_retry(
                lambda: provider.call_once(prompt),
                self.retry_policy,
                provider=provider.name,
            )
        except ProviderError as exc:
            if exc.provider is None:
                exc.provider = provider.name
            raise
        return ReviewResult(analysis=analysis, provider=provider.name)

    async def review(self, request):
        preferred = None
        if request.preferred_provider:
            preferred = self.get_provider(request.preferred_provider)
            if preferred is None:
                logger.warning(
                    "Requested provider %s is not configured; using fallback chain",
                    request.preferred_provider,
                )

        (preferred or self.providers[0]).validate_request(request)

        if preferred is not None:
            result = await self._attempt(preferred, request)
            logger.info("✅ AI response from %s (requested)", result.provider)
            return result

        errors = []
        for provider in self.providers:
            try:
                result = await self._attempt(provider, request)
            except ProviderError as exc:
                if not exc.triggers_fallback:
                    raise
                errors.append(exc)
                logger.warning("⚠️ %s failed with %s: %s", provider.name, exc.kind.value, exc.message)
                logger.info("➡️ Falling back from %s to next provider", provider.name)
                continue
            logger.info("✅ AI response from %s", result.provider)
            return result

        if all(error.kind is ErrorKind.RATE_LIMIT for error in errors):
            logger.error("❌ All providers are rate limited; last tried %s", errors[-1].provider)
            raise errors[-1]

        logger.error(
            "❌ All providers failed: %s",
            ", ".join(f"{error.provider}={error.kind.value}" for error in errors),
        )
        raise AllProvidersFailedError(errors)
