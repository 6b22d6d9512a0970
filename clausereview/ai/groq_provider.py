import logging

from groq import AsyncGroq

from clausereview.ai.base import Provider
from clausereview.config import (
    GROQ_API_KEY,
    GROQ_MODEL,
    REQUEST_TIMEOUT_SECONDS,
    REVIEW_MAX_TOKENS,
    REVIEW_TEMPERATURE,
)

logger = logging.getLogger(__name__)


class GroqProvider(Provider):
    name = "groq"
    priority = 1

    def __init__(self, api_key=None, client=None, model=None, priority=None):
        super().__init__(priority)
        api_key = api_key or GROQ_API_KEY
        if client is None and not api_key:
            raise ValueError("❌ Missing GROQ_API_KEY")
        # max_retries=0: retries belong to the fallback chain, not the SDK
        self.client = client or AsyncGroq(
            api_key=api_key,
            timeout=REQUEST_TIMEOUT_SECONDS,
            max_retries=0,
        )
        self.model = model or GROQ_MODEL

    async def call_once(self, prompt):
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=self.messages_for(prompt),
                temperature=REVIEW_TEMPERATURE,
                max_tokens=REVIEW_MAX_TOKENS,
            )
        except Exception as exc:
            logger.warning("Groq error: %s", exc)
            raise self.classify_exception(exc) from exc
        return self.extract_content(completion)
