import asyncio
import logging

from sambanova import SambaNova

from clausereview.ai.base import Provider
from clausereview.config import (
    REQUEST_TIMEOUT_SECONDS,
    REVIEW_MAX_TOKENS,
    REVIEW_TEMPERATURE,
    SAMBANOVA_API_KEY,
    SAMBANOVA_BASE_URL,
    SAMBANOVA_MODEL,
)

logger = logging.getLogger(__name__)


class SambaNovaProvider(Provider):
    name = "sambanova"
    priority = 3

    def __init__(self, api_key=None, client=None, model=None, priority=None):
        super().__init__(priority)
        api_key = api_key or SAMBANOVA_API_KEY
        if client is None and not api_key:
            raise ValueError("❌ Missing SAMBANOVA_API_KEY")
        self.client = client or SambaNova(
            api_key=api_key,
            base_url=SAMBANOVA_BASE_URL,
            timeout=REQUEST_TIMEOUT_SECONDS,
            max_retries=0,
        )
        self.model = model or SAMBANOVA_MODEL

    async def call_once(self, prompt):
        try:
            completion = await asyncio.to_thread(
                self.client.chat.completions.create,
                model=self.model,
                messages=self.messages_for(prompt),
                temperature=REVIEW_TEMPERATURE,
                max_tokens=REVIEW_MAX_TOKENS,
            )
        except Exception as exc:
            logger.warning("SambaNova error: %s", exc)
            raise self.classify_exception(exc) from exc
        return self.extract_content(completion)
