import asyncio
import logging

from cerebras.cloud.sdk import Cerebras

from clausereview.ai.base import Provider
from clausereview.config import (
    CEREBRAS_API_KEY,
    CEREBRAS_MODEL,
    REQUEST_TIMEOUT_SECONDS,
    REVIEW_MAX_TOKENS,
    REVIEW_TEMPERATURE,
)

logger = logging.getLogger(__name__)


class CerebrasProvider(Provider):
    name = "cerebras"
    priority = 2

    def __init__(self, api_key=None, client=None, model=None, priority=None):
        super().__init__(priority)
        api_key = api_key or CEREBRAS_API_KEY
        if client is None and not api_key:
            raise ValueError("❌ Missing CEREBRAS_API_KEY")
        self.client = client or Cerebras(
            api_key=api_key,
            timeout=REQUEST_TIMEOUT_SECONDS,
            max_retries=0,
        )
        self.model = model or CEREBRAS_MODEL

    async def call_once(self, prompt):
        try:
            completion = await asyncio.to_thread(
                self.client.chat.completions.create,
                messages=self.messages_for(prompt),
                model=self.model,
                max_tokens=REVIEW_MAX_TOKENS,
                temperature=REVIEW_TEMPERATURE,
                stream=False,
            )
        except Exception as exc:
            logger.warning("Cerebras error: %s", exc)
            raise self.classify_exception(exc) from exc
        return self.extract_content(completion)
