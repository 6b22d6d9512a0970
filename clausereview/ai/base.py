import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

import httpx

from clausereview import prompts
from clausereview.ai.errors import (
    ApiError,
    NetworkError,
    ProviderError,
    RateLimitError,
    ValidationError,
)


# Stainless-generated SDKs (groq, cerebras, sambanova) share these names.
_TRANSPORT_ERROR_NAMES = {"APIConnectionError", "APITimeoutError"}


class ReviewKind(str, Enum):
    RISKS = "RISKS"
    IMPROVEMENTS = "IMPROVEMENTS"
    COMPLETENESS = "COMPLETENESS"
    SIMPLIFICATION = "SIMPLIFICATION"
    AMBIGUITIES = "AMBIGUITIES"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        if not value or not isinstance(value, str):
            raise ValidationError("Review type is required")
        try:
            return cls(value.strip().upper())
        except ValueError as exc:
            raise ValidationError(f"Unknown review type: {value}") from exc


@dataclass(frozen=True)
class ReviewRequest:
    text: str
    kind: ReviewKind
    preferred_provider: Optional[str] = None

    def __post_init__(self):
        if self.preferred_provider is not None:
            name = str(self.preferred_provider).strip().lower() or None
            object.__setattr__(self, "preferred_provider", name)

    @classmethod
    def create(cls, text, kind, preferred_provider=None):
        """Build a request from raw caller input, raising ValidationError."""
        request = cls(
            text=text if isinstance(text, str) else "",
            kind=ReviewKind.parse(kind),
            preferred_provider=preferred_provider,
        )
        request.validate()
        return request

    def validate(self):
        if not isinstance(self.text, str) or not self.text.strip():
            raise ValidationError("Clause is required")
        if not isinstance(self.kind, ReviewKind):
            raise ValidationError("Review type is required")


@dataclass(frozen=True)
class ReviewResult:
    analysis: str
    provider: str
    produced_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "analysis": self.analysis,
            "provider": self.provider,
            "timestamp": self.produced_at.isoformat(),
        }


def retry_after_ms(exc):
    """Read a Retry-After header (seconds) off an SDK status error, if any."""
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    value = headers.get("retry-after") or headers.get("Retry-After")
    if value is None:
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    return max(0, int(seconds * 1000))


def is_transport_error(exc):
    if isinstance(exc, (httpx.TransportError, ConnectionError, TimeoutError, asyncio.TimeoutError)):
        return True
    return any(klass.__name__ in _TRANSPORT_ERROR_NAMES for klass in type(exc).__mro__)


class Provider:
    """One LLM backend. Makes exactly one network call per ``call_once``.

    Retries and rate limiting are layered around adapters by the
    fallback chain; an adapter only builds prompts, calls its API once
    and classifies whatever went wrong.
    """

    name: str
    priority: int = 100
    model: str = ""

    def __init__(self, priority=None):
        if priority is not None:
            self.priority = priority

    def __repr__(self):
        return f"<{type(self).__name__} name={self.name!r} priority={self.priority}>"

    def validate_request(self, request):
        try:
            request.validate()
        except ValidationError as exc:
            exc.provider = self.name
            raise

    def system_prompt(self):
        return prompts.get_system_prompt(self.name)

    def generate_prompt(self, request):
        try:
            return prompts.build_prompt(request, self.name)
        except KeyError as exc:
            raise ValidationError(
                f"No template found for review type: {request.kind}",
                provider=self.name,
            ) from exc

    async def call_once(self, prompt):
        raise NotImplementedError

    def messages_for(self, prompt):
        return [
            {"role": "system", "content": self.system_prompt()},
            {"role": "user", "content": prompt},
        ]

    def classify_exception(self, exc):
        if isinstance(exc, ProviderError):
            if exc.provider is None:
                exc.provider = self.name
            return exc

        status = getattr(exc, "status_code", None)
        message = str(exc) or type(exc).__name__
        if status == 429 or "rate limit" in message.lower():
            return RateLimitError(
                "Rate limit exceeded",
                provider=self.name,
                retry_after_ms=retry_after_ms(exc),
            )
        if status is None and is_transport_error(exc):
            return NetworkError(message, provider=self.name)
        if status:
            return ApiError(f"API error ({status}): {message}", provider=self.name)
        return ApiError(message, provider=self.name)

    def extract_content(self, completion):
        """Pull the text out of an OpenAI-style chat completion."""
        try:
            content = completion.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as exc:
            raise ApiError("Invalid response format", provider=self.name) from exc
        if not isinstance(content, str) or not content.strip():
            raise ApiError("No analysis generated", provider=self.name)
        return content.strip()
