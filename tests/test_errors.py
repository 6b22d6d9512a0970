from clausereview.ai.errors import (
    HTTP_STATUS_BY_KIND,
    AllProvidersFailedError,
    ApiError,
    ErrorKind,
    NetworkError,
    RateLimitError,
    ValidationError,
)


class TestErrorTaxonomy:
    def test_kinds(self):
        assert RateLimitError("x").kind is ErrorKind.RATE_LIMIT
        assert ValidationError("x").kind is ErrorKind.VALIDATION_ERROR
        assert ApiError("x").kind is ErrorKind.API_ERROR
        assert NetworkError("x").kind is ErrorKind.NETWORK_ERROR
        assert AllProvidersFailedError([]).kind is ErrorKind.ALL_PROVIDERS_FAILED

    def test_retry_and_fallback_table(self):
        assert not ValidationError("x").retryable
        assert not ValidationError("x").triggers_fallback
        assert not RateLimitError("x").retryable
        assert RateLimitError("x", retry_after_ms=200).retryable
        assert RateLimitError("x").triggers_fallback
        assert not AllProvidersFailedError([]).retryable
        assert ApiError("x").retryable and ApiError("x").triggers_fallback
        assert NetworkError("x").retryable and NetworkError("x").triggers_fallback

    def test_carries_provider_and_hint(self):
        error = RateLimitError("Rate limit exceeded", provider="groq", retry_after_ms=1500)
        assert error.to_dict() == {
            "kind": "RATE_LIMIT",
            "message": "Rate limit exceeded",
            "provider": "groq",
            "retry_after_ms": 1500,
        }
        assert str(error) == "[groq] Rate limit exceeded"

    def test_aggregate_keeps_errors(self):
        errors = [ApiError("bad", provider="groq"), RateLimitError("slow", provider="cerebras")]
        aggregate = AllProvidersFailedError(errors)
        assert aggregate.errors == errors
        assert aggregate.provider is None
        assert [e["kind"] for e in aggregate.to_dict()["errors"]] == ["API_ERROR", "RATE_LIMIT"]

    def test_http_mapping(self):
        assert HTTP_STATUS_BY_KIND[ErrorKind.RATE_LIMIT] == 429
        assert HTTP_STATUS_BY_KIND[ErrorKind.VALIDATION_ERROR] == 400
        assert HTTP_STATUS_BY_KIND[ErrorKind.API_ERROR] == 502
        assert set(HTTP_STATUS_BY_KIND) == set(ErrorKind)
