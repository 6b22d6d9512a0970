import pytest

from clausereview.ai.errors import ApiError, RateLimitError
from clausereview.ai.fallback import ProviderFallback
from clausereview.app import AsyncRunner, create_app
from clausereview.client_limits import ClientRateLimiter


@pytest.fixture
def runner():
    runner = AsyncRunner()
    yield runner
    runner.stop()


@pytest.fixture
def make_client(runner, fast_retry, roomy_limiter):
    def build(*providers, client_limiter=None, trust_proxy_headers=False):
        fallback = ProviderFallback(list(providers), limiter=roomy_limiter, retry_policy=fast_retry)
        app = create_app(
            fallback=fallback,
            client_limiter=client_limiter or ClientRateLimiter(max_requests=100, window_seconds=60),
            runner=runner,
        )
        app.config["TESTING"] = True
        app.config["TRUST_PROXY_HEADERS"] = trust_proxy_headers
        return app.test_client()

    return build


class TestReviewEndpoint:
    def test_success(self, make_client, make_provider):
        client = make_client(make_provider("groq", 1, ["No material risks."]))

        response = client.post("/review", json={"clause": "Payment within 30 days.", "type": "risks"})

        assert response.status_code == 200
        body = response.get_json()
        assert body["analysis"] == "No material risks."
        assert body["provider"] == "groq"
        assert "timestamp" in body

    def test_preferred_provider(self, make_client, make_provider):
        client = make_client(make_provider("groq", 1), make_provider("cerebras", 2))

        response = client.post(
            "/review", json={"clause": "A clause.", "type": "COMPLETENESS", "provider": "cerebras"}
        )

        assert response.get_json()["provider"] == "cerebras"

    def test_missing_fields(self, make_client, make_provider):
        provider = make_provider("groq", 1)
        client = make_client(provider)

        response = client.post("/review", json={"clause": "A clause."})

        assert response.status_code == 400
        assert "type" in response.get_json()["error"]
        assert provider.calls == 0

    def test_unknown_type(self, make_client, make_provider):
        client = make_client(make_provider("groq", 1))
        response = client.post("/review", json={"clause": "A clause.", "type": "poetry"})
        assert response.status_code == 400
        assert response.get_json()["kind"] == "VALIDATION_ERROR"

    def test_body_must_be_json_object(self, make_client, make_provider):
        client = make_client(make_provider("groq", 1))
        response = client.post("/review", data="not json", content_type="text/plain")
        assert response.status_code == 400

    def test_rate_limited_everywhere(self, make_client, make_provider):
        client = make_client(
            make_provider("groq", 1, [RateLimitError("Rate limit exceeded")]),
            make_provider("cerebras", 2, [RateLimitError("Rate limit exceeded", retry_after_ms=1500)]),
        )

        response = client.post("/review", json={"clause": "A clause.", "type": "RISKS"})

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "2"
        assert response.get_json()["provider"] == "cerebras"

    def test_all_failed(self, make_client, make_provider):
        client = make_client(
            make_provider("groq", 1, [ApiError("bad")]),
            make_provider("cerebras", 2, [RateLimitError("Rate limit exceeded")]),
        )

        response = client.post("/review", json={"clause": "A clause.", "type": "RISKS"})

        assert response.status_code == 503
        assert response.get_json()["kind"] == "ALL_PROVIDERS_FAILED"

    def test_preferred_api_error_maps_to_bad_gateway(self, make_client, make_provider):
        client = make_client(make_provider("groq", 1, [ApiError("bad")]))
        response = client.post("/review", json={"clause": "A clause.", "type": "RISKS", "provider": "groq"})
        assert response.status_code == 502

    def test_client_limit(self, make_client, make_provider):
        client = make_client(
            make_provider("groq", 1),
            client_limiter=ClientRateLimiter(max_requests=1, window_seconds=60),
        )
        payload = {"clause": "A clause.", "type": "RISKS"}

        assert client.post("/review", json=payload).status_code == 200
        response = client.post("/review", json=payload)

        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) >= 1

    def test_forwarded_header_ignored_by_default(self, make_client, make_provider):
        client = make_client(
            make_provider("groq", 1),
            client_limiter=ClientRateLimiter(max_requests=1, window_seconds=60),
        )
        payload = {"clause": "A clause.", "type": "RISKS"}

        first = client.post("/review", json=payload, headers={"X-Forwarded-For": "10.0.0.1"})
        second = client.post("/review", json=payload, headers={"X-Forwarded-For": "10.0.0.2"})

        assert first.status_code == 200
        assert second.status_code == 429

    def test_forwarded_header_used_behind_trusted_proxy(self, make_client, make_provider):
        client = make_client(
            make_provider("groq", 1),
            client_limiter=ClientRateLimiter(max_requests=1, window_seconds=60),
            trust_proxy_headers=True,
        )
        payload = {"clause": "A clause.", "type": "RISKS"}

        first = client.post("/review", json=payload, headers={"X-Forwarded-For": "10.0.0.1, 172.16.0.1"})
        second = client.post("/review", json=payload, headers={"X-Forwarded-For": "10.0.0.2"})
        third = client.post("/review", json=payload, headers={"X-Forwarded-For": "10.0.0.1"})

        assert first.status_code == 200
        assert second.status_code == 200
        assert third.status_code == 429


class TestHealth:
    def test_root(self, make_client, make_provider):
        response = make_client(make_provider("groq", 1)).get("/")
        assert response.status_code == 200

    def test_health_lists_providers(self, make_client, make_provider):
        client = make_client(make_provider("groq", 1), make_provider("sambanova", 2))
        client.post("/review", json={"clause": "A clause.", "type": "RISKS"})

        body = client.get("/health").get_json()

        assert body["status"] == "healthy"
        assert body["providers"] == ["groq", "sambanova"]
        assert [s["provider"] for s in body["limiter"]] == ["groq"]
