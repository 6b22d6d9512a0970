import asyncio
import logging
import math
from threading import Thread

from flask import Flask, jsonify, request

from clausereview.ai.base import ReviewRequest
from clausereview.ai.errors import HTTP_STATUS_BY_KIND, ErrorKind, ProviderError
from clausereview.ai.manager import build_fallback
from clausereview.client_limits import ClientRateLimiter
from clausereview.config import LOG_LEVEL, PORT, TRUST_PROXY_HEADERS, require_providers
from clausereview.sanitize import missing_fields, sanitize_payload

logger = logging.getLogger(__name__)

PUBLIC_MESSAGES = {
    ErrorKind.RATE_LIMIT: "Rate limit exceeded. Please try again later.",
    ErrorKind.API_ERROR: "AI service error. Please try again later.",
    ErrorKind.NETWORK_ERROR: "AI service unreachable. Please try again later.",
    ErrorKind.ALL_PROVIDERS_FAILED: "All AI services failed. Please try again later.",
}


class AsyncRunner:
    """Owns one event loop on a daemon thread.

    Flask handles requests on worker threads; every review is submitted to
    this loop so the async SDK clients stay bound to a single loop.
    """

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self.thread = Thread(target=self._run_loop, name="clausereview-loop", daemon=True)
        self.thread.start()

    def _run_loop(self):
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def run(self, coro, timeout=None):
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result(timeout)

    def stop(self):
        self.loop.call_soon_threadsafe(self.loop.stop)
        self.thread.join(timeout=5)


def _client_key(trust_proxy_headers):
    if trust_proxy_headers:
        forwarded = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        if forwarded:
            return forwarded
    return request.remote_addr or "unknown"


def _error_response(exc):
    status = HTTP_STATUS_BY_KIND.get(exc.kind, 500)
    body = {
        "error": PUBLIC_MESSAGES.get(exc.kind, exc.message),
        "kind": exc.kind.value,
        "provider": exc.provider,
    }
    headers = {}
    if exc.kind is ErrorKind.RATE_LIMIT and exc.retry_after_ms:
        headers["Retry-After"] = str(math.ceil(exc.retry_after_ms / 1000))
    return jsonify(body), status, headers


def create_app(fallback=None, client_limiter=None, runner=None):
    app = Flask(__name__)
    fallback = build_fallback() if fallback is None else fallback
    client_limiter = client_limiter or ClientRateLimiter()
    runner = runner or AsyncRunner()

    app.config["FALLBACK"] = fallback
    app.config["RUNNER"] = runner
    app.config["TRUST_PROXY_HEADERS"] = TRUST_PROXY_HEADERS

    @app.route("/")
    def health_check():
        return "ClauseReview is alive! ⚖️"

    @app.route("/health")
    def health_detailed():
        return {
            "status": "healthy",
            "service": "clausereview",
            "providers": fallback.provider_names,
            "limiter": fallback.limiter.get_all_stats(),
        }

    @app.route("/review", methods=["POST"])
    def review():
        client_key = _client_key(app.config["TRUST_PROXY_HEADERS"])
        if not client_limiter.check(client_key):
            logger.warning("Client %s over request limit", client_key)
            return (
                jsonify({"error": "Too Many Requests", "kind": ErrorKind.RATE_LIMIT.value}),
                429,
                {"Retry-After": str(client_limiter.retry_after(client_key))},
            )

        raw_body = request.get_json(silent=True)
        if not isinstance(raw_body, dict):
            return jsonify({"error": "Request body must be a JSON object",
                            "kind": ErrorKind.VALIDATION_ERROR.value}), 400

        body = sanitize_payload(raw_body)
        missing = missing_fields(body, ["clause", "type"])
        if missing:
            logger.warning("Invalid request to /review: missing %s", missing)
            return jsonify({"error": f"Missing required fields: {', '.join(missing)}",
                            "kind": ErrorKind.VALIDATION_ERROR.value}), 400

        try:
            review_request = ReviewRequest.create(
                body["clause"], body["type"], body.get("provider")
            )
            result = runner.run(fallback.review(review_request))
        except ProviderError as exc:
            logger.warning("Review failed (%s): %s", exc.kind.value, exc)
            if exc.kind is ErrorKind.VALIDATION_ERROR:
                return jsonify({"error": exc.message, "kind": exc.kind.value}), 400
            return _error_response(exc)

        logger.info(
            "Successful review: type=%s provider=%s length=%d",
            review_request.kind.value,
            result.provider,
            len(review_request.text),
        )
        return jsonify(result.to_dict())

    return app


def run():
    """Main entry point."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=LOG_LEVEL,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    configured = require_providers()
    logger.info("🔑 Credentials found for: %s", ", ".join(configured))

    app = create_app()
    logger.info("⚖️ ClauseReview is starting on port %s", PORT)
    app.run(host="0.0.0.0", port=PORT, debug=False, use_reloader=False)


if __name__ == "__main__":
    run()
