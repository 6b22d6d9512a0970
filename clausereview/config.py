import os

from dotenv import load_dotenv

from clausereview.ai.errors import ConfigurationError

load_dotenv()


def _int_env(name, default):
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"❌ {name} must be an integer, got {raw!r}") from exc


def _float_env(name, default):
    raw = os.getenv(name, str(default))
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"❌ {name} must be a number, got {raw!r}") from exc


# API Keys
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
CEREBRAS_API_KEY = os.getenv("CEREBRAS_API_KEY")
SAMBANOVA_API_KEY = os.getenv("SAMBANOVA_API_KEY")

SAMBANOVA_BASE_URL = os.getenv("SAMBANOVA_BASE_URL", "https://api.sambanova.ai/v1")

# Model Configuration
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
CEREBRAS_MODEL = os.getenv("CEREBRAS_MODEL", "llama-3.3-70b")
SAMBANOVA_MODEL = os.getenv("SAMBANOVA_MODEL", "Meta-Llama-3.3-70B-Instruct")

REVIEW_TEMPERATURE = _float_env("REVIEW_TEMPERATURE", 0.5)
REVIEW_MAX_TOKENS = _int_env("REVIEW_MAX_TOKENS", 1500)
REQUEST_TIMEOUT_SECONDS = _float_env("REQUEST_TIMEOUT_SECONDS", 60.0)

# Lower index = tried first
PROVIDER_ORDER = [
    provider.strip().lower()
    for provider in os.getenv("PROVIDER_ORDER", "groq,cerebras,sambanova").split(",")
    if provider.strip()
]

# Per-provider token bucket
LIMITER_CAPACITY = _int_env("LIMITER_CAPACITY", 10)
LIMITER_REFILL_RATE = _float_env("LIMITER_REFILL_RATE", 2.0)

# Retry / backoff (seconds)
RETRY_MAX_ATTEMPTS = _int_env("RETRY_MAX_ATTEMPTS", 3)
RETRY_INITIAL_DELAY = _float_env("RETRY_INITIAL_DELAY", 1.0)
RETRY_MAX_DELAY = _float_env("RETRY_MAX_DELAY", 10.0)
RETRY_BACKOFF_FACTOR = _float_env("RETRY_BACKOFF_FACTOR", 2.0)

# Per-client limit on the HTTP endpoint
RATE_LIMIT_WINDOW = _int_env("RATE_LIMIT_WINDOW", 60)
RATE_LIMIT_MAX = _int_env("RATE_LIMIT_MAX", 10)
# Only honour X-Forwarded-For when running behind a trusted reverse proxy
TRUST_PROXY_HEADERS = os.getenv("TRUST_PROXY_HEADERS", "false").lower() == "true"

PORT = _int_env("PORT", 8080)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def require_providers():
    configured = [
        name
        for name, value in [
            ("groq", GROQ_API_KEY),
            ("cerebras", CEREBRAS_API_KEY),
            ("sambanova", SAMBANOVA_API_KEY),
        ]
        if value
    ]
    if not configured:
        raise ConfigurationError(
            "❌ No AI services configured. Set at least one of "
            "GROQ_API_KEY, CEREBRAS_API_KEY, SAMBANOVA_API_KEY."
        )
    return configured
