"""
Project configuration file for the Curve Exit Badge service.

This module centralises all user-modifiable settings such as API keys,
provider endpoints, scan limits and other options.  You can edit these
values directly or set environment variables to override them.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _parse_float(name: str, default: str, *, low: float = 0.0, high: float = 1.0) -> float:
    """Parse an env var as a float and validate it within [low, high]."""
    raw = os.getenv(name, default)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.error("Invalid value for %s: %r – using default %s", name, raw, default)
        value = float(default)
    if not (low <= value <= high):
        logger.warning("%s=%.4f is outside [%.1f, %.1f] – clamped", name, value, low, high)
        value = max(low, min(value, high))
    return value


def _parse_int(name: str, default: str, *, minimum: int = 1) -> int:
    """Parse an env var as an int and enforce a minimum."""
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.error("Invalid value for %s: %r – using default %s", name, raw, default)
        value = int(default)
    if value < minimum:
        logger.warning("%s=%d is below minimum %d – clamped", name, value, minimum)
        value = minimum
    return value


# ---------------------------------------------------------------------------
# Helius (transaction history + DAS metadata)
# ---------------------------------------------------------------------------
HELIUS_API_KEY: str = os.getenv("HELIUS_API_KEY", "")
HELIUS_REST_URL: str = os.getenv(
    "HELIUS_REST_URL",
    "https://api-mainnet.helius-rpc.com",
)
HELIUS_RPC_URL: str = os.getenv(
    "HELIUS_RPC_URL",
    f"https://mainnet.helius-rpc.com/?api-key={HELIUS_API_KEY}",
)

# ---------------------------------------------------------------------------
# Payments (enforced by the external gateway, only advertised here)
# ---------------------------------------------------------------------------
PAY_TO_ADDRESS: str = os.getenv("PAY_TO_ADDRESS", "")

# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------
REQUEST_TIMEOUT: int = _parse_int("REQUEST_TIMEOUT", "30", minimum=1)
REQUEST_TIMEOUT_SECONDS: float = _parse_float(
    "REQUEST_TIMEOUT_SECONDS", "25", low=1.0, high=300.0
)
MAX_HISTORY_PAGES: int = _parse_int("MAX_HISTORY_PAGES", "10", minimum=1)
# 1 == a single attempt: history pages are never retried
HISTORY_MAX_RETRIES: int = _parse_int("HISTORY_MAX_RETRIES", "1", minimum=1)
METADATA_MAX_RETRIES: int = _parse_int("METADATA_MAX_RETRIES", "3", minimum=1)

# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------
CACHE_BACKEND: str = os.getenv("CACHE_BACKEND", "memory")  # "memory" or "sqlite"
CACHE_SQLITE_PATH: str = os.getenv("CACHE_SQLITE_PATH", "data/curve_exit.db")
CACHE_MAX_ENTRIES: int = _parse_int("CACHE_MAX_ENTRIES", "100000", minimum=1)

# ---------------------------------------------------------------------------
# Rate limiting (slowapi format, e.g. "10/minute")
# ---------------------------------------------------------------------------
RATE_LIMIT_CURVE_EXIT: str = os.getenv("RATE_LIMIT_CURVE_EXIT", "30/minute")

# ---------------------------------------------------------------------------
# Sentry (error tracking)
# ---------------------------------------------------------------------------
SENTRY_DSN: str = os.getenv("SENTRY_DSN", "")
SENTRY_ENVIRONMENT: str = os.getenv("SENTRY_ENVIRONMENT", "production")
SENTRY_TRACES_SAMPLE_RATE: float = _parse_float(
    "SENTRY_TRACES_SAMPLE_RATE", "0.1", low=0.0, high=1.0
)

# ---------------------------------------------------------------------------
# Circuit breaker
# ---------------------------------------------------------------------------
CB_FAILURE_THRESHOLD: int = _parse_int("CB_FAILURE_THRESHOLD", "8", minimum=1)
CB_RECOVERY_TIMEOUT: float = _parse_float(
    "CB_RECOVERY_TIMEOUT", "60", low=0.0, high=3600.0
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT: str = os.getenv("LOG_FORMAT", "text")  # "text" or "json"

# ---------------------------------------------------------------------------
# API server
# ---------------------------------------------------------------------------
API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = _parse_int("API_PORT", "3000", minimum=1)
CORS_ORIGINS: list[str] = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "*").split(",")
    if o.strip()
]
