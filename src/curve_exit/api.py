"""
REST API for the Curve Exit Badge service using FastAPI.

Endpoints
---------
GET  /health                     - Health check (uptime, cache, circuit breakers)
GET  /api/v1/solana/curve-exit   - Endpoint description, pricing, supported venues
POST /api/v1/solana/curve-exit   - Classify where a wallet sold a token + badge

Security features:
- Rate limiting via slowapi (per-IP)
- Base58 address validation
- Internal error details hidden from clients
- Graceful startup/shutdown of HTTP clients

Payment is enforced by the x402 gateway in front of this service; the
response only advertises ``pay_to_address``.
"""

from __future__ import annotations

import logging
import re
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from config import (
    API_HOST,
    API_PORT,
    CACHE_BACKEND,
    CORS_ORIGINS,
    HELIUS_API_KEY,
    PAY_TO_ADDRESS,
    RATE_LIMIT_CURVE_EXIT,
    SENTRY_DSN,
    SENTRY_ENVIRONMENT,
    SENTRY_TRACES_SAMPLE_RATE,
)
from .circuit_breaker import get_all_statuses as cb_statuses
from .data_sources._clients import cache_stats, close_clients, init_clients
from .errors import CurveExitError
from .exit_service import classify_exit
from .logging_config import bind_request_id, setup_logging
from .models import CacheEntry, CurveExitData, CurveExitRequest, CurveExitResponse
from .venues import VENUE_REGISTRY

API_VERSION = "v2"
CURVE_EXIT_PATH = "/api/v1/solana/curve-exit"

# Initialise structured logging early
setup_logging()
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Sentry – initialise before anything else so startup errors are captured
# ---------------------------------------------------------------------------
if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=SENTRY_ENVIRONMENT,
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        send_default_pii=False,
    )
    logger.info("Sentry initialised (env=%s)", SENTRY_ENVIRONMENT)
else:
    logger.info("SENTRY_DSN not set – error tracking disabled")

_start_time = time.monotonic()

# Solana addresses are 32-44 base58 chars
_BASE58_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

limiter = Limiter(key_func=get_remote_address)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Initialise shared HTTP clients on startup, close on shutdown."""
    if not HELIUS_API_KEY:
        logger.error("HELIUS_API_KEY is not set – every classification will fail upstream")
    if CACHE_BACKEND != "sqlite":
        logger.warning(
            "CACHE_BACKEND=%r — classifications are lost on restart. "
            "Set CACHE_BACKEND=sqlite to persist them.", CACHE_BACKEND
        )
    logger.info("Starting up – initialising HTTP clients …")
    await init_clients()
    yield
    logger.info("Shutting down – closing HTTP clients …")
    await close_clients()


app = FastAPI(
    title="Curve Exit Badge API",
    description="Verify where a wallet sold a Pump.fun token and mint an exit badge.",
    version="2.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Accept", "X-Request-ID"],
)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request ID (the gateway's, or a fresh one) and echo it back."""

    async def dispatch(self, request: Request, call_next):
        rid = bind_request_id(request.headers.get("X-Request-ID"))
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = rid
        logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response


app.add_middleware(RequestIdMiddleware)


def _error(status_code: int, message: str, kind: str) -> JSONResponse:
    body = CurveExitResponse(status="error", error=message, error_kind=kind)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(400, 'Request body must be JSON with "wallet" and "token" fields', "invalid_request")


def format_response(entry: CacheEntry, cached: bool) -> CurveExitResponse:
    result = entry.result
    sold_at = datetime.fromtimestamp(result.sell_timestamp, tz=timezone.utc)
    return CurveExitResponse(
        status="success",
        cached=cached,
        data=CurveExitData(
            wallet=result.wallet,
            token=result.token,
            token_symbol=result.token_symbol,
            exit_type=result.exit_type,
            exit_venue=result.exit_venue,
            confidence=result.confidence,
            description=result.description,
            image_base64=entry.badge_base64,
            pay_to_address=PAY_TO_ADDRESS,
            sell_signature=result.sell_signature,
            sell_timestamp=sold_at.isoformat().replace("+00:00", "Z"),
        ),
    )


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------


@app.get("/", tags=["system"], include_in_schema=False)
async def root():
    """Redirect to Swagger UI."""
    return RedirectResponse(url="/docs")


@app.get("/health", tags=["system"])
async def health() -> dict:
    """Health check including uptime, cache stats and circuit breaker states."""
    from .data_sources._clients import cache

    stats = await cache_stats()
    return {
        "status": "ok",
        "version": API_VERSION,
        "uptime_seconds": round(time.monotonic() - _start_time, 1),
        "cache": {"backend": type(cache).__name__, **stats.model_dump()},
        "circuit_breakers": cb_statuses(),
    }


@app.get(CURVE_EXIT_PATH, tags=["curve-exit"])
async def describe_curve_exit() -> dict:
    """Self-describing endpoint document for payment gateways and clients."""
    stats = await cache_stats()
    return {
        "endpoint": CURVE_EXIT_PATH,
        "version": API_VERSION,
        "method": "POST",
        "description": (
            "Verify where a wallet sold a Pump.fun token with weighted attribution "
            "scoring. Returns badge with token symbol and confidence level."
        ),
        "pricing": "$0.01 per call",
        "pay_to_address": PAY_TO_ADDRESS,
        "request_body": {
            "wallet": "string — Solana wallet address",
            "token": "string — Token mint address",
        },
        "response_format": {
            "status": "success | error",
            "data": {
                "wallet": "string",
                "token_symbol": "string",
                "exit_type": " | ".join(v.exit_type for v in VENUE_REGISTRY.values()),
                "exit_venue": "string",
                "confidence": "HIGH | MEDIUM | LOW",
                "image_base64": "string",
                "pay_to_address": "string",
            },
        },
        "supported_venues": [
            {"exit_type": v.exit_type, "exit_venue": v.exit_venue}
            for v in VENUE_REGISTRY.values()
        ],
        "cache_stats": stats.model_dump(),
    }


@app.post(CURVE_EXIT_PATH, response_model=CurveExitResponse, tags=["curve-exit"])
@limiter.limit(RATE_LIMIT_CURVE_EXIT)
async def post_curve_exit(request: Request, body: CurveExitRequest):
    """Classify the first sell of ``token`` by ``wallet`` and return a badge."""
    if not _BASE58_RE.match(body.wallet):
        return _error(
            400,
            'Missing or invalid "wallet" — must be a base58-encoded Solana address (32-44 chars)',
            "invalid_request",
        )
    if not _BASE58_RE.match(body.token):
        return _error(
            400,
            'Missing or invalid "token" — must be a base58-encoded token mint address (32-44 chars)',
            "invalid_request",
        )

    try:
        entry, cached = await classify_exit(body.wallet, body.token)
    except CurveExitError as exc:
        if exc.status_code >= 500:
            logger.error("[curve-exit] %s (%s)", exc, exc.kind)
        else:
            logger.info("[curve-exit] %s (%s)", exc, exc.kind)
        return _error(exc.status_code, str(exc), exc.kind)
    except Exception:
        logger.exception("Curve exit classification failed for %s/%s", body.wallet, body.token)
        return _error(500, "Internal server error", "internal_error")

    return format_response(entry, cached)


# ------------------------------------------------------------------
# Run with: python -m curve_exit.api
# ------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "curve_exit.api:app",
        host=API_HOST,
        port=API_PORT,
        reload=True,
    )
