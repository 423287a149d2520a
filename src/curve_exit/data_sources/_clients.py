"""
Singleton HTTP client management for the Curve Exit Badge service.

Provides the lazily-initialised Helius client and the result cache
backend instance.

``init_clients`` / ``close_clients`` should be called at app startup/shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..cache import ImmutableCache, SQLiteImmutableCache
from ..circuit_breaker import CircuitBreaker, register
from ..models import CacheEntry, CacheStats
from .helius import HeliusClient
from config import (
    CACHE_BACKEND,
    CACHE_MAX_ENTRIES,
    CACHE_SQLITE_PATH,
    CB_FAILURE_THRESHOLD,
    CB_RECOVERY_TIMEOUT,
    HELIUS_API_KEY,
    HELIUS_REST_URL,
    HELIUS_RPC_URL,
    HISTORY_MAX_RETRIES,
    METADATA_MAX_RETRIES,
    REQUEST_TIMEOUT,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level singletons (created once, reused)
# ---------------------------------------------------------------------------
_helius_client: Optional[HeliusClient] = None

# Cache: choose backend based on config
cache: ImmutableCache | SQLiteImmutableCache
if CACHE_BACKEND == "sqlite":
    cache = SQLiteImmutableCache(db_path=CACHE_SQLITE_PATH, max_entries=CACHE_MAX_ENTRIES)
else:
    cache = ImmutableCache(max_entries=CACHE_MAX_ENTRIES)

# Circuit breakers – one per Helius endpoint, registered for health reporting
cb_helius_history: CircuitBreaker = register(
    CircuitBreaker(
        "helius_history",
        failure_threshold=CB_FAILURE_THRESHOLD,
        recovery_timeout=CB_RECOVERY_TIMEOUT,
    )
)
cb_helius_das: CircuitBreaker = register(
    CircuitBreaker(
        "helius_das",
        failure_threshold=CB_FAILURE_THRESHOLD,
        recovery_timeout=CB_RECOVERY_TIMEOUT,
    )
)


def get_helius_client() -> HeliusClient:
    global _helius_client
    if _helius_client is None:
        if not HELIUS_API_KEY:
            logger.warning("HELIUS_API_KEY is not set – history requests will be rejected")
        _helius_client = HeliusClient(
            rest_url=HELIUS_REST_URL,
            rpc_url=HELIUS_RPC_URL,
            api_key=HELIUS_API_KEY,
            timeout=REQUEST_TIMEOUT,
            history_max_retries=HISTORY_MAX_RETRIES,
            metadata_max_retries=METADATA_MAX_RETRIES,
            history_breaker=cb_helius_history,
            das_breaker=cb_helius_das,
        )
    return _helius_client


async def init_clients() -> None:
    """Eagerly create the singleton HTTP clients (called at startup)."""
    get_helius_client()


async def close_clients() -> None:
    """Close singleton HTTP clients gracefully (called at shutdown)."""
    global _helius_client
    if _helius_client is not None:
        await _helius_client.close()
        _helius_client = None
    # Close SQLiteImmutableCache persistent connection
    if hasattr(cache, "close"):
        await cache.close()


# ---------------------------------------------------------------------------
# Async-safe cache helpers (ImmutableCache is sync, SQLiteImmutableCache is async)
# ---------------------------------------------------------------------------

async def cache_get(wallet: str, token: str) -> Optional[CacheEntry]:
    result = cache.get(wallet, token)
    if asyncio.iscoroutine(result):
        return await result
    return result


async def cache_set(wallet: str, token: str, entry: CacheEntry) -> bool:
    result = cache.set(wallet, token, entry)
    if asyncio.iscoroutine(result):
        return await result
    return result


async def cache_stats() -> CacheStats:
    result = cache.stats()
    if asyncio.iscoroutine(result):
        return await result
    return result
