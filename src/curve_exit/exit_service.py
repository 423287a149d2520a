"""
Request-level pipeline for curve exit classification.

``classify_exit`` is the main async entry point used by the API and the
CLI:

1. Look up ``(wallet, token)`` in the immutable result cache.
2. On a miss, run scan + symbol lookup + badge render under a single
   time budget.
3. Store the finished entry forever.

A timeout discards all partial work; nothing is cached.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from config import MAX_HISTORY_PAGES, REQUEST_TIMEOUT_SECONDS
from .badge import render_badge
from .data_sources._clients import (
    cache_get as _cache_get,
    cache_set as _cache_set,
    get_helius_client as _get_helius_client,
)
from .data_sources.helius import HeliusClient
from .errors import AnalysisTimeoutError
from .history_scanner import scan_for_sell
from .metadata_service import fetch_token_symbol
from .models import BadgeInput, CacheEntry, ClassificationResult
from .result_builder import build_result

logger = logging.getLogger(__name__)


async def analyze_curve_exit(
    wallet: str,
    token: str,
    *,
    client: Optional[HeliusClient] = None,
    max_pages: int = MAX_HISTORY_PAGES,
) -> ClassificationResult:
    """Find the first sell of *token* by *wallet* and classify its venue.

    Raises ``NoSellFoundError``, ``UpstreamError`` or
    ``RegistryMismatchError``; never consults the cache.
    """
    helius = client or _get_helius_client()
    detection, pages_scanned = await scan_for_sell(
        wallet, token, helius.get_transaction_history, max_pages=max_pages,
    )
    token_symbol = await fetch_token_symbol(token, helius)
    result = build_result(detection, wallet, token, token_symbol)
    logger.info(
        "Classified %s/%s as %s (%s, score=%d, pages=%d)",
        wallet[:8], token[:8], result.exit_type, result.confidence,
        detection.winning_venue.score, pages_scanned,
    )
    return result


async def classify_exit(
    wallet: str,
    token: str,
    *,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> tuple[CacheEntry, bool]:
    """Return ``(entry, served_from_cache)`` for the pair.

    Raises ``AnalysisTimeoutError`` when the uncached pipeline exceeds
    *timeout* seconds.
    """
    cached = await _cache_get(wallet, token)
    if cached is not None:
        logger.debug("Cache hit for %s/%s", wallet[:8], token[:8])
        return cached, True

    try:
        entry = await asyncio.wait_for(_compute_entry(wallet, token), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Classification of %s/%s timed out after %gs", wallet[:8], token[:8], timeout)
        raise AnalysisTimeoutError(timeout) from None

    await _cache_set(wallet, token, entry)
    return entry, False


async def _compute_entry(wallet: str, token: str) -> CacheEntry:
    result = await analyze_curve_exit(wallet, token)
    # CPU-bound Pillow work runs off the event loop
    badge = await asyncio.to_thread(render_badge, BadgeInput.from_result(result))
    return CacheEntry(result=result, badge_base64=badge, cached_at=time.time())
