"""
Display symbol lookup for a token mint.

The symbol only decorates the badge, so any lookup failure degrades to a
truncated mint address instead of failing the classification.
"""

from __future__ import annotations

import logging

from .data_sources.helius import HeliusClient
from .errors import UpstreamError

logger = logging.getLogger(__name__)

_UNKNOWN_SYMBOL = "UNKNOWN"
_MAX_SYMBOL_LEN = 10


def truncate_mint(mint: str) -> str:
    """``"AbCd...WxYz"`` form of a mint address."""
    return f"{mint[:4]}...{mint[-4:]}"


async def fetch_token_symbol(mint: str, client: HeliusClient) -> str:
    """Return an upper-cased symbol (max 10 chars) or the truncated mint."""
    try:
        metadata = await client.get_asset_metadata(mint)
    except UpstreamError as exc:
        logger.warning("Metadata lookup failed for %s: %s", mint, exc)
        metadata = None

    symbol = (metadata.symbol if metadata else "").strip()
    if symbol and symbol.upper() != _UNKNOWN_SYMBOL:
        return symbol.upper()[:_MAX_SYMBOL_LEN]
    return truncate_mint(mint)
