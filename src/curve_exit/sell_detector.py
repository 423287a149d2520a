"""
Sell detection for a single transaction record.

A transaction is a qualifying sell when, in order:

1. it did not fail (no ``transactionError``);
2. the wallet's balance of the target token went down;
3. the wallet received value back: SOL, wrapped SOL or USDC;
4. at least one known venue can be attributed.

Any failed gate returns ``None``.  Pure function, no I/O.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .attribution import score_venues
from .balance_delta import native_delta, token_delta
from .constants import LAMPORTS_PER_SOL, QUOTE_MINTS
from .models import SellDetection

logger = logging.getLogger(__name__)


def detect_sell(tx: dict[str, Any], wallet: str, token: str) -> Optional[SellDetection]:
    """Return a :class:`SellDetection` if *tx* is a sell of *token* by *wallet*."""
    if tx.get("transactionError"):
        return None

    sold = token_delta(tx, wallet, token)
    if not sold < 0:
        return None

    sol = native_delta(tx, wallet)
    if not _received_value(tx, wallet, sol):
        return None

    venue_scores = score_venues(tx)
    if not venue_scores:
        return None

    detection = SellDetection(
        signature=tx.get("signature") or "",
        timestamp=_int(tx.get("timestamp")),
        slot=_int(tx.get("slot")),
        token_delta=sold,
        sol_delta=sol,
        venue_scores=venue_scores,
        winning_venue=venue_scores[0],
    )
    logger.debug(
        "Sell %s: token_delta=%s sol=%.6f winner=%s (%d)",
        detection.signature[:12],
        sold,
        sol / LAMPORTS_PER_SOL,
        detection.winning_venue.program_id[:8],
        detection.winning_venue.score,
    )
    return detection


def _received_value(tx: dict[str, Any], wallet: str, sol: int) -> bool:
    if sol > 0:
        return True
    return any(token_delta(tx, wallet, mint) > 0 for mint in QUOTE_MINTS)


def _int(v: Any) -> int:
    try:
        return int(v) if v is not None else 0
    except (TypeError, ValueError):
        return 0
