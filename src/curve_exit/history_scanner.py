"""
Paged scan of a wallet's transaction history for the first qualifying sell.

Pages arrive newest-first; the oldest signature of each page is the
``before`` cursor for the next one.  Pages and the transactions inside them
are evaluated strictly in delivery order: the *first* match wins, not the
most recent or the best scored, so there is no concurrency here.

Provider failures are not retried or masked: whatever ``fetch_page``
raises aborts the scan.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

from .errors import NoSellFoundError
from .models import SellDetection
from .sell_detector import detect_sell

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 10

FetchPage = Callable[[str, Optional[str]], Awaitable[list[dict[str, Any]]]]


async def scan_for_sell(
    wallet: str,
    token: str,
    fetch_page: FetchPage,
    *,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> tuple[SellDetection, int]:
    """Return ``(detection, pages_scanned)`` for the first sell of *token*.

    Parameters
    ----------
    wallet:
        Wallet whose history is scanned.
    token:
        Mint address of the token that must have been sold.
    fetch_page:
        Async callable ``(wallet, before) -> list[tx]`` returning one page of
        enhanced transactions, newest first, or ``[]`` at end of history.
    max_pages:
        Hard bound on the number of pages fetched.

    Raises
    ------
    NoSellFoundError
        When no qualifying sell is found within the bounds.
    """
    before: Optional[str] = None
    pages_scanned = 0

    while pages_scanned < max_pages:
        page = await fetch_page(wallet, before)
        if not page:
            break
        pages_scanned += 1

        for tx in page:
            detection = detect_sell(tx, wallet, token)
            if detection is not None:
                logger.info(
                    "Sell of %s by %s found on page %d: %s",
                    token[:8], wallet[:8], pages_scanned, detection.signature,
                )
                return detection, pages_scanned

        before = page[-1].get("signature")
        if not before:
            logger.warning("Page %d has no cursor signature – stopping scan", pages_scanned)
            break

    raise NoSellFoundError(wallet, token, pages_scanned)
