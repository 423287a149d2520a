"""
Net balance deltas for a single Helius enhanced transaction.

Primary source is ``accountData`` (per-account native and token balance
changes).  The transfer lists (``tokenTransfers`` / ``nativeTransfers``)
are only consulted when ``accountData`` is absent or empty.  Entries that
are not objects are skipped and unreadable amounts count as 0, so one noisy
record never aborts a history scan.

Solana addresses are case-sensitive base58, so every address comparison
here is an exact string match.
"""

from __future__ import annotations

from typing import Any, Iterator, Union


def token_delta(tx: dict[str, Any], wallet: str, mint: str) -> Union[int, float]:
    """Return *wallet*'s signed change of *mint*.

    From ``accountData`` the value is the exact raw-unit integer.  The
    ``tokenTransfers`` fallback only carries UI amounts, so it returns a
    float in token units; callers rely on the sign only.
    """
    account_data = tx.get("accountData")
    if account_data:
        for acc in _dicts(account_data):
            for change in _dicts(acc.get("tokenBalanceChanges")):
                if change.get("mint") != mint:
                    continue
                if _owned_by(change, acc, wallet):
                    raw = change.get("rawTokenAmount")
                    return _int(raw.get("tokenAmount")) if isinstance(raw, dict) else 0
        return 0

    delta = 0.0
    for transfer in _dicts(tx.get("tokenTransfers")):
        if transfer.get("mint") != mint:
            continue
        amount = _number(transfer.get("tokenAmount"))
        if transfer.get("fromUserAccount") == wallet:
            delta -= amount
        if transfer.get("toUserAccount") == wallet:
            delta += amount
    return delta


def native_delta(tx: dict[str, Any], wallet: str) -> int:
    """Return *wallet*'s signed SOL change in lamports.

    Comes from ``nativeBalanceChange`` and therefore includes the fee paid
    by the wallet: a receive-only transaction signed by the wallet usually
    shows a small negative value.
    """
    account_data = tx.get("accountData")
    if account_data:
        for acc in _dicts(account_data):
            if acc.get("account") == wallet:
                return _int(acc.get("nativeBalanceChange"))
        return 0

    delta = 0
    for transfer in _dicts(tx.get("nativeTransfers")):
        amount = _int(transfer.get("amount"))
        if transfer.get("fromUserAccount") == wallet:
            delta -= amount
        if transfer.get("toUserAccount") == wallet:
            delta += amount
    return delta


def _owned_by(change: dict[str, Any], acc: dict[str, Any], wallet: str) -> bool:
    # Owner first, then the account the change is reported under.
    if change.get("userAccount") == wallet:
        return True
    return acc.get("account") == wallet


# ── Tiny type-coercion helpers ────────────────────────────────────────────

def _dicts(items: Any) -> Iterator[dict[str, Any]]:
    if isinstance(items, list):
        for item in items:
            if isinstance(item, dict):
                yield item


def _number(v: Any) -> float:
    try:
        return float(v) if v is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _int(v: Any) -> int:
    try:
        return int(v) if v is not None else 0
    except (TypeError, ValueError):
        return 0
