"""Shared test fixtures for the Curve Exit Badge test suite."""

from __future__ import annotations

import sys
import os

# Ensure src/ is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from typing import Any, Optional

import pytest

from curve_exit.constants import PUMP_FUN_PROGRAM, PUMP_SWAP_PROGRAM, RAYDIUM_V4_PROGRAM

WALLET = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
TOKEN = "9BB6NFEcjBCtnNLFko2FqVQBq8HHM13kCyYcdQbgpump"
OTHER_TOKEN = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
POOL = "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1"


def make_tx(
    signature: str = "sig1",
    *,
    wallet: str = WALLET,
    token: str = TOKEN,
    token_change: Optional[float] = -1_000_000,
    native_change: int = 500_000_000,
    source: str = "UNKNOWN",
    programs: tuple[str, ...] = (),
    inner_programs: tuple[str, ...] = (),
    timestamp: int = 1_717_000_000,
    error: Any = None,
) -> dict[str, Any]:
    """Build a Helius enhanced transaction record.

    ``token_change=None`` leaves the wallet's token balance untouched.
    """
    token_changes = []
    if token_change is not None:
        token_changes.append(
            {
                "userAccount": wallet,
                "tokenAccount": "ATA111111111111111111111111111111111111111",
                "mint": token,
                "rawTokenAmount": {"tokenAmount": str(int(token_change)), "decimals": 6},
            }
        )
    return {
        "signature": signature,
        "timestamp": timestamp,
        "slot": 270_000_000,
        "type": "SWAP",
        "source": source,
        "transactionError": error,
        "accountData": [
            {
                "account": wallet,
                "nativeBalanceChange": native_change,
                "tokenBalanceChanges": token_changes,
            },
            {"account": POOL, "nativeBalanceChange": -native_change, "tokenBalanceChanges": []},
        ],
        "instructions": [
            {
                "programId": pid,
                "accounts": [],
                "data": "",
                "innerInstructions": [
                    {"programId": inner, "accounts": [], "data": ""} for inner in inner_programs
                ] if i == 0 else [],
            }
            for i, pid in enumerate(programs or ("ComputeBudget111111111111111111111111111111",))
        ],
    }


def make_pump_fun_sell(signature: str = "sell_pump", **kwargs: Any) -> dict[str, Any]:
    kwargs.setdefault("source", "PUMP_FUN")
    kwargs.setdefault("programs", (PUMP_FUN_PROGRAM,))
    kwargs.setdefault("inner_programs", (PUMP_FUN_PROGRAM,))
    return make_tx(signature, **kwargs)


def make_pump_swap_sell(signature: str = "sell_pswap", **kwargs: Any) -> dict[str, Any]:
    kwargs.setdefault("source", "PUMP_AMM")
    kwargs.setdefault("programs", (PUMP_SWAP_PROGRAM,))
    return make_tx(signature, **kwargs)


def make_raydium_sell(signature: str = "sell_ray", **kwargs: Any) -> dict[str, Any]:
    kwargs.setdefault("source", "RAYDIUM")
    kwargs.setdefault("programs", (RAYDIUM_V4_PROGRAM,))
    return make_tx(signature, **kwargs)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def pump_fun_sell():
    """Full-evidence Pump.fun bonding curve sell (score 160)."""
    return make_pump_fun_sell()


@pytest.fixture
def buy_tx():
    """Wallet bought the token: token balance up, SOL down."""
    return make_tx(
        "buy1",
        token_change=2_000_000,
        native_change=-300_000_000,
        source="PUMP_FUN",
        programs=(PUMP_FUN_PROGRAM,),
    )


@pytest.fixture
def reset_shared_state():
    """Clear the process-wide result cache and circuit breakers."""
    from curve_exit.data_sources import _clients

    def _reset():
        if hasattr(_clients.cache, "_store"):
            _clients.cache.clear()
        _clients.cb_helius_history.reset()
        _clients.cb_helius_das.reset()

    _reset()
    yield
    _reset()


def make_entry(wallet: str = WALLET, token: str = TOKEN, **overrides: Any):
    """A finished cache entry for a Curve Jeet exit."""
    from curve_exit.models import CacheEntry, ClassificationResult

    fields = dict(
        wallet=wallet,
        token=token,
        token_symbol="BONK",
        exit_type="Curve Jeet",
        exit_venue="Pump.fun Bonding Curve",
        description="You sold before the migration. Weak aura.",
        confidence="HIGH",
        sell_signature="5sig",
        sell_timestamp=1_717_000_000,
        badge_color="red",
        badge_title="PRE-MIGRATION EXIT",
    )
    fields.update(overrides)
    return CacheEntry(
        result=ClassificationResult(**fields),
        badge_base64="data:image/jpeg;base64,AAAA",
        cached_at=1_717_000_100.0,
    )
