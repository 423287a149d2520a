"""
Command line interface for the Curve Exit Badge service.

Usage::

    python src/main.py --wallet <WALLET> --token <TOKEN_MINT> [--json] [--badge-out badge.jpg]
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import logging
import os
import sys

# Ensure ``src/`` is on the import path
sys.path.insert(0, os.path.dirname(__file__))

from curve_exit.data_sources._clients import close_clients
from curve_exit.errors import CurveExitError
from curve_exit.exit_service import classify_exit

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)


async def _run(wallet: str, token: str, as_json: bool, badge_out: str | None) -> int:
    """Async entry point."""
    try:
        entry, _ = await classify_exit(wallet, token)
    except CurveExitError as exc:
        print(f"error ({exc.kind}): {exc}", file=sys.stderr)
        return 1
    finally:
        await close_clients()

    result = entry.result
    if badge_out:
        _, _, payload = entry.badge_base64.partition(",")
        with open(badge_out, "wb") as fh:
            fh.write(base64.b64decode(payload))

    if as_json:
        print(result.model_dump_json(indent=2))
        return 0

    print("=" * 60)
    print("  Curve Exit Badge – Result")
    print("=" * 60)
    print(f"  Wallet      : {result.wallet}")
    print(f"  Token       : {result.token_symbol} ({result.token})")
    print(f"  Exit        : {result.exit_type} via {result.exit_venue}")
    print(f"  Confidence  : {result.confidence}")
    print(f"  Signature   : {result.sell_signature}")
    print(f"  Description : {result.description}")
    if badge_out:
        print(f"  Badge       : written to {badge_out}")
    print("=" * 60)
    return 0


def main() -> None:
    """Entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Classify where a wallet sold a Pump.fun token"
    )
    parser.add_argument("--wallet", required=True, help="Solana wallet address")
    parser.add_argument("--token", required=True, help="Mint address of the token")
    parser.add_argument(
        "--json",
        action="store_true",
        dest="as_json",
        help="Output result as raw JSON",
    )
    parser.add_argument(
        "--badge-out",
        default=None,
        help="Write the rendered JPEG badge to this path",
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(_run(args.wallet, args.token, args.as_json, args.badge_out)))


if __name__ == "__main__":
    main()
