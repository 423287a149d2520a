"""
Centralized constants for the Curve Exit Badge service.

This file contains:
- Solana program / mint addresses (immutable protocol constants)
- Attribution weights and confidence thresholds that MUST stay
  synchronized between the scorer and the result builder

Import from this module rather than duplicating values across services.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Venue program addresses (immutable, part of the Solana protocol)
# ---------------------------------------------------------------------------
PUMP_FUN_PROGRAM = "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P"
PUMP_SWAP_PROGRAM = "pAMMBay6oceH9fJKBRHGP5D4bD4sWpmSwMn52FMfXEA"
RAYDIUM_V4_PROGRAM = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"

# ---------------------------------------------------------------------------
# Quote mints accepted as "value received" for a sell
# ---------------------------------------------------------------------------
WSOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

QUOTE_MINTS: tuple[str, ...] = (WSOL_MINT, USDC_MINT)

# ---------------------------------------------------------------------------
# Helius ``source`` tag -> venue program
# ---------------------------------------------------------------------------
PROVIDER_SOURCE_MAP: dict[str, str] = {
    "PUMP_FUN": PUMP_FUN_PROGRAM,
    "PUMP_AMM": PUMP_SWAP_PROGRAM,
    "PUMP_SWAP": PUMP_SWAP_PROGRAM,
    "RAYDIUM": RAYDIUM_V4_PROGRAM,
}

# ---------------------------------------------------------------------------
# Attribution weights (one contribution per category per venue)
# ---------------------------------------------------------------------------
WEIGHT_PROVIDER_SOURCE: int = 100
WEIGHT_INNER_INSTRUCTION: int = 50
WEIGHT_INSTRUCTION: int = 10

MAX_VENUE_SCORE: int = (
    WEIGHT_PROVIDER_SOURCE + WEIGHT_INNER_INSTRUCTION + WEIGHT_INSTRUCTION
)

# ---------------------------------------------------------------------------
# Confidence tiers (minimum winning score)
# ---------------------------------------------------------------------------
CONFIDENCE_HIGH: int = 100
CONFIDENCE_MEDIUM: int = 50
CONFIDENCE_LOW: int = 10

# SOL conversion
LAMPORTS_PER_SOL: int = 1_000_000_000
