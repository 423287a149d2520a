"""
Static registry of the trading venues a sell can be attributed to.

The registry is a closed, ordered mapping built once at import time.
Registration order is significant: it is the tie-break when two venues
score the same (first registered wins).
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from .constants import PUMP_FUN_PROGRAM, PUMP_SWAP_PROGRAM, RAYDIUM_V4_PROGRAM
from .models import VenueDescriptor

_VENUES: tuple[VenueDescriptor, ...] = (
    VenueDescriptor(
        program_id=PUMP_FUN_PROGRAM,
        exit_type="Curve Jeet",
        exit_venue="Pump.fun Bonding Curve",
        description="You sold before the migration. Weak aura.",
        badge_color="red",
        badge_title="PRE-MIGRATION EXIT",
    ),
    VenueDescriptor(
        program_id=PUMP_SWAP_PROGRAM,
        exit_type="PumpSwap Graduate",
        exit_venue="PumpSwap AMM",
        description="You held through migration. Diamond hands on PumpSwap.",
        badge_color="gold",
        badge_title="PUMPSWAP GRADUATE",
    ),
    VenueDescriptor(
        program_id=RAYDIUM_V4_PROGRAM,
        exit_type="Raydium OG",
        exit_venue="Raydium V4 AMM",
        description="You held through legacy Raydium migration. True OG status.",
        badge_color="platinum",
        badge_title="RAYDIUM OG",
    ),
)

VENUE_REGISTRY: Mapping[str, VenueDescriptor] = MappingProxyType(
    {v.program_id: v for v in _VENUES}
)

# program_id -> registration index, used as the explicit tie-break key
VENUE_ORDER: Mapping[str, int] = MappingProxyType(
    {pid: i for i, pid in enumerate(VENUE_REGISTRY)}
)

if len(VENUE_REGISTRY) != len(_VENUES):
    raise RuntimeError("Duplicate program_id in venue registry")


def get_venue(program_id: str) -> Optional[VenueDescriptor]:
    """Return the descriptor for *program_id*, or ``None`` if unknown."""
    return VENUE_REGISTRY.get(program_id)


def is_known_program(program_id: object) -> bool:
    return isinstance(program_id, str) and program_id in VENUE_REGISTRY
