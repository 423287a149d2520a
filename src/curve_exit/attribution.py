"""
Weighted venue attribution for a single transaction.

Three independent signals, each contributing at most once per venue:

* ``provider_source``  (+100) — Helius ``source`` tag maps to the venue.
  The indexer already looked at the whole instruction tree, so this is the
  most reliable signal.
* ``inner_ix``         (+50)  — the venue's program is invoked as an inner
  (CPI) instruction.
* ``instruction``      (+10)  — the venue's program appears as a top-level
  instruction.  Weakest: routers and bundlers list programs incidentally.

A venue therefore scores at most 160.
"""

from __future__ import annotations

from typing import Any, Iterator

from .constants import (
    PROVIDER_SOURCE_MAP,
    WEIGHT_INNER_INSTRUCTION,
    WEIGHT_INSTRUCTION,
    WEIGHT_PROVIDER_SOURCE,
)
from .models import VenueScore
from .venues import VENUE_ORDER, VENUE_REGISTRY, is_known_program


def score_venues(tx: dict[str, Any]) -> list[VenueScore]:
    """Return every venue with a positive score, best first.

    Ordering is ``(score desc, registration order asc)`` so ties resolve
    to the venue registered first.
    """
    scores = {pid: VenueScore(program_id=pid) for pid in VENUE_REGISTRY}

    source = tx.get("source")
    program_id = PROVIDER_SOURCE_MAP.get(source) if isinstance(source, str) else None
    if program_id is not None:
        entry = scores[program_id]
        entry.score += WEIGHT_PROVIDER_SOURCE
        entry.sources.append(f"provider_source:{source}")

    for pid in _dedup(_inner_program_ids(tx)):
        entry = scores[pid]
        entry.score += WEIGHT_INNER_INSTRUCTION
        entry.sources.append(f"inner_ix:{pid[:8]}")

    for pid in _dedup(_top_level_program_ids(tx)):
        entry = scores[pid]
        entry.score += WEIGHT_INSTRUCTION
        entry.sources.append(f"instruction:{pid[:8]}")

    ranked = [s for s in scores.values() if s.score > 0]
    ranked.sort(key=lambda s: (-s.score, VENUE_ORDER[s.program_id]))
    return ranked


def _top_level_program_ids(tx: dict[str, Any]) -> Iterator[Any]:
    for ix in tx.get("instructions") or []:
        if isinstance(ix, dict):
            yield ix.get("programId")


def _inner_program_ids(tx: dict[str, Any]) -> Iterator[Any]:
    # Transaction-level list: [{"index": n, "instructions": [...]}]
    for group in tx.get("innerInstructions") or []:
        if isinstance(group, dict):
            for ix in group.get("instructions") or []:
                if isinstance(ix, dict):
                    yield ix.get("programId")
    # Helius enhanced format nests CPIs under each top-level instruction
    for ix in tx.get("instructions") or []:
        if isinstance(ix, dict):
            for inner in ix.get("innerInstructions") or []:
                if isinstance(inner, dict):
                    yield inner.get("programId")


def _dedup(program_ids: Iterator[Any]) -> list[str]:
    seen: list[str] = []
    for pid in program_ids:
        if is_known_program(pid) and pid not in seen:
            seen.append(pid)
    return seen
