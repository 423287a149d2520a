"""Tests for weighted venue attribution."""

from __future__ import annotations

from curve_exit.attribution import score_venues
from curve_exit.constants import (
    MAX_VENUE_SCORE,
    PUMP_FUN_PROGRAM,
    PUMP_SWAP_PROGRAM,
    RAYDIUM_V4_PROGRAM,
)

from conftest import make_tx

JUPITER = "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4"


def _scores(tx):
    return {s.program_id: s.score for s in score_venues(tx)}


class TestScoreVenues:

    def test_full_evidence_scores_160(self):
        tx = make_tx(
            source="PUMP_FUN",
            programs=(PUMP_FUN_PROGRAM,),
            inner_programs=(PUMP_FUN_PROGRAM,),
        )
        ranked = score_venues(tx)
        assert len(ranked) == 1
        assert ranked[0].program_id == PUMP_FUN_PROGRAM
        assert ranked[0].score == MAX_VENUE_SCORE == 160
        assert ranked[0].sources == [
            "provider_source:PUMP_FUN",
            f"inner_ix:{PUMP_FUN_PROGRAM[:8]}",
            f"instruction:{PUMP_FUN_PROGRAM[:8]}",
        ]

    def test_no_evidence_returns_empty(self):
        assert score_venues(make_tx(source="JUPITER", programs=(JUPITER,))) == []

    def test_provider_source_only(self):
        assert _scores(make_tx(source="RAYDIUM")) == {RAYDIUM_V4_PROGRAM: 100}

    def test_pump_amm_alias(self):
        assert _scores(make_tx(source="PUMP_AMM")) == {PUMP_SWAP_PROGRAM: 100}

    def test_unknown_source_ignored(self):
        assert _scores(make_tx(source="SYSTEM_PROGRAM")) == {}

    def test_instruction_counted_once(self):
        tx = make_tx(programs=(RAYDIUM_V4_PROGRAM, RAYDIUM_V4_PROGRAM, RAYDIUM_V4_PROGRAM))
        assert _scores(tx) == {RAYDIUM_V4_PROGRAM: 10}

    def test_inner_instruction_counted_once(self):
        tx = make_tx(
            programs=(JUPITER,),
            inner_programs=(PUMP_SWAP_PROGRAM, PUMP_SWAP_PROGRAM),
        )
        tx["innerInstructions"] = [
            {"index": 0, "instructions": [{"programId": PUMP_SWAP_PROGRAM}]}
        ]
        assert _scores(tx) == {PUMP_SWAP_PROGRAM: 50}

    def test_transaction_level_inner_instructions(self):
        tx = make_tx(programs=(JUPITER,))
        tx["innerInstructions"] = [
            {"index": 0, "instructions": [{"programId": RAYDIUM_V4_PROGRAM}]}
        ]
        assert _scores(tx) == {RAYDIUM_V4_PROGRAM: 50}

    def test_router_sell_through_cpi(self):
        tx = make_tx(
            source="JUPITER",
            programs=(JUPITER,),
            inner_programs=(PUMP_SWAP_PROGRAM,),
        )
        ranked = score_venues(tx)
        assert [s.program_id for s in ranked] == [PUMP_SWAP_PROGRAM]
        assert ranked[0].score == 50

    def test_best_first(self):
        tx = make_tx(
            source="PUMP_FUN",
            programs=(RAYDIUM_V4_PROGRAM, PUMP_SWAP_PROGRAM),
            inner_programs=(PUMP_SWAP_PROGRAM,),
        )
        ranked = score_venues(tx)
        assert [(s.program_id, s.score) for s in ranked] == [
            (PUMP_FUN_PROGRAM, 100),
            (PUMP_SWAP_PROGRAM, 60),
            (RAYDIUM_V4_PROGRAM, 10),
        ]

    def test_tie_goes_to_first_registered(self):
        # Both only appear as top-level instructions; listed Raydium first
        tx = make_tx(programs=(RAYDIUM_V4_PROGRAM, PUMP_FUN_PROGRAM))
        ranked = score_venues(tx)
        assert [s.program_id for s in ranked] == [PUMP_FUN_PROGRAM, RAYDIUM_V4_PROGRAM]
        assert ranked[0].score == ranked[1].score == 10

    def test_malformed_instructions_skipped(self):
        tx = make_tx(source="PUMP_FUN")
        tx["instructions"] = ["garbage", None, {"programId": None}]
        assert _scores(tx) == {PUMP_FUN_PROGRAM: 100}

    def test_scores_never_exceed_max(self):
        tx = make_tx(
            source="RAYDIUM",
            programs=(RAYDIUM_V4_PROGRAM,) * 4,
            inner_programs=(RAYDIUM_V4_PROGRAM,) * 4,
        )
        tx["innerInstructions"] = [
            {"index": 0, "instructions": [{"programId": RAYDIUM_V4_PROGRAM}]}
        ]
        assert _scores(tx) == {RAYDIUM_V4_PROGRAM: MAX_VENUE_SCORE}
