"""Tests for the request-level classification pipeline."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from curve_exit.constants import PUMP_SWAP_PROGRAM
from curve_exit.data_sources import _clients
from curve_exit.errors import AnalysisTimeoutError, NoSellFoundError, UpstreamError
from curve_exit.exit_service import analyze_curve_exit, classify_exit
from curve_exit.models import TokenMetadata

from conftest import TOKEN, WALLET, make_pump_fun_sell, make_tx


def _fake_helius(pages, symbol="bonk") -> MagicMock:
    client = MagicMock()
    client.get_transaction_history = AsyncMock(side_effect=list(pages) + [[]])
    client.get_asset_metadata = AsyncMock(return_value=TokenMetadata(symbol=symbol))
    return client


class TestAnalyzeCurveExit:

    @pytest.mark.asyncio
    async def test_curve_jeet_high(self):
        helius = _fake_helius([[make_pump_fun_sell("5sell")]])

        result = await analyze_curve_exit(WALLET, TOKEN, client=helius)
        assert result.exit_type == "Curve Jeet"
        assert result.exit_venue == "Pump.fun Bonding Curve"
        assert result.confidence == "HIGH"
        assert result.token_symbol == "BONK"
        assert result.sell_signature == "5sell"
        helius.get_asset_metadata.assert_awaited_once_with(TOKEN)

    @pytest.mark.asyncio
    async def test_router_sell_is_medium(self):
        tx = make_tx("5cpi", source="JUPITER", inner_programs=(PUMP_SWAP_PROGRAM,))
        helius = _fake_helius([[tx]])

        result = await analyze_curve_exit(WALLET, TOKEN, client=helius)
        assert result.exit_type == "PumpSwap Graduate"
        assert result.confidence == "MEDIUM"

    @pytest.mark.asyncio
    async def test_metadata_failure_uses_truncated_mint(self):
        helius = _fake_helius([[make_pump_fun_sell()]])
        helius.get_asset_metadata.side_effect = UpstreamError("Helius DAS (getAsset)", "HTTP 500")

        result = await analyze_curve_exit(WALLET, TOKEN, client=helius)
        assert result.token_symbol == "9BB6...pump"

    @pytest.mark.asyncio
    async def test_no_sell_skips_metadata(self):
        helius = _fake_helius([[make_tx("x", token_change=None)]])

        with pytest.raises(NoSellFoundError):
            await analyze_curve_exit(WALLET, TOKEN, client=helius)
        helius.get_asset_metadata.assert_not_awaited()


class TestClassifyExit:

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, reset_shared_state):
        helius = _fake_helius([[make_pump_fun_sell("5sell")]])

        with patch("curve_exit.exit_service._get_helius_client", return_value=helius):
            first, cached_first = await classify_exit(WALLET, TOKEN)
            second, cached_second = await classify_exit(WALLET, TOKEN)

        assert cached_first is False
        assert cached_second is True
        assert first == second
        assert first.badge_base64.startswith("data:image/jpeg;base64,")
        # No provider traffic on the cached call
        assert helius.get_transaction_history.await_count == 1
        assert helius.get_asset_metadata.await_count == 1

    @pytest.mark.asyncio
    async def test_cache_keys_are_exact_case(self, reset_shared_state):
        helius = _fake_helius([[make_pump_fun_sell()]])

        with patch("curve_exit.exit_service._get_helius_client", return_value=helius):
            await classify_exit(WALLET, TOKEN)
        assert _clients.cache.exists(WALLET, TOKEN)
        assert not _clients.cache.exists(WALLET.lower(), TOKEN)

    @pytest.mark.asyncio
    async def test_not_found_is_not_cached(self, reset_shared_state):
        helius = _fake_helius([])

        with patch("curve_exit.exit_service._get_helius_client", return_value=helius):
            with pytest.raises(NoSellFoundError):
                await classify_exit(WALLET, TOKEN)
        assert not _clients.cache.exists(WALLET, TOKEN)

    @pytest.mark.asyncio
    async def test_upstream_failure_is_not_cached(self, reset_shared_state):
        helius = _fake_helius([])
        helius.get_transaction_history.side_effect = UpstreamError("Helius history", "HTTP 503")

        with patch("curve_exit.exit_service._get_helius_client", return_value=helius):
            with pytest.raises(UpstreamError):
                await classify_exit(WALLET, TOKEN)
        assert len(_clients.cache) == 0

    @pytest.mark.asyncio
    async def test_timeout_discards_work(self, reset_shared_state):
        async def _slow(wallet, before=None):
            await asyncio.sleep(5)
            return []

        helius = _fake_helius([])
        helius.get_transaction_history = AsyncMock(side_effect=_slow)

        with patch("curve_exit.exit_service._get_helius_client", return_value=helius):
            with pytest.raises(AnalysisTimeoutError) as exc_info:
                await classify_exit(WALLET, TOKEN, timeout=0.05)
        assert exc_info.value.status_code == 504
        assert "timed out after 0.05s" in str(exc_info.value)
        assert len(_clients.cache) == 0

    @pytest.mark.asyncio
    async def test_cache_hit_short_circuits(self):
        sentinel = MagicMock()
        with (
            patch("curve_exit.exit_service._cache_get", new_callable=AsyncMock, return_value=sentinel),
            patch("curve_exit.exit_service._get_helius_client") as get_client,
        ):
            entry, cached = await classify_exit(WALLET, TOKEN)
        assert entry is sentinel
        assert cached is True
        get_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_cache_rejection_still_returns_entry(self):
        helius = _fake_helius([[make_pump_fun_sell()]])
        with (
            patch("curve_exit.exit_service._cache_get", new_callable=AsyncMock, return_value=None),
            patch("curve_exit.exit_service._cache_set", new_callable=AsyncMock, return_value=False),
            patch("curve_exit.exit_service._get_helius_client", return_value=helius),
        ):
            entry, cached = await classify_exit(WALLET, TOKEN)
        assert cached is False
        assert entry.result.exit_type == "Curve Jeet"
