"""
Helius client for the Curve Exit Badge service.

Two endpoints are used:

* Enhanced Transactions REST API
  (``GET /v0/addresses/{wallet}/transactions``) — human-readable history
  with ``accountData`` balance changes, transfers, ``source`` tag and
  instruction trees.  Newest first, paged with ``before=<signature>``.
* DAS JSON-RPC (``getAsset``) — token symbol / name / decimals.

Uses ``httpx`` for async HTTP, each endpoint guarded by its own circuit
breaker.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ._retry import async_http_get, async_http_post_json
from ..circuit_breaker import CircuitBreaker
from ..errors import UpstreamError
from ..models import TokenMetadata

logger = logging.getLogger(__name__)

_HISTORY_BACKOFF_BASE = 1.0  # seconds
_RPC_BACKOFF_BASE = 1.5


class HeliusClient:
    """Async client for the Helius history and DAS APIs."""

    def __init__(
        self,
        rest_url: str,
        rpc_url: str,
        api_key: str = "",
        timeout: int = 30,
        *,
        history_max_retries: int = 1,
        metadata_max_retries: int = 3,
        history_breaker: CircuitBreaker | None = None,
        das_breaker: CircuitBreaker | None = None,
    ) -> None:
        self._rest_url = rest_url.rstrip("/")
        self._rpc_url = rpc_url
        self._api_key = api_key
        self._timeout = timeout
        self._history_max_retries = history_max_retries
        self._metadata_max_retries = metadata_max_retries
        self._history_cb = history_breaker
        self._das_cb = das_breaker
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_transaction_history(
        self, wallet: str, before: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """Return one page of enhanced transactions for *wallet*.

        Raises ``UpstreamError`` on any transport failure or when the body
        is not a JSON list.  An empty list means end of history.
        """
        url = f"{self._rest_url}/v0/addresses/{wallet}/transactions"
        params: dict[str, Any] = {"api-key": self._api_key}
        if before:
            params["before"] = before
        client = await self._get_client()

        async def _do() -> list[dict[str, Any]]:
            body = await async_http_get(
                client, url, params=params,
                max_retries=self._history_max_retries,
                backoff_base=_HISTORY_BACKOFF_BASE,
                label="Helius history",
            )
            if body is None:
                return []
            if not isinstance(body, list):
                raise UpstreamError("Helius history", "expected a JSON list of transactions")
            return [tx for tx in body if isinstance(tx, dict)]

        if self._history_cb is not None:
            return await self._history_cb.call(_do)
        return await _do()

    async def get_asset_metadata(self, mint: str) -> Optional[TokenMetadata]:
        """Fetch display metadata for *mint* via DAS ``getAsset``.

        Returns ``None`` when the asset is unknown.  Transport failures
        raise ``UpstreamError``; callers that only need a display string
        should catch it.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": "getAsset",
            "method": "getAsset",
            "params": {"id": mint},
        }
        client = await self._get_client()

        async def _do() -> Any:
            return await async_http_post_json(
                client, self._rpc_url, json_payload=payload,
                max_retries=self._metadata_max_retries,
                backoff_base=_RPC_BACKOFF_BASE,
                label="Helius DAS (getAsset)",
            )

        if self._das_cb is not None:
            result = await self._das_cb.call(_do)
        else:
            result = await _do()
        if result is None:
            return None
        return _parse_asset(result)


def _parse_asset(result: Any) -> TokenMetadata:
    """Build :class:`TokenMetadata` from a DAS asset.

    Raises ``UpstreamError`` when the asset is not shaped as documented.
    """
    if not isinstance(result, dict):
        raise UpstreamError("Helius DAS (getAsset)", "malformed asset")
    content = result.get("content") or {}
    token_info = result.get("token_info") or {}
    metadata = (content.get("metadata") or {}) if isinstance(content, dict) else None
    if not isinstance(metadata, dict) or not isinstance(token_info, dict):
        raise UpstreamError("Helius DAS (getAsset)", "malformed asset")

    symbol = metadata.get("symbol") or token_info.get("symbol") or "UNKNOWN"
    name = metadata.get("name") or token_info.get("name") or "Unknown Token"
    if not isinstance(symbol, str) or not isinstance(name, str):
        raise UpstreamError("Helius DAS (getAsset)", "malformed asset")
    decimals = token_info.get("decimals")
    return TokenMetadata(
        symbol=symbol,
        name=name,
        decimals=decimals if isinstance(decimals, int) and not isinstance(decimals, bool) else 6,
    )
