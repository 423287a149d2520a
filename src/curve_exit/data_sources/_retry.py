"""
Async HTTP helpers for the Helius endpoints.

One retry loop serves both the REST history call and the DAS JSON-RPC
call.  Every failure path raises :class:`~curve_exit.errors.UpstreamError`
so callers decide whether to propagate (history) or degrade (metadata).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

from ..errors import UpstreamError

logger = logging.getLogger(__name__)


def _retry_after(resp: httpx.Response, default: float) -> float:
    """Seconds from an integer ``Retry-After`` header, else *default*."""
    raw = resp.headers.get("retry-after")
    try:
        return max(float(raw), 0.5) if raw is not None else default
    except ValueError:
        return default


def _decode_json(resp: httpx.Response, label: str) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise UpstreamError(label, "malformed JSON response") from exc


async def _send(
    send: Callable[[], Awaitable[httpx.Response]],
    *,
    max_retries: int,
    backoff_base: float,
    label: str,
) -> httpx.Response:
    """Call *send* until it returns a non-error response.

    429, 5xx and transport errors are retried, waiting
    ``backoff_base * 2**attempt`` between attempts (a 429's ``Retry-After``
    takes precedence).  Any other 4xx fails at once.  *max_retries* counts
    attempts, so ``1`` means no retry.
    """
    last_error = "no attempt made"
    for attempt in range(max_retries):
        delay = backoff_base * (2 ** attempt)
        try:
            resp = await send()
        except httpx.RequestError as exc:
            last_error = f"request failed: {exc}"
        else:
            status = resp.status_code
            if status < 400:
                return resp
            if status == 429:
                last_error = "rate-limited (HTTP 429)"
                delay = _retry_after(resp, delay)
            elif status < 500:
                logger.warning("%s HTTP %s, not retrying", label, status)
                raise UpstreamError(label, f"HTTP {status}")
            else:
                last_error = f"HTTP {status}"
        logger.warning("%s attempt %d/%d failed: %s", label, attempt + 1, max_retries, last_error)
        if attempt < max_retries - 1:
            await asyncio.sleep(delay)
    raise UpstreamError(label, last_error)


async def async_http_get(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: Optional[dict[str, Any]] = None,
    max_retries: int = 3,
    backoff_base: float = 1.0,
    label: str = "HTTP",
) -> Any:
    """GET *url* and return the parsed JSON body."""
    resp = await _send(
        lambda: client.get(url, params=params),
        max_retries=max_retries, backoff_base=backoff_base, label=label,
    )
    return _decode_json(resp, label)


async def async_http_post_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    json_payload: Any,
    max_retries: int = 3,
    backoff_base: float = 1.5,
    label: str = "RPC",
) -> Any:
    """POST a JSON-RPC *json_payload* and return its ``result``.

    A body that is not an object, or that carries an ``error`` member, is a
    failure and is not retried.
    """
    resp = await _send(
        lambda: client.post(url, json=json_payload),
        max_retries=max_retries, backoff_base=backoff_base, label=label,
    )
    body = _decode_json(resp, label)
    if not isinstance(body, dict):
        raise UpstreamError(label, "malformed JSON-RPC response")
    if "error" in body:
        logger.warning("%s error: %s", label, body["error"])
        raise UpstreamError(label, f"RPC error: {body['error']}")
    return body.get("result")
