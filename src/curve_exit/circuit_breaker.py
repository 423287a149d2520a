"""
Fail-fast guard for the Helius endpoints.

After ``failure_threshold`` consecutive failures the breaker opens and
every call raises :class:`CircuitOpenError` without touching the network.
``CircuitOpenError`` is an :class:`~curve_exit.errors.UpstreamError`, so the
API reports it as an upstream failure (502).

Once ``recovery_timeout`` seconds have passed, exactly one trial call is let
through.  A successful trial closes the breaker; a failed one opens it for
another full window.  A cancelled call (the request budget ran out) counts
as neither.

Usage::

    history_cb = CircuitBreaker("helius_history", failure_threshold=8)
    page = await history_cb.call(fetch_page, wallet, before)
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable

from .errors import UpstreamError

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(UpstreamError):
    """The breaker for *name* is open; the call was not attempted."""

    def __init__(self, name: str, retry_in: float) -> None:
        super().__init__(name, f"circuit open, next attempt in {retry_in:.0f}s")
        self.retry_in = retry_in


class CircuitBreaker:
    """Consecutive-failure breaker with a single-call recovery trial."""

    def __init__(
        self,
        name: str,
        *,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self.reset()

    @property
    def state(self) -> CircuitState:
        return self._state

    def reset(self) -> None:
        """Close the breaker and zero every counter."""
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at = 0.0
        self._trial_running = False
        self.times_opened = 0
        self.rejected_calls = 0

    async def call(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Await ``func(*args, **kwargs)`` unless the breaker is open."""
        self._admit()
        trial = self._state is CircuitState.HALF_OPEN
        if trial:
            self._trial_running = True
        try:
            result = await func(*args, **kwargs)
        except Exception:
            self._record_failure()
            raise
        finally:
            if trial:
                self._trial_running = False
        self._record_success()
        return result

    def status(self) -> dict[str, Any]:
        """Snapshot for ``/health``."""
        return {
            "state": self._state.value,
            "consecutive_failures": self._consecutive_failures,
            "times_opened": self.times_opened,
            "rejected_calls": self.rejected_calls,
            "retry_in_s": round(self._retry_in(), 1) if self._state is CircuitState.OPEN else 0.0,
        }

    # ------------------------------------------------------------------

    def _retry_in(self) -> float:
        return max(0.0, self._opened_at + self.recovery_timeout - self._clock())

    def _admit(self) -> None:
        if self._state is CircuitState.OPEN and self._retry_in() <= 0:
            self._move_to(CircuitState.HALF_OPEN)
        blocked = self._state is CircuitState.OPEN or (
            self._state is CircuitState.HALF_OPEN and self._trial_running
        )
        if blocked:
            self.rejected_calls += 1
            raise CircuitOpenError(self.name, self._retry_in())

    def _record_failure(self) -> None:
        self._consecutive_failures += 1
        if self._state is CircuitState.OPEN:
            return
        if (
            self._state is CircuitState.HALF_OPEN
            or self._consecutive_failures >= self.failure_threshold
        ):
            self._opened_at = self._clock()
            self.times_opened += 1
            self._move_to(CircuitState.OPEN)

    def _record_success(self) -> None:
        # A late success from a call admitted before the breaker opened
        # does not close it; only the recovery trial can.
        if self._state is CircuitState.OPEN:
            return
        self._consecutive_failures = 0
        if self._state is CircuitState.HALF_OPEN:
            self._move_to(CircuitState.CLOSED)

    def _move_to(self, new_state: CircuitState) -> None:
        logger.warning(
            "Breaker '%s' %s -> %s after %d consecutive failure(s)",
            self.name, self._state.value, new_state.value, self._consecutive_failures,
        )
        self._state = new_state


# ---------------------------------------------------------------------------
# Registry reported by /health
# ---------------------------------------------------------------------------
_breakers: dict[str, CircuitBreaker] = {}


def register(cb: CircuitBreaker) -> CircuitBreaker:
    _breakers[cb.name] = cb
    return cb


def get_all_statuses() -> dict[str, dict[str, Any]]:
    return {name: cb.status() for name, cb in _breakers.items()}
