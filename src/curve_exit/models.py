"""
Pydantic models used throughout the Curve Exit Badge service.
"""

from __future__ import annotations

import json
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Confidence = Literal["HIGH", "MEDIUM", "LOW"]
BadgeColor = Literal["red", "gold", "platinum"]


# ---------------------------------------------------------------------------
# Venue registry entry
# ---------------------------------------------------------------------------
class VenueDescriptor(BaseModel):
    """Exit classification metadata for one known trading venue."""

    model_config = ConfigDict(frozen=True)

    program_id: str = Field(..., description="On-chain program address of the venue")
    exit_type: str = Field(..., description="Short exit label, e.g. 'Curve Jeet'")
    exit_venue: str = Field(..., description="Human-readable venue name")
    description: str = ""
    badge_color: BadgeColor
    badge_title: str


# ---------------------------------------------------------------------------
# Attribution / detection (transient, per transaction)
# ---------------------------------------------------------------------------
class VenueScore(BaseModel):
    """Weighted attribution evidence for one venue in one transaction."""

    program_id: str
    score: int = Field(0, ge=0)
    sources: list[str] = Field(
        default_factory=list,
        description="Evidence tags in the order they were found",
    )


class SellDetection(BaseModel):
    """A transaction that passed every sell gate."""

    signature: str
    timestamp: int = Field(0, description="Block time (unix seconds)")
    slot: int = 0
    token_delta: Union[int, float] = Field(
        ...,
        description="Change of the sold token: raw units (int), or UI units from the transfer fallback",
    )
    sol_delta: int = Field(0, description="Native balance change in lamports (fees included)")
    venue_scores: list[VenueScore] = Field(
        default_factory=list,
        description="Every venue with a non-zero score, best first",
    )
    winning_venue: VenueScore

    @field_validator("token_delta")
    @classmethod
    def _must_be_a_decrease(cls, v: Union[int, float]) -> Union[int, float]:
        if not v < 0:
            raise ValueError("token_delta must be negative for a sell")
        return v


# ---------------------------------------------------------------------------
# Classification result (the main output)
# ---------------------------------------------------------------------------
class ClassificationResult(BaseModel):
    """Final, immutable verdict for a (wallet, token) pair."""

    model_config = ConfigDict(frozen=True)

    wallet: str
    token: str
    token_symbol: str
    exit_type: str
    exit_venue: str
    description: str = ""
    confidence: Confidence
    sell_signature: str
    sell_timestamp: int
    badge_color: BadgeColor
    badge_title: str


class BadgeInput(BaseModel):
    """Flat record consumed by the badge renderer."""

    badge_title: str
    badge_color: BadgeColor
    exit_type: str
    exit_venue: str
    token_symbol: str
    wallet: str
    token: str
    sell_timestamp: int
    confidence: Confidence

    @classmethod
    def from_result(cls, result: ClassificationResult) -> "BadgeInput":
        return cls(
            badge_title=result.badge_title,
            badge_color=result.badge_color,
            exit_type=result.exit_type,
            exit_venue=result.exit_venue,
            token_symbol=result.token_symbol,
            wallet=result.wallet,
            token=result.token,
            sell_timestamp=result.sell_timestamp,
            confidence=result.confidence,
        )


class CacheEntry(BaseModel):
    """Classification plus rendered badge, stored forever."""

    result: ClassificationResult
    badge_base64: str
    cached_at: float = Field(..., description="Unix time the entry was written")


class CacheStats(BaseModel):
    key_count: int = 0
    hit_count: int = 0
    miss_count: int = 0


# ---------------------------------------------------------------------------
# Token metadata (DAS)
# ---------------------------------------------------------------------------
class TokenMetadata(BaseModel):
    """Display metadata for a token mint."""

    symbol: str = "UNKNOWN"
    name: str = "Unknown Token"
    decimals: int = 6


# ---------------------------------------------------------------------------
# API request / response
# ---------------------------------------------------------------------------
class CurveExitRequest(BaseModel):
    """Request body for ``POST /api/v1/solana/curve-exit``.

    Payment gateways sometimes forward the client payload wrapped as
    ``{"body": {...}}`` or ``{"body": "<json string>"}``; both are unwrapped.
    """

    wallet: str = Field(..., description="Solana wallet address")
    token: str = Field(..., description="Token mint address")

    @model_validator(mode="before")
    @classmethod
    def _unwrap_gateway_body(cls, data: Any) -> Any:
        if isinstance(data, dict) and "body" in data and "wallet" not in data:
            data = data["body"]
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError as exc:
                raise ValueError("body is not valid JSON") from exc
        return data


class CurveExitData(BaseModel):
    wallet: str
    token: str
    token_symbol: str
    exit_type: str
    exit_venue: str
    confidence: Confidence
    description: str
    image_base64: str
    pay_to_address: str = ""
    sell_signature: str
    sell_timestamp: str = Field(..., description="ISO-8601 UTC time of the sell")


class CurveExitResponse(BaseModel):
    """Envelope returned by the curve-exit endpoint."""

    status: Literal["success", "error"]
    cached: Optional[bool] = None
    data: Optional[CurveExitData] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
