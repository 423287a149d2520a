"""
Turn a :class:`SellDetection` into the final :class:`ClassificationResult`.
"""

from __future__ import annotations

import logging

from .constants import CONFIDENCE_HIGH, CONFIDENCE_MEDIUM
from .errors import RegistryMismatchError
from .models import ClassificationResult, Confidence, SellDetection
from .venues import get_venue

logger = logging.getLogger(__name__)


def confidence_for_score(score: int) -> Confidence:
    """Map a winning attribution score to a confidence tier.

    ``>= 100`` HIGH, ``>= 50`` MEDIUM, anything else LOW (the lowest
    possible non-zero score is 10).
    """
    if score >= CONFIDENCE_HIGH:
        return "HIGH"
    if score >= CONFIDENCE_MEDIUM:
        return "MEDIUM"
    return "LOW"


def build_result(
    detection: SellDetection,
    wallet: str,
    token: str,
    token_symbol: str,
) -> ClassificationResult:
    """Assemble the classification for *detection*.

    Raises :class:`RegistryMismatchError` if the winning venue is not in
    the registry, which means scorer and registry disagree.
    """
    winner = detection.winning_venue
    venue = get_venue(winner.program_id)
    if venue is None:
        logger.error(
            "Winning venue %s (score %d) missing from registry",
            winner.program_id, winner.score,
        )
        raise RegistryMismatchError(winner.program_id, winner.score)

    return ClassificationResult(
        wallet=wallet,
        token=token,
        token_symbol=token_symbol,
        exit_type=venue.exit_type,
        exit_venue=venue.exit_venue,
        description=venue.description,
        confidence=confidence_for_score(winner.score),
        sell_signature=detection.signature,
        sell_timestamp=detection.timestamp,
        badge_color=venue.badge_color,
        badge_title=venue.badge_title,
    )
