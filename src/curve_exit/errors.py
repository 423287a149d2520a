"""
Error taxonomy for curve exit classification.

Every failure that reaches the API boundary is a ``CurveExitError``
subclass carrying a machine-readable ``kind`` and the HTTP status it maps
to.  Metadata lookup failures never appear here: they degrade to a
truncated mint address inside ``metadata_service``.
"""

from __future__ import annotations


class CurveExitError(Exception):
    """Base class for tagged classification failures."""

    kind: str = "internal_error"
    status_code: int = 500


class NoSellFoundError(CurveExitError):
    """No qualifying sell inside the scan bounds."""

    kind = "not_found"
    status_code = 404

    def __init__(self, wallet: str, token: str, pages_scanned: int) -> None:
        super().__init__(
            f"No sell transaction found for token {token} in wallet {wallet}. "
            f"Scanned {pages_scanned} pages."
        )
        self.wallet = wallet
        self.token = token
        self.pages_scanned = pages_scanned


class AnalysisTimeoutError(CurveExitError):
    """The scan + render pipeline exceeded its time budget."""

    kind = "timeout"
    status_code = 504

    def __init__(self, seconds: float) -> None:
        super().__init__(f"Request timed out after {seconds:g}s")
        self.seconds = seconds


class UpstreamError(CurveExitError):
    """A provider call failed or returned a malformed body."""

    kind = "upstream_failure"
    status_code = 502

    def __init__(self, provider: str, detail: str) -> None:
        super().__init__(f"{provider}: {detail}")
        self.provider = provider
        self.detail = detail


class RegistryMismatchError(CurveExitError):
    """The scorer picked a venue the registry does not know."""

    kind = "internal_inconsistency"
    status_code = 500

    def __init__(self, program_id: str, score: int) -> None:
        super().__init__(f"Unknown venue: {program_id} (score: {score})")
        self.program_id = program_id
        self.score = score
