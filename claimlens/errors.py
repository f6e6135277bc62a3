"""Error taxonomy for the claim engine."""

from __future__ import annotations

from typing import Optional


class ClaimLensError(Exception):
    """Base class for engine errors."""


class DetectionError(ClaimLensError):
    """Malformed input to claim detection. Detection itself never raises it."""


class EvaluationError(ClaimLensError):
    """The semantic evaluator failed or returned an unusable payload."""

    def __init__(self, message: str, raw_response: Optional[str] = None) -> None:
        super().__init__(message)
        self.raw_response = raw_response


class EmbeddingError(ClaimLensError):
    """The embedding provider failed to produce a vector."""


class DimensionMismatchError(EmbeddingError, ValueError):
    """Two vectors of different length were compared."""


class IndexStateError(ClaimLensError):
    """The semantic index was read before it was built."""
