"""Claim detection, Toulmin evaluation and notebook remembrance for data writing."""

from .engine import ClaimEngine
from .errors import (
    ClaimLensError,
    DetectionError,
    DimensionMismatchError,
    EmbeddingError,
    EvaluationError,
    IndexStateError,
)

__all__ = [
    "ClaimEngine",
    "ClaimLensError",
    "DetectionError",
    "DimensionMismatchError",
    "EmbeddingError",
    "EvaluationError",
    "IndexStateError",
]
