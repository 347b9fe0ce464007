"""Deterministic scoring."""

from .scorer import compute_auto_score, NEUTRAL_SCORE
from .fusion import blend_score, coerce_ai_score, overall_score, fuse_category

__all__ = [
    "compute_auto_score",
    "NEUTRAL_SCORE",
    "blend_score",
    "coerce_ai_score",
    "overall_score",
    "fuse_category",
]
