"""Aggregation, thresholds and ranking of scored profile pairs."""

from .aggregator import (
    compute_overall_score,
    compute_confidence,
    make_edge_id,
    MatchResult,
    JitterPolicy,
    Ranker,
)
from .pairs import PairGenerator

__all__ = [
    "compute_overall_score",
    "compute_confidence",
    "make_edge_id",
    "MatchResult",
    "JitterPolicy",
    "Ranker",
    "PairGenerator",
]
