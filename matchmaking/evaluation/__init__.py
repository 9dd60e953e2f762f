"""Evaluation module for ranked match batches."""

from .metrics import (
    compute_score_distribution_stats,
    compute_signal_coverage,
    compare_rankings,
    RankingReport,
    create_ranking_report
)

__all__ = [
    "compute_score_distribution_stats",
    "compute_signal_coverage",
    "compare_rankings",
    "RankingReport",
    "create_ranking_report"
]
