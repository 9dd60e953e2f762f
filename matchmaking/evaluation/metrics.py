"""
Evaluation metrics for ranked match batches.

There are no ground-truth labels for a "good introduction", so evaluation
describes the batch instead of grading it:
1. Score and confidence distributions
2. Signal coverage: how often each field fires and how strongly
3. Ranking agreement between two runs (e.g. with and without jitter)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
import json

import numpy as np
import pandas as pd
from scipy.stats import spearmanr

from ..ranking.aggregator import MatchResult

logger = logging.getLogger(__name__)


@dataclass
class ScoreDistributionStats:
    """Statistics about score distribution."""
    count: int
    mean: float
    std: float
    min: float
    max: float
    quantiles: Dict[str, float]  # e.g., {"p10": 42.0, "p50": 55.0, "p90": 71.0}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": int(self.count),
            "mean": float(self.mean),
            "std": float(self.std),
            "min": float(self.min),
            "max": float(self.max),
            "quantiles": {k: float(v) for k, v in self.quantiles.items()}
        }


@dataclass
class RankingAgreement:
    """Agreement between two rankings of the same pool."""
    n_common: int
    spearman: float
    top_k: int
    top_k_jaccard: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "n_common": self.n_common,
            "spearman": float(self.spearman),
            "top_k": self.top_k,
            "top_k_jaccard": float(self.top_k_jaccard)
        }


@dataclass
class RankingReport:
    """
    Summary of one ranking run.

    Documents what the weights profile produced; it does not claim that
    the ranking is correct.
    """
    weights_profile: str
    persona: str
    n_selected: int
    score_stats: ScoreDistributionStats
    confidence_stats: ScoreDistributionStats
    signal_coverage: Dict[str, Dict[str, float]] = field(default_factory=dict)
    agreement: Optional[RankingAgreement] = None
    additional_metrics: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "weights_profile": self.weights_profile,
            "persona": self.persona,
            "n_selected": self.n_selected,
            "score_stats": self.score_stats.to_dict(),
            "confidence_stats": self.confidence_stats.to_dict(),
            "signal_coverage": self.signal_coverage,
            "additional_metrics": self.additional_metrics
        }
        if self.agreement:
            result["agreement"] = self.agreement.to_dict()
        return result

    def save(self, filepath: str) -> None:
        """Save report to JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved ranking report to {filepath}")

    def summary(self) -> str:
        """Generate text summary of the report."""
        lines = [
            f"Ranking Report: {self.weights_profile} ({self.persona})",
            "=" * 50,
            f"Selected pairs: {self.n_selected}",
            "",
            "Overall Score:",
            f"  Mean: {self.score_stats.mean:.2f}",
            f"  Std:  {self.score_stats.std:.2f}",
            f"  Min:  {self.score_stats.min:.2f}",
            f"  Max:  {self.score_stats.max:.2f}",
        ]

        for q_name, q_value in self.score_stats.quantiles.items():
            lines.append(f"  {q_name}: {q_value:.2f}")

        lines.extend([
            "",
            "Confidence:",
            f"  Mean: {self.confidence_stats.mean:.2f}",
            f"  Min:  {self.confidence_stats.min:.2f}",
        ])

        if self.signal_coverage:
            lines.extend(["", "Signal Coverage:"])
            for field_name, stats in self.signal_coverage.items():
                lines.append(f"  {field_name}: {stats['rate']:.0%} of pairs, "
                             f"mean score {stats['mean_score']:.1f}")

        if self.agreement:
            lines.extend([
                "",
                f"Ranking Agreement ({self.agreement.n_common} common pairs):",
                f"  Spearman: {self.agreement.spearman:.4f}",
                f"  Top-{self.agreement.top_k} Jaccard: {self.agreement.top_k_jaccard:.4f}",
            ])

        return "\n".join(lines)


def compute_score_distribution_stats(
    scores: Sequence[float],
    quantiles: List[float] = [0.1, 0.25, 0.5, 0.75, 0.9]
) -> ScoreDistributionStats:
    """
    Compute distribution statistics for scores.

    Args:
        scores: Scores (0-100)
        quantiles: Quantile values to compute (default: p10, p25, p50, p75, p90)

    Returns:
        ScoreDistributionStats instance (all zeros for an empty input)
    """
    scores = np.asarray(scores, dtype=float)
    if scores.size == 0:
        return ScoreDistributionStats(
            count=0, mean=0.0, std=0.0, min=0.0, max=0.0,
            quantiles={f"p{int(q * 100)}": 0.0 for q in quantiles}
        )

    quantile_dict = {
        f"p{int(q * 100)}": float(np.percentile(scores, q * 100))
        for q in quantiles
    }

    return ScoreDistributionStats(
        count=int(scores.size),
        mean=float(np.mean(scores)),
        std=float(np.std(scores)),
        min=float(np.min(scores)),
        max=float(np.max(scores)),
        quantiles=quantile_dict
    )


def compute_signal_coverage(results: Sequence[MatchResult]) -> Dict[str, Dict[str, float]]:
    """
    Per-field signal statistics over a batch.

    Returns:
        field -> {"count", "rate", "mean_score", "mean_contribution"}, most
        frequent fields first
    """
    rows = [
        {"field": s.field, "score": s.score, "contribution": s.contribution}
        for r in results for s in r.signals
    ]
    if not rows:
        return {}

    df = pd.DataFrame(rows)
    grouped = df.groupby("field").agg(
        count=("score", "size"),
        mean_score=("score", "mean"),
        mean_contribution=("contribution", "mean"),
    )
    grouped["rate"] = grouped["count"] / len(results)
    grouped = grouped.sort_values(["count", "mean_score"], ascending=[False, False])

    return {
        field_name: {
            "count": int(row["count"]),
            "rate": float(row["rate"]),
            "mean_score": float(row["mean_score"]),
            "mean_contribution": float(row["mean_contribution"]),
        }
        for field_name, row in grouped.iterrows()
    }


def compare_rankings(
    results_a: Sequence[MatchResult],
    results_b: Sequence[MatchResult],
    top_k: int = 10
) -> RankingAgreement:
    """
    Compare two rankings by edge id.

    Spearman correlation is computed over the ranks of pairs present in
    both rankings (0 when fewer than two are shared); top-k agreement is the
    Jaccard similarity of the two top-k edge sets.
    """
    rank_a = {r.edge_id: i for i, r in enumerate(results_a)}
    rank_b = {r.edge_id: i for i, r in enumerate(results_b)}
    common = sorted(set(rank_a) & set(rank_b))

    spearman = 0.0
    if len(common) >= 2:
        correlation, _ = spearmanr([rank_a[e] for e in common], [rank_b[e] for e in common])
        spearman = 0.0 if np.isnan(correlation) else float(correlation)

    top_a = {r.edge_id for r in results_a[:top_k]}
    top_b = {r.edge_id for r in results_b[:top_k]}
    union = top_a | top_b
    top_k_jaccard = len(top_a & top_b) / len(union) if union else 1.0

    return RankingAgreement(
        n_common=len(common),
        spearman=spearman,
        top_k=top_k,
        top_k_jaccard=top_k_jaccard
    )


def create_ranking_report(
    weights_profile: str,
    persona: str,
    results: Sequence[MatchResult],
    baseline: Optional[Sequence[MatchResult]] = None,
    quantiles: List[float] = [0.1, 0.25, 0.5, 0.75, 0.9]
) -> RankingReport:
    """
    Create a ranking report for a batch of results.

    Args:
        weights_profile: Name of the weights profile used
        persona: Persona of the weights profile
        results: Ranked results
        baseline: Optional second ranking to measure agreement against
        quantiles: Quantiles to compute

    Returns:
        RankingReport instance
    """
    report = RankingReport(
        weights_profile=weights_profile,
        persona=persona,
        n_selected=len(results),
        score_stats=compute_score_distribution_stats([r.overall_score for r in results], quantiles),
        confidence_stats=compute_score_distribution_stats([r.confidence for r in results], quantiles),
        signal_coverage=compute_signal_coverage(results),
    )
    if baseline is not None:
        report.agreement = compare_rankings(results, baseline)
    return report
