"""
Aggregation and ranking of profile pairs.

Aggregation Formula:
    overall_score = sum(signal.contribution) / sum(signal.weight)

The weight-normalized mean keeps optional signals from inflating or
deflating a score just by being present. Confidence is the share of
comparable fields (data on both sides) that produced a signal.

Ranking applies the weights profile thresholds, sorts by score and
truncates. An optional seeded JitterPolicy perturbs the ranking key only,
never overall_score.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional, Sequence
import json

import numpy as np

from ..configs.weights import WeightsProfile
from ..profiles.schema import Profile
from ..signals.engine import SCORE_DECIMALS, SignalEngine
from ..signals.reasons import generate_reasons
from ..signals.schema import PairEvaluation, Signal
from .pairs import PairGenerator

logger = logging.getLogger(__name__)


def compute_overall_score(signals: Sequence[Signal]) -> float:
    """Weight-normalized mean signal score (0 when the total weight is 0)."""
    total_weight = sum(s.weight for s in signals)
    if total_weight <= 0:
        return 0.0
    return round(sum(s.contribution for s in signals) / total_weight, SCORE_DECIMALS)


def compute_confidence(evaluation: PairEvaluation) -> float:
    """Emitted signals as a percentage of comparable fields (0 when nothing is comparable)."""
    if evaluation.comparable_fields == 0:
        return 0.0
    ratio = evaluation.emitted / evaluation.comparable_fields
    return round(min(ratio, 1.0) * 100, SCORE_DECIMALS)


def make_edge_id(id_a: str, id_b: str) -> str:
    """Order-independent pair identifier."""
    return "__".join(sorted([id_a, id_b]))


@dataclass
class MatchResult:
    """
    Scored profile pair.

    Attributes:
        edge_id: Sorted profile ids joined with "__"
        profile_a_id: Id of the first profile
        profile_b_id: Id of the second profile
        overall_score: Weight-normalized mean signal score (0-100)
        confidence: Share of comparable fields with a signal (0-100)
        signals: Signals sorted by contribution, strongest first
        reasons: Human-readable reasons for the strongest signals
        ranking_score: Sort key (overall_score plus any jitter)
    """
    edge_id: str
    profile_a_id: str
    profile_b_id: str
    overall_score: float
    confidence: float
    signals: List[Signal] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)
    ranking_score: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "edgeId": self.edge_id,
            "a": self.profile_a_id,
            "b": self.profile_b_id,
            "score": self.overall_score,
            "confidence": self.confidence,
            "rankingScore": self.ranking_score,
            "reasons": list(self.reasons),
            "signals": [s.to_dict() for s in self.signals],
        }


@dataclass
class JitterPolicy:
    """
    Seeded tie-breaking noise added to the ranking key.

    Attributes:
        amount: Noise is drawn uniformly from [0, amount); 0 disables it
        seed: Random seed; the same seed and candidates give the same order
    """
    amount: float = 0.0
    seed: Optional[int] = None

    def validate(self) -> None:
        """Validate configuration values."""
        if self.amount < 0:
            raise ValueError(f"jitter amount must be >= 0, got {self.amount}")

    @property
    def enabled(self) -> bool:
        return self.amount > 0

    def offsets(self, n: int) -> np.ndarray:
        """Noise for n results; all zeros when disabled."""
        if not self.enabled:
            return np.zeros(n)
        return np.random.RandomState(self.seed).uniform(0, self.amount, size=n)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "JitterPolicy":
        """Create from dictionary."""
        return cls(**d)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "JitterPolicy":
        """Create from main config dictionary."""
        ranking_config = config.get("ranking", {}) or {}
        return cls(
            amount=ranking_config.get("jitter", 0.0),
            seed=ranking_config.get("seed")
        )

    def save(self, filepath: str) -> None:
        """Save to JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved jitter policy to {filepath}")


class Ranker:
    """
    Scores candidate pairs with a SignalEngine and ranks them.

    Pairs are scored in parallel threads; the engine's similarity cache is
    the only shared state and is lock-protected.

    Attributes:
        engine: SignalEngine used for every pair
        weights: Weights profile (weights, thresholds, context rules)
        jitter: Tie-breaking policy for the ranking key
        max_workers: Thread pool size
        top_reasons: Number of reasons attached to each result
    """

    def __init__(
        self,
        engine: SignalEngine,
        weights: WeightsProfile,
        jitter: Optional[JitterPolicy] = None,
        max_workers: int = 4,
        top_reasons: int = 3
    ):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.engine = engine
        self.weights = weights
        self.jitter = jitter or JitterPolicy()
        self.jitter.validate()
        self.max_workers = max_workers
        self.top_reasons = top_reasons
        logger.info(f"Initialized Ranker with weights profile '{weights.name}' "
                    f"({weights.persona}), max_workers={max_workers}, jitter={self.jitter.amount}")

    @classmethod
    def from_config(cls, config: Dict[str, Any], engine: SignalEngine, weights: WeightsProfile) -> "Ranker":
        """Create from main config dictionary (the "ranking" section)."""
        ranking_config = config.get("ranking", {}) or {}
        return cls(
            engine=engine,
            weights=weights,
            jitter=JitterPolicy.from_config(config),
            max_workers=ranking_config.get("max_workers", 4),
            top_reasons=ranking_config.get("top_reasons", 3),
        )

    def score_pair(self, profile_a: Profile, profile_b: Profile) -> MatchResult:
        """Score one pair without applying thresholds."""
        evaluation = self.engine.evaluate(profile_a, profile_b, self.weights)
        signals = sorted(evaluation.signals, key=lambda s: (-s.contribution, s.field))
        overall = compute_overall_score(signals)
        return MatchResult(
            edge_id=make_edge_id(profile_a.id, profile_b.id),
            profile_a_id=profile_a.id,
            profile_b_id=profile_b.id,
            overall_score=overall,
            confidence=compute_confidence(evaluation),
            signals=signals,
            reasons=generate_reasons(signals, self.top_reasons),
            ranking_score=overall,
        )

    def rank(self, source: Profile, candidates: Sequence[Profile]) -> List[MatchResult]:
        """
        Rank candidates against one source profile.

        The source itself (same id) is skipped.

        Args:
            source: Profile looking for matches
            candidates: Candidate pool

        Returns:
            Results passing the thresholds, best first
        """
        pool = [c for c in candidates if c.id != source.id]
        logger.info(f"Ranking {len(pool)} candidates for {source.id}")
        results = self._score_all([(source, c) for c in pool])
        return self.select(results)

    def rank_all_pairs(
        self,
        profiles: Sequence[Profile],
        max_pairs: Optional[int] = None,
        random_seed: Optional[int] = None
    ) -> List[MatchResult]:
        """
        Rank every unordered pair of distinct profiles.

        Args:
            profiles: Profile pool
            max_pairs: Cap on scored pairs; pairs are sampled when exceeded
            random_seed: Seed for pair sampling

        Returns:
            Results passing the thresholds, best first
        """
        generator = PairGenerator(max_pairs=max_pairs, random_seed=random_seed)
        indices_a, indices_b = generator.generate_pairs(len(profiles))
        pairs = [(profiles[i], profiles[j]) for i, j in zip(indices_a, indices_b)]
        logger.info(f"Ranking {len(pairs)} pairs from {len(profiles)} profiles")
        return self.select(self._score_all(pairs))

    def select(self, results: List[MatchResult]) -> List[MatchResult]:
        """
        Apply thresholds, jitter, sorting and truncation.

        Jitter offsets are assigned in edge_id order so they do not depend on
        the order in which pairs finished scoring.
        """
        thresholds = self.weights.thresholds
        kept = [
            r for r in results
            if r.overall_score >= thresholds.minimum_overall_score
            and r.confidence >= thresholds.minimum_confidence
        ]
        kept.sort(key=lambda r: r.edge_id)
        for result, offset in zip(kept, self.jitter.offsets(len(kept))):
            result.ranking_score = round(result.overall_score + float(offset), SCORE_DECIMALS + 2)

        kept.sort(key=lambda r: (-r.ranking_score, r.edge_id))
        selected = kept[:thresholds.maximum_results]
        logger.info(f"Selected {len(selected)} of {len(results)} scored pairs "
                    f"({len(results) - len(kept)} below thresholds)")
        return selected

    def _score_all(self, pairs: List[tuple]) -> List[MatchResult]:
        if not pairs:
            return []
        if self.max_workers == 1:
            return [self.score_pair(a, b) for a, b in pairs]
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(lambda pair: self.score_pair(*pair), pairs))
