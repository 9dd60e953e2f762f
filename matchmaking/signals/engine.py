"""
Signal engine: runs every applicable calculator over a profile pair.

The engine is a pure function of (profile A, profile B, weights profile)
apart from its SimilarityCache, which only memoizes results. A calculator
that fails is logged and skipped, so a bad field degrades the result to
fewer signals instead of aborting the pair.

Usage:
    engine = SignalEngine()
    engine.fit_corpus(profiles)          # optional: TF-IDF + numeric stats
    signals = engine.calculate_signals(a, b, weights_profile)
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..configs.weights import WeightsProfile
from ..profiles.schema import NUMERIC_FIELDS, Profile
from ..similarity.cache import DEFAULT_MAX_ENTRIES, SimilarityCache
from ..similarity.text import TextSimilarity
from .context_boosts import CONTEXT_BOOST_CALCULATORS
from .field_signals import FIELD_CALCULATORS, FieldCalculator, ScoringContext
from .schema import PairEvaluation, Signal

logger = logging.getLogger(__name__)

SCORE_DECIMALS = 2
TEXT_FIELDS = ("pitch", "description", "looking_for")


class SignalEngine:
    """
    Computes explainable signals for profile pairs.

    Attributes:
        cache: Shared similarity cache (owned by this engine)
        min_text_length: Minimum stripped length for free-text signals
        numeric_temperature: Decay scale for numeric distances
        text: Text similarity, switched to TF-IDF by fit_corpus()
        numeric_stats: attribute -> (mean, std) of log1p values
        calculators: Field and context boost calculators, in emission order
    """

    def __init__(
        self,
        cache: Optional[SimilarityCache] = None,
        min_text_length: int = 20,
        numeric_temperature: float = 1.0,
        text_config: Optional[Dict[str, Any]] = None,
        calculators: Optional[Sequence[FieldCalculator]] = None
    ):
        if min_text_length < 0:
            raise ValueError(f"min_text_length must be >= 0, got {min_text_length}")
        if numeric_temperature <= 0:
            raise ValueError(f"numeric_temperature must be positive, got {numeric_temperature}")

        self.cache = cache if cache is not None else SimilarityCache()
        self.min_text_length = min_text_length
        self.numeric_temperature = numeric_temperature
        self.text = TextSimilarity(cache=self.cache, config=text_config)
        self.numeric_stats: Dict[str, Tuple[float, float]] = {}
        if calculators is None:
            calculators = FIELD_CALCULATORS + CONTEXT_BOOST_CALCULATORS
        self.calculators: List[FieldCalculator] = list(calculators)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SignalEngine":
        """Create from main config dictionary (the "engine" section)."""
        engine_config = config.get("engine", {}) or {}
        return cls(
            cache=SimilarityCache(engine_config.get("cache_max_entries", DEFAULT_MAX_ENTRIES)),
            min_text_length=engine_config.get("min_text_length", 20),
            numeric_temperature=engine_config.get("numeric_temperature", 1.0),
            text_config=engine_config.get("text", {}),
        )

    def fit_corpus(self, profiles: Iterable[Profile]) -> "SignalEngine":
        """
        Fit corpus-level statistics from a profile pool.

        Fits TF-IDF over the free-text fields and the mean / std of the
        log-scaled numeric fields. Fields with fewer than two values or no
        spread keep the plain log-scale distance.

        Args:
            profiles: Profiles that will be scored against each other

        Returns:
            self (for method chaining)
        """
        profiles = list(profiles)
        corpus = [
            getattr(p, attr) for p in profiles for attr in TEXT_FIELDS
            if getattr(p, attr) is not None
        ]
        self.text.fit(corpus)

        self.numeric_stats = {}
        for attr in NUMERIC_FIELDS:
            values = np.array([
                math.log1p(getattr(p, attr)) for p in profiles
                if getattr(p, attr) is not None and getattr(p, attr) >= 0
            ], dtype=float)
            values = values[np.isfinite(values)]
            if len(values) < 2 or values.std() == 0:
                continue
            self.numeric_stats[attr] = (float(values.mean()), float(values.std()))

        logger.info(f"Fitted corpus on {len(profiles)} profiles: "
                    f"{len(corpus)} texts, numeric stats for {sorted(self.numeric_stats)}")
        return self

    def evaluate(self, profile_a: Profile, profile_b: Profile, weights: WeightsProfile) -> PairEvaluation:
        """
        Compute signals for a pair and count the comparable fields.

        Args:
            profile_a: First profile
            profile_b: Second profile
            weights: Weights profile (weights and context rules)

        Returns:
            PairEvaluation with signals in calculator order
        """
        context = ScoringContext(
            context_rules=weights.context_rules,
            text=self.text,
            cache=self.cache,
            min_text_length=self.min_text_length,
            numeric_stats=self.numeric_stats,
            numeric_temperature=self.numeric_temperature,
        )

        evaluation = PairEvaluation()
        for calculator in self.calculators:
            try:
                if not calculator.has_data(profile_a, profile_b, context):
                    continue
                evaluation.comparable_fields += 1
                measurement = calculator.compute(profile_a, profile_b, context)
            except Exception as e:
                logger.warning(f"Signal '{calculator.field}' failed for "
                               f"{profile_a.id} vs {profile_b.id}: {e}")
                continue

            if measurement is None or math.isnan(measurement.score):
                continue
            score = round(min(max(float(measurement.score), 0.0), 100.0), SCORE_DECIMALS)
            if score <= 0:
                continue

            evaluation.signals.append(Signal.create(
                kind=calculator.kind,
                field_name=calculator.field,
                score=score,
                weight=weights.weight_for(calculator.field),
                value_a=measurement.value_a,
                value_b=measurement.value_b,
                explanation=measurement.explanation,
            ))

        logger.debug(f"{profile_a.id} vs {profile_b.id}: {evaluation.emitted} signals "
                     f"from {evaluation.comparable_fields} comparable fields")
        return evaluation

    def calculate_signals(self, profile_a: Profile, profile_b: Profile, weights: WeightsProfile) -> List[Signal]:
        """Signals with score > 0 for a profile pair."""
        return self.evaluate(profile_a, profile_b, weights).signals

    def clear_caches(self) -> None:
        """Reset all memoized similarity computations."""
        self.cache.clear()
        logger.info("Cleared signal engine caches")
