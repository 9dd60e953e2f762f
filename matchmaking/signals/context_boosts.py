"""
Context boost calculators.

Boosts are layered on top of an existing overlap: the platform and market
boosts reuse the Jaccard overlap of the underlying lists and scale it by
the configured multipliers; the stage boost reads the stage compatibility
table directly. No overlap (or no configured stage pair) means no boost.
"""

import logging
from typing import List, Optional

import numpy as np

from ..profiles.schema import Profile
from ..similarity.primitives import jaccard_similarity, normalize_terms, normalize_text
from .field_signals import FieldCalculator, ScoringContext
from .schema import Measurement, SignalKind

logger = logging.getLogger(__name__)


def _platform_has_data(a: Profile, b: Profile, ctx: ScoringContext) -> bool:
    return len(normalize_terms(a.platforms) & normalize_terms(b.platforms)) > 0


def _platform_boost(a: Profile, b: Profile, ctx: ScoringContext) -> Measurement:
    shared = sorted(normalize_terms(a.platforms) & normalize_terms(b.platforms))
    boost = float(np.mean([ctx.context_rules.platform_boost(p) for p in shared]))
    overlap = jaccard_similarity(a.platforms, b.platforms)
    score = min(100.0, 100.0 * overlap * boost)
    explanation = f"Platform boost x{boost:.2f} for {', '.join(shared)}"
    return Measurement(score, a.platforms, b.platforms, explanation)


def _market_has_data(a: Profile, b: Profile, ctx: ScoringContext) -> bool:
    return len(normalize_terms(a.markets) & normalize_terms(b.markets)) > 0


def _market_boost(a: Profile, b: Profile, ctx: ScoringContext) -> Measurement:
    synergies = [
        ctx.context_rules.market_synergy(market_a, market_b)
        for market_a in sorted(normalize_terms(a.markets))
        for market_b in sorted(normalize_terms(b.markets))
    ]
    configured = [s for s in synergies if s is not None]
    synergy = float(np.mean(configured)) if configured else 1.0
    overlap = jaccard_similarity(a.markets, b.markets)
    score = min(100.0, 100.0 * overlap * synergy)
    explanation = f"Market synergy x{synergy:.2f} over {len(configured)} configured market pairs"
    return Measurement(score, a.markets, b.markets, explanation)


def _stage_value(a: Profile, b: Profile, ctx: ScoringContext) -> Optional[float]:
    stage_a = normalize_text(a.stage)
    stage_b = normalize_text(b.stage)
    if not stage_a or not stage_b:
        return None
    return ctx.context_rules.stage_compatibility_value(stage_a, stage_b)


def _stage_has_data(a: Profile, b: Profile, ctx: ScoringContext) -> bool:
    return _stage_value(a, b, ctx) is not None


def _stage_boost(a: Profile, b: Profile, ctx: ScoringContext) -> Optional[Measurement]:
    value = _stage_value(a, b, ctx)
    if value is None:
        return None
    score = min(100.0, 100.0 * value)
    explanation = f"Stage {normalize_text(a.stage)} vs {normalize_text(b.stage)} compatibility x{value:.2f}"
    return Measurement(score, a.stage, b.stage, explanation)


CONTEXT_BOOST_CALCULATORS: List[FieldCalculator] = [
    FieldCalculator("platform_context_boost", SignalKind.CONTEXT_BOOST, _platform_has_data, _platform_boost),
    FieldCalculator("market_context_boost", SignalKind.CONTEXT_BOOST, _market_has_data, _market_boost),
    FieldCalculator("stage_context_boost", SignalKind.CONTEXT_BOOST, _stage_has_data, _stage_boost),
]
