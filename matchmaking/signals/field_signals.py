"""
Field calculators for profile pairs.

Each calculator compares one logical field of two profiles and returns a
Measurement (raw 0-100 score, compared values, explanation) or None. A
calculator has two parts:

- has_data: whether both profiles carry usable data for the field. Fields
  with data on both sides count towards confidence.
- compute: the comparison itself, only called when has_data holds.

Calculator Types:
- Date proximity: exponential decay of the gap in years
- List Jaccard: overlap of category lists
- Bipartite matching: needs of one side met by capabilities of the other
- Numeric distance: log-scale / z-score exponential decay, and ordinal
  compatibility matrices for company size and funding stage
- Levenshtein: normalized edit distance of names and locations
- Text: term-frequency or corpus TF-IDF cosine of free text
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from ..configs.weights import ContextRules
from ..profiles.schema import CompanySize, FundingStage, Profile
from ..similarity.cache import SimilarityCache, pair_key, terms_key
from ..similarity.primitives import (
    exponential_decay,
    jaccard_similarity,
    levenshtein_similarity,
    max_bipartite_matches,
    normalize_terms,
    normalize_text,
    to_datetime,
    years_between,
)
from ..similarity.text import TextSimilarity
from .schema import Measurement, SignalKind

logger = logging.getLogger(__name__)

FOUNDED_YEAR_SCALE = 5.0
FUNDING_DATE_SCALE = 1.0
FUNDING_STAGE_SIGMA = 1.5

# Symmetric, indexed by CompanySize.ordinal
SIZE_COMPATIBILITY = np.array([
    [100, 85, 65, 40, 25],
    [85, 100, 85, 60, 40],
    [65, 85, 100, 85, 65],
    [40, 60, 85, 100, 85],
    [25, 40, 65, 85, 100],
], dtype=float)


def _gaussian_matrix(n: int, sigma: float) -> np.ndarray:
    steps = np.arange(n)
    distance = steps[:, None] - steps[None, :]
    return 100.0 * np.exp(-(distance ** 2) / (2 * sigma ** 2))


FUNDING_STAGE_COMPATIBILITY = _gaussian_matrix(len(FundingStage), FUNDING_STAGE_SIGMA)


@dataclass(frozen=True)
class ScoringContext:
    """
    Everything a calculator may consult besides the two profiles.

    Attributes:
        context_rules: Context boost tables of the active weights profile
        text: Text similarity (term-frequency or fitted TF-IDF)
        cache: Shared similarity cache, or None to compute directly
        min_text_length: Minimum stripped length for free-text comparison
        numeric_stats: attribute -> (mean, std) of log1p values, when fitted
        numeric_temperature: Decay scale for numeric distances
    """
    context_rules: ContextRules
    text: TextSimilarity
    cache: Optional[SimilarityCache] = None
    min_text_length: int = 20
    numeric_stats: Dict[str, Tuple[float, float]] = field(default_factory=dict)
    numeric_temperature: float = 1.0

    def cached(self, namespace: str, key, compute: Callable[[], Any]) -> Any:
        if self.cache is None:
            return compute()
        return self.cache.get_or_compute(namespace, key, compute)


@dataclass(frozen=True)
class FieldCalculator:
    """A named comparison: presence check plus scoring function."""
    field: str
    kind: SignalKind
    has_data: Callable[[Profile, Profile, ScoringContext], bool]
    compute: Callable[[Profile, Profile, ScoringContext], Optional[Measurement]]


# =============================================================================
# Date proximity
# =============================================================================

def _founded_year_has_data(a: Profile, b: Profile, ctx: ScoringContext) -> bool:
    return a.founded_year is not None and b.founded_year is not None


def _founded_year(a: Profile, b: Profile, ctx: ScoringContext) -> Measurement:
    gap = abs(a.founded_year - b.founded_year)
    score = 100.0 * exponential_decay(gap, FOUNDED_YEAR_SCALE)
    if gap == 0:
        explanation = f"Founded {a.founded_year} vs {b.founded_year}: perfect match"
    else:
        explanation = f"Founded {a.founded_year} vs {b.founded_year} ({gap} years apart)"
    return Measurement(score, a.founded_year, b.founded_year, explanation)


def _funding_date_has_data(a: Profile, b: Profile, ctx: ScoringContext) -> bool:
    return to_datetime(a.last_funding_date) is not None and to_datetime(b.last_funding_date) is not None


def _funding_date(a: Profile, b: Profile, ctx: ScoringContext) -> Measurement:
    gap = years_between(a.last_funding_date, b.last_funding_date)
    score = 100.0 * exponential_decay(gap, FUNDING_DATE_SCALE)
    if gap == 0:
        explanation = f"Last funding {a.last_funding_date} vs {b.last_funding_date}: perfect match"
    else:
        explanation = (f"Last funding {a.last_funding_date} vs {b.last_funding_date} "
                       f"({gap * 12:.1f} months apart)")
    return Measurement(score, a.last_funding_date, b.last_funding_date, explanation)


# =============================================================================
# List overlap
# =============================================================================

def _jaccard_calculator(attr: str, label: str) -> FieldCalculator:
    def has_data(a: Profile, b: Profile, ctx: ScoringContext) -> bool:
        return len(normalize_terms(getattr(a, attr))) > 0 and len(normalize_terms(getattr(b, attr))) > 0

    def compute(a: Profile, b: Profile, ctx: ScoringContext) -> Measurement:
        values_a = getattr(a, attr)
        values_b = getattr(b, attr)
        similarity = jaccard_similarity(values_a, values_b)
        shared = sorted(normalize_terms(values_a) & normalize_terms(values_b))
        if shared:
            explanation = f"Shared {label}: {', '.join(shared)} ({similarity * 100:.0f}% overlap)"
        else:
            explanation = f"No shared {label}"
        return Measurement(100.0 * similarity, values_a, values_b, explanation)

    return FieldCalculator(attr, SignalKind.LIST_JACCARD, has_data, compute)


# =============================================================================
# Capability / need matching
# =============================================================================

def _directions(a: Profile, b: Profile) -> List[Tuple[Tuple[str, ...], Tuple[str, ...]]]:
    """(needs, opposing capabilities) for each direction where both exist."""
    directions = []
    for needs, capabilities in ((a.needs, b.capabilities), (b.needs, a.capabilities)):
        if normalize_terms(needs) and normalize_terms(capabilities):
            directions.append((needs, capabilities))
    return directions


def _capabilities_needs_has_data(a: Profile, b: Profile, ctx: ScoringContext) -> bool:
    return len(_directions(a, b)) > 0


def _capabilities_needs(a: Profile, b: Profile, ctx: ScoringContext) -> Optional[Measurement]:
    matched: List[Tuple[str, str]] = []
    total_needs = 0
    for needs, capabilities in _directions(a, b):
        key = (terms_key(needs), terms_key(capabilities))
        matched.extend(ctx.cached("bipartite", key, lambda: max_bipartite_matches(needs, capabilities)))
        total_needs += len(normalize_terms(needs))

    if total_needs == 0:
        return None
    score = 100.0 * len(matched) / total_needs
    pairs = ", ".join(f"{need} <- {capability}" for need, capability in matched)
    explanation = f"{len(matched)} of {total_needs} capability-need matches"
    if pairs:
        explanation += f": {pairs}"
    value_a = {"capabilities": a.capabilities, "needs": a.needs}
    value_b = {"capabilities": b.capabilities, "needs": b.needs}
    return Measurement(score, value_a, value_b, explanation)


# =============================================================================
# Numeric distance
# =============================================================================

def _log_distance(attr: str, value_a: float, value_b: float, ctx: ScoringContext) -> float:
    """Distance on the log scale, in standard deviations when corpus stats exist."""
    stats = ctx.numeric_stats.get(attr)
    if stats is not None:
        mean, std = stats
        return abs((math.log1p(value_a) - mean) / std - (math.log1p(value_b) - mean) / std)
    return abs(math.log10(1 + value_a) - math.log10(1 + value_b))


def _numeric_calculator(attr: str, field_name: str, label: str) -> FieldCalculator:
    def has_data(a: Profile, b: Profile, ctx: ScoringContext) -> bool:
        value_a = getattr(a, attr)
        value_b = getattr(b, attr)
        return value_a is not None and value_b is not None and value_a >= 0 and value_b >= 0

    def compute(a: Profile, b: Profile, ctx: ScoringContext) -> Measurement:
        value_a = getattr(a, attr)
        value_b = getattr(b, attr)
        distance = _log_distance(attr, value_a, value_b, ctx)
        score = 100.0 * exponential_decay(distance, ctx.numeric_temperature)
        explanation = f"{label}: {value_a:,.0f} vs {value_b:,.0f} (log-scale distance {distance:.2f})"
        return Measurement(score, value_a, value_b, explanation)

    return FieldCalculator(field_name, SignalKind.NUMERIC_ZEXP, has_data, compute)


def _size_has_data(a: Profile, b: Profile, ctx: ScoringContext) -> bool:
    return CompanySize.parse(a.size) is not None and CompanySize.parse(b.size) is not None


def _size_compatibility(a: Profile, b: Profile, ctx: ScoringContext) -> Measurement:
    size_a = CompanySize.parse(a.size)
    size_b = CompanySize.parse(b.size)
    score = float(SIZE_COMPATIBILITY[size_a.ordinal, size_b.ordinal])
    explanation = f"Company size {size_a.value} vs {size_b.value} ({score:.0f}% compatible)"
    return Measurement(score, a.size, b.size, explanation)


def _funding_stage_has_data(a: Profile, b: Profile, ctx: ScoringContext) -> bool:
    return FundingStage.parse(a.funding_stage) is not None and FundingStage.parse(b.funding_stage) is not None


def _funding_stage_alignment(a: Profile, b: Profile, ctx: ScoringContext) -> Measurement:
    stage_a = FundingStage.parse(a.funding_stage)
    stage_b = FundingStage.parse(b.funding_stage)
    score = float(FUNDING_STAGE_COMPATIBILITY[stage_a.ordinal, stage_b.ordinal])
    steps = abs(stage_a.ordinal - stage_b.ordinal)
    explanation = f"Funding stage {stage_a.value} vs {stage_b.value} ({steps} stages apart)"
    return Measurement(score, a.funding_stage, b.funding_stage, explanation)


# =============================================================================
# Edit distance
# =============================================================================

def _string_similarity(value_a: str, value_b: str, ctx: ScoringContext) -> float:
    return ctx.cached("levenshtein", pair_key(value_a, value_b),
                      lambda: levenshtein_similarity(value_a, value_b))


def _name_has_data(a: Profile, b: Profile, ctx: ScoringContext) -> bool:
    return bool(normalize_text(a.name)) and bool(normalize_text(b.name))


def _company_name(a: Profile, b: Profile, ctx: ScoringContext) -> Measurement:
    score = 100.0 * _string_similarity(a.name, b.name, ctx)
    explanation = f"Name '{a.name}' vs '{b.name}' ({score:.0f}% similar)"
    return Measurement(score, a.name, b.name, explanation)


def location_string(profile: Profile) -> str:
    """'city, country' with missing parts left out."""
    parts = [part for part in (profile.city, profile.country) if part and part.strip()]
    return ", ".join(parts)


def _location_has_data(a: Profile, b: Profile, ctx: ScoringContext) -> bool:
    return bool(normalize_text(location_string(a))) and bool(normalize_text(location_string(b)))


def _location_proximity(a: Profile, b: Profile, ctx: ScoringContext) -> Measurement:
    location_a = location_string(a)
    location_b = location_string(b)
    score = 100.0 * _string_similarity(location_a, location_b, ctx)
    explanation = f"Location '{location_a}' vs '{location_b}' ({score:.0f}% similar)"
    return Measurement(score, location_a, location_b, explanation)


# =============================================================================
# Free text
# =============================================================================

def _text_calculator(attr: str, field_name: str, label: str) -> FieldCalculator:
    def has_data(a: Profile, b: Profile, ctx: ScoringContext) -> bool:
        text_a = getattr(a, attr)
        text_b = getattr(b, attr)
        return (text_a is not None and text_b is not None
                and len(text_a.strip()) >= ctx.min_text_length
                and len(text_b.strip()) >= ctx.min_text_length)

    def compute(a: Profile, b: Profile, ctx: ScoringContext) -> Optional[Measurement]:
        text_a = getattr(a, attr)
        text_b = getattr(b, attr)
        similarity = ctx.text.similarity(text_a, text_b)
        if similarity is None:
            return None
        mode = "tf-idf" if ctx.text.is_fitted else "term frequency"
        explanation = f"{label} similarity {similarity * 100:.0f}% ({mode} cosine)"
        return Measurement(100.0 * similarity, text_a, text_b, explanation)

    return FieldCalculator(field_name, SignalKind.TEXT_TFIDF, has_data, compute)


FIELD_CALCULATORS: List[FieldCalculator] = [
    FieldCalculator("foundedYear", SignalKind.DATE_PROXIMITY, _founded_year_has_data, _founded_year),
    FieldCalculator("lastFundingDate", SignalKind.DATE_PROXIMITY, _funding_date_has_data, _funding_date),
    _jaccard_calculator("industry", "industries"),
    _jaccard_calculator("platforms", "platforms"),
    _jaccard_calculator("technologies", "technologies"),
    _jaccard_calculator("markets", "markets"),
    FieldCalculator("capabilities_needs", SignalKind.BIPARTITE_MATCHING,
                    _capabilities_needs_has_data, _capabilities_needs),
    _numeric_calculator("employees", "employees", "Employees"),
    _numeric_calculator("revenue", "revenue", "Revenue"),
    _numeric_calculator("last_funding_amount", "lastFundingAmount", "Last funding amount"),
    FieldCalculator("size_compatibility", SignalKind.NUMERIC_ZEXP, _size_has_data, _size_compatibility),
    FieldCalculator("funding_stage_alignment", SignalKind.NUMERIC_ZEXP,
                    _funding_stage_has_data, _funding_stage_alignment),
    FieldCalculator("company_name", SignalKind.STRING_LEVENSHTEIN, _name_has_data, _company_name),
    FieldCalculator("location_proximity", SignalKind.STRING_LEVENSHTEIN, _location_has_data, _location_proximity),
    _text_calculator("pitch", "pitch", "Pitch"),
    _text_calculator("description", "description", "Description"),
    _text_calculator("looking_for", "lookingFor", "Looking-for"),
]
