"""Similarity primitives, text similarity and the shared similarity cache."""

from .primitives import (
    jaccard_similarity,
    levenshtein_distance,
    levenshtein_similarity,
    max_bipartite_matches,
    exponential_decay,
    gaussian_decay,
    years_between,
)
from .cache import SimilarityCache, CacheStats
from .text import TextSimilarity

__all__ = [
    "jaccard_similarity",
    "levenshtein_distance",
    "levenshtein_similarity",
    "max_bipartite_matches",
    "exponential_decay",
    "gaussian_decay",
    "years_between",
    "SimilarityCache",
    "CacheStats",
    "TextSimilarity",
]
