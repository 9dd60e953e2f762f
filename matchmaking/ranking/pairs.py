"""
Candidate pair generation for all-pairs ranking.

Key Design Decisions:
- Pairs are unordered: (A, B) and (B, A) are the same pair
- Self-pairs are excluded: (A, A) is never generated
- Without a cap every pair is generated; with a cap pairs are sampled
  uniformly, reproducibly given a random seed
"""

import logging
from typing import Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class PairGenerator:
    """
    Generator of unordered profile index pairs.

    Attributes:
        max_pairs: Maximum number of pairs to generate (None for all pairs)
        random_state: Numpy RandomState for reproducible sampling
    """

    def __init__(self, max_pairs: Optional[int] = None, random_seed: Optional[int] = None):
        if max_pairs is not None and max_pairs < 1:
            raise ValueError(f"max_pairs must be >= 1, got {max_pairs}")
        self.max_pairs = max_pairs
        self.random_state = np.random.RandomState(random_seed)

    def generate_pairs(self, n_profiles: int) -> Tuple[np.ndarray, np.ndarray]:
        """
        Generate pairs of profile indices.

        Args:
            n_profiles: Number of profiles in the pool

        Returns:
            Tuple of (indices_a, indices_b) with indices_a[i] < indices_b[i],
            sorted lexicographically
        """
        max_possible = n_profiles * (n_profiles - 1) // 2
        target_pairs = max_possible if self.max_pairs is None else min(self.max_pairs, max_possible)

        logger.info(f"Generating {target_pairs} of {max_possible} possible pairs from {n_profiles} profiles")

        if target_pairs == 0:
            return np.array([], dtype=int), np.array([], dtype=int)
        if target_pairs >= max_possible * 0.5:
            indices_a, indices_b = self._generate_by_enumeration(n_profiles, target_pairs)
        else:
            indices_a, indices_b = self._generate_by_sampling(n_profiles, target_pairs)

        order = np.lexsort((indices_b, indices_a))
        return indices_a[order], indices_b[order]

    def _generate_by_enumeration(self, n_profiles: int, target_pairs: int) -> Tuple[np.ndarray, np.ndarray]:
        """All upper-triangle pairs, subsampled without replacement when capped."""
        rows, cols = np.triu_indices(n_profiles, k=1)
        if target_pairs < len(rows):
            keep = self.random_state.choice(len(rows), size=target_pairs, replace=False)
            rows, cols = rows[keep], cols[keep]
        logger.debug(f"Enumerated {len(rows)} pairs")
        return rows, cols

    def _generate_by_sampling(self, n_profiles: int, target_pairs: int) -> Tuple[np.ndarray, np.ndarray]:
        """Draw random pairs in batches until enough distinct ones are collected."""
        # a pair (i, j) with i < j is encoded as i * n_profiles + j
        codes = np.array([], dtype=np.int64)
        while len(codes) < target_pairs:
            draws = self.random_state.randint(0, n_profiles, size=(2, max(2 * target_pairs, 16)))
            low, high = draws.min(axis=0), draws.max(axis=0)
            distinct = low != high
            batch = low[distinct].astype(np.int64) * n_profiles + high[distinct]
            merged = np.concatenate([codes, batch])
            _, first_seen = np.unique(merged, return_index=True)
            codes = merged[np.sort(first_seen)][:target_pairs]

        logger.debug(f"Sampled {len(codes)} pairs")
        return codes // n_profiles, codes % n_profiles
