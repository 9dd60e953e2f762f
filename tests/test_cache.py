"""Tests for the SimilarityCache."""

import logging
import threading
from unittest.mock import MagicMock

import pytest

from matchmaking.similarity.cache import SimilarityCache, pair_key, terms_key


class TestKeys:

    def test_pair_key_is_order_independent(self):
        assert pair_key("Alpha", "beta") == pair_key(" BETA ", "alpha")

    def test_terms_key_is_sorted_and_normalized(self):
        assert terms_key(["iOS", "mobile", "ios"]) == ("ios", "mobile")


class TestSimilarityCache:

    def test_computes_once(self):
        """Should call compute only on the first lookup."""
        cache = SimilarityCache()
        compute = MagicMock(return_value=0.5)

        assert cache.get_or_compute("levenshtein", ("a", "b"), compute) == 0.5
        assert cache.get_or_compute("levenshtein", ("a", "b"), compute) == 0.5

        compute.assert_called_once()
        stats = cache.stats()
        assert stats.hits == 1
        assert stats.misses == 1
        assert stats.hit_rate == 0.5

    def test_namespaces_are_separate(self):
        cache = SimilarityCache()
        cache.get_or_compute("text", "k", lambda: 1)

        assert cache.get_or_compute("levenshtein", "k", lambda: 2) == 2

    def test_lru_eviction(self):
        """Should evict the least recently used entry when full."""
        cache = SimilarityCache(max_entries=2)
        cache.get_or_compute("ns", 1, lambda: "one")
        cache.get_or_compute("ns", 2, lambda: "two")
        cache.get_or_compute("ns", 1, lambda: "one")  # touch 1
        cache.get_or_compute("ns", 3, lambda: "three")

        assert len(cache) == 2
        assert cache.get_or_compute("ns", 1, lambda: "recomputed") == "one"
        assert cache.get_or_compute("ns", 2, lambda: "recomputed") == "recomputed"

    def test_clear_namespace(self):
        cache = SimilarityCache()
        cache.get_or_compute("text", 1, lambda: 1)
        cache.get_or_compute("bipartite", 1, lambda: 1)

        cache.clear("text")

        assert len(cache) == 1

    def test_clear_all_resets_stats(self):
        cache = SimilarityCache()
        cache.get_or_compute("text", 1, lambda: 1)
        cache.get_or_compute("text", 1, lambda: 1)

        cache.clear()

        assert len(cache) == 0
        assert cache.stats().hits == 0

    def test_unhashable_key_falls_back_to_compute(self, caplog):
        """Should log the cache failure and still return the computed value."""
        cache = SimilarityCache()

        with caplog.at_level(logging.WARNING):
            value = cache.get_or_compute("ns", ["not", "hashable"], lambda: 42)

        assert value == 42
        assert cache.stats().errors == 1
        assert "computing without cache" in caplog.text

    def test_compute_errors_propagate(self):
        cache = SimilarityCache()

        def fail():
            raise ZeroDivisionError("bad input")

        with pytest.raises(ZeroDivisionError):
            cache.get_or_compute("ns", "k", fail)

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            SimilarityCache(max_entries=0)

    def test_concurrent_access(self):
        """Should stay consistent under concurrent lookups."""
        cache = SimilarityCache(max_entries=100)
        errors = []

        def worker(offset):
            try:
                for i in range(200):
                    key = (i + offset) % 150
                    assert cache.get_or_compute("ns", key, lambda: key * 2) == key * 2
            except AssertionError as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(cache) <= 100
