"""
Text similarity for free-text profile fields.

Two modes:
- Term frequency: with no corpus, each pair is vectorized on its own
  (bag of words, English stop words removed) and compared with cosine.
- TF-IDF: after fit() on a corpus of profile texts, both texts are projected
  onto the corpus vocabulary so rare shared terms weigh more than common ones.

Similarities are memoized in the shared SimilarityCache. In TF-IDF mode the
projected vector of each text is memoized as well, so a pitch compared against
many candidates is transformed once.
"""

import logging
from typing import Any, Dict, List, Optional

from scipy.sparse import csr_matrix
from sklearn.feature_extraction.text import CountVectorizer, TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from .cache import SimilarityCache, pair_key
from .primitives import normalize_text

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "text"
VECTOR_NAMESPACE = "text_vectors"


class TextSimilarity:
    """
    Cosine similarity of free-text fields.

    Attributes:
        config: Vectorizer settings (stop_words, ngram_range, min_df, max_features)
        tfidf: Fitted TfidfVectorizer, or None in term-frequency mode
    """

    def __init__(self, cache: Optional[SimilarityCache] = None, config: Optional[Dict[str, Any]] = None):
        self.cache = cache
        self.config = config or {}
        self.tfidf: Optional[TfidfVectorizer] = None
        self._corpus_size = 0

    @property
    def is_fitted(self) -> bool:
        return self.tfidf is not None

    def fit(self, corpus: List[str]) -> "TextSimilarity":
        """
        Fit corpus-level inverse document frequencies.

        Args:
            corpus: Profile texts (pitches, descriptions, ...)

        Returns:
            self (for method chaining)
        """
        documents = [doc for doc in corpus if doc and doc.strip()]
        if not documents:
            logger.warning("Empty text corpus, staying in term-frequency mode")
            return self

        max_features = self.config.get("max_features", 20000)
        ngram_range = tuple(self.config.get("ngram_range", [1, 1]))
        min_df = self.config.get("min_df", 1)
        stop_words = self.config.get("stop_words", "english")

        logger.info(f"Fitting TF-IDF on {len(documents)} documents: "
                    f"max_features={max_features}, ngram_range={ngram_range}, min_df={min_df}")

        vectorizer = TfidfVectorizer(
            max_features=max_features,
            ngram_range=ngram_range,
            min_df=min_df,
            stop_words=stop_words,
            sublinear_tf=True
        )
        try:
            vectorizer.fit(documents)
        except ValueError as e:
            # Raised when every document is made of stop words
            logger.warning(f"TF-IDF fit failed ({e}), staying in term-frequency mode")
            return self

        self.tfidf = vectorizer
        self._corpus_size = len(documents)
        if self.cache is not None:
            self.cache.clear(CACHE_NAMESPACE)
            self.cache.clear(VECTOR_NAMESPACE)

        logger.info(f"TF-IDF vocabulary size: {len(vectorizer.vocabulary_)}")
        return self

    def similarity(self, text_a: str, text_b: str) -> Optional[float]:
        """
        Cosine similarity of two texts in [0, 1].

        Returns:
            Similarity, or None when neither text has a usable term
        """
        if self.cache is None:
            return self._compute(text_a, text_b)
        key = (self._corpus_size,) + pair_key(text_a, text_b)
        return self.cache.get_or_compute(CACHE_NAMESPACE, key, lambda: self._compute(text_a, text_b))

    def _compute(self, text_a: str, text_b: str) -> Optional[float]:
        if self.tfidf is not None:
            vector_a, vector_b = self._vector(text_a), self._vector(text_b)
        else:
            # Term-frequency vocabularies are pair-specific, so only the similarity is cached
            vectorizer = CountVectorizer(stop_words=self.config.get("stop_words", "english"))
            try:
                vectors = vectorizer.fit_transform([text_a, text_b])
            except ValueError:
                # Empty vocabulary: only stop words or single characters
                return None
            vector_a, vector_b = vectors[0], vectors[1]

        if vector_a.nnz == 0 and vector_b.nnz == 0:
            return None
        similarity = float(cosine_similarity(vector_a, vector_b)[0, 0])
        return min(max(similarity, 0.0), 1.0)

    def _vector(self, text: str) -> csr_matrix:
        """TF-IDF row vector of one text, memoized per fitted corpus."""
        if self.cache is None:
            return self.tfidf.transform([text])
        key = (self._corpus_size, normalize_text(text))
        return self.cache.get_or_compute(VECTOR_NAMESPACE, key, lambda: self.tfidf.transform([text]))
