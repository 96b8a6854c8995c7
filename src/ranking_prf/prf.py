"""
Pseudo-relevance feedback on top of Dirichlet query likelihood.

Two phases per query, strictly in order:

FEEDBACK
    Rank the candidates with the base model and keep the top_k as feedback
    set F. Sum their (query-restricted) term frequencies into one pseudo
    document whose length L is the sum of their true index lengths, then

        p_fb(w) = L/(L+μ) * c(w,F)/L + μ/(L+μ) * c(w,C)/|C|

RESCORE
    For every candidate D and every scoring term w

        p(w | D') = α * p(w | D) + (1 - α) * p_fb(w)

    with p_fb(w) = 0 for terms outside the feedback distribution. The final
    score is the product over the query terms. α = 1 reproduces the base
    model exactly.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from ranking_prf.config import check_alpha, check_depth
from ranking_prf.ql import MIN_QUERIES_FOR_PARALLEL, NUM_QUERY_WORKERS, QL, TermMap
from ranking_prf.scoring import dirichlet_probability
from ranking_prf.types import QueryLike, ScoredDocument, query_terms

logger = logging.getLogger(__name__)


class PRF(QL):
    """Query likelihood model with pseudo-relevance feedback."""

    def feedback_model(self, query: QueryLike, top_k: int | None = None) -> dict[str, float]:
        """Feedback distribution p_fb(w) built from the top_k base results."""
        top_k = check_depth("top_k", self.config.top_k if top_k is None else top_k)
        terms = query_terms(query)
        if not terms:
            return {}
        _, term_map, candidates, probabilities = self._prepare(terms)
        base_scores = self._collapse(probabilities, len(candidates.doc_ids))
        return self._feedback_distribution(self._rank(candidates, base_scores, top_k), term_map)

    def retrieve_with_feedback(
        self,
        query: QueryLike,
        top_n: int | None = None,
        top_k: int | None = None,
        alpha: float | None = None,
    ) -> list[ScoredDocument]:
        """
        Rank documents for a query with pseudo-relevance feedback.

        Args:
            query: Raw query string, Query, or pre-tokenized terms.
            top_n: Maximum number of results (defaults to config.top_n).
            top_k: Number of feedback documents (defaults to config.top_k).
            alpha: Weight on the original document likelihood, in [0, 1]
                (defaults to config.alpha). Higher means less feedback.

        Returns:
            ScoredDocuments sorted by descending score, ties by ascending doc_id.
        """
        top_n = check_depth("top_n", self.config.top_n if top_n is None else top_n)
        top_k = check_depth("top_k", self.config.top_k if top_k is None else top_k)
        alpha = check_alpha(self.config.alpha if alpha is None else alpha)

        terms = query_terms(query)
        if not terms or top_n == 0:
            return []

        scoring_terms, term_map, candidates, probabilities = self._prepare(terms)
        num_candidates = len(candidates.doc_ids)

        # FEEDBACK
        base_scores = self._collapse(probabilities, num_candidates)
        feedback = self._rank(candidates, base_scores, top_k)
        p_fb = self._feedback_distribution(feedback, term_map)

        # RESCORE
        fb_column = np.array([p_fb.get(t, 0.0) for t in scoring_terms], dtype=np.float64)
        mixed = alpha * probabilities + (1.0 - alpha) * fb_column[:, np.newaxis]
        scores = self._collapse(mixed, num_candidates)
        return self._rank(candidates, scores, top_n)

    def batch_retrieve_with_feedback(
        self,
        queries: Sequence[QueryLike],
        top_n: int | None = None,
        top_k: int | None = None,
        alpha: float | None = None,
    ) -> list[list[ScoredDocument]]:
        def run(q: QueryLike) -> list[ScoredDocument]:
            return self.retrieve_with_feedback(q, top_n, top_k, alpha)

        if len(queries) < MIN_QUERIES_FOR_PARALLEL:
            return [run(q) for q in queries]
        with ThreadPoolExecutor(max_workers=NUM_QUERY_WORKERS) as ex:
            return list(ex.map(run, queries))

    # -------------------------------------------------------------------------
    # Feedback model
    # -------------------------------------------------------------------------

    def _pseudo_document(
        self,
        feedback: list[ScoredDocument],
        term_map: TermMap,
    ) -> tuple[Counter[str], int]:
        """Summed term frequencies of the feedback documents and their total length."""
        aggregate: Counter[str] = Counter()
        length = 0
        for doc in feedback:
            doc_tf = term_map.get(doc.doc_id)
            if doc_tf is None:
                logger.warning("Feedback document %d (%s) not in posting map", doc.doc_id, doc.docno)
                continue
            aggregate.update(doc_tf)
            length += int(self.reader.document_length(doc.doc_id))
        return aggregate, length

    def _feedback_distribution(
        self,
        feedback: list[ScoredDocument],
        term_map: TermMap,
    ) -> dict[str, float]:
        aggregate, length = self._pseudo_document(feedback, term_map)
        logger.debug("Feedback set: %d documents, %d terms, length %d", len(feedback), len(aggregate), length)
        if not aggregate:
            return {}

        p_fb = {}
        for term, tf in aggregate.items():
            cf = self.stats.collection_frequency(term)
            if cf == 0:
                continue
            p_fb[term] = dirichlet_probability(tf, length, cf, self.stats.total_length, mu=self.mu)
        return p_fb


__all__ = ["PRF"]
