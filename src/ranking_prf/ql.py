"""
Query likelihood retrieval with Dirichlet smoothing.

Pipeline per query:
    1. whitespace-tokenize; no tokens -> no results
    2. merge the postings of every term with nonzero collection frequency into
       a doc_id -> {term -> tf} map (the candidate set)
    3. score every candidate with the smoothed query likelihood
    4. sort by score descending, ties by ascending doc_id; keep top_n

The per-term probabilities are computed as a (num_terms, num_candidates)
matrix so that the feedback model can re-weight rows before collapsing them
into a product. ``score()`` is the scalar reference path and must match it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, NamedTuple

import numpy as np

from ranking_prf.config import RetrievalConfig, check_depth, check_mu
from ranking_prf.index import IndexReader
from ranking_prf.scoring import DocumentLengthError, term_probabilities
from ranking_prf.stats import CollectionStats
from ranking_prf.types import QueryLike, ScoredDocument, query_terms

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

NUM_QUERY_WORKERS = 8
MIN_QUERIES_FOR_PARALLEL = 10

TermMap = dict[int, dict[str, int]]


class Candidates(NamedTuple):
    doc_ids: NDArray[np.int64]
    lengths: NDArray[np.float64]
    docnos: list[str]


class QL:
    """
    Dirichlet-smoothed query likelihood model over an index reader.

    Args:
        reader: Index reader providing postings and document statistics.
        config: Retrieval configuration; defaults come from the environment.
        stats: Collection statistics cache. A fresh one is created per model
            unless given, so sessions stay independent.
    """

    def __init__(
        self,
        reader: IndexReader,
        config: RetrievalConfig | None = None,
        stats: CollectionStats | None = None,
    ):
        self.config = (config or RetrievalConfig()).validate()
        self.reader = reader
        self.stats = stats or CollectionStats(reader, check_consistency=self.config.check_consistency)
        self._mu = self.config.mu

    @property
    def mu(self) -> float:
        return self._mu

    @mu.setter
    def mu(self, value: float) -> None:
        self._mu = check_mu(value)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def score(self, query: QueryLike, doc_id: int) -> float:
        """Query likelihood of a single document."""
        score = 1.0
        for _, p in self._contributions(query_terms(query), doc_id):
            score *= p
        return max(score, 0.0)

    def explain(self, query: QueryLike, doc_id: int) -> dict[str, float]:
        """Per-term p(w | D) for one document; unseen terms are left out."""
        return dict(self._contributions(query_terms(query), doc_id))

    def retrieve(self, query: QueryLike, top_n: int | None = None) -> list[ScoredDocument]:
        """
        Rank documents for a query.

        Args:
            query: Raw query string, Query, or pre-tokenized terms.
            top_n: Maximum number of results (defaults to config.top_n).

        Returns:
            ScoredDocuments sorted by descending score, ties by ascending doc_id.
        """
        top_n = check_depth("top_n", self.config.top_n if top_n is None else top_n)
        terms = query_terms(query)
        if not terms or top_n == 0:
            return []

        _, _, candidates, probabilities = self._prepare(terms)
        scores = self._collapse(probabilities, len(candidates.doc_ids))
        return self._rank(candidates, scores, top_n)

    def batch_retrieve(
        self,
        queries: Sequence[QueryLike],
        top_n: int | None = None,
    ) -> list[list[ScoredDocument]]:
        if len(queries) < MIN_QUERIES_FOR_PARALLEL:
            return [self.retrieve(q, top_n) for q in queries]
        with ThreadPoolExecutor(max_workers=NUM_QUERY_WORKERS) as ex:
            return list(ex.map(lambda q: self.retrieve(q, top_n), queries))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _contributions(self, terms: list[str], doc_id: int) -> list[tuple[str, float]]:
        doc_tf = {}
        for term in dict.fromkeys(terms):
            if self.stats.collection_frequency(term) == 0:
                continue
            for posting_doc, tf in self.stats.postings(term):
                if posting_doc == doc_id:
                    doc_tf[term] = tf
                    break
        doc_length = self.reader.document_length(doc_id)
        if doc_length <= 0:
            raise DocumentLengthError(doc_length, doc_id)
        return term_probabilities(
            terms,
            doc_tf,
            doc_length,
            self.stats.collection_frequency,
            self.stats.total_length,
            mu=self.mu,
            ignore_unseen_terms=self.config.ignore_unseen_terms,
        )

    def _prepare(self, terms: list[str]) -> tuple[list[str], TermMap, Candidates, NDArray[np.float64]]:
        """Candidate set and its per-term probability matrix for one query."""
        scoring_terms = self._scoring_terms(terms)
        term_map = self._term_map(terms)
        candidates = self._candidates(term_map)
        probabilities = self._term_probability_matrix(scoring_terms, term_map, candidates)
        logger.debug("Query %r: %d candidates", " ".join(terms), len(candidates.doc_ids))
        return scoring_terms, term_map, candidates, probabilities

    def _scoring_terms(self, terms: list[str]) -> list[str]:
        """Query terms that take part in the product, in query order."""
        if not self.config.ignore_unseen_terms:
            return list(terms)
        return [t for t in terms if self.stats.collection_frequency(t) > 0]

    def _term_map(self, terms: list[str]) -> TermMap:
        """doc_id -> {term -> tf} restricted to the query's terms."""
        term_map: TermMap = {}
        for term in dict.fromkeys(terms):
            if self.stats.collection_frequency(term) == 0:
                continue
            for doc_id, tf in self.stats.postings(term):
                term_map.setdefault(doc_id, {})[term] = tf
        return term_map

    def _candidates(self, term_map: TermMap) -> Candidates:
        doc_ids = []
        lengths = []
        docnos = []
        for doc_id in sorted(term_map):
            length = self.reader.document_length(doc_id)
            if length <= 0:
                error = DocumentLengthError(length, doc_id)
                if self.config.strict_document_lengths:
                    raise error
                logger.warning("Excluding from candidates: %s", error)
                continue
            doc_ids.append(doc_id)
            lengths.append(length)
            docnos.append(self.reader.document_external_id(doc_id))
        return Candidates(
            np.array(doc_ids, dtype=np.int64),
            np.array(lengths, dtype=np.float64),
            docnos,
        )

    def _term_probability_matrix(
        self,
        scoring_terms: list[str],
        term_map: TermMap,
        candidates: Candidates,
    ) -> NDArray[np.float64]:
        """
        p(w | D) for every scoring term (rows) and candidate (columns).

        Must match scoring.term_probabilities element for element.
        """
        lengths = candidates.lengths
        adjusted = lengths + self.mu
        l1 = lengths / adjusted
        l2 = self.mu / adjusted
        total = self.stats.total_length

        matrix = np.zeros((len(scoring_terms), len(lengths)), dtype=np.float64)
        for row, term in enumerate(scoring_terms):
            cf = self.stats.collection_frequency(term)
            if cf == 0:
                continue
            tf = np.array(
                [term_map[int(d)].get(term, 0) for d in candidates.doc_ids],
                dtype=np.float64,
            )
            matrix[row] = l1 * (tf / lengths) + l2 * (cf / total)
        return matrix

    @staticmethod
    def _collapse(probabilities: NDArray[np.float64], num_candidates: int) -> NDArray[np.float64]:
        """Product over rows, applied in query order."""
        scores = np.ones(num_candidates, dtype=np.float64)
        for row in probabilities:
            scores *= row
        return np.maximum(scores, 0.0)

    @staticmethod
    def _rank(candidates: Candidates, scores: NDArray[np.float64], top_n: int) -> list[ScoredDocument]:
        # lexsort: last key is primary
        order = np.lexsort((candidates.doc_ids, -scores))[:top_n]
        return [
            ScoredDocument(
                doc_id=int(candidates.doc_ids[i]),
                docno=candidates.docnos[i],
                score=float(scores[i]),
            )
            for i in order
        ]


__all__ = ["QL", "Candidates", "MIN_QUERIES_FOR_PARALLEL", "NUM_QUERY_WORKERS"]
