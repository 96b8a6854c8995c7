"""
Per-session cache of collection statistics.

Each retrieval model owns one CollectionStats. Collection frequencies and raw
posting lists are fetched from the index reader on first reference and kept
for the lifetime of the instance; the index is read-only during a session,
so entries are never invalidated.
"""

from __future__ import annotations

import logging
import threading

from ranking_prf.index import IndexReader, Posting

logger = logging.getLogger(__name__)


class CollectionStats:
    """
    Memoized collection frequency and postings lookup.

    Args:
        reader: Index reader to fetch from.
        check_consistency: Compare the reader's collection frequency with the
            sum of posting frequencies and log disagreements. The reported
            frequency is always the one returned.
    """

    def __init__(self, reader: IndexReader, check_consistency: bool = True):
        self.reader = reader
        self.check_consistency = check_consistency
        self.total_length = int(reader.total_collection_length())
        self.frequency_mismatches = 0
        self._collection_freq: dict[str, int] = {}
        self._postings: dict[str, list[Posting]] = {}
        self._lock = threading.RLock()

    def collection_frequency(self, term: str) -> int:
        with self._lock:
            cf = self._collection_freq.get(term)
            if cf is not None:
                return cf

            cf = int(self.reader.collection_frequency(term))
            if cf == 0:
                logger.warning("Term %r not in collection", term)
                self._postings[term] = []
            elif self.check_consistency:
                observed = sum(freq for _, freq in self.postings(term))
                if observed != cf:
                    self.frequency_mismatches += 1
                    logger.warning(
                        "Collection frequency disagree for %r: index reports %d, postings sum to %d",
                        term,
                        cf,
                        observed,
                    )
            self._collection_freq[term] = cf
            return cf

    def postings(self, term: str) -> list[Posting]:
        with self._lock:
            cached = self._postings.get(term)
            if cached is not None:
                return cached

            postings = [(int(doc_id), int(freq)) for doc_id, freq in self.reader.posting_list(term) or ()]
            if not postings:
                logger.warning("Term %r has no postings", term)
            self._postings[term] = postings
            return postings

    def collection_probability(self, term: str) -> float:
        """P(w | C) = collection frequency / total collection length."""
        return self.collection_frequency(term) / self.total_length


__all__ = ["CollectionStats"]
