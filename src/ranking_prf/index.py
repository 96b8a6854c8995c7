"""
Index reader interface consumed by the retrieval models, plus a read-only
in-memory implementation over pre-tokenized documents.

The in-memory index keeps the term-document counts in a sparse CSR matrix
(vocab_size, N) and derives posting lists, collection frequencies and
document lengths from it. Document ids are the row positions 0..N-1.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Protocol

import numpy as np
from scipy.sparse import csr_matrix

from ranking_prf.types import tokenize

if TYPE_CHECKING:
    from numpy.typing import NDArray

Posting = tuple[int, int]


# -----------------------------------------------------------------------------
# Reader protocol (duck typing)
# -----------------------------------------------------------------------------


class IndexReader(Protocol):
    """Read-only view of an inverted index."""

    def collection_frequency(self, term: str) -> int: ...

    def posting_list(self, term: str) -> Sequence[Posting] | None: ...

    def document_length(self, doc_id: int) -> int: ...

    def document_external_id(self, doc_id: int) -> str: ...

    def total_collection_length(self) -> int: ...


# -----------------------------------------------------------------------------
# In-memory index
# -----------------------------------------------------------------------------


class InMemoryIndex:
    """
    Sparse in-memory index over tokenized documents.

    Args:
        documents: List of tokenized documents. Each document is a list of terms.
        docnos: Optional external identifiers, one per document. Defaults to
            the stringified document position.
    """

    def __init__(self, documents: list[list[str]], docnos: list[str] | None = None):
        if docnos is not None and len(docnos) != len(documents):
            raise ValueError(
                f"Got {len(docnos)} docnos for {len(documents)} documents."
            )
        self.N = len(documents)
        self.docnos = list(docnos) if docnos is not None else [str(i) for i in range(self.N)]
        self.doc_lengths: NDArray[np.int64] = np.array(
            [len(d) for d in documents], dtype=np.int64
        )
        self.total_tokens = int(self.doc_lengths.sum())

        self._vocab: dict[str, int] = {}
        rows: list[int] = []
        cols: list[int] = []
        data: list[int] = []
        for doc_idx, doc in enumerate(documents):
            counts: dict[int, int] = {}
            for term in doc:
                tid = self._vocab.setdefault(term, len(self._vocab))
                counts[tid] = counts.get(tid, 0) + 1
            for tid, count in counts.items():
                rows.append(tid)
                cols.append(doc_idx)
                data.append(count)
        self.vocab_size = len(self._vocab)

        # Duplicate (row, col) pairs cannot occur, so CSR construction is exact.
        self.tf_matrix = csr_matrix(
            (np.array(data, dtype=np.int64), (np.array(rows, dtype=np.int64), np.array(cols, dtype=np.int64))),
            shape=(self.vocab_size, self.N),
        )
        self.tf_matrix.sort_indices()
        self._collection_freq: NDArray[np.int64] = np.asarray(
            self.tf_matrix.sum(axis=1), dtype=np.int64
        ).ravel()

    def __len__(self) -> int:
        return self.N

    @classmethod
    def from_texts(cls, texts: Iterable[str], docnos: list[str] | None = None) -> InMemoryIndex:
        return cls([tokenize(text) for text in texts], docnos)

    @classmethod
    def from_huggingface_dataset(cls, dataset) -> InMemoryIndex:
        """Build from rows carrying ``id`` and ``content`` fields (e.g. BRIGHT documents)."""
        docnos = [str(doc["id"]) for doc in dataset]
        documents = [tokenize(doc["content"]) for doc in dataset]
        return cls(documents, docnos)

    def get_term_id(self, term: str) -> int | None:
        return self._vocab.get(term)

    # -------------------------------------------------------------------------
    # IndexReader
    # -------------------------------------------------------------------------

    def collection_frequency(self, term: str) -> int:
        tid = self._vocab.get(term)
        return int(self._collection_freq[tid]) if tid is not None else 0

    def posting_list(self, term: str) -> list[Posting]:
        tid = self._vocab.get(term)
        if tid is None:
            return []
        start, end = self.tf_matrix.indptr[tid], self.tf_matrix.indptr[tid + 1]
        doc_ids = self.tf_matrix.indices[start:end]
        freqs = self.tf_matrix.data[start:end]
        return [(int(d), int(f)) for d, f in zip(doc_ids, freqs)]

    def document_length(self, doc_id: int) -> int:
        return int(self.doc_lengths[doc_id])

    def document_external_id(self, doc_id: int) -> str:
        return self.docnos[doc_id]

    def total_collection_length(self) -> int:
        return self.total_tokens


__all__ = ["InMemoryIndex", "IndexReader", "Posting"]
