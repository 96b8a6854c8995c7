"""
Query likelihood with Dirichlet smoothing.

Per-term document model:
    p(w | D) = |D|/(|D|+μ) * c(w,D)/|D| + μ/(|D|+μ) * c(w,C)/|C|

and the query likelihood is the product over the query terms (duplicates kept):
    P(Q | D) = Π_{w in Q} p(w | D)

Terms with zero collection frequency are skipped when ``ignore_unseen_terms``
is set (the default); otherwise they contribute probability 0 and collapse
the product.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence

DEFAULT_MU = 2000.0


class DocumentLengthError(ValueError):
    """A document with non-positive length cannot be scored."""

    def __init__(self, doc_length: float, doc_id: int | None = None):
        self.doc_length = doc_length
        self.doc_id = doc_id
        where = f"document {doc_id}" if doc_id is not None else "document"
        super().__init__(f"{where} has length {doc_length}; cannot compute p(w | D)")


def smoothing_weights(doc_length: float, mu: float = DEFAULT_MU) -> tuple[float, float]:
    """
    Return (λ1, λ2): the weights on document and collection evidence.

    λ1 = |D| / (|D| + μ), λ2 = μ / (|D| + μ)
    """
    if doc_length <= 0:
        raise DocumentLengthError(doc_length)
    adjusted = doc_length + mu
    return doc_length / adjusted, mu / adjusted


def dirichlet_probability(
    term_count: float,
    doc_length: float,
    collection_freq: float,
    total_length: float,
    mu: float = DEFAULT_MU,
) -> float:
    """Smoothed p(w | D) for a single term."""
    l1, l2 = smoothing_weights(doc_length, mu)
    return l1 * (term_count / doc_length) + l2 * (collection_freq / total_length)


def term_probabilities(
    query_terms: Sequence[str],
    doc_tf: Mapping[str, int],
    doc_length: float,
    collection_frequency: Callable[[str], int],
    total_length: float,
    mu: float = DEFAULT_MU,
    ignore_unseen_terms: bool = True,
) -> list[tuple[str, float]]:
    """
    Per-term contributions p(w | D) in query order.

    Unseen terms are omitted when ``ignore_unseen_terms`` is set.
    """
    l1, l2 = smoothing_weights(doc_length, mu)
    contributions = []
    for term in query_terms:
        cf = collection_frequency(term)
        if cf == 0:
            if ignore_unseen_terms:
                continue
            contributions.append((term, 0.0))
            continue
        tf = doc_tf.get(term, 0)
        contributions.append((term, l1 * (tf / doc_length) + l2 * (cf / total_length)))
    return contributions


def retrieval_score(
    query_terms: Sequence[str],
    doc_tf: Mapping[str, int],
    doc_length: float,
    collection_frequency: Callable[[str], int],
    total_length: float,
    mu: float = DEFAULT_MU,
    ignore_unseen_terms: bool = True,
) -> float:
    """Score one document for one query. Non-negative by construction."""
    score = 1.0
    for _, p in term_probabilities(
        query_terms,
        doc_tf,
        doc_length,
        collection_frequency,
        total_length,
        mu=mu,
        ignore_unseen_terms=ignore_unseen_terms,
    ):
        score *= p
    return max(score, 0.0)


__all__ = [
    "DEFAULT_MU",
    "DocumentLengthError",
    "dirichlet_probability",
    "retrieval_score",
    "smoothing_weights",
    "term_probabilities",
]
