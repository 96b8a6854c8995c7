"""
Query and result containers shared by the retrieval models.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


def tokenize(text: str) -> list[str]:
    """Whitespace tokenizer. No case folding, no stemming."""
    return text.split()


@dataclass(frozen=True)
class Query:
    """A query/topic."""

    id: str
    content: str

    def terms(self) -> list[str]:
        return tokenize(self.content)


@dataclass(frozen=True)
class ScoredDocument:
    """A retrieved document with its query-likelihood score."""

    doc_id: int
    docno: str
    score: float


QueryLike = str | Query | Sequence[str]


def query_terms(query: QueryLike) -> list[str]:
    """Normalize a raw string, Query or pre-tokenized sequence into terms."""
    if isinstance(query, Query):
        return query.terms()
    if isinstance(query, str):
        return tokenize(query)
    return [t for t in query if t]


__all__ = ["Query", "QueryLike", "ScoredDocument", "query_terms", "tokenize"]
