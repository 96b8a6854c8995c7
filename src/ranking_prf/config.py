"""
Retrieval configuration.

Defaults can be overridden through environment variables:
    PRF_MU=2000                       # Dirichlet prior
    PRF_TOP_N=1000                    # Returned documents per query
    PRF_TOP_K=10                      # Feedback documents
    PRF_ALPHA=0.5                     # Weight on the original document likelihood
    PRF_IGNORE_UNSEEN_TERMS=1         # Skip query terms with zero collection frequency
    PRF_CHECK_CONSISTENCY=1           # Compare reported vs. posting-summed frequencies
    PRF_STRICT_DOCUMENT_LENGTHS=0     # Fail the query on a zero-length candidate
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DEFAULT_MU = float(os.environ.get("PRF_MU", "2000"))
DEFAULT_TOP_N = int(os.environ.get("PRF_TOP_N", "1000"))
DEFAULT_TOP_K = int(os.environ.get("PRF_TOP_K", "10"))
DEFAULT_ALPHA = float(os.environ.get("PRF_ALPHA", "0.5"))
DEFAULT_IGNORE_UNSEEN_TERMS = _env_flag("PRF_IGNORE_UNSEEN_TERMS", True)
DEFAULT_CHECK_CONSISTENCY = _env_flag("PRF_CHECK_CONSISTENCY", True)
DEFAULT_STRICT_DOCUMENT_LENGTHS = _env_flag("PRF_STRICT_DOCUMENT_LENGTHS", False)


def check_mu(mu: float) -> float:
    mu = float(mu)
    if not mu > 0:
        raise ValueError(f"mu must be positive, got {mu!r}")
    return mu


def check_alpha(alpha: float) -> float:
    alpha = float(alpha)
    if not 0.0 <= alpha <= 1.0:
        raise ValueError(f"alpha must be in [0, 1], got {alpha!r}")
    return alpha


def check_depth(name: str, value: int) -> int:
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value!r}")
    return int(value)


@dataclass
class RetrievalConfig:
    """Retrieval configuration."""

    mu: float = DEFAULT_MU
    top_n: int = DEFAULT_TOP_N
    top_k: int = DEFAULT_TOP_K
    alpha: float = DEFAULT_ALPHA
    ignore_unseen_terms: bool = DEFAULT_IGNORE_UNSEEN_TERMS
    check_consistency: bool = DEFAULT_CHECK_CONSISTENCY
    strict_document_lengths: bool = DEFAULT_STRICT_DOCUMENT_LENGTHS

    def validate(self) -> RetrievalConfig:
        check_mu(self.mu)
        check_depth("top_n", self.top_n)
        check_depth("top_k", self.top_k)
        check_alpha(self.alpha)
        return self


__all__ = [
    "DEFAULT_ALPHA",
    "DEFAULT_CHECK_CONSISTENCY",
    "DEFAULT_IGNORE_UNSEEN_TERMS",
    "DEFAULT_MU",
    "DEFAULT_STRICT_DOCUMENT_LENGTHS",
    "DEFAULT_TOP_K",
    "DEFAULT_TOP_N",
    "RetrievalConfig",
    "check_alpha",
    "check_depth",
    "check_mu",
]
