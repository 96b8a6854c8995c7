#!/usr/bin/env python3
"""
Run Dirichlet query likelihood (optionally with pseudo-relevance feedback)
for one query over an in-memory index.

Documents come either from a TSV file (``docno<TAB>text`` per line) or from a
BRIGHT split on the Hugging Face hub.

Usage:
    uv run python search.py "information retrieval" --docs docs.tsv
    uv run python search.py "protein folding" --bright-domain biology --top-k 20 --alpha 0.7
    uv run python search.py "protein folding" --bright-domain biology --no-feedback --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from ranking_prf.config import RetrievalConfig
from ranking_prf.index import InMemoryIndex
from ranking_prf.logging_utils import configure_logging
from ranking_prf.prf import PRF

logger = logging.getLogger("search")


def load_tsv(path: Path) -> InMemoryIndex:
    """Build an index from ``docno<TAB>text`` lines."""
    docnos = []
    texts = []
    with path.open(encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.rstrip("\n")
            if not line.strip():
                continue
            docno, sep, text = line.partition("\t")
            if not sep:
                raise ValueError(f"{path}:{line_no}: expected 'docno<TAB>text'")
            docnos.append(docno)
            texts.append(text)
    return InMemoryIndex.from_texts(texts, docnos)


def load_bright(domain: str) -> InMemoryIndex:
    from datasets import load_dataset

    documents = load_dataset("xlangai/BRIGHT", "documents", split=domain)
    return InMemoryIndex.from_huggingface_dataset(documents)


def main():
    parser = argparse.ArgumentParser(description="Query likelihood search with pseudo-relevance feedback")
    parser.add_argument("query", help="Query text (whitespace-tokenized)")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--docs", type=Path, help="TSV file of docno<TAB>text lines")
    source.add_argument("--bright-domain", help="BRIGHT split to index, e.g. biology")
    defaults = RetrievalConfig()
    parser.add_argument("--top-n", type=int, default=defaults.top_n, help="Results to return")
    parser.add_argument("--top-k", type=int, default=defaults.top_k, help="Feedback documents")
    parser.add_argument("--alpha", type=float, default=defaults.alpha, help="Weight on the original likelihood")
    parser.add_argument("--mu", type=float, default=defaults.mu, help="Dirichlet prior")
    parser.add_argument("--no-feedback", action="store_true", help="Plain query likelihood, no feedback")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")

    args = parser.parse_args()
    configure_logging(args.log_level)

    config = RetrievalConfig(
        mu=args.mu,
        top_n=args.top_n,
        top_k=args.top_k,
        alpha=args.alpha,
    )
    try:
        config.validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    if args.docs is not None:
        if not args.docs.exists():
            print(f"Error: Documents file not found: {args.docs}", file=sys.stderr)
            sys.exit(1)
        index = load_tsv(args.docs)
    else:
        index = load_bright(args.bright_domain)
    logger.info("Indexed %d documents, %d tokens", len(index), index.total_collection_length())

    model = PRF(index, config)
    if args.no_feedback:
        results = model.retrieve(args.query)
    else:
        results = model.retrieve_with_feedback(args.query)

    if args.json:
        print(json.dumps([{"doc_id": r.doc_id, "docno": r.docno, "score": r.score} for r in results], indent=2))
        return

    for rank, r in enumerate(results, start=1):
        print(f"{rank:>4}  {r.docno:<30}  {r.score:.6e}")


if __name__ == "__main__":
    main()
