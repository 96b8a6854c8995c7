from collections import Counter

import pytest

from ranking_prf.index import InMemoryIndex


class DictIndexReader:
    """Index reader over plain dicts that counts every call."""

    def __init__(
        self,
        postings: dict[str, list[tuple[int, int]]],
        lengths: dict[int, int],
        docnos: dict[int, str] | None = None,
        collection_freq: dict[str, int] | None = None,
        total_length: int | None = None,
    ):
        self.postings = postings
        self.lengths = lengths
        self.docnos = docnos or {d: f"D{d}" for d in lengths}
        self.collection_freq = collection_freq or {
            term: sum(tf for _, tf in plist) for term, plist in postings.items()
        }
        self.total_length = total_length if total_length is not None else sum(lengths.values())
        self.calls = Counter()

    def collection_frequency(self, term):
        self.calls["collection_frequency"] += 1
        return self.collection_freq.get(term, 0)

    def posting_list(self, term):
        self.calls["posting_list"] += 1
        return self.postings.get(term)

    def document_length(self, doc_id):
        self.calls["document_length"] += 1
        return self.lengths[doc_id]

    def document_external_id(self, doc_id):
        self.calls["document_external_id"] += 1
        return self.docnos[doc_id]

    def total_collection_length(self):
        return self.total_length


@pytest.fixture
def cat_reader():
    """Three documents of lengths 10, 20, 5; "cat" occurs 2, 0, 1 times."""
    return DictIndexReader(
        postings={"cat": [(1, 2), (3, 1)], "dog": [(2, 4), (3, 1)]},
        lengths={1: 10, 2: 20, 3: 5},
        collection_freq={"cat": 3, "dog": 5},
        total_length=35,
    )


@pytest.fixture
def small_index():
    documents = [
        "information retrieval is the activity of obtaining information system resources".split(),
        "query likelihood ranks documents by the probability of generating the query".split(),
        "pseudo relevance feedback expands the query with terms from top documents".split(),
        "dirichlet smoothing mixes document and collection language models".split(),
        "retrieval models rank documents for a query".split(),
        "the cat sat on the mat".split(),
    ]
    docnos = [f"doc-{i}" for i in range(len(documents))]
    return InMemoryIndex(documents, docnos)
