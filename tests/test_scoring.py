import math

import pytest

from ranking_prf.scoring import (
    DocumentLengthError,
    dirichlet_probability,
    retrieval_score,
    smoothing_weights,
    term_probabilities,
)

CF = {"cat": 3, "dog": 5}


def cf(term):
    return CF.get(term, 0)


def test_reference_value_for_single_term():
    l1, l2 = 10 / 2010, 2000 / 2010
    expected = l1 * (2 / 10) + l2 * (3 / 35)

    score = retrieval_score(["cat"], {"cat": 2}, 10, cf, 35, mu=2000)

    assert math.isclose(score, expected, rel_tol=0, abs_tol=1e-9)
    assert math.isclose(score, 0.0862828, rel_tol=1e-5)


@pytest.mark.parametrize("doc_length", [1, 5, 10, 2000, 10**6])
def test_smoothing_weights_sum_to_one(doc_length):
    l1, l2 = smoothing_weights(doc_length, mu=2000)
    assert math.isclose(l1 + l2, 1.0)
    assert 0 < l1 < 1 and 0 < l2 < 1


@pytest.mark.parametrize("doc_length", [0, -3])
def test_non_positive_length_raises(doc_length):
    with pytest.raises(DocumentLengthError):
        retrieval_score(["cat"], {"cat": 1}, doc_length, cf, 35)
    with pytest.raises(ValueError):
        dirichlet_probability(1, doc_length, 3, 35)


def test_unseen_term_is_skipped():
    contributions = term_probabilities(["cat", "zebra"], {"cat": 2}, 10, cf, 35)

    assert [term for term, _ in contributions] == ["cat"]
    assert retrieval_score(["cat", "zebra"], {"cat": 2}, 10, cf, 35) == retrieval_score(
        ["cat"], {"cat": 2}, 10, cf, 35
    )


def test_unseen_term_zeroes_score_when_not_ignored():
    score = retrieval_score(["cat", "zebra"], {"cat": 2}, 10, cf, 35, ignore_unseen_terms=False)
    assert score == 0.0


def test_missing_term_uses_background_only():
    (_, p), = term_probabilities(["dog"], {"cat": 2}, 10, cf, 35)
    assert p > 0
    assert math.isclose(p, (2000 / 2010) * (5 / 35))


def test_duplicate_terms_multiply():
    single = retrieval_score(["cat"], {"cat": 2}, 10, cf, 35)
    double = retrieval_score(["cat", "cat"], {"cat": 2}, 10, cf, 35)
    assert math.isclose(double, single * single)


def test_all_terms_unseen_have_no_contributions():
    assert term_probabilities(["zebra", "yak"], {}, 10, cf, 35) == []


def test_larger_mu_pulls_towards_background():
    background = 3 / 35
    low = dirichlet_probability(2, 10, 3, 35, mu=10)
    high = dirichlet_probability(2, 10, 3, 35, mu=100000)
    assert abs(high - background) < abs(low - background)
