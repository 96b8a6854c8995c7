import logging

import pytest

from ranking_prf.stats import CollectionStats

from conftest import DictIndexReader


def test_lookups_are_cached(cat_reader):
    stats = CollectionStats(cat_reader)

    for _ in range(3):
        assert stats.collection_frequency("cat") == 3
        assert stats.postings("cat") == [(1, 2), (3, 1)]

    assert cat_reader.calls["collection_frequency"] == 1
    assert cat_reader.calls["posting_list"] == 1


def test_unseen_term_skips_posting_fetch(cat_reader, caplog):
    stats = CollectionStats(cat_reader)

    with caplog.at_level(logging.WARNING, logger="ranking_prf.stats"):
        assert stats.collection_frequency("zebra") == 0
        assert stats.postings("zebra") == []

    assert cat_reader.calls["posting_list"] == 0
    assert "'zebra' not in collection" in caplog.text


def test_frequency_disagreement_is_logged_not_applied(caplog):
    reader = DictIndexReader(
        postings={"cat": [(1, 2), (3, 1)]},
        lengths={1: 10, 3: 5},
        collection_freq={"cat": 7},
    )
    stats = CollectionStats(reader)

    with caplog.at_level(logging.WARNING, logger="ranking_prf.stats"):
        assert stats.collection_frequency("cat") == 7
        assert stats.collection_frequency("cat") == 7

    assert stats.frequency_mismatches == 1
    assert "Collection frequency disagree" in caplog.text


def test_consistency_check_can_be_disabled(cat_reader):
    stats = CollectionStats(cat_reader, check_consistency=False)

    assert stats.collection_frequency("cat") == 3
    assert cat_reader.calls["posting_list"] == 0
    assert stats.frequency_mismatches == 0


def test_missing_posting_list_is_empty(caplog):
    reader = DictIndexReader(postings={}, lengths={1: 4}, collection_freq={}, total_length=4)
    stats = CollectionStats(reader)

    with caplog.at_level(logging.WARNING, logger="ranking_prf.stats"):
        assert stats.postings("cat") == []
    assert "has no postings" in caplog.text


def test_reader_failure_propagates_and_is_not_cached(cat_reader):
    calls = {"n": 0}

    def flaky(term):
        calls["n"] += 1
        if calls["n"] == 1:
            raise OSError("index unavailable")
        return 3

    cat_reader.collection_frequency = flaky
    stats = CollectionStats(cat_reader)

    with pytest.raises(OSError):
        stats.collection_frequency("cat")
    assert stats.collection_frequency("cat") == 3


def test_collection_probability(cat_reader):
    stats = CollectionStats(cat_reader)
    assert stats.collection_probability("cat") == pytest.approx(3 / 35)
    assert stats.collection_probability("zebra") == 0.0


def test_each_instance_owns_its_cache(cat_reader):
    first = CollectionStats(cat_reader)
    second = CollectionStats(cat_reader)

    first.collection_frequency("cat")
    second.collection_frequency("cat")

    assert cat_reader.calls["collection_frequency"] == 2
