import logging

import pytest

from ranking_prf.config import RetrievalConfig, _env_flag
from ranking_prf.logging_utils import configure_logging


@pytest.mark.parametrize(
    "value, expected",
    [("1", True), ("true", True), ("YES", True), ("0", False), ("off", False), ("", True)],
)
def test_env_flag(monkeypatch, value, expected):
    monkeypatch.setenv("PRF_TEST_FLAG", value)
    assert _env_flag("PRF_TEST_FLAG", True) is expected


def test_env_flag_default(monkeypatch):
    monkeypatch.delenv("PRF_TEST_FLAG", raising=False)
    assert _env_flag("PRF_TEST_FLAG", False) is False


def test_default_config_is_valid():
    config = RetrievalConfig()
    assert config.validate() is config
    assert config.ignore_unseen_terms


@pytest.mark.parametrize(
    "overrides",
    [{"mu": 0}, {"mu": -5}, {"alpha": 1.01}, {"alpha": -0.5}, {"top_n": -1}, {"top_k": -2}],
)
def test_invalid_config_rejected(overrides):
    with pytest.raises(ValueError):
        RetrievalConfig(**overrides).validate()


def test_configure_logging_is_idempotent():
    name = "ranking_prf.test_logging"
    configure_logging("DEBUG", logger_name=name)
    configure_logging("warn", logger_name=name)

    target = logging.getLogger(name)
    assert len(target.handlers) == 1
    assert target.level == logging.WARNING


@pytest.mark.parametrize("level", ["", "LOUD"])
def test_configure_logging_rejects_bad_level(level):
    with pytest.raises(ValueError):
        configure_logging(level, logger_name="ranking_prf.test_logging_bad")
