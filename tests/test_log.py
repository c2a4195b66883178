"""
Tests for logging setup: file handler, env level, re-configuration.
"""

import logging

from badgeforge.utils.log import LOG_FILENAME, level_from_env, setup_logging


def own_file_handlers():
    return [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]


def test_writes_to_log_file(tmp_path):
    path = setup_logging(tmp_path / "logs", logging.INFO)
    assert path == tmp_path / "logs" / LOG_FILENAME
    logging.getLogger("badgeforge.test").info("export listo")
    for h in own_file_handlers():
        h.flush()
    assert "export listo" in path.read_text(encoding="utf-8")


def test_is_idempotent_without_force(tmp_path):
    setup_logging(tmp_path / "a", logging.INFO)
    n = len(logging.getLogger().handlers)
    assert setup_logging(tmp_path / "b", logging.INFO) == tmp_path / "a" / LOG_FILENAME
    assert len(logging.getLogger().handlers) == n


def test_force_moves_log_file(tmp_path):
    setup_logging(tmp_path / "a", logging.INFO)
    path = setup_logging(tmp_path / "b", logging.INFO, force=True)
    assert path == tmp_path / "b" / LOG_FILENAME
    assert [h.baseFilename for h in own_file_handlers()] == [str(path)]


def test_console_only(tmp_path):
    assert setup_logging(None, logging.INFO) is None
    assert own_file_handlers() == []


def test_level_from_env(monkeypatch):
    assert level_from_env() == logging.INFO
    monkeypatch.setenv("BF_LOG_LEVEL", "debug")
    assert level_from_env() == logging.DEBUG
    monkeypatch.setenv("BF_LOG_LEVEL", "30")
    assert level_from_env() == logging.WARNING
    monkeypatch.setenv("BF_LOG_LEVEL", "chatty")
    assert level_from_env() == logging.INFO


def test_third_party_loggers_are_quieted(tmp_path):
    setup_logging(None, logging.INFO)
    assert logging.getLogger("aiohttp.client").level == logging.WARNING
    setup_logging(None, logging.DEBUG, force=True)
    assert logging.getLogger("aiohttp.client").level == logging.DEBUG
