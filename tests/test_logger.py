import logging

from portal.config import logger as portal_logger
from portal.config.config import settings


def test_explicit_level_wins():
    assert portal_logger._resolve_level("warning") == logging.WARNING
    assert portal_logger._resolve_level("no-such-level") == logging.INFO


def test_default_level_follows_env(monkeypatch):
    monkeypatch.setattr(portal_logger, "settings", settings.model_copy(update={"env": "dev"}))
    assert portal_logger._resolve_level(None) == logging.DEBUG
    monkeypatch.setattr(portal_logger, "settings", settings.model_copy(update={"env": "prod"}))
    assert portal_logger._resolve_level("") == logging.INFO


def test_handlers_attached_once():
    assert len(portal_logger.logger.handlers) == (2 if settings.log_file is not None else 1)
