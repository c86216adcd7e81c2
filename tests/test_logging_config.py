"""Unit tests for the logging setup."""
import logging

import pytest

from greeksurface.logging_config import ENV_LEVEL, resolve_level, setup_logging


@pytest.fixture(autouse=True)
def restore_logger():
    logger = logging.getLogger("greeksurface")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


def test_resolve_level():
    assert resolve_level(logging.DEBUG) == logging.DEBUG
    assert resolve_level(" warning ") == logging.WARNING
    with pytest.raises(ValueError):
        resolve_level("LOUD")


def test_setup_does_not_stack_handlers(tmp_path, monkeypatch):
    monkeypatch.delenv(ENV_LEVEL, raising=False)
    setup_logging(logging.INFO)
    logger = setup_logging(logging.INFO, log_file=str(tmp_path / "run.log"))
    assert len(logger.handlers) == 2
    logger.info("rebuild done")
    for handler in logger.handlers:
        handler.flush()
    assert "rebuild done" in (tmp_path / "run.log").read_text(encoding="utf-8")


def test_env_override(monkeypatch):
    monkeypatch.setenv(ENV_LEVEL, "DEBUG")
    logger = setup_logging(logging.WARNING)
    assert logger.level == logging.DEBUG
