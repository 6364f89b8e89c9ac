"""Tests for the logging setup."""
import logging
import sys

import pytest
from tqdm import tqdm

from labelcrop.core.logger import TqdmStreamHandler, get_logger, setup_logger


@pytest.fixture
def console_logger():
    logger = setup_logger("labelcrop_console_test", level="INFO")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def test_console_handler_writes_through_tqdm(console_logger, monkeypatch):
    written = []
    monkeypatch.setattr(tqdm, "write", lambda msg, file=None, **kwargs: written.append((msg, file)))

    console_logger.info("halfway there")

    assert len(written) == 1
    assert written[0][0].endswith("halfway there")
    assert written[0][1] is console_logger.handlers[0].stream


def test_log_line_during_progress_bar(capsys, console_logger):
    with tqdm(total=2, file=sys.stderr) as bar:
        bar.update(1)
        console_logger.warning("file skipped")
        bar.update(1)

    out = capsys.readouterr().out
    assert "WARNING - file skipped" in out


def test_setup_replaces_handlers(console_logger):
    setup_logger("labelcrop_console_test", level="DEBUG")
    handlers = console_logger.handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0], TqdmStreamHandler)
    assert console_logger.level == logging.DEBUG
    assert console_logger.propagate is False


def test_get_logger_nests_under_package():
    assert get_logger("scanner").name == "labelcrop.scanner"
    assert get_logger("labelcrop.pipeline").name == "labelcrop.pipeline"
