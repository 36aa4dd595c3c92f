"""Tests for setup_logging."""

import logging

import pytest

from study_rag.utils.logging import setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    httpx_level = logging.getLogger("httpx").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)


def test_sets_root_level():
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG


def test_quiets_http_clients():
    setup_logging("DEBUG")
    assert logging.getLogger("httpx").level == logging.WARNING


def test_unknown_level():
    with pytest.raises(ValueError, match="Unknown log level"):
        setup_logging("LOUD")
