"""Unit tests for the logging utility."""

from __future__ import annotations

import json
import logging

import pytest

from tokenstore.core.logger import JSONFormatter, configure_logging, mask_token_id


@pytest.fixture()
def restore_root_logging():
    yield
    configure_logging("WARNING")


def test_configure_logging_sets_level(restore_root_logging) -> None:
    """``configure_logging`` should set the root logger level."""

    # Act
    configure_logging("DEBUG")

    # Assert
    assert logging.getLogger().level == logging.DEBUG


def test_json_formatter_includes_token_extras() -> None:
    record = logging.LogRecord("tokenstore.x", logging.WARNING, __file__, 1, "hello %s", ("w",), None)
    record.token_type = "access"
    record.entropy_source = "device"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "hello w"
    assert payload["level"] == "WARNING"
    assert payload["token_type"] == "access"
    assert payload["entropy_source"] == "device"


def test_mask_token_id_hides_the_tail() -> None:
    masked = mask_token_id("0123456789abcdef" * 2 + "01234567")
    assert masked == "01234567..."


def test_mask_token_id_short_values_fully_hidden() -> None:
    assert mask_token_id("abc") == "***"
