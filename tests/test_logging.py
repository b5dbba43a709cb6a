"""Tests for loguru logging setup."""

import logging

import pytest
from loguru import logger

from persistent_events.logging import InterceptHandler, setup_logging


@pytest.fixture
def captured():
    messages: list[str] = []
    setup_logging("debug")
    sink_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(sink_id)


def test_stdlib_logging_is_routed_to_loguru(captured):
    logging.getLogger("redis").debug("connection opened")
    assert "connection opened" in captured


def test_redis_logger_uses_intercept_handler(captured):
    handlers = logging.getLogger("redis").handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0], InterceptHandler)


def test_level_filters_stdlib_records():
    setup_logging("WARNING")
    assert logging.getLogger("redis").level == logging.WARNING
