"""Tests for the structured logger."""

import logging

import pytest

from symshare.core.logging import (
    LogLevel,
    Logger,
    format_line,
    get_logger,
    set_global_logger,
)


class ListHandler(logging.Handler):
    """Collects formatted records."""

    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)

    @property
    def messages(self):
        return [record.getMessage() for record in self.records]


@pytest.fixture
def handler():
    return ListHandler()


@pytest.fixture
def logger(handler):
    return Logger("symshare.test.logging", level=LogLevel.DEBUG, handlers=[handler])


class TestLogger:
    """Tests for Logger."""

    def test_plain_message(self, logger, handler):
        logger.info("Listing overlay")
        assert handler.messages == ["Listing overlay"]

    def test_context_appended(self, logger, handler):
        logger.info("Reconciled shared folders", total=3, writable=1)
        assert handler.messages == ["Reconciled shared folders | total=3 writable=1"]
        assert handler.records[0].context == {"total": 3, "writable": 1}

    def test_add_context(self, logger, handler):
        with logger.add_context(stage="read"):
            logger.debug("Overlaying entry", name="docs")
        logger.debug("After")
        assert handler.messages == ["Overlaying entry | stage=read name=docs", "After"]

    def test_nested_context(self, logger, handler):
        with logger.add_context(root="/srv"):
            with logger.add_context(stage="write"):
                logger.warning("Nested")
        assert handler.messages == ["Nested | root=/srv stage=write"]

    def test_level_filtering(self, logger, handler):
        logger.set_level("WARNING")
        logger.info("hidden")
        logger.error("shown")
        assert handler.messages == ["shown"]
        assert logger.get_level() == LogLevel.WARNING
        assert not logger.is_enabled_for(LogLevel.INFO)
        assert logger.is_enabled_for("error")

    def test_exception(self, logger, handler):
        try:
            raise OSError("disk gone")
        except OSError as e:
            logger.exception("Pass failed", e, stage="primary")
        record = handler.records[0]
        assert record.levelno == logging.ERROR
        assert record.exc_info is not None
        assert "exception_type=OSError" in record.getMessage()

    def test_remove_handler(self, logger, handler):
        logger.remove_handler(handler)
        logger.info("gone")
        assert handler.records == []

    def test_attach_file(self, logger, tmp_path):
        log_file = tmp_path / "symshare.log"
        file_handler = logger.attach_file(log_file)
        logger.info("to file", name="docs")
        file_handler.close()
        assert "to file | name=docs" in log_file.read_text()

    def test_rebuilding_closes_replaced_handlers(self, logger, handler, tmp_path):
        file_handler = logger.attach_file(tmp_path / "symshare.log")
        logger.info("opened")
        assert file_handler.stream is not None

        rebuilt = Logger("symshare.test.logging", level=LogLevel.DEBUG, handlers=[handler])
        assert file_handler.stream is None
        assert rebuilt.logger.handlers == [handler]
        rebuilt.info("still collected")
        assert handler.messages[-1] == "still collected"


class TestGlobalLogger:
    """Tests for get_logger / set_global_logger."""

    def test_get_logger_reuses_instance(self):
        assert get_logger("symshare.test.global") is get_logger("symshare.test.global")

    def test_set_global_logger(self, logger):
        set_global_logger(logger)
        assert get_logger("symshare.test.logging") is logger


class TestFormatLine:
    """Tests for format_line()."""

    def test_no_context(self):
        assert format_line("Listing", {}) == "Listing"

    def test_plain_values(self):
        assert format_line("Added folder", {"name": "docs", "count": 2}) == "Added folder | name=docs count=2"

    def test_values_with_spaces_are_quoted(self):
        assert format_line("Added folder", {"name": "my docs"}) == "Added folder | name='my docs'"

    def test_empty_value_is_quoted(self):
        assert format_line("x", {"target": ""}) == "x | target=''"

    def test_equals_sign_is_quoted(self):
        assert format_line("x", {"name": "a=b"}) == "x | name='a=b'"
