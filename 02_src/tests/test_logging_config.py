"""Tests for structured logging."""

import json
import logging
import sys

from chat_session.logging_config import JSONFormatter, conversation_logger, setup_logging


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="chat_session.session.controller",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="Loaded %d history messages",
        args=(3,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "chat_session.session.controller"
        assert data["message"] == "Loaded 3 history messages"
        assert "conversation_id" not in data

    def test_conversation_id(self):
        data = json.loads(JSONFormatter().format(make_record(conversation_id="c1")))

        assert data["conversation_id"] == "c1"

    def test_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record(exc_info=sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: boom" in data["exception"]


class TestConversationLogger:
    """Tests for conversation_logger()."""

    def test_tags_records(self, caplog):
        logger = logging.getLogger("test.conversation")
        adapter = conversation_logger(logger, "c42")

        with caplog.at_level(logging.INFO, logger="test.conversation"):
            adapter.info("Session closed")

        assert caplog.records[-1].conversation_id == "c42"


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_console_only(self):
        setup_logging(log_level="debug", log_file="")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert all(not isinstance(h, logging.FileHandler) for h in root.handlers)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "app.log"

        setup_logging(log_level="INFO", log_file=str(log_file))
        logging.getLogger("chat_session.test").info("hello")

        assert log_file.parent.is_dir()
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello" in log_file.read_text(encoding="utf-8")
        setup_logging(log_level="INFO", log_file="")
