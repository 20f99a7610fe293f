"""Tests for logging setup and structured events."""

from __future__ import annotations

import json
import logging

from newswire.config import LoggingConfig
from newswire.logging_utils import LOGGER_NAME, ConsoleFormatter, log_event, setup_logging, truncate_text


def _reset_logger() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_jsonl_file_logging_includes_event_fields(tmp_path):
    cfg = LoggingConfig(level="DEBUG", console=False, file=True, format="jsonl", filename="run.jsonl")
    try:
        logger = setup_logging(cfg, tmp_path)
        log_event(logging.getLogger("newswire.crawler"), "Crawl start", event="crawl_start", sources=["cnn"])
        for handler in logger.handlers:
            handler.flush()

        lines = (tmp_path / "run.jsonl").read_text(encoding="utf-8").splitlines()
    finally:
        _reset_logger()

    record = json.loads(lines[0])
    assert record["message"] == "Crawl start"
    assert record["event"] == "crawl_start"
    assert record["sources"] == ["cnn"]
    assert record["logger"] == "newswire.crawler"


def test_plain_format_and_level_filtering(tmp_path):
    cfg = LoggingConfig(level="WARNING", console=False, file=True, format="plain", filename="run.log")
    try:
        setup_logging(cfg, tmp_path)
        log_event(logging.getLogger("newswire.x"), "quiet", logging.INFO, event="ignored")
        log_event(logging.getLogger("newswire.x"), "loud", logging.WARNING, event="kept")
        text = (tmp_path / "run.log").read_text(encoding="utf-8")
    finally:
        _reset_logger()

    assert "loud" in text
    assert "quiet" not in text


def test_log_event_without_logger_is_noop():
    log_event(None, "nothing", event="x")


def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("abcdefghij", 4) == "abcd...(+6 chars)"


def test_jsonl_puts_key_fields_first_and_drops_none(tmp_path):
    cfg = LoggingConfig(level="INFO", console=False, file=True, format="jsonl", filename="run.jsonl")
    try:
        logger = setup_logging(cfg, tmp_path)
        log_event(
            logging.getLogger("newswire.crawler"),
            "Article failed",
            url="https://a.test/x",
            source_id="a",
            event="article_failed",
            error=None,
        )
        for handler in logger.handlers:
            handler.flush()
        line = (tmp_path / "run.jsonl").read_text(encoding="utf-8").splitlines()[0]
    finally:
        _reset_logger()

    record = json.loads(line)
    assert list(record)[4:6] == ["event", "source_id"]
    assert record["url"] == "https://a.test/x"
    assert "error" not in record


def test_plain_format_appends_key_fields(tmp_path):
    cfg = LoggingConfig(level="INFO", console=False, file=True, format="plain", filename="run.log")
    try:
        setup_logging(cfg, tmp_path)
        log_event(logging.getLogger("newswire.x"), "Feed unavailable", event="feed_failed", source_id="bbc-news")
        text = (tmp_path / "run.log").read_text(encoding="utf-8")
    finally:
        _reset_logger()

    assert "Feed unavailable [event=feed_failed source_id=bbc-news]" in text


def test_console_formatter_prefixes_source():
    record = logging.LogRecord("newswire.crawler", logging.INFO, __file__, 1, "Crawl done", (), None)
    record.source_id = "cnn"

    assert ConsoleFormatter().format(record) == "[cnn] Crawl done"


def test_setup_logging_quiets_extractor_libraries(tmp_path):
    cfg = LoggingConfig(level="DEBUG", console=False, file=False)
    try:
        setup_logging(cfg, tmp_path)
        assert logging.getLogger("trafilatura").level == logging.WARNING
    finally:
        _reset_logger()
        logging.getLogger("trafilatura").setLevel(logging.NOTSET)
