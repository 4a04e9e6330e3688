"""Logging coverage to ensure errors are surfaced without stopping the run."""
import logging
from pathlib import Path

import quoteflow.ingestion.mailbox as mailbox
from quoteflow.core.logging import configure_logging


def test_load_message_files_logs_and_continues(tmp_path: Path, caplog, monkeypatch):
    """Parsing failures should be logged and not stop other messages from loading."""

    (tmp_path / "good.eml").write_bytes(b"From: ana@client.ao\r\nSubject: Quote\r\n\r\nTwo laptops\r\n")
    (tmp_path / "bad.eml").write_bytes(b"garbage")

    original_parse = mailbox.parse_message_bytes

    def sometimes_failing(raw: bytes, *args):
        """Raise for the bad file and delegate to the real parser otherwise."""

        if raw == b"garbage":
            raise ValueError("boom")
        return original_parse(raw, *args)

    monkeypatch.setattr(mailbox, "parse_message_bytes", sometimes_failing)

    caplog.set_level("ERROR")
    messages = mailbox.load_message_files(tmp_path)

    assert len(messages) == 1
    assert messages[0].body == "Two laptops"
    assert "bad.eml" in caplog.text


def test_configure_logging_reads_log_level(monkeypatch):
    root = logging.getLogger()
    previous_handlers, previous_level = root.handlers[:], root.level
    monkeypatch.setenv("LOG_LEVEL", "debug")
    root.handlers = []
    try:
        configure_logging()
        assert root.level == logging.DEBUG
        assert logging.getLogger("urllib3").level == logging.WARNING
    finally:
        root.handlers = previous_handlers
        root.setLevel(previous_level)


def test_explicit_level_wins_over_environment(monkeypatch):
    root = logging.getLogger()
    previous_handlers, previous_level = root.handlers[:], root.level
    monkeypatch.setenv("LOG_LEVEL", "debug")
    root.handlers = []
    try:
        configure_logging("warning")
        assert root.level == logging.WARNING
    finally:
        root.handlers = previous_handlers
        root.setLevel(previous_level)
