"""Inbound side of the pipeline: mailbox, normalization and the ingestion queue."""
from quoteflow.ingestion.mailbox import ImapMailbox, load_message_files, parse_message_bytes
from quoteflow.ingestion.normalizer import (
    FormValidationError,
    normalize_form,
    normalize_message,
    validate_form,
)
from quoteflow.ingestion.poller import MailboxPoller
from quoteflow.ingestion.queue import IngestionQueue

__all__ = [
    "FormValidationError",
    "ImapMailbox",
    "IngestionQueue",
    "MailboxPoller",
    "load_message_files",
    "normalize_form",
    "normalize_message",
    "parse_message_bytes",
    "validate_form",
]
