"""Core building blocks for the quotation pipeline."""
from quoteflow.core.config import ConfigError, Settings, load_settings
from quoteflow.core.logging import configure_logging
from quoteflow.core.models import (
    Attachment,
    DraftStatus,
    FormSubmission,
    IntakeRecord,
    LineItem,
    MailMessage,
    ProcessingOutcome,
    QuotationDraft,
    Sender,
)

__all__ = [
    "Attachment",
    "ConfigError",
    "DraftStatus",
    "FormSubmission",
    "IntakeRecord",
    "LineItem",
    "MailMessage",
    "ProcessingOutcome",
    "QuotationDraft",
    "Sender",
    "Settings",
    "configure_logging",
    "load_settings",
]
