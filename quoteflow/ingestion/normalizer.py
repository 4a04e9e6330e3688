"""Turn mailbox messages and web-form submissions into intake records."""
from __future__ import annotations

import logging
import re
from typing import List

from quoteflow.core.models import FormSubmission, IntakeRecord, MailMessage, ensure_utc
from quoteflow.ingestion.common import html_to_text, join_attachment_texts, normalize_text

logger = logging.getLogger(__name__)

UNKNOWN_REQUESTER = "Unknown"
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_HTML_HINT = re.compile(r"(?i)<\s*(html|body|p|div|br|table)\b")


class FormValidationError(ValueError):
    """Raised when a web-form submission is not usable as a quotation request."""

    def __init__(self, problems: List[str]):
        self.problems = problems
        super().__init__("; ".join(problems))


def _body_text(body: str) -> str:
    if body and _HTML_HINT.search(body):
        return html_to_text(body)
    return normalize_text(body)


def normalize_message(message: MailMessage) -> IntakeRecord:
    """Build an :class:`IntakeRecord` from a parsed mailbox message."""

    sender_name = " ".join((message.sender.name or "").split()) or UNKNOWN_REQUESTER
    sender_email = (message.sender.address or "").strip()
    if not sender_email:
        logger.warning("Message %r has no sender address", message.subject)

    return IntakeRecord(
        received_at=ensure_utc(message.received_at),
        requester_name=sender_name,
        requester_email=sender_email,
        free_text=_body_text(message.body),
        attachment_text=join_attachment_texts(a.extracted_text for a in message.attachments),
        subject=" ".join((message.subject or "").split()),
        source="email",
    )


def validate_form(submission: FormSubmission) -> List[str]:
    """Return a list of problems that make a form submission unusable."""

    problems: List[str] = []
    if len((submission.requester or "").strip()) < 3:
        problems.append("requester name is missing or too short")
    if not EMAIL_PATTERN.match((submission.email or "").strip()):
        problems.append("email address is invalid")
    if len((submission.description or "").strip()) < 10:
        problems.append("description is missing or too short")
    return problems


def normalize_form(submission: FormSubmission) -> IntakeRecord:
    """Validate a web-form submission and build an :class:`IntakeRecord`."""

    problems = validate_form(submission)
    if problems:
        raise FormValidationError(problems)

    return IntakeRecord(
        received_at=ensure_utc(submission.submitted_at),
        requester_name=" ".join(submission.requester.split()),
        requester_email=submission.email.strip(),
        free_text=normalize_text(submission.description),
        attachment_text=join_attachment_texts(a.extracted_text for a in submission.attachments),
        source="form",
    )
