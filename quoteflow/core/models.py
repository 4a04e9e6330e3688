"""Data models flowing through the inbound quotation pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> datetime:
    """Return an aware UTC datetime; naive values are assumed to already be UTC."""

    if value is None:
        return utc_now()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class Sender:
    name: str = ""
    address: str = ""


@dataclass
class Attachment:
    """An attachment as delivered by the mailbox connector, text already extracted."""

    name: str
    mime_type: str = "application/octet-stream"
    extracted_text: str = ""


@dataclass
class MailMessage:
    """A parsed inbound e-mail, before normalization."""

    sender: Sender
    subject: str = ""
    body: str = ""
    attachments: List[Attachment] = field(default_factory=list)
    received_at: Optional[datetime] = None


@dataclass
class FormSubmission:
    """A quotation request typed into the public web form."""

    requester: str
    email: str
    description: str
    attachments: List[Attachment] = field(default_factory=list)
    submitted_at: Optional[datetime] = None


@dataclass
class IntakeRecord:
    """One unit of inbound demand waiting in the ingestion queue."""

    received_at: datetime
    requester_name: str
    requester_email: str
    free_text: str
    attachment_text: str = ""
    subject: str = ""
    source: str = "email"
    id: Optional[str] = None
    consumed: bool = False


@dataclass(frozen=True)
class LineItem:
    description: str
    quantity: float = 1
    unit_price: float = 0.0

    @property
    def subtotal(self) -> float:
        return self.quantity * self.unit_price

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
        }


@dataclass(frozen=True)
class QuotationDraft:
    """Canonical priced draft produced by the classification gateway client."""

    valid: bool
    client_name: str
    client_email: str
    line_items: Tuple[LineItem, ...]
    total: float
    needs_review: bool
    notes: str = ""

    def __post_init__(self) -> None:
        if not self.valid and not self.notes.strip():
            raise ValueError("invalid drafts must explain themselves in notes")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "clientName": self.client_name,
            "clientEmail": self.client_email,
            "lineItems": [item.to_dict() for item in self.line_items],
            "total": self.total,
            "needsReview": self.needs_review,
            "notes": self.notes,
        }


class DraftStatus(str, Enum):
    COMPLETED = "completed"
    PENDING_REVIEW = "pending_review"
    NEEDS_INFO = "needs_info"
    REJECTED = "rejected"

    @classmethod
    def for_draft(cls, draft: QuotationDraft, is_escalation: bool = False) -> "DraftStatus":
        """Status a freshly emitted draft is persisted with.

        Anything sent to the supervisor waits for a review decision, even when
        the draft itself was not flagged (no client address, over the limit).
        """

        if is_escalation or draft.needs_review:
            return cls.PENDING_REVIEW
        if not draft.valid:
            return cls.NEEDS_INFO
        return cls.COMPLETED


@dataclass(frozen=True)
class ProcessingOutcome:
    """What happened to one dispatched record. Kept for logs and tests only."""

    record_id: str
    draft: QuotationDraft
    destination: str
    is_escalation: bool
    status: DraftStatus
    dispatched_at: datetime
    document_path: Optional[Path] = None
    confirmation: Optional[str] = None
    persisted_id: Optional[str] = None
