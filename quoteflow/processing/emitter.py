"""Render, notify and persist the outcome of one classified record."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol, Sequence

from quoteflow.core.models import DraftStatus, LineItem, ProcessingOutcome, QuotationDraft, utc_now
from quoteflow.processing.templates import compose_message

logger = logging.getLogger(__name__)


class DocumentRenderer(Protocol):
    def render(
        self,
        reference: str,
        client_name: str,
        client_email: str,
        line_items: Sequence[LineItem],
        total: float,
        notes: str = "",
    ) -> Path:
        ...


class NotificationTransport(Protocol):
    def send(self, to: str, subject: str, body: str, attachment_path: Optional[Path] = None) -> str:
        ...


class PersistenceSink(Protocol):
    def save(self, source_record_id: str, draft: QuotationDraft, status: DraftStatus) -> str:
        ...


class OutcomeEmitter:
    """Deliver *some* communication for every draft.

    A failing document renderer only downgrades the message to a plain
    notification. Transport and persistence failures are not handled here:
    they propagate so the dispatcher keeps the record queued for a retry.
    """

    def __init__(
        self,
        renderer: DocumentRenderer,
        transport: NotificationTransport,
        sink: PersistenceSink,
        currency: str = "Kz",
    ) -> None:
        self.renderer = renderer
        self.transport = transport
        self.sink = sink
        self.currency = currency

    def emit(
        self,
        draft: QuotationDraft,
        destination: str,
        is_escalation: bool,
        reference: str,
        record_id: str,
    ) -> ProcessingOutcome:
        document_path = self._render(draft, reference) if draft.valid else None

        subject, body = compose_message(
            draft,
            is_escalation,
            reference,
            has_document=document_path is not None,
            currency=self.currency,
        )
        confirmation = self.transport.send(destination, subject, body, document_path)
        logger.info(
            "Sent %s for record %s to %s (%s)",
            "escalation" if is_escalation else "reply",
            record_id,
            destination,
            confirmation,
        )

        status = DraftStatus.for_draft(draft, is_escalation)
        persisted_id = self.sink.save(record_id, draft, status)
        logger.info("Saved draft %s for record %s as %s", persisted_id, record_id, status.value)

        return ProcessingOutcome(
            record_id=record_id,
            draft=draft,
            destination=destination,
            is_escalation=is_escalation,
            status=status,
            dispatched_at=utc_now(),
            document_path=document_path,
            confirmation=confirmation,
            persisted_id=persisted_id,
        )

    def _render(self, draft: QuotationDraft, reference: str) -> Optional[Path]:
        try:
            path = self.renderer.render(
                reference,
                draft.client_name,
                draft.client_email,
                draft.line_items,
                draft.total,
                draft.notes,
            )
        except Exception:
            logger.exception("Document generation failed for %s; sending without attachment", reference)
            return None
        return Path(path) if path else None
