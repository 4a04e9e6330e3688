"""Fixed message templates for the four outcome kinds."""
from __future__ import annotations

from typing import Tuple

from quoteflow.core.models import QuotationDraft


def format_amount(value: float, currency: str) -> str:
    return f"{value:,.2f} {currency}".strip()


def _item_lines(draft: QuotationDraft, currency: str) -> str:
    lines = []
    for item in draft.line_items:
        quantity = int(item.quantity) if float(item.quantity).is_integer() else item.quantity
        lines.append(
            f"- {item.description}: {quantity} x {format_amount(item.unit_price, currency)}"
            f" = {format_amount(item.subtotal, currency)}"
        )
    return "\n".join(lines)


def _escalation_notice(draft: QuotationDraft, reference: str, currency: str) -> Tuple[str, str]:
    subject = f"[Review required] Quotation {reference} for {draft.client_name}"
    body = (
        "Hello,\n\n"
        f"Quotation {reference} needs your approval before it is sent to the client.\n\n"
        f"Client: {draft.client_name} <{draft.client_email or 'no address'}>\n"
        f"Total: {format_amount(draft.total, currency)}\n\n"
        f"Items:\n{_item_lines(draft, currency)}\n"
    )
    if draft.notes:
        body += f"\nNotes: {draft.notes}\n"
    body += "\nApprove or reject it from the review dashboard.\n"
    return subject, body


def _client_quote(draft: QuotationDraft, reference: str, currency: str, has_document: bool) -> Tuple[str, str]:
    subject = f"Your quotation {reference}"
    body = (
        f"Dear {draft.client_name},\n\n"
        "Thank you for your request. Please find our quotation below.\n\n"
        f"Items:\n{_item_lines(draft, currency)}\n\n"
        f"Total: {format_amount(draft.total, currency)}\n"
    )
    if draft.notes:
        body += f"\nNotes: {draft.notes}\n"
    if has_document:
        body += "\nThe pre-invoice is attached to this message.\n"
    else:
        body += "\nA formal pre-invoice is available on request; simply reply to this message.\n"
    body += "\nBest regards\n"
    return subject, body


def _invalid_escalation_notice(draft: QuotationDraft, reference: str) -> Tuple[str, str]:
    subject = f"[Manual handling] Request {reference} from {draft.client_name}"
    body = (
        "Hello,\n\n"
        f"Request {reference} could not be priced automatically.\n\n"
        f"Client: {draft.client_name} <{draft.client_email or 'no address'}>\n"
        f"Reason: {draft.notes}\n\n"
        "Please follow up with the client or price the request manually.\n"
    )
    return subject, body


def _need_more_information(draft: QuotationDraft, reference: str) -> Tuple[str, str]:
    subject = f"More information needed for your request {reference}"
    body = (
        f"Dear {draft.client_name},\n\n"
        "Thank you for contacting us. We need a few more details before we can "
        "prepare your quotation.\n\n"
        f"{draft.notes}\n\n"
        "Simply reply to this message with the missing information.\n\n"
        "Best regards\n"
    )
    return subject, body


def compose_message(
    draft: QuotationDraft,
    is_escalation: bool,
    reference: str,
    has_document: bool = False,
    currency: str = "Kz",
) -> Tuple[str, str]:
    """Return ``(subject, body)`` for the escalation x validity combination."""

    if is_escalation and draft.valid:
        return _escalation_notice(draft, reference, currency)
    if is_escalation:
        return _invalid_escalation_notice(draft, reference)
    if draft.valid:
        return _client_quote(draft, reference, currency, has_document)
    return _need_more_information(draft, reference)
