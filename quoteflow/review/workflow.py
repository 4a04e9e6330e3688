"""Review helpers used by the Streamlit dashboard and the CLI."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List

from quoteflow.core.models import DraftStatus
from quoteflow.export.sinks import CsvDraftStore
from quoteflow.export.templates import row_to_draft
from quoteflow.processing.templates import format_amount

DECISIONS = {
    "approved": DraftStatus.COMPLETED,
    "rejected": DraftStatus.REJECTED,
}


def load_review_rows(store: CsvDraftStore) -> List[Dict[str, str]]:
    """Load every stored draft, newest first, so the UI can present it."""

    return sorted(store.load_rows(), key=lambda row: row.get("Saved_At", ""), reverse=True)


def pending_rows(rows: Iterable[Dict[str, str]]) -> List[Dict[str, str]]:
    return [row for row in rows if row.get("Status") == DraftStatus.PENDING_REVIEW.value]


def mark_status(store: CsvDraftStore, draft_id: str, decision: str) -> Dict[str, str]:
    """Apply a supervisor decision (``approved`` or ``rejected``) to a draft awaiting review.

    Drafts that are not ``pending_review`` (already decided, or waiting for
    the client) raise ``ValueError``; unknown ids raise ``KeyError``.
    """

    try:
        status = DECISIONS[decision.strip().lower()]
    except KeyError:
        raise ValueError(f"decision must be one of {sorted(DECISIONS)}, got {decision!r}") from None
    return store.update_status(draft_id, status, expected=DraftStatus.PENDING_REVIEW)


def line_items_for_display(row: Dict[str, str], currency: str = "Kz") -> List[Dict[str, Any]]:
    """Stored line items of one draft, with amounts formatted for reading."""

    draft = row_to_draft(row)
    return [
        {
            "Item": item.description,
            "Quantity": int(item.quantity) if float(item.quantity).is_integer() else item.quantity,
            "Unit price": format_amount(item.unit_price, currency),
            "Subtotal": format_amount(item.subtotal, currency),
        }
        for item in draft.line_items
    ]


def status_summary(rows: Iterable[Dict[str, str]]) -> Dict[str, int]:
    """Count drafts per review state."""

    summary = {"pending": 0, "approved": 0, "rejected": 0, "needs_info": 0}
    labels = {
        DraftStatus.PENDING_REVIEW.value: "pending",
        DraftStatus.COMPLETED.value: "approved",
        DraftStatus.REJECTED.value: "rejected",
        DraftStatus.NEEDS_INFO.value: "needs_info",
    }
    for row in rows:
        label = labels.get(row.get("Status", ""))
        if label:
            summary[label] += 1
    return summary


def rows_for_display(rows: Iterable[Dict[str, str]]) -> List[Dict[str, Any]]:
    """Convert stored rows to dictionaries for tabular rendering."""

    def _sanitize(value: Any) -> Any:
        if isinstance(value, str):
            return " ".join(value.split())
        return value

    return [{key: _sanitize(value) for key, value in row.items()} for row in rows]
