"""Row layout shared by every draft sink."""
import json
from datetime import datetime
from typing import Any, Dict, List

from quoteflow.core.models import DraftStatus, LineItem, QuotationDraft


DRAFT_HEADERS = [
    "Id",
    "Record_Id",
    "Saved_At",
    "Status",
    "Valid",
    "Needs_Review",
    "Client_Name",
    "Client_Email",
    "Line_Items",
    "Total",
    "Notes",
]


def _clean_text(value: str | None) -> str:
    if not value:
        return ""
    return " ".join(value.split())


def draft_to_row(
    draft_id: str,
    source_record_id: str,
    draft: QuotationDraft,
    status: DraftStatus,
    saved_at: datetime,
) -> Dict[str, Any]:
    """Convert a draft into the flat dictionary stored by the sinks."""

    return {
        "Id": draft_id,
        "Record_Id": source_record_id,
        "Saved_At": saved_at.isoformat(timespec="seconds"),
        "Status": DraftStatus(status).value,
        "Valid": "yes" if draft.valid else "no",
        "Needs_Review": "yes" if draft.needs_review else "no",
        "Client_Name": _clean_text(draft.client_name),
        "Client_Email": draft.client_email or "",
        "Line_Items": json.dumps([item.to_dict() for item in draft.line_items], ensure_ascii=False),
        "Total": f"{draft.total:.2f}",
        "Notes": _clean_text(draft.notes),
    }


def row_to_draft(row: Dict[str, Any]) -> QuotationDraft:
    """Rebuild the stored draft from a sink row."""

    items: List[LineItem] = [
        LineItem(
            description=item.get("description", ""),
            quantity=float(item.get("quantity", 0)),
            unit_price=float(item.get("unitPrice", 0)),
        )
        for item in json.loads(row.get("Line_Items") or "[]")
    ]
    return QuotationDraft(
        valid=row.get("Valid") == "yes",
        client_name=row.get("Client_Name", ""),
        client_email=row.get("Client_Email", ""),
        line_items=tuple(items),
        total=float(row.get("Total") or 0),
        needs_review=row.get("Needs_Review") == "yes",
        notes=row.get("Notes", ""),
    )
