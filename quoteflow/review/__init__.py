"""Review utilities for the supervisor approval loop."""
from quoteflow.review.workflow import (
    load_review_rows,
    mark_status,
    pending_rows,
    rows_for_display,
    status_summary,
)

__all__ = [
    "load_review_rows",
    "mark_status",
    "pending_rows",
    "rows_for_display",
    "status_summary",
]
