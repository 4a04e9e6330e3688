"""Tests for the pipeline data models."""
from datetime import datetime, timedelta, timezone

import pytest

from quoteflow.core.models import DraftStatus, LineItem, QuotationDraft, ensure_utc


def _draft(valid=True, needs_review=False, notes=""):
    return QuotationDraft(
        valid=valid,
        client_name="Ana Silva",
        client_email="ana@client.ao",
        line_items=(LineItem("Laptop", 2, 350000),),
        total=700000,
        needs_review=needs_review,
        notes=notes,
    )


def test_invalid_draft_requires_notes():
    with pytest.raises(ValueError):
        _draft(valid=False, notes="  ")


def test_draft_to_dict_uses_wire_names():
    data = _draft().to_dict()

    assert data["clientEmail"] == "ana@client.ao"
    assert data["lineItems"] == [{"description": "Laptop", "quantity": 2, "unitPrice": 350000}]
    assert data["needsReview"] is False


@pytest.mark.parametrize(
    "kwargs,expected",
    [
        ({}, DraftStatus.COMPLETED),
        ({"needs_review": True}, DraftStatus.PENDING_REVIEW),
        ({"valid": False, "notes": "Which model?"}, DraftStatus.NEEDS_INFO),
        ({"valid": False, "needs_review": True, "notes": "Service delayed"}, DraftStatus.PENDING_REVIEW),
    ],
)
def test_status_for_draft(kwargs, expected):
    assert DraftStatus.for_draft(_draft(**kwargs)) is expected


def test_ensure_utc_converts_offsets():
    local = datetime(2024, 1, 20, 10, 30, tzinfo=timezone(timedelta(hours=1)))

    assert ensure_utc(local) == datetime(2024, 1, 20, 9, 30, tzinfo=timezone.utc)
    assert ensure_utc(datetime(2024, 1, 20, 9, 30)).tzinfo is timezone.utc


def test_escalated_draft_is_pending_review_even_if_not_flagged():
    assert DraftStatus.for_draft(_draft(), is_escalation=True) is DraftStatus.PENDING_REVIEW
    assert DraftStatus.for_draft(_draft(valid=False, notes="Which model?"), is_escalation=True) is DraftStatus.PENDING_REVIEW
