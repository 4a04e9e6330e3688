"""Tests for the revision routing policy."""
from quoteflow.core.models import LineItem, QuotationDraft
from quoteflow.processing.router import RevisionRouter

SUPERVISOR = "supervisor@example.com"


def _draft(total=700000.0, needs_review=False, valid=True, client_email="ana@client.ao"):
    return QuotationDraft(
        valid=valid,
        client_name="Ana Silva",
        client_email=client_email,
        line_items=(LineItem("Laptop", 2, total / 2),),
        total=total,
        needs_review=needs_review,
        notes="" if valid else "Which model?",
    )


def test_regular_draft_goes_to_client():
    decision = RevisionRouter(SUPERVISOR, 2_000_000).route(_draft())

    assert decision.destination == "ana@client.ao"
    assert decision.is_escalation is False


def test_flagged_draft_goes_to_supervisor():
    decision = RevisionRouter(SUPERVISOR, 2_000_000).route(_draft(needs_review=True))

    assert decision.destination == SUPERVISOR
    assert decision.is_escalation is True


def test_total_above_threshold_escalates_even_without_flag():
    decision = RevisionRouter(SUPERVISOR, 2_000_000).route(_draft(total=2_500_000))

    assert decision.destination == SUPERVISOR
    assert decision.is_escalation is True


def test_invalid_draft_without_review_goes_back_to_client():
    decision = RevisionRouter(SUPERVISOR, 2_000_000).route(_draft(valid=False, total=0))

    assert decision.destination == "ana@client.ao"
    assert decision.is_escalation is False


def test_missing_client_address_escalates():
    decision = RevisionRouter(SUPERVISOR, 2_000_000).route(_draft(client_email=""))

    assert decision.destination == SUPERVISOR
    assert decision.is_escalation is True


def test_routing_is_deterministic():
    router = RevisionRouter(SUPERVISOR, 2_000_000)
    draft = _draft()

    assert router.route(draft) == router.route(draft)
