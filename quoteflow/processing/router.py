"""Decide who receives a draft: the client or the supervisor."""
from __future__ import annotations

from dataclasses import dataclass

from quoteflow.core.models import QuotationDraft


@dataclass(frozen=True)
class RoutingDecision:
    destination: str
    is_escalation: bool


@dataclass(frozen=True)
class RevisionRouter:
    """Pure routing policy; holds configuration only, performs no I/O."""

    supervisor_address: str
    revision_threshold: float

    def route(self, draft: QuotationDraft) -> RoutingDecision:
        # The threshold is checked here too so an over-limit draft escalates
        # even if it was built without applying the threshold.
        is_escalation = draft.needs_review or draft.total > self.revision_threshold
        if not is_escalation and not draft.client_email:
            is_escalation = True
        destination = self.supervisor_address if is_escalation else draft.client_email
        return RoutingDecision(destination=destination, is_escalation=is_escalation)
