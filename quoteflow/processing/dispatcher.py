"""Single-flight scheduled consumer of the ingestion queue."""
from __future__ import annotations

import logging
import threading
from typing import List, Optional

from quoteflow.core.models import IntakeRecord, ProcessingOutcome
from quoteflow.core.scheduler import RecurringTask
from quoteflow.ingestion.queue import IngestionQueue
from quoteflow.processing.emitter import OutcomeEmitter
from quoteflow.processing.gateway import ClassificationGateway
from quoteflow.processing.router import RevisionRouter

logger = logging.getLogger(__name__)


def reference_for(record: IntakeRecord) -> str:
    """Human-facing quotation reference, e.g. ``QT-20240120-1A2B3C4D``."""

    return f"QT-{record.received_at:%Y%m%d}-{(record.id or '')[:8].upper()}"


class Dispatcher:
    """Process at most one queued record per tick.

    A record is marked consumed only after the full pipeline reached a
    terminal outcome. If anything raises on the way (mail transport down,
    persistence failing) the tick logs it and the record stays at the head
    of the queue for the next tick. A notification that went out right
    before a persistence failure will therefore be sent again.
    """

    def __init__(
        self,
        queue: IngestionQueue,
        gateway: ClassificationGateway,
        router: RevisionRouter,
        emitter: OutcomeEmitter,
        interval: float = 10.0,
    ) -> None:
        self.queue = queue
        self.gateway = gateway
        self.router = router
        self.emitter = emitter
        self._busy = threading.Lock()
        self._task = RecurringTask("dispatcher", interval, self.tick)

    def tick(self) -> Optional[ProcessingOutcome]:
        """Run one Idle -> Checking -> Claimed -> Processing -> Idle cycle."""

        if not self._busy.acquire(blocking=False):
            logger.debug("Previous tick still running; skipping")
            return None
        try:
            record = self.queue.peek_next()
            if record is None:
                return None
            if record.consumed:
                logger.warning("Record %s already consumed; skipping", record.id)
                return None

            try:
                outcome = self.process(record)
            except Exception:
                logger.exception("Processing record %s failed; it will be retried next tick", record.id)
                return None

            self.queue.mark_consumed(record.id)
            logger.info("Record %s done (%s), %d left in queue", record.id, outcome.status.value, self.queue.size())
            return outcome
        finally:
            self._busy.release()

    def process(self, record: IntakeRecord) -> ProcessingOutcome:
        logger.info("Processing record %s from %s", record.id, record.requester_email or record.requester_name)
        draft = self.gateway.classify(record)
        logger.debug("Draft for record %s: %s", record.id, draft.to_dict())
        decision = self.router.route(draft)
        return self.emitter.emit(
            draft,
            decision.destination,
            decision.is_escalation,
            reference_for(record),
            record.id,
        )

    def drain(self, max_ticks: Optional[int] = None) -> List[ProcessingOutcome]:
        """Tick until the queue is empty or a tick leaves it unchanged."""

        outcomes: List[ProcessingOutcome] = []
        ticks = 0
        while not self.queue.is_empty():
            if max_ticks is not None and ticks >= max_ticks:
                break
            ticks += 1
            outcome = self.tick()
            if outcome is None:
                logger.warning("Stopping drain: %d records still queued", self.queue.size())
                break
            outcomes.append(outcome)
        return outcomes

    def start(self) -> None:
        self._task.start()

    def stop(self) -> None:
        self._task.stop()
