"""Ordered in-memory holding area for records awaiting processing."""
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from typing import List, Optional, Set

from quoteflow.core.models import IntakeRecord, ensure_utc

logger = logging.getLogger(__name__)


class IngestionQueue:
    """Records ordered by ``received_at``, ties kept in insertion order.

    ``peek_next`` never removes anything; a record leaves the queue only
    through ``mark_consumed``. A record whose processing blows up therefore
    stays at the head and is picked up again on the next tick.
    """

    def __init__(self) -> None:
        self._records: List[IntakeRecord] = []
        self._known_ids: Set[str] = set()
        self._consumed_ids: Set[str] = set()
        self._lock = threading.Lock()

    def enqueue(self, record: IntakeRecord) -> IntakeRecord:
        """Add a record, assigning an id when it has none. Returns the queued record."""

        if record.consumed:
            raise ValueError("cannot enqueue a record that is already consumed")

        queued = replace(
            record,
            id=record.id or uuid.uuid4().hex,
            received_at=ensure_utc(record.received_at),
        )
        with self._lock:
            if queued.id in self._known_ids:
                raise ValueError(f"duplicate intake record id {queued.id}")
            self._known_ids.add(queued.id)
            self._records.append(queued)
            # list.sort is stable, so equal timestamps keep arrival order.
            self._records.sort(key=lambda item: item.received_at)
            depth = len(self._records)

        logger.info(
            "Queued %s from %s (%s), %d waiting",
            queued.id,
            queued.requester_email or queued.requester_name,
            queued.received_at.isoformat(),
            depth,
        )
        return queued

    def peek_next(self) -> Optional[IntakeRecord]:
        with self._lock:
            return self._records[0] if self._records else None

    def mark_consumed(self, record_id: str) -> bool:
        """Flag a record consumed and drop it. Repeated calls are no-ops."""

        with self._lock:
            if record_id in self._consumed_ids:
                logger.debug("Record %s already consumed", record_id)
                return False
            for index, record in enumerate(self._records):
                if record.id == record_id:
                    record.consumed = True
                    del self._records[index]
                    self._consumed_ids.add(record_id)
                    return True
        logger.warning("Cannot consume unknown record %s", record_id)
        return False

    def size(self) -> int:
        with self._lock:
            return len(self._records)

    def __len__(self) -> int:
        return self.size()

    def is_empty(self) -> bool:
        return self.size() == 0
