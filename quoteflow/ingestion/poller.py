"""Periodic mailbox pull feeding the ingestion queue."""
from __future__ import annotations

import logging
from typing import List, Protocol

from quoteflow.core.models import MailMessage
from quoteflow.core.scheduler import RecurringTask
from quoteflow.ingestion.normalizer import normalize_message
from quoteflow.ingestion.queue import IngestionQueue

logger = logging.getLogger(__name__)


class MailboxConnector(Protocol):
    def fetch_unseen(self) -> List[MailMessage]:
        ...


class MailboxPoller:
    """Fetch unseen messages and append them to the queue.

    The poller only ever appends; records already claimed by the dispatcher
    are never touched from here.
    """

    def __init__(self, mailbox: MailboxConnector, queue: IngestionQueue, interval: float = 60.0) -> None:
        self.mailbox = mailbox
        self.queue = queue
        self._task = RecurringTask("mailbox-poller", interval, self.poll_once)

    def poll_once(self) -> int:
        """Enqueue every new message. Returns how many records were queued."""

        logger.info("Checking mailbox...")
        try:
            messages = self.mailbox.fetch_unseen()
        except Exception:
            logger.exception("Mailbox fetch failed")
            return 0

        queued = 0
        for message in messages:
            try:
                self.queue.enqueue(normalize_message(message))
                queued += 1
            except Exception:
                logger.exception("Could not queue message %r from %s", message.subject, message.sender.address)
        if queued:
            logger.info("%d messages queued", queued)
        return queued

    def start(self) -> None:
        self._task.start()

    def stop(self) -> None:
        self._task.stop()
