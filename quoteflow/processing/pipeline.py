"""Assemble the pipeline components from :class:`Settings`."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional

from quoteflow.core.config import Settings
from quoteflow.core.models import ProcessingOutcome
from quoteflow.delivery.documents import PdfQuotationRenderer
from quoteflow.delivery.mailer import SmtpTransport
from quoteflow.export.sinks import CsvDraftStore, ExcelDraftSink, GoogleSheetsDraftSink
from quoteflow.ingestion.mailbox import ImapMailbox, load_message_files
from quoteflow.ingestion.normalizer import normalize_message
from quoteflow.ingestion.poller import MailboxPoller
from quoteflow.ingestion.queue import IngestionQueue
from quoteflow.processing.dispatcher import Dispatcher
from quoteflow.processing.emitter import OutcomeEmitter
from quoteflow.processing.gateway import ClassificationGateway
from quoteflow.processing.router import RevisionRouter

logger = logging.getLogger(__name__)


def build_sink(settings: Settings):
    """Return the persistence sink selected by ``DRAFT_SINK``."""

    if settings.draft_sink == "excel":
        return ExcelDraftSink(settings.draft_store.with_suffix(".xlsx"))
    if settings.draft_sink == "sheets":
        return GoogleSheetsDraftSink(
            settings.sheets_spreadsheet_id,
            worksheet_title=settings.sheets_worksheet,
            service_account_path=settings.sheets_service_account,
        )
    return CsvDraftStore(settings.draft_store)


def build_dispatcher(
    settings: Settings,
    queue: IngestionQueue,
    gateway=None,
    renderer=None,
    transport=None,
    sink=None,
) -> Dispatcher:
    """Wire a dispatcher; any collaborator can be replaced, e.g. in tests."""

    gateway = gateway or ClassificationGateway.from_settings(settings)
    renderer = renderer or PdfQuotationRenderer(
        settings.documents_dir,
        currency=settings.currency,
        company_name=settings.company_name,
    )
    transport = transport or SmtpTransport(
        settings.smtp_host,
        settings.smtp_port,
        settings.smtp_user,
        settings.smtp_password,
        use_ssl=settings.smtp_secure,
    )
    sink = sink or build_sink(settings)

    router = RevisionRouter(settings.supervisor_email, settings.revision_threshold)
    emitter = OutcomeEmitter(renderer, transport, sink, currency=settings.currency)
    return Dispatcher(queue, gateway, router, emitter, interval=settings.dispatch_interval)


def build_poller(settings: Settings, queue: IngestionQueue) -> Optional[MailboxPoller]:
    """Return a mailbox poller, or ``None`` when no mailbox credentials are configured."""

    if not settings.mailbox_configured:
        logger.warning("EMAIL_USER/EMAIL_PASSWORD not set; mailbox polling disabled")
        return None
    mailbox = ImapMailbox(
        settings.imap_host,
        settings.email_user,
        settings.email_password,
        port=settings.imap_port,
        folder=settings.imap_folder,
        ocr_language=settings.ocr_language,
    )
    return MailboxPoller(mailbox, queue, interval=settings.mailbox_poll_interval)


def run_pipeline(data_dir: Path, settings: Settings, **collaborators) -> List[ProcessingOutcome]:
    """Queue every ``.eml`` file under ``data_dir`` and process the queue once."""

    queue = IngestionQueue()
    for message in load_message_files(Path(data_dir), settings.ocr_language):
        queue.enqueue(normalize_message(message))
    logger.info("Queued %d records from %s", queue.size(), data_dir)

    dispatcher = build_dispatcher(settings, queue, **collaborators)
    outcomes = dispatcher.drain()
    logger.info("Processed %d records, %d still queued", len(outcomes), queue.size())
    return outcomes


def serve(settings: Settings, stop_event: Optional[threading.Event] = None) -> None:
    """Run the poller and dispatcher until ``stop_event`` is set or Ctrl+C."""

    queue = IngestionQueue()
    dispatcher = build_dispatcher(settings, queue)
    poller = build_poller(settings, queue)
    stop_event = stop_event or threading.Event()

    if poller is not None:
        poller.start()
    dispatcher.start()
    logger.info("Pipeline running (dispatch every %gs)", settings.dispatch_interval)
    try:
        while not stop_event.wait(1.0):
            pass
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")
    finally:
        dispatcher.stop()
        if poller is not None:
            poller.stop()
