"""Inbound quotation request processing: intake, pricing, routing and delivery."""
from quoteflow.core import (
    ConfigError,
    DraftStatus,
    IntakeRecord,
    LineItem,
    ProcessingOutcome,
    QuotationDraft,
    Settings,
    configure_logging,
    load_settings,
)
from quoteflow.ingestion import IngestionQueue, normalize_form, normalize_message
from quoteflow.processing import ClassificationGateway, Dispatcher, OutcomeEmitter, RevisionRouter
from quoteflow.processing.pipeline import build_dispatcher, run_pipeline
from quoteflow.review import mark_status, status_summary

__all__ = [
    "ClassificationGateway",
    "ConfigError",
    "Dispatcher",
    "DraftStatus",
    "IngestionQueue",
    "IntakeRecord",
    "LineItem",
    "OutcomeEmitter",
    "ProcessingOutcome",
    "QuotationDraft",
    "RevisionRouter",
    "Settings",
    "build_dispatcher",
    "configure_logging",
    "load_settings",
    "mark_status",
    "normalize_form",
    "normalize_message",
    "run_pipeline",
    "status_summary",
]
