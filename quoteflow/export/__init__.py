"""Persistence destinations for emitted drafts."""
from quoteflow.export.sinks import CsvDraftStore, ExcelDraftSink, GoogleSheetsDraftSink, ensure_output_dir
from quoteflow.export.templates import DRAFT_HEADERS, draft_to_row, row_to_draft

__all__ = [
    "DRAFT_HEADERS",
    "CsvDraftStore",
    "ExcelDraftSink",
    "GoogleSheetsDraftSink",
    "draft_to_row",
    "ensure_output_dir",
    "row_to_draft",
]
