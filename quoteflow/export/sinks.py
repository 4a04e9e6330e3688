"""Persistence sinks that durably record emitted drafts."""
from __future__ import annotations

import csv
import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from quoteflow.core.models import DraftStatus, QuotationDraft, utc_now
from quoteflow.export.templates import DRAFT_HEADERS, draft_to_row

logger = logging.getLogger(__name__)


def ensure_output_dir(output_path: Path) -> None:
    """Create parent folders for sink outputs when missing."""

    output_path.parent.mkdir(parents=True, exist_ok=True)


def _new_row(source_record_id: str, draft: QuotationDraft, status: DraftStatus) -> Dict[str, Any]:
    return draft_to_row(uuid.uuid4().hex, source_record_id, draft, status, utc_now())


class CsvDraftStore:
    """Append-only CSV file, one row per emitted draft.

    Also the store the review workflow reads from and updates.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def save(self, source_record_id: str, draft: QuotationDraft, status: DraftStatus) -> str:
        row = _new_row(source_record_id, draft, status)
        with self._lock:
            ensure_output_dir(self.path)
            is_new = not self.path.exists() or self.path.stat().st_size == 0
            with self.path.open("a", newline="", encoding="utf-8") as csvfile:
                writer = csv.DictWriter(csvfile, fieldnames=DRAFT_HEADERS)
                if is_new:
                    writer.writeheader()
                writer.writerow(row)
        return row["Id"]

    def load_rows(self) -> List[Dict[str, str]]:
        if not self.path.exists():
            return []
        with self.path.open(newline="", encoding="utf-8") as csvfile:
            return list(csv.DictReader(csvfile))

    def update_status(
        self,
        draft_id: str,
        status: DraftStatus,
        expected: Optional[DraftStatus] = None,
    ) -> Dict[str, str]:
        """Rewrite the stored status of one draft and return the updated row.

        With ``expected`` set, a draft currently in any other state is refused
        with ``ValueError`` and the file is left untouched.
        """

        with self._lock:
            rows = self.load_rows()
            for row in rows:
                if row["Id"] == draft_id:
                    if expected is not None and row["Status"] != DraftStatus(expected).value:
                        raise ValueError(f"draft {draft_id} is {row['Status']}, not {DraftStatus(expected).value}")
                    row["Status"] = DraftStatus(status).value
                    updated = row
                    break
            else:
                raise KeyError(f"no stored draft with id {draft_id}")

            with self.path.open("w", newline="", encoding="utf-8") as csvfile:
                writer = csv.DictWriter(csvfile, fieldnames=DRAFT_HEADERS)
                writer.writeheader()
                writer.writerows(rows)
        logger.info("Draft %s marked %s", draft_id, updated["Status"])
        return updated


class ExcelDraftSink:
    """Append drafts to an Excel workbook using openpyxl."""

    sheet_title = "quotations"

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def save(self, source_record_id: str, draft: QuotationDraft, status: DraftStatus) -> str:
        from openpyxl import Workbook, load_workbook

        row = _new_row(source_record_id, draft, status)
        with self._lock:
            ensure_output_dir(self.path)
            if self.path.exists():
                workbook = load_workbook(self.path)
                sheet = workbook[self.sheet_title]
            else:
                workbook = Workbook()
                sheet = workbook.active
                sheet.title = self.sheet_title
                sheet.append(DRAFT_HEADERS)
            sheet.append([row[header] for header in DRAFT_HEADERS])
            workbook.save(self.path)
        return row["Id"]


class GoogleSheetsDraftSink:
    """Append drafts to a Google Sheets worksheet using a service account."""

    def __init__(
        self,
        spreadsheet_id: str,
        worksheet_title: str = "Sheet1",
        service_account_path: Path | None = None,
    ) -> None:
        self.spreadsheet_id = spreadsheet_id
        self.worksheet_title = worksheet_title
        self.service_account_path = service_account_path
        self._worksheet = None

    def _open_worksheet(self):
        if self._worksheet is not None:
            return self._worksheet

        import gspread

        client = (
            gspread.service_account(filename=str(self.service_account_path))
            if self.service_account_path
            else gspread.service_account()
        )
        worksheet = client.open_by_key(self.spreadsheet_id).worksheet(self.worksheet_title)
        if not worksheet.row_values(1):
            worksheet.append_row(DRAFT_HEADERS)
        self._worksheet = worksheet
        return worksheet

    def save(self, source_record_id: str, draft: QuotationDraft, status: DraftStatus) -> str:
        row = _new_row(source_record_id, draft, status)
        self._open_worksheet().append_row([row[header] for header in DRAFT_HEADERS])
        return row["Id"]
