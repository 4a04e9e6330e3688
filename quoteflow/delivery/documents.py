"""PDF pre-invoice generation with reportlab."""
from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Sequence

from reportlab.lib.colors import Color, white, black
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from quoteflow.core.models import LineItem
from quoteflow.processing.templates import format_amount

logger = logging.getLogger(__name__)

PAGE_W, PAGE_H = A4
MARGIN = 50
CONTENT_W = PAGE_W - 2 * MARGIN
ROW_H = 16
HEADER_FILL = Color(0.17, 0.17, 0.35)
ALT_ROW = Color(0.95, 0.95, 0.97)


def _safe_name(reference: str) -> str:
    return re.sub(r"[^\w\-]+", "_", reference).strip("_") or "quotation"


class PdfQuotationRenderer:
    """Draw an A4 pre-invoice: header, client block, item table, total, notes."""

    def __init__(self, output_dir: Path, currency: str = "Kz", company_name: str = "RCS") -> None:
        self.output_dir = Path(output_dir)
        self.currency = currency
        self.company_name = company_name

    def render(
        self,
        reference: str,
        client_name: str,
        client_email: str,
        line_items: Sequence[LineItem],
        total: float,
        notes: str = "",
    ) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / f"pre-invoice-{_safe_name(reference)}.pdf"

        pdf = canvas.Canvas(str(path), pagesize=A4)
        pdf.setTitle(f"Pre-invoice {reference}")
        pdf.setAuthor(self.company_name)

        y = self._draw_header(pdf, reference, client_name, client_email)
        y = self._draw_table_header(pdf, y)
        for index, item in enumerate(line_items):
            if y < MARGIN + 80:
                pdf.showPage()
                y = self._draw_table_header(pdf, PAGE_H - MARGIN)
            y = self._draw_line_item(pdf, y, index, item)
        y = self._draw_total(pdf, y, total)
        if notes:
            self._draw_notes(pdf, y, notes)

        pdf.save()
        logger.info("Pre-invoice generated: %s", path)
        return path

    def _draw_header(self, pdf, reference: str, client_name: str, client_email: str) -> float:
        y = PAGE_H - MARGIN
        pdf.setFillColor(black)
        pdf.setFont("Helvetica-Bold", 18)
        pdf.drawString(MARGIN, y - 18, f"{self.company_name} - Pre-invoice")
        pdf.setFont("Helvetica", 10)
        pdf.drawString(MARGIN, y - 36, f"No.: {reference}")
        pdf.drawString(MARGIN, y - 50, f"Date: {datetime.now():%Y-%m-%d %H:%M}")

        pdf.setFont("Helvetica-Bold", 12)
        pdf.drawString(MARGIN, y - 80, "Client")
        pdf.setFont("Helvetica", 10)
        pdf.drawString(MARGIN, y - 96, f"Name: {client_name}")
        pdf.drawString(MARGIN, y - 110, f"Email: {client_email}")
        return y - 130

    def _draw_table_header(self, pdf, y: float) -> float:
        pdf.setFillColor(HEADER_FILL)
        pdf.rect(MARGIN, y - ROW_H, CONTENT_W, ROW_H, fill=1, stroke=0)
        pdf.setFillColor(white)
        pdf.setFont("Helvetica-Bold", 8)
        pdf.drawString(MARGIN + 6, y - 12, "DESCRIPTION")
        pdf.drawRightString(MARGIN + 320, y - 12, "QTY")
        pdf.drawRightString(MARGIN + 410, y - 12, "UNIT PRICE")
        pdf.drawRightString(MARGIN + CONTENT_W - 6, y - 12, "AMOUNT")
        return y - ROW_H

    def _draw_line_item(self, pdf, y: float, index: int, item: LineItem) -> float:
        lines = simpleSplit(item.description, "Helvetica", 8, 270) or [""]
        height = max(ROW_H, len(lines) * 10 + 6)
        if index % 2 == 1:
            pdf.setFillColor(ALT_ROW)
            pdf.rect(MARGIN, y - height, CONTENT_W, height, fill=1, stroke=0)

        pdf.setFillColor(black)
        pdf.setFont("Helvetica", 8)
        for offset, line in enumerate(lines):
            pdf.drawString(MARGIN + 6, y - 12 - offset * 10, line)
        quantity = item.quantity
        pdf.drawRightString(MARGIN + 320, y - 12, f"{quantity:g}")
        pdf.drawRightString(MARGIN + 410, y - 12, format_amount(item.unit_price, self.currency))
        pdf.drawRightString(MARGIN + CONTENT_W - 6, y - 12, format_amount(item.subtotal, self.currency))
        return y - height

    def _draw_total(self, pdf, y: float, total: float) -> float:
        y -= 8
        pdf.setStrokeColor(black)
        pdf.setLineWidth(0.5)
        pdf.line(MARGIN, y, MARGIN + CONTENT_W, y)
        pdf.setFont("Helvetica-Bold", 12)
        pdf.drawRightString(MARGIN + CONTENT_W - 6, y - 18, f"Total: {format_amount(total, self.currency)}")
        return y - 36

    def _draw_notes(self, pdf, y: float, notes: str) -> None:
        pdf.setFont("Helvetica", 9)
        for offset, line in enumerate(simpleSplit(f"Notes: {notes}", "Helvetica", 9, CONTENT_W)):
            pdf.drawString(MARGIN, y - offset * 12, line)

    def clean_old_documents(self) -> int:
        """Delete generated PDFs. Returns how many files were removed."""

        if not self.output_dir.exists():
            return 0
        removed = 0
        for path in self.output_dir.glob("pre-invoice-*.pdf"):
            try:
                path.unlink()
                removed += 1
            except OSError as exc:
                logger.error("Could not remove %s: %s", path, exc)
        logger.info("Removed %d old pre-invoices from %s", removed, self.output_dir)
        return removed
