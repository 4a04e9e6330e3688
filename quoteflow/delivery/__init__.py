"""Outbound collaborators: pre-invoice rendering and mail transport."""
from quoteflow.delivery.documents import PdfQuotationRenderer
from quoteflow.delivery.mailer import SmtpTransport

__all__ = ["PdfQuotationRenderer", "SmtpTransport"]
