"""IMAP mailbox connector producing parsed :class:`MailMessage` objects."""
from __future__ import annotations

import imaplib
import io
import logging
from datetime import timezone
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import parseaddr, parsedate_to_datetime
from pathlib import Path
from typing import List, Optional

import pytesseract
from PIL import Image
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from quoteflow.core.models import Attachment, MailMessage, Sender
from quoteflow.ingestion.common import html_to_text, normalize_text

logger = logging.getLogger(__name__)

OCR_LANGUAGE = "por"


def _parse_received_at(date_header: str | None):
    if not date_header:
        return None
    try:
        parsed = parsedate_to_datetime(date_header)
    except (TypeError, ValueError):
        logger.debug("Unparseable Date header %r", date_header)
        return None
    if parsed.tzinfo:
        parsed = parsed.astimezone(timezone.utc)
    return parsed


def _ocr(image, filename: str, language: str) -> str:
    try:
        text = pytesseract.image_to_string(image, lang=language)
    except (pytesseract.TesseractError, OSError) as exc:
        # TesseractNotFoundError is an OSError: no binary installed.
        logger.error("OCR failed for attachment %s: %s", filename, exc)
        return ""
    return normalize_text(text)


def _image_text(payload: bytes, filename: str, language: str) -> str:
    try:
        image = Image.open(io.BytesIO(payload))
        image.load()
    except OSError as exc:
        logger.warning("Could not open image attachment %s: %s", filename, exc)
        return ""
    return _ocr(image, filename, language)


def _scanned_pdf_text(reader: PdfReader, filename: str, language: str) -> str:
    """OCR the images embedded in a PDF that has no text layer."""

    chunks: List[str] = []
    for number, page in enumerate(reader.pages, start=1):
        try:
            images = list(page.images)
        except (PdfReadError, ValueError, OSError, NotImplementedError) as exc:
            logger.warning("Could not extract images from page %d of %s: %s", number, filename, exc)
            continue
        for embedded in images:
            if embedded.image is not None:
                chunks.append(_ocr(embedded.image, filename, language))
    return "\n".join(chunk for chunk in chunks if chunk)


def _pdf_text(payload: bytes, filename: str, language: str) -> str:
    try:
        reader = PdfReader(io.BytesIO(payload))
        pages = [(page.extract_text() or "").strip() for page in reader.pages]
    except (PdfReadError, ValueError, OSError) as exc:
        logger.warning("Could not read PDF attachment %s: %s", filename, exc)
        return ""
    text = "\n".join(page for page in pages if page)
    if not text:
        logger.warning("PDF attachment %s has no text layer; trying OCR", filename)
        text = _scanned_pdf_text(reader, filename, language)
    return text


def extract_attachment_text(part: EmailMessage, ocr_language: str = OCR_LANGUAGE) -> str:
    """Plain text for the attachment types the pipeline can read.

    Images and scanned PDFs go through Tesseract; other binary types are
    skipped.
    """

    filename = part.get_filename() or "attachment"
    content_type = part.get_content_type()
    payload = part.get_payload(decode=True) or b""

    if content_type == "application/pdf" or filename.lower().endswith(".pdf"):
        return _pdf_text(payload, filename, ocr_language)
    if content_type.startswith("image/"):
        return _image_text(payload, filename, ocr_language)
    if content_type == "text/plain":
        charset = part.get_content_charset() or "utf-8"
        return normalize_text(payload.decode(charset, errors="replace"))
    if content_type == "text/html":
        charset = part.get_content_charset() or "utf-8"
        return html_to_text(payload.decode(charset, errors="replace"))

    logger.debug("Skipping unreadable attachment %s (%s)", filename, content_type)
    return ""


def parse_message_bytes(raw: bytes, ocr_language: str = OCR_LANGUAGE) -> MailMessage:
    """Extract sender, subject, body and attachment text from a raw RFC 822 message."""

    message = BytesParser(policy=policy.default).parsebytes(raw)

    header_name, header_email = parseaddr(str(message["From"] or ""))
    subject = str(message["Subject"] or "")

    body = ""
    part = message.get_body(preferencelist=("plain", "html"))
    if part is not None:
        content = part.get_content()
        body = html_to_text(content) if part.get_content_subtype() == "html" else normalize_text(content)

    attachments: List[Attachment] = []
    for attachment in message.iter_attachments():
        name = attachment.get_filename() or "attachment"
        attachments.append(
            Attachment(
                name=name,
                mime_type=attachment.get_content_type(),
                extracted_text=extract_attachment_text(attachment, ocr_language),
            )
        )

    return MailMessage(
        sender=Sender(name=header_name, address=header_email),
        subject=subject,
        body=body,
        attachments=attachments,
        received_at=_parse_received_at(message.get("Date")),
    )


def load_message_files(data_dir: Path, ocr_language: str = OCR_LANGUAGE) -> List[MailMessage]:
    """Parse every ``*.eml`` file under a directory, skipping broken ones."""

    messages: List[MailMessage] = []
    for path in sorted(data_dir.glob("*.eml")):
        try:
            messages.append(parse_message_bytes(path.read_bytes(), ocr_language))
        except Exception:
            logger.exception("Failed to parse email %s", path)
    logger.info("Loaded %d messages from %s", len(messages), data_dir)
    return messages


class ImapMailbox:
    """Pull unseen messages from an IMAP folder over SSL."""

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        port: int = 993,
        folder: str = "INBOX",
        timeout: Optional[float] = 60.0,
        ocr_language: str = OCR_LANGUAGE,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.folder = folder
        self.timeout = timeout
        self.ocr_language = ocr_language

    def fetch_unseen(self) -> List[MailMessage]:
        """Return every unseen message; fetching marks them as read on the server."""

        client = imaplib.IMAP4_SSL(self.host, self.port, timeout=self.timeout)
        try:
            client.login(self.username, self.password)
            client.select(self.folder)
            status, data = client.search(None, "UNSEEN")
            if status != "OK":
                raise imaplib.IMAP4.error(f"UNSEEN search failed: {status}")

            message_ids = data[0].split() if data and data[0] else []
            if not message_ids:
                logger.info("No new messages in %s", self.folder)
                return []
            logger.info("%d unseen messages in %s", len(message_ids), self.folder)

            messages: List[MailMessage] = []
            for message_id in message_ids:
                status, fetched = client.fetch(message_id, "(RFC822)")
                if status != "OK" or not fetched or not isinstance(fetched[0], tuple):
                    logger.warning("Could not fetch message %s: %s", message_id.decode(), status)
                    continue
                try:
                    messages.append(parse_message_bytes(fetched[0][1], self.ocr_language))
                except Exception:
                    logger.exception("Failed to parse message %s", message_id.decode())
            return messages
        finally:
            try:
                client.logout()
            except (imaplib.IMAP4.error, OSError) as exc:
                logger.debug("IMAP logout failed: %s", exc)
