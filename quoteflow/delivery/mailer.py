"""SMTP transport for quotations and review notices."""
from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class SmtpTransport:
    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        from_address: Optional[str] = None,
        use_ssl: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address or username or ""
        self.use_ssl = use_ssl
        self.timeout = timeout

    def build_message(self, to: str, subject: str, body: str, attachment_path: Optional[Path] = None) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.from_address
        msg["To"] = to
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid()
        msg.set_content(body)

        if attachment_path is not None:
            path = Path(attachment_path)
            if path.exists():
                msg.add_attachment(
                    path.read_bytes(),
                    maintype="application",
                    subtype="pdf",
                    filename=path.name,
                )
            else:
                logger.warning("Attachment %s is missing; sending without it", path)
        return msg

    def send(self, to: str, subject: str, body: str, attachment_path: Optional[Path] = None) -> str:
        """Send one message and return its Message-ID. SMTP errors propagate."""

        msg = self.build_message(to, subject, body, attachment_path)
        smtp_cls = smtplib.SMTP_SSL if self.use_ssl else smtplib.SMTP
        with smtp_cls(self.host, self.port, timeout=self.timeout) as smtp:
            if not self.use_ssl:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(msg)
        logger.info("E-mail sent to %s (id: %s)", to, msg["Message-ID"])
        return msg["Message-ID"]
