"""Tests for pre-invoice rendering and the SMTP transport."""
from pathlib import Path

from pypdf import PdfReader

import quoteflow.delivery.mailer as mailer
from quoteflow.core.models import LineItem
from quoteflow.delivery.documents import PdfQuotationRenderer
from quoteflow.delivery.mailer import SmtpTransport


class FakeSMTP:
    instances: list = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.started_tls = False
        self.login_args = None
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, username, password):
        self.login_args = (username, password)

    def send_message(self, msg):
        self.messages.append(msg)


def test_renderer_writes_readable_pdf(tmp_path: Path):
    renderer = PdfQuotationRenderer(tmp_path / "docs")

    path = renderer.render(
        "QT-20240120-ABCD1234",
        "Ana Silva",
        "ana@client.ao",
        [LineItem("Laptop", 2, 350000), LineItem("Mouse", 2, 5000)],
        710000,
        notes="Delivery in two weeks",
    )

    assert path.name == "pre-invoice-QT-20240120-ABCD1234.pdf"
    text = "\n".join(page.extract_text() for page in PdfReader(str(path)).pages)
    assert "Ana Silva" in text
    assert "Laptop" in text
    assert "710,000.00 Kz" in text


def test_renderer_paginates_long_item_lists(tmp_path: Path):
    renderer = PdfQuotationRenderer(tmp_path)
    items = [LineItem(f"Item {n}", 1, 100) for n in range(80)]

    path = renderer.render("QT-1", "Ana", "ana@client.ao", items, 8000)

    assert len(PdfReader(str(path)).pages) > 1


def test_clean_old_documents(tmp_path: Path):
    renderer = PdfQuotationRenderer(tmp_path)
    renderer.render("QT-1", "Ana", "ana@client.ao", [LineItem("Desk", 1, 10)], 10)
    (tmp_path / "keep.txt").write_text("x", encoding="utf-8")

    assert renderer.clean_old_documents() == 1
    assert (tmp_path / "keep.txt").exists()


def test_ssl_transport_sends_with_attachment(tmp_path: Path, monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(mailer.smtplib, "SMTP_SSL", FakeSMTP)
    attachment = tmp_path / "pre-invoice.pdf"
    attachment.write_bytes(b"%PDF-1.4")
    transport = SmtpTransport("smtp.test", 465, "quotes@example.com", "secret")

    message_id = transport.send("ana@client.ao", "Your quotation", "body", attachment)

    smtp = FakeSMTP.instances[0]
    sent = smtp.messages[0]
    assert smtp.login_args == ("quotes@example.com", "secret")
    assert smtp.started_tls is False
    assert sent["To"] == "ana@client.ao"
    assert sent["From"] == "quotes@example.com"
    assert message_id == sent["Message-ID"]
    assert [part.get_filename() for part in sent.iter_attachments()] == ["pre-invoice.pdf"]


def test_plain_transport_uses_starttls(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(mailer.smtplib, "SMTP", FakeSMTP)
    transport = SmtpTransport("smtp.test", 587, None, None, from_address="noreply@example.com", use_ssl=False)

    transport.send("ana@client.ao", "Subject", "body")

    smtp = FakeSMTP.instances[0]
    assert smtp.started_tls is True
    assert smtp.login_args is None


def test_missing_attachment_is_dropped(tmp_path: Path, caplog):
    transport = SmtpTransport("smtp.test", 465, "quotes@example.com", "secret")
    caplog.set_level("WARNING")

    msg = transport.build_message("ana@client.ao", "Subject", "body", tmp_path / "gone.pdf")

    assert list(msg.iter_attachments()) == []
    assert "gone.pdf" in caplog.text
