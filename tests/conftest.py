"""Pytest configuration and fakes for the pipeline's external collaborators."""
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

import pytest

# Ensure repository root is on sys.path for module resolution
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from quoteflow.core.config import Settings
from quoteflow.core.models import IntakeRecord

CONFIG_KEYS = [
    "SUPERVISOR_EMAIL",
    "CLASSIFIER_ENDPOINT",
    "CLASSIFIER_API_KEY",
    "REVISION_THRESHOLD",
    "CLASSIFIER_MAX_RETRIES",
    "CLASSIFIER_TIMEOUT",
    "CLASSIFIER_RETRY_DELAY",
    "CLASSIFIER_RETRY_JITTER",
    "DISPATCH_INTERVAL",
    "MAILBOX_POLL_INTERVAL",
    "EMAIL_USER",
    "EMAIL_PASSWORD",
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_SECURE",
    "SMTP_USER",
    "SMTP_PASS",
    "IMAP_HOST",
    "IMAP_PORT",
    "IMAP_FOLDER",
    "OCR_LANGUAGE",
    "CURRENCY",
    "COMPANY_NAME",
    "DOCUMENTS_DIR",
    "DRAFT_SINK",
    "DRAFT_STORE",
    "GOOGLE_SHEETS_SPREADSHEET_ID",
    "GOOGLE_SHEETS_WORKSHEET",
    "GOOGLE_SHEETS_SERVICE_ACCOUNT",
    "QUOTEFLOW_ENV_FILE",
    "LOG_LEVEL",
]


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Stands in for ``requests.Session``; replays scripted responses or exceptions."""

    def __init__(self, *results: Any) -> None:
        self.results = list(results)
        self.calls: List[dict] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class RecordingTransport:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.sent: List[dict] = []
        self.error = error

    def send(self, to: str, subject: str, body: str, attachment_path: Optional[Path] = None) -> str:
        if self.error is not None:
            raise self.error
        self.sent.append({"to": to, "subject": subject, "body": body, "attachment_path": attachment_path})
        return f"<msg-{len(self.sent)}@test>"


class MemorySink:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.saved: List[dict] = []
        self.error = error

    def save(self, source_record_id, draft, status) -> str:
        if self.error is not None:
            raise self.error
        self.saved.append({"record_id": source_record_id, "draft": draft, "status": status})
        return f"draft-{len(self.saved)}"


class StubRenderer:
    def __init__(self, output_dir: Path, error: Optional[Exception] = None) -> None:
        self.output_dir = output_dir
        self.error = error
        self.calls: List[str] = []

    def render(self, reference, client_name, client_email, line_items, total, notes="") -> Path:
        self.calls.append(reference)
        if self.error is not None:
            raise self.error
        path = self.output_dir / f"{reference}.pdf"
        path.write_bytes(b"%PDF-1.4 stub")
        return path


@pytest.fixture(autouse=True)
def clean_config_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the developer's environment and env file out of every test."""

    for key in CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("QUOTEFLOW_ENV_FILE", str(tmp_path / "missing.env"))


@pytest.fixture
def make_record():
    """Factory for intake records with sensible defaults."""

    def _make(**overrides: Any) -> IntakeRecord:
        values = dict(
            received_at=datetime(2024, 1, 20, 9, 30, tzinfo=timezone.utc),
            requester_name="Ana Silva",
            requester_email="ana@client.ao",
            free_text="Please quote 2 laptops for our office.",
        )
        values.update(overrides)
        return IntakeRecord(**values)

    return _make


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        supervisor_email="supervisor@example.com",
        classifier_endpoint="http://classifier.test/quote",
        classifier_retry_delay=0.0,
        documents_dir=tmp_path / "documents",
        draft_store=tmp_path / "quotations.csv",
    )


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def renderer(tmp_path: Path) -> StubRenderer:
    return StubRenderer(tmp_path)
