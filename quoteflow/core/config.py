"""Environment-driven settings for the pipeline service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from quoteflow.core.utils import get_config_value, load_env_file

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = Path("secrets/quoteflow.env")
DEFAULT_REVISION_THRESHOLD = 2_000_000.0


class ConfigError(ValueError):
    """Raised at startup when required configuration is missing or malformed."""


@dataclass(frozen=True)
class Settings:
    supervisor_email: str
    classifier_endpoint: str
    classifier_api_key: Optional[str] = None
    revision_threshold: float = DEFAULT_REVISION_THRESHOLD
    classifier_max_retries: int = 3
    classifier_timeout: float = 30.0
    classifier_retry_delay: float = 2.0
    classifier_retry_jitter: float = 0.0
    dispatch_interval: float = 10.0
    mailbox_poll_interval: float = 60.0
    imap_host: str = "imap.gmail.com"
    imap_port: int = 993
    imap_folder: str = "INBOX"
    ocr_language: str = "por"
    email_user: Optional[str] = None
    email_password: Optional[str] = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_secure: bool = True
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    currency: str = "Kz"
    company_name: str = "RCS"
    documents_dir: Path = Path("output/documents")
    draft_sink: str = "csv"
    draft_store: Path = Path("output/quotations.csv")
    sheets_spreadsheet_id: Optional[str] = None
    sheets_worksheet: str = "Sheet1"
    sheets_service_account: Optional[Path] = None

    @property
    def mailbox_configured(self) -> bool:
        return bool(self.email_user and self.email_password)


def _required(key: str) -> str:
    value = get_config_value(key).strip()
    if not value:
        raise ConfigError(f"{key} must be set")
    return value


def _optional(key: str) -> Optional[str]:
    value = get_config_value(key).strip()
    return value or None


def _number(key: str, default: float, cast=float):
    raw = get_config_value(key).strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ConfigError(f"{key} must not be negative, got {raw!r}")
    return value


def _flag(key: str, default: bool) -> bool:
    raw = get_config_value(key).strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def load_settings(env_file: Path | None = None) -> Settings:
    """Build :class:`Settings` from the environment.

    An env file (``QUOTEFLOW_ENV_FILE`` or ``secrets/quoteflow.env``) is
    loaded first without overriding variables that are already set.
    """

    env_path = env_file or Path(os.getenv("QUOTEFLOW_ENV_FILE", DEFAULT_ENV_FILE))
    load_env_file(env_path)

    max_retries = _number("CLASSIFIER_MAX_RETRIES", 3, int)
    if max_retries < 1:
        raise ConfigError("CLASSIFIER_MAX_RETRIES must be at least 1")

    draft_sink = (get_config_value("DRAFT_SINK", "csv").strip() or "csv").lower()
    if draft_sink not in {"csv", "excel", "sheets"}:
        raise ConfigError(f"DRAFT_SINK must be csv, excel or sheets, got {draft_sink!r}")

    email_user = _optional("EMAIL_USER")
    email_password = _optional("EMAIL_PASSWORD")
    service_account = _optional("GOOGLE_SHEETS_SERVICE_ACCOUNT")

    settings = Settings(
        supervisor_email=_required("SUPERVISOR_EMAIL"),
        classifier_endpoint=_required("CLASSIFIER_ENDPOINT"),
        classifier_api_key=_optional("CLASSIFIER_API_KEY"),
        revision_threshold=_number("REVISION_THRESHOLD", DEFAULT_REVISION_THRESHOLD),
        classifier_max_retries=max_retries,
        classifier_timeout=_number("CLASSIFIER_TIMEOUT", 30.0),
        classifier_retry_delay=_number("CLASSIFIER_RETRY_DELAY", 2.0),
        classifier_retry_jitter=_number("CLASSIFIER_RETRY_JITTER", 0.0),
        dispatch_interval=_number("DISPATCH_INTERVAL", 10.0),
        mailbox_poll_interval=_number("MAILBOX_POLL_INTERVAL", 60.0),
        imap_host=get_config_value("IMAP_HOST", "imap.gmail.com"),
        imap_port=_number("IMAP_PORT", 993, int),
        imap_folder=get_config_value("IMAP_FOLDER", "INBOX"),
        ocr_language=get_config_value("OCR_LANGUAGE", "por").strip() or "por",
        email_user=email_user,
        email_password=email_password,
        smtp_host=get_config_value("SMTP_HOST", "smtp.gmail.com"),
        smtp_port=_number("SMTP_PORT", 465, int),
        smtp_secure=_flag("SMTP_SECURE", True),
        smtp_user=_optional("SMTP_USER") or email_user,
        smtp_password=_optional("SMTP_PASS") or email_password,
        currency=get_config_value("CURRENCY", "Kz"),
        company_name=get_config_value("COMPANY_NAME", "RCS"),
        documents_dir=Path(get_config_value("DOCUMENTS_DIR", "output/documents")),
        draft_sink=draft_sink,
        draft_store=Path(get_config_value("DRAFT_STORE", "output/quotations.csv")),
        sheets_spreadsheet_id=_optional("GOOGLE_SHEETS_SPREADSHEET_ID"),
        sheets_worksheet=get_config_value("GOOGLE_SHEETS_WORKSHEET", "Sheet1"),
        sheets_service_account=Path(service_account) if service_account else None,
    )
    if settings.draft_sink == "sheets" and not settings.sheets_spreadsheet_id:
        raise ConfigError("GOOGLE_SHEETS_SPREADSHEET_ID is required when DRAFT_SINK=sheets")

    logger.debug(
        "Loaded settings: endpoint=%s threshold=%.2f retries=%d",
        settings.classifier_endpoint,
        settings.revision_threshold,
        settings.classifier_max_retries,
    )
    return settings
