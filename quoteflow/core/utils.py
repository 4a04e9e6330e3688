"""Shared utility functions for the quotation pipeline."""
import logging
import os
import re
from pathlib import Path

logger = logging.getLogger(__name__)


def get_config_value(key: str, default: str = "") -> str:
    """Get configuration value from Streamlit secrets or environment variables.

    Checks Streamlit secrets first (for the hosted review dashboard), then
    falls back to environment variables (for the pipeline service and CLI).
    """
    try:
        import streamlit as st
        from streamlit import runtime

        # Outside ``streamlit run`` there is no secrets file to consult.
        if runtime.exists() and key in st.secrets:
            return str(st.secrets[key])
    except (ImportError, FileNotFoundError, KeyError):
        pass

    return os.getenv(key, default)


def load_env_file(path: Path) -> None:
    """Load environment variables from a file if it exists.

    Variables already present in the environment are left untouched.
    """
    if not path.exists():
        return

    try:
        with path.open(encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                if not key or key in os.environ:
                    continue
                os.environ[key] = value.strip().strip('"').strip("'")
    except OSError as exc:
        logger.debug("Could not load env file %s: %s", path, exc)


def clean_amount(raw) -> float:
    """Convert a number or a formatted amount string into a float.

    Handles ``1.234.567,89``, ``1,234,567.89``, currency symbols and stray
    whitespace. A lone dot followed by exactly three digits (``350.000``) is
    a thousands separator, the way Kz amounts are written. Raises
    ``ValueError`` when nothing numeric is left.
    """

    if isinstance(raw, bool):
        raise ValueError(f"not an amount: {raw!r}")
    if isinstance(raw, (int, float)):
        return float(raw)

    normalized = re.sub(r"[^\d,.\-]", "", str(raw))

    # Detect European-style decimals (comma) vs. US-style (dot)
    if re.search(r",\d{1,2}$", normalized):
        normalized = normalized.replace(".", "")
        normalized = normalized.replace(",", ".")
    elif "," not in normalized and re.search(r"^-?\d{1,3}\.\d{3}$", normalized):
        normalized = normalized.replace(".", "")
    else:
        normalized = normalized.replace(",", "")
        if normalized.count(".") > 1:
            normalized = normalized.replace(".", "")

    return float(normalized)
