"""Shared helpers for turning inbound content into plain text."""
from __future__ import annotations

import html
import re


def html_to_text(raw: str) -> str:
    """Convert HTML content into normalized plain text."""

    with_breaks = re.sub(r"(?i)<\s*br\s*/?>", "\n", raw)
    with_breaks = re.sub(r"(?i)</p>", "\n", with_breaks)
    with_breaks = re.sub(r"(?i)</div>", "\n", with_breaks)
    with_breaks = re.sub(r"(?is)<(script|style)[^>]*>.*?</\1>", " ", with_breaks)
    text = re.sub(r"<[^>]+>", " ", with_breaks)
    text = html.unescape(text)
    lines = [" ".join(line.split()) for line in text.splitlines() if line.strip()]
    return "\n".join(lines)


def normalize_text(text: str | None) -> str:
    """Unify line endings and trim trailing whitespace on every line."""

    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [line.rstrip() for line in text.split("\n")]
    collapsed = re.sub(r"\n{3,}", "\n\n", "\n".join(lines))
    return collapsed.strip()


def join_attachment_texts(texts) -> str:
    """Concatenate extracted attachment texts, skipping empty ones."""

    return "\n\n".join(normalize_text(text) for text in texts if text and text.strip())
