"""Client for the external pricing/classification service.

The service is an untrusted and sometimes slow third party. ``classify``
therefore never raises: transport failures are retried a fixed number of
times and then resolved into a degraded draft that a human has to price.
Replies come in several shapes, so they are first parsed into a tagged
:class:`GatewayReply` and only then turned into a :class:`QuotationDraft`.
"""
from __future__ import annotations

import json
import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from quoteflow.core.models import IntakeRecord, LineItem, QuotationDraft
from quoteflow.core.utils import clean_amount

logger = logging.getLogger(__name__)

DEFAULT_INVALID_NOTES = (
    "We could not identify the products or services in this request. "
    "Please reply with a description of each item, the quantities you need "
    "and any relevant specifications."
)
PLACEHOLDER_DESCRIPTION = "Request could not be interpreted"
UNSPECIFIED_DESCRIPTION = "Unspecified item"

_VALID_KEYS = ("isValid", "is_valid", "valid")
_REVIEW_KEYS = ("needsReview", "needs_review", "requiresReview")
_ITEMS_KEYS = ("items", "lineItems", "line_items")
_TOTAL_KEYS = ("total", "totalValue", "total_value")
_EXPLANATION_KEYS = ("explanationText", "explanation", "notes", "reason")
_CLIENT_NAME_KEYS = ("clientName", "client_name", "customerName")
_CLIENT_EMAIL_KEYS = ("clientEmail", "client_email", "customerEmail")
_DESCRIPTION_KEYS = ("description", "desc", "name", "product")
_QUANTITY_KEYS = ("quantity", "qty")
_PRICE_KEYS = ("unitPrice", "unit_price", "price")
_WRAPPER_KEYS = ("output", "data", "json")


class GatewayError(Exception):
    """A failed attempt that is worth retrying (5xx, unreadable body)."""


class GatewayRejectedError(Exception):
    """The service refused the request (4xx); retrying will not help."""


class MalformedReplyError(ValueError):
    """The reply body is not something the parser can interpret."""


class ReplyKind(str, Enum):
    INVALID = "invalid"
    ITEM_LIST = "item_list"
    SINGLE_ITEM = "single_item"
    EMPTY = "empty"


class FailureKind(str, Enum):
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass(frozen=True)
class GatewayReply:
    kind: ReplyKind
    items: Tuple[LineItem, ...] = ()
    total: Optional[float] = None
    flagged: bool = False
    explanation: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None


def _first(body: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if key in body and body[key] is not None:
            return body[key]
    return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "y"}
    return bool(value)


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = " ".join(str(value).split())
    return text or None


def _as_amount(value: Any, field: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        amount = clean_amount(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring unreadable %s %r in gateway reply", field, value)
        return None
    return max(amount, 0.0)


def _parse_item(raw: Dict[str, Any]) -> LineItem:
    quantity = _as_amount(_first(raw, _QUANTITY_KEYS), "quantity")
    price = _as_amount(_first(raw, _PRICE_KEYS), "unit price")
    return LineItem(
        description=_as_text(_first(raw, _DESCRIPTION_KEYS)) or UNSPECIFIED_DESCRIPTION,
        quantity=1 if quantity is None else quantity,
        unit_price=price or 0.0,
    )


def _unwrap(payload: Any) -> Dict[str, Any]:
    """Strip list and envelope wrappers some workflow engines add around the reply."""

    for _ in range(3):
        if isinstance(payload, list):
            if not payload:
                raise MalformedReplyError("empty reply list")
            payload = payload[0]
            continue
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except ValueError as exc:
                raise MalformedReplyError("reply is text, not JSON") from exc
            continue
        if isinstance(payload, dict) and _first(payload, _VALID_KEYS) is None:
            wrapped = _first(payload, _WRAPPER_KEYS)
            if isinstance(wrapped, (dict, list, str)):
                payload = wrapped
                continue
        break

    if not isinstance(payload, dict):
        raise MalformedReplyError(f"unexpected reply type {type(payload).__name__}")
    return payload


def parse_reply(payload: Any) -> GatewayReply:
    """Classify a decoded reply body into one :class:`GatewayReply` variant."""

    body = _unwrap(payload)

    explanation = _as_text(_first(body, _EXPLANATION_KEYS))
    client_name = _as_text(_first(body, _CLIENT_NAME_KEYS))
    client_email = _as_text(_first(body, _CLIENT_EMAIL_KEYS))

    raw_items = _first(body, _ITEMS_KEYS)
    single = body.get("item")
    if isinstance(single, list) and raw_items is None:
        raw_items, single = single, None
    items: Tuple[LineItem, ...] = ()
    if isinstance(raw_items, list):
        items = tuple(_parse_item(raw) for raw in raw_items if isinstance(raw, dict))

    validity = _first(body, _VALID_KEYS)
    if validity is None:
        # No explicit flag: anything we can price counts as a valid request.
        valid = bool(items) or isinstance(single, dict) or bool(_as_text(single)) or _first(body, _PRICE_KEYS) is not None
    else:
        valid = _as_bool(validity)

    if not valid:
        return GatewayReply(
            kind=ReplyKind.INVALID,
            explanation=explanation,
            client_name=client_name,
            client_email=client_email,
        )

    common = dict(
        total=_as_amount(_first(body, _TOTAL_KEYS), "total"),
        flagged=_as_bool(_first(body, _REVIEW_KEYS) or False),
        explanation=explanation,
        client_name=client_name,
        client_email=client_email,
    )
    if items:
        return GatewayReply(kind=ReplyKind.ITEM_LIST, items=items, **common)
    if isinstance(single, dict):
        return GatewayReply(kind=ReplyKind.SINGLE_ITEM, items=(_parse_item(single),), **common)
    if isinstance(single, str) and _as_text(single):
        # ``item`` names the product; quantity and price sit beside it.
        inferred = _parse_item(body)
        item = LineItem(_as_text(single), inferred.quantity, inferred.unit_price)
        return GatewayReply(kind=ReplyKind.SINGLE_ITEM, items=(item,), **common)
    if _first(body, _DESCRIPTION_KEYS + _PRICE_KEYS) is not None:
        return GatewayReply(kind=ReplyKind.SINGLE_ITEM, items=(_parse_item(body),), **common)
    return GatewayReply(kind=ReplyKind.EMPTY, **common)


def draft_from_reply(reply: GatewayReply, record: IntakeRecord, revision_threshold: float) -> QuotationDraft:
    """Turn a parsed reply into the canonical draft for ``record``."""

    client_name = reply.client_name or record.requester_name
    client_email = reply.client_email or record.requester_email

    if reply.kind is ReplyKind.INVALID:
        return QuotationDraft(
            valid=False,
            client_name=client_name,
            client_email=client_email,
            line_items=(LineItem(PLACEHOLDER_DESCRIPTION, quantity=1, unit_price=0.0),),
            total=0.0,
            needs_review=False,
            notes=reply.explanation or DEFAULT_INVALID_NOTES,
        )

    if reply.kind is ReplyKind.EMPTY:
        items: Tuple[LineItem, ...] = (LineItem(UNSPECIFIED_DESCRIPTION, quantity=1, unit_price=0.0),)
    else:
        items = reply.items

    total = reply.total if reply.total is not None else sum(item.subtotal for item in items)
    needs_review = reply.flagged or total > revision_threshold
    return QuotationDraft(
        valid=True,
        client_name=client_name,
        client_email=client_email,
        line_items=items,
        total=total,
        needs_review=needs_review,
        notes=reply.explanation or "",
    )


def build_payload(record: IntakeRecord) -> Dict[str, str]:
    return {
        "message": record.free_text,
        "subject": record.subject,
        "senderName": record.requester_name,
        "senderEmail": record.requester_email,
        "attachmentText": record.attachment_text,
    }


class ClassificationGateway:
    """Bounded-retry HTTP client for the classification service."""

    def __init__(
        self,
        endpoint: str,
        revision_threshold: float,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        retry_jitter: float = 0.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.endpoint = endpoint
        self.revision_threshold = revision_threshold
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.retry_jitter = retry_jitter
        self.session = session or requests.Session()
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings, **overrides) -> "ClassificationGateway":
        options = dict(
            endpoint=settings.classifier_endpoint,
            revision_threshold=settings.revision_threshold,
            api_key=settings.classifier_api_key,
            timeout=settings.classifier_timeout,
            max_retries=settings.classifier_max_retries,
            retry_delay=settings.classifier_retry_delay,
            retry_jitter=settings.classifier_retry_jitter,
        )
        options.update(overrides)
        return cls(**options)

    def classify(self, record: IntakeRecord) -> QuotationDraft:
        """Price ``record``. Always returns a draft, degraded if the service is unavailable."""

        payload = build_payload(record)
        failures: List[Tuple[FailureKind, str]] = []

        for attempt in range(1, self.max_retries + 1):
            try:
                reply = self._call(payload)
            except requests.Timeout as exc:
                failures.append((FailureKind.TIMEOUT, str(exc) or "timed out"))
            except GatewayRejectedError as exc:
                logger.error("Classifier rejected record %s: %s", record.id, exc)
                failures.append((FailureKind.ERROR, str(exc)))
                break
            except (requests.RequestException, GatewayError, ValueError) as exc:
                failures.append((FailureKind.ERROR, str(exc) or type(exc).__name__))
            except Exception as exc:
                logger.exception("Unexpected classifier failure for record %s", record.id)
                failures.append((FailureKind.ERROR, type(exc).__name__))
            else:
                draft = draft_from_reply(reply, record, self.revision_threshold)
                logger.info(
                    "Classified record %s on attempt %d: %s reply, valid=%s total=%.2f review=%s",
                    record.id,
                    attempt,
                    reply.kind.value,
                    draft.valid,
                    draft.total,
                    draft.needs_review,
                )
                return draft

            kind, detail = failures[-1]
            logger.warning(
                "Classifier attempt %d/%d for record %s failed (%s): %s",
                attempt,
                self.max_retries,
                record.id,
                kind.value,
                detail,
            )
            if attempt < self.max_retries:
                self._sleep(self._next_delay())

        return self._degraded_draft(record, failures)

    def _call(self, payload: Dict[str, str]) -> GatewayReply:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        response = self.session.post(self.endpoint, json=payload, headers=headers, timeout=self.timeout)
        status = response.status_code
        if status >= 500:
            raise GatewayError(f"HTTP {status}")
        if status >= 400:
            raise GatewayRejectedError(f"HTTP {status}")
        return parse_reply(response.json())

    def _next_delay(self) -> float:
        if self.retry_jitter > 0:
            return self.retry_delay + random.uniform(0, self.retry_jitter)
        return self.retry_delay

    def _degraded_draft(self, record: IntakeRecord, failures: List[Tuple[FailureKind, str]]) -> QuotationDraft:
        attempts = len(failures)
        kind, detail = failures[-1]
        if kind is FailureKind.TIMEOUT:
            notes = (
                f"The pricing service did not answer within {self.timeout:g}s "
                f"({attempts} attempt(s)). Automatic pricing is delayed: price this "
                "request manually or expect a delayed answer once the service recovers."
            )
        else:
            notes = (
                f"The pricing service failed after {attempts} attempt(s) ({detail}). "
                "No automatic price is coming for this request; it must be priced manually."
            )
        logger.error("Giving up on classifier for record %s: %s", record.id, kind.value)
        return QuotationDraft(
            valid=False,
            client_name=record.requester_name,
            client_email=record.requester_email,
            line_items=(LineItem(PLACEHOLDER_DESCRIPTION, quantity=1, unit_price=0.0),),
            total=0.0,
            needs_review=True,
            notes=notes,
        )
