# payments/services/myfatoorah.py

"""
======================================================
PATH: payments/services/myfatoorah.py
======================================================
MYFATOORAH GATEWAY CLIENT (status lookup only)

- GET {BASE_URL}/v3/payments/{payment_id} with a Bearer API key.
- Normalizes the response into GatewayPaymentStatus so callers never touch
  raw gateway JSON.
- Every transport / HTTP / decoding failure raises MyFatoorahError
  (MyFatoorahUnavailable for timeouts and unreachable hosts).

The payload is read leniently: v3 nests Invoice / Transaction / Amount
objects, older v2 payloads carry InvoiceStatus + InvoiceTransactions.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://apitest.myfatoorah.com"
DEFAULT_TIMEOUT = 20


class MyFatoorahError(RuntimeError):
    """Gateway request failed or returned something unusable."""


class MyFatoorahUnavailable(MyFatoorahError):
    """Timeout or network failure reaching the gateway."""


@dataclass(frozen=True)
class GatewayPaymentStatus:
    reference: str
    invoice_status: str
    transaction_status: str
    paid_amount: Decimal | None
    paid_currency: str | None
    raw: dict = field(default_factory=dict, repr=False, compare=False)


def _cfg() -> dict:
    payments = getattr(settings, "PAYMENTS", {}) or {}
    cfg = payments.get("MYFATOORAH") or {}
    return cfg if isinstance(cfg, dict) else {}


def _get_api_key() -> str:
    key = (_cfg().get("API_KEY") or "").strip()
    if not key:
        raise MyFatoorahError(
            "MYFATOORAH API_KEY is not configured. "
            "Expected settings.PAYMENTS['MYFATOORAH']['API_KEY']."
        )
    return key


def _base_url() -> str:
    return (_cfg().get("BASE_URL") or DEFAULT_BASE_URL).strip().rstrip("/")


def _timeout() -> int:
    return int(_cfg().get("TIMEOUT") or DEFAULT_TIMEOUT)


def _safe_preview(text: str, limit: int = 400) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def _decode_json(raw: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw or "")
    except ValueError as exc:
        raise MyFatoorahError(f"MyFatoorah returned non-JSON: {_safe_preview(raw)}") from exc

    if not isinstance(parsed, dict):
        raise MyFatoorahError("MyFatoorah returned a non-object JSON payload")
    return parsed


def _request_json(method: str, url: str) -> dict[str, Any]:
    req = Request(
        url,
        headers={
            "Authorization": f"Bearer {_get_api_key()}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        },
        method=method,
    )

    try:
        with urlopen(req, timeout=_timeout()) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    except HTTPError as e:
        body = e.read().decode("utf-8", errors="replace") if e.fp else ""
        logger.warning(
            "MyFatoorah rejected request",
            extra={"status_code": e.code, "body": _safe_preview(body)},
        )
        raise MyFatoorahError(f"MyFatoorah HTTPError: {e.code} {_safe_preview(body)}") from e
    except URLError as e:
        raise MyFatoorahUnavailable(f"MyFatoorah URLError: {e.reason}") from e
    except OSError as e:
        # socket timeouts and resets raised while reading the body
        raise MyFatoorahUnavailable(f"MyFatoorah request failed: {e}") from e

    return _decode_json(raw)


def _to_decimal(value) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _first_successful(transactions: list) -> dict:
    for tx in transactions:
        status = str(tx.get("TransactionStatus") or "").strip().lower()
        if status in {"success", "succss"}:
            return tx
    return transactions[-1] if transactions else {}


def _parse_status(reference: str, payload: dict) -> GatewayPaymentStatus:
    data = payload.get("Data") or {}

    if isinstance(data.get("Invoice"), dict):
        invoice = data.get("Invoice") or {}
        transaction = data.get("Transaction") or {}
        amount = data.get("Amount") or {}
        return GatewayPaymentStatus(
            reference=reference,
            invoice_status=str(invoice.get("Status") or ""),
            transaction_status=str(transaction.get("Status") or ""),
            paid_amount=_to_decimal(amount.get("ValueInPayCurrency")),
            paid_currency=(amount.get("PayCurrency") or None),
            raw=payload,
        )

    tx = _first_successful(list(data.get("InvoiceTransactions") or []))
    return GatewayPaymentStatus(
        reference=reference,
        invoice_status=str(data.get("InvoiceStatus") or ""),
        transaction_status=str(tx.get("TransactionStatus") or ""),
        paid_amount=_to_decimal(tx.get("PaidCurrencyValue")),
        paid_currency=(tx.get("PaidCurrency") or None),
        raw=payload,
    )


def get_payment_status(payment_id: str) -> GatewayPaymentStatus:
    ref = str(payment_id or "").strip()
    if not ref:
        raise MyFatoorahError("payment_id is required")

    payload = _request_json("GET", f"{_base_url()}/v3/payments/{quote(ref, safe='')}")

    if payload.get("IsSuccess") is False:
        raise MyFatoorahError(payload.get("Message") or "MyFatoorah lookup rejected")

    return _parse_status(ref, payload)
