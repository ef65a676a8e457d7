"""Domain models for the business analytics engine.

Entity records mirror the collections exposed by each business-data source.
Every business field is optional: a missing value stays ``None`` and is never
replaced by zero at this layer.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from bizdash.config import TIMESTAMP_FORMAT

_DATE_ONLY_FORMAT = "%Y-%m-%d"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an upstream ``YYYY-MM-DD HH:MM:SS`` timestamp, ``None`` when unusable."""
    if not value:
        return None
    text = value.strip()
    for fmt in (TIMESTAMP_FORMAT, _DATE_ONLY_FORMAT):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


@dataclass(frozen=True)
class Source:
    """A configured business-data connection."""

    id: int
    alias: str
    base_url: str = ""
    username: str = ""
    password: str = field(default="", repr=False)
    refresh_seconds: int = 0
    workbook: str | None = None


@dataclass(frozen=True)
class AuthenticatedHandle:
    """Opaque session token bound to one source for the length of a request."""

    source: Source
    token: str = field(repr=False)
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class Invoice:
    document_number: str | None = None
    issued_at: str | None = None
    due_at: str | None = None
    customer_code: str | None = None
    seller_code: str | None = None
    total: float | None = None
    credit_amount: float | None = None
    cash_amount: float | None = None
    cost_of_goods: float | None = None
    tax_amount: float | None = None
    vat_withheld: float | None = None


@dataclass(frozen=True)
class InvoiceItem:
    document_number: str | None = None
    item_code: str | None = None
    issued_at: str | None = None
    description: str | None = None
    quantity: float | None = None
    unit_price: float | None = None
    unit_cost: float | None = None
    line_total: float | None = None


@dataclass(frozen=True)
class Purchase:
    document_number: str | None = None
    issued_at: str | None = None
    supplier_code: str | None = None
    total: float | None = None
    credit_amount: float | None = None
    cash_amount: float | None = None
    tax_amount: float | None = None
    vat_withheld: float | None = None


@dataclass(frozen=True)
class Receivable:
    document_number: str | None = None
    customer_code: str | None = None
    issued_at: str | None = None
    due_at: str | None = None
    amount: float | None = None
    balance: float | None = None


@dataclass(frozen=True)
class Payable:
    document_number: str | None = None
    supplier_code: str | None = None
    issued_at: str | None = None
    due_at: str | None = None
    amount: float | None = None
    balance: float | None = None


@dataclass(frozen=True)
class Product:
    code: str | None = None
    description: str | None = None
    active: int | None = None
    current_cost: float | None = None
    price: float | None = None


@dataclass(frozen=True)
class Customer:
    code: str | None = None
    description: str | None = None
    active: int | None = None
    balance: float | None = None
    seller_code: str | None = None
    credit_limit: float | None = None
    email: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class Seller:
    code: str | None = None
    description: str | None = None
    active: int | None = None
    email: str | None = None
    phone: str | None = None
