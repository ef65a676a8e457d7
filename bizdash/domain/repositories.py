"""Repository and gateway interfaces anchoring the domain layer."""
from __future__ import annotations

from typing import Protocol, Sequence

from .models import (
    AuthenticatedHandle,
    Customer,
    Invoice,
    InvoiceItem,
    Payable,
    Product,
    Purchase,
    Receivable,
    Seller,
    Source,
)


class SourceClient(Protocol):
    """Logs into a source and retrieves its entity collections.

    Fetch methods must be safe to call concurrently on the same handle.
    """

    def authenticate(self, source: Source) -> AuthenticatedHandle:
        ...

    def fetch_invoices(self, handle: AuthenticatedHandle) -> Sequence[Invoice]:
        ...

    def fetch_invoice_items(self, handle: AuthenticatedHandle) -> Sequence[InvoiceItem]:
        ...

    def fetch_purchases(self, handle: AuthenticatedHandle) -> Sequence[Purchase]:
        ...

    def fetch_receivables(self, handle: AuthenticatedHandle) -> Sequence[Receivable]:
        ...

    def fetch_payables(self, handle: AuthenticatedHandle) -> Sequence[Payable]:
        ...

    def fetch_products(self, handle: AuthenticatedHandle) -> Sequence[Product]:
        ...

    def fetch_customers(self, handle: AuthenticatedHandle) -> Sequence[Customer]:
        ...

    def fetch_sellers(self, handle: AuthenticatedHandle) -> Sequence[Seller]:
        ...


class SourceRepository(Protocol):
    """Provides the configured sources."""

    def list_sources(self) -> Sequence[Source]:
        ...

    def get_source(self, source_id: int) -> Source | None:
        ...


class HandleCache(Protocol):
    """Keeps authenticated handles between requests, per source and user."""

    def get(self, source_id: int, user_id: int) -> AuthenticatedHandle | None:
        ...

    def put(self, source_id: int, user_id: int, handle: AuthenticatedHandle) -> None:
        ...

    def invalidate(self, source_id: int, user_id: int) -> None:
        ...
