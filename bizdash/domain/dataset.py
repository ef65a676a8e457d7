"""Consolidated record collections and the merge rules between them."""
from __future__ import annotations

import threading
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Iterable

from .models import (
    Customer,
    Invoice,
    InvoiceItem,
    Payable,
    Product,
    Purchase,
    Receivable,
    Seller,
)


class EntityKind(str, Enum):
    """Entity collections a source exposes; values are the upstream endpoint names."""

    INVOICES = "invoices"
    INVOICE_ITEMS = "invoiceitems"
    PURCHASES = "purchases"
    RECEIVABLES = "accreceivables"
    PAYABLES = "accpayables"
    PRODUCTS = "products"
    CUSTOMERS = "customers"
    SELLERS = "sellers"

    @property
    def field_name(self) -> str:
        return _FIELD_NAMES[self]

    @property
    def record_type(self) -> type:
        return _RECORD_TYPES[self]


_FIELD_NAMES = {
    EntityKind.INVOICES: "invoices",
    EntityKind.INVOICE_ITEMS: "invoice_items",
    EntityKind.PURCHASES: "purchases",
    EntityKind.RECEIVABLES: "receivables",
    EntityKind.PAYABLES: "payables",
    EntityKind.PRODUCTS: "products",
    EntityKind.CUSTOMERS: "customers",
    EntityKind.SELLERS: "sellers",
}

_RECORD_TYPES = {
    EntityKind.INVOICES: Invoice,
    EntityKind.INVOICE_ITEMS: InvoiceItem,
    EntityKind.PURCHASES: Purchase,
    EntityKind.RECEIVABLES: Receivable,
    EntityKind.PAYABLES: Payable,
    EntityKind.PRODUCTS: Product,
    EntityKind.CUSTOMERS: Customer,
    EntityKind.SELLERS: Seller,
}

ALL_KINDS: tuple[EntityKind, ...] = tuple(EntityKind)


@dataclass(frozen=True)
class Dataset:
    """All entity records gathered for one request, from one or more sources."""

    invoices: tuple[Invoice, ...] = ()
    invoice_items: tuple[InvoiceItem, ...] = ()
    purchases: tuple[Purchase, ...] = ()
    receivables: tuple[Receivable, ...] = ()
    payables: tuple[Payable, ...] = ()
    products: tuple[Product, ...] = ()
    customers: tuple[Customer, ...] = ()
    sellers: tuple[Seller, ...] = ()

    @classmethod
    def empty(cls) -> "Dataset":
        return cls()

    @classmethod
    def from_collections(cls, collections: dict[EntityKind, Iterable[object]]) -> "Dataset":
        return cls(**{kind.field_name: tuple(records) for kind, records in collections.items()})

    def records(self, kind: EntityKind) -> tuple:
        return getattr(self, kind.field_name)

    def counts(self) -> dict[EntityKind, int]:
        return {kind: len(self.records(kind)) for kind in EntityKind}

    def record_count(self) -> int:
        return sum(self.counts().values())


def merge(dest: Dataset, src: Dataset) -> Dataset:
    """Append every sequence of ``src`` onto the matching sequence of ``dest``."""
    return replace(
        dest,
        **{f.name: getattr(dest, f.name) + getattr(src, f.name) for f in fields(Dataset)},
    )


def merge_all(datasets: Iterable[Dataset]) -> Dataset:
    merged = Dataset.empty()
    for dataset in datasets:
        merged = merge(merged, dataset)
    return merged


class DatasetAccumulator:
    """Shared consolidation target; every merge happens under one lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._dataset = Dataset.empty()

    def add(self, dataset: Dataset) -> None:
        with self._lock:
            self._dataset = merge(self._dataset, dataset)

    def snapshot(self) -> Dataset:
        with self._lock:
            return self._dataset
