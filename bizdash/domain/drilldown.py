"""Transaction lists and document/entity lookups behind the dashboard drilldown."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence, Union

from .dataset import Dataset, EntityKind
from .errors import RecordNotFound, UnsupportedDocumentType
from .models import Customer, Invoice, InvoiceItem, Payable, Product, Receivable, Seller, parse_timestamp

INVOICES_CREDIT = "invoices-credit"
INVOICES_CASH = "invoices-cash"
RECEIVABLES = "receivables"
PAYABLES = "payables"

DOCUMENT_TYPES = (INVOICES_CREDIT, INVOICES_CASH, RECEIVABLES, PAYABLES)

# Collections each document type needs from a source.
REQUIRED_KINDS: dict[str, tuple[EntityKind, ...]] = {
    INVOICES_CREDIT: (EntityKind.INVOICES, EntityKind.RECEIVABLES),
    INVOICES_CASH: (EntityKind.INVOICES, EntityKind.RECEIVABLES),
    RECEIVABLES: (EntityKind.RECEIVABLES,),
    PAYABLES: (EntityKind.PAYABLES,),
}

DETAIL_KINDS = (EntityKind.INVOICES, EntityKind.INVOICE_ITEMS, EntityKind.CUSTOMERS, EntityKind.SELLERS)

ENTITY_KINDS: dict[str, EntityKind] = {
    "customer": EntityKind.CUSTOMERS,
    "seller": EntityKind.SELLERS,
    "product": EntityKind.PRODUCTS,
}


@dataclass(frozen=True)
class InvoiceTransactions:
    doc_type: str
    records: tuple[Invoice, ...] = ()


@dataclass(frozen=True)
class ReceivableTransactions:
    records: tuple[Receivable, ...] = ()
    doc_type: str = RECEIVABLES


@dataclass(frozen=True)
class PayableTransactions:
    records: tuple[Payable, ...] = ()
    doc_type: str = PAYABLES


TransactionList = Union[InvoiceTransactions, ReceivableTransactions, PayableTransactions]


@dataclass(frozen=True)
class TransactionDetail:
    document: Invoice
    items: Sequence[InvoiceItem] = field(default_factory=tuple)
    customer: Customer | None = None
    seller: Seller | None = None


def normalize_doc_type(doc_type: str) -> str:
    normalized = (doc_type or "").strip().lower()
    if normalized not in DOCUMENT_TYPES:
        raise UnsupportedDocumentType(doc_type)
    return normalized


def empty_transactions(doc_type: str) -> TransactionList:
    normalized = normalize_doc_type(doc_type)
    if normalized == RECEIVABLES:
        return ReceivableTransactions()
    if normalized == PAYABLES:
        return PayableTransactions()
    return InvoiceTransactions(doc_type=normalized)


def concat_transactions(left: TransactionList, right: TransactionList) -> TransactionList:
    """Append two lists of the same variant."""
    if type(left) is not type(right) or left.doc_type != right.doc_type:
        raise TypeError(f"cannot concatenate {left.doc_type} with {right.doc_type}")
    return type(left)(doc_type=left.doc_type, records=left.records + right.records)


def _within(text: str | None, start: datetime, end: datetime) -> bool:
    moment = parse_timestamp(text)
    return moment is not None and start <= moment <= end


def list_transactions(dataset: Dataset, doc_type: str, start: datetime, end: datetime) -> TransactionList:
    normalized = normalize_doc_type(doc_type)

    if normalized == RECEIVABLES:
        return ReceivableTransactions(
            records=tuple(r for r in dataset.receivables if _within(r.issued_at, start, end))
        )
    if normalized == PAYABLES:
        return PayableTransactions(
            records=tuple(p for p in dataset.payables if _within(p.issued_at, start, end))
        )

    # An invoice is on credit while a receivable for it still carries a balance.
    outstanding = {
        r.document_number
        for r in dataset.receivables
        if r.document_number is not None and r.balance is not None and r.balance > 0
    }
    want_credit = normalized == INVOICES_CREDIT
    selected = tuple(
        inv
        for inv in dataset.invoices
        if _within(inv.issued_at, start, end) and (inv.document_number in outstanding) == want_credit
    )
    return InvoiceTransactions(doc_type=normalized, records=selected)


def transaction_detail(dataset: Dataset, doc_type: str, document_number: str) -> TransactionDetail:
    if (doc_type or "").strip().lower() != "invoice":
        raise UnsupportedDocumentType(doc_type)

    document = next((inv for inv in dataset.invoices if inv.document_number == document_number), None)
    if document is None:
        raise RecordNotFound("invoice", document_number)

    items = tuple(item for item in dataset.invoice_items if item.document_number == document_number)
    customer = None
    if document.customer_code is not None:
        customer = next((c for c in dataset.customers if c.code == document.customer_code), None)
    seller = None
    if document.seller_code is not None:
        seller = next((s for s in dataset.sellers if s.code == document.seller_code), None)
    return TransactionDetail(document=document, items=items, customer=customer, seller=seller)


def entity_kind(entity_type: str) -> EntityKind:
    kind = ENTITY_KINDS.get((entity_type or "").strip().lower())
    if kind is None:
        raise UnsupportedDocumentType(entity_type)
    return kind


def entity_detail(dataset: Dataset, entity_type: str, code: str) -> Customer | Seller | Product:
    kind = entity_kind(entity_type)
    for record in dataset.records(kind):
        if record.code == code:
            return record
    raise RecordNotFound(entity_type.strip().lower(), code)
