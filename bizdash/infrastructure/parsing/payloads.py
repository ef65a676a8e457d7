"""Conversion of upstream JSON objects (or sheet rows) into entity records."""
from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping

from bizdash.domain.dataset import EntityKind
from bizdash.infrastructure.parsing.utils import format_timestamp, parse_int, parse_number, parse_text

Coercer = Callable[[object], Any]

# record field -> (payload key, coercer); payload keys are the upstream lower-case names.
FIELD_MAPS: dict[EntityKind, dict[str, tuple[str, Coercer]]] = {
    EntityKind.INVOICES: {
        "document_number": ("numerod", parse_text),
        "issued_at": ("fechae", format_timestamp),
        "due_at": ("fechav", format_timestamp),
        "customer_code": ("codclie", parse_text),
        "seller_code": ("codvend", parse_text),
        "total": ("mtototal", parse_number),
        "credit_amount": ("credito", parse_number),
        "cash_amount": ("contado", parse_number),
        "cost_of_goods": ("costoprd", parse_number),
        "tax_amount": ("mtotax", parse_number),
        "vat_withheld": ("reteniva", parse_number),
    },
    EntityKind.INVOICE_ITEMS: {
        "document_number": ("numerod", parse_text),
        "item_code": ("coditem", parse_text),
        "issued_at": ("fechae", format_timestamp),
        "description": ("descrip1", parse_text),
        "quantity": ("cantidad", parse_number),
        "unit_price": ("precio", parse_number),
        "unit_cost": ("costo", parse_number),
        "line_total": ("totalitem", parse_number),
    },
    EntityKind.PURCHASES: {
        "document_number": ("numerod", parse_text),
        "issued_at": ("fechae", format_timestamp),
        "supplier_code": ("codprov", parse_text),
        "total": ("mtototal", parse_number),
        "credit_amount": ("credito", parse_number),
        "cash_amount": ("contado", parse_number),
        "tax_amount": ("mtotax", parse_number),
        "vat_withheld": ("reteniva", parse_number),
    },
    EntityKind.RECEIVABLES: {
        "document_number": ("numerod", parse_text),
        "customer_code": ("codclie", parse_text),
        "issued_at": ("fechae", format_timestamp),
        "due_at": ("fechav", format_timestamp),
        "amount": ("monto", parse_number),
        "balance": ("saldo", parse_number),
    },
    EntityKind.PAYABLES: {
        "document_number": ("numerod", parse_text),
        "supplier_code": ("codprov", parse_text),
        "issued_at": ("fechae", format_timestamp),
        "due_at": ("fechav", format_timestamp),
        "amount": ("monto", parse_number),
        "balance": ("saldo", parse_number),
    },
    EntityKind.PRODUCTS: {
        "code": ("codprod", parse_text),
        "description": ("descrip", parse_text),
        "active": ("activo", parse_int),
        "current_cost": ("costact", parse_number),
        "price": ("precio1", parse_number),
    },
    EntityKind.CUSTOMERS: {
        "code": ("codclie", parse_text),
        "description": ("descrip", parse_text),
        "active": ("activo", parse_int),
        "balance": ("saldo", parse_number),
        "seller_code": ("codvend", parse_text),
        "credit_limit": ("limitecred", parse_number),
        "email": ("email", parse_text),
        "phone": ("telef", parse_text),
    },
    EntityKind.SELLERS: {
        "code": ("codvend", parse_text),
        "description": ("descrip", parse_text),
        "active": ("activo", parse_int),
        "email": ("email", parse_text),
        "phone": ("telef", parse_text),
    },
}


def record_from_payload(kind: EntityKind, payload: Mapping[str, object]):
    lowered = {str(key).strip().lower(): value for key, value in payload.items()}
    values = {
        field_name: coerce(lowered.get(key))
        for field_name, (key, coerce) in FIELD_MAPS[kind].items()
    }
    return kind.record_type(**values)


def records_from_payload(kind: EntityKind, payload: object) -> list:
    """Convert a decoded JSON array; anything other than a list of objects is rejected."""
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ValueError(f"expected a JSON array for {kind.value}, got {type(payload).__name__}")
    records = []
    for index, row in enumerate(payload):
        if not isinstance(row, Mapping):
            raise ValueError(f"{kind.value}[{index}] is not an object")
        records.append(record_from_payload(kind, row))
    return records


def records_from_rows(kind: EntityKind, rows: Iterable[Mapping[str, object]]) -> list:
    return [record_from_payload(kind, row) for row in rows]
