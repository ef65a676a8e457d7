"""Excel-backed source client for offline exports of a business-data source."""
from __future__ import annotations

import logging
import threading
from io import BytesIO
from pathlib import Path
from typing import Sequence

import pandas as pd

from bizdash.domain.dataset import EntityKind
from bizdash.domain.errors import AuthError, FetchError
from bizdash.domain.models import (
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
from bizdash.domain.repositories import SourceClient
from bizdash.infrastructure.parsing.payloads import records_from_rows
from bizdash.infrastructure.parsing.utils import ensure_bytes

logger = logging.getLogger(__name__)


def _engine_for(path: Path) -> str:
    return "xlrd" if path.suffix.lower() == ".xls" else "openpyxl"


def _pick_sheet(sheets: Sequence[str], preferred: str) -> str | None:
    if preferred in sheets:
        return preferred
    lower_map = {name.strip().lower(): name for name in sheets}
    return lower_map.get(preferred.lower())


def read_workbook(source: BytesIO | Path | bytes, engine: str = "openpyxl") -> dict[EntityKind, list]:
    """Read one sheet per entity kind; sheets are named after the endpoints."""
    raw_bytes = ensure_bytes(source)
    xls = pd.ExcelFile(BytesIO(raw_bytes), engine=engine)
    collections: dict[EntityKind, list] = {}
    for kind in EntityKind:
        sheet = _pick_sheet(xls.sheet_names, kind.value)
        if sheet is None:
            collections[kind] = []
            continue
        frame = xls.parse(sheet_name=sheet, dtype=object)
        frame = frame.astype(object).where(pd.notna(frame), None)
        collections[kind] = records_from_rows(kind, frame.to_dict(orient="records"))
    return collections


class WorkbookSourceClient(SourceClient):
    """Serves a source's collections from a workbook on disk.

    The workbook is read once per login; the handle token is the file path.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._loaded: dict[str, dict[EntityKind, list]] = {}

    def authenticate(self, source: Source) -> AuthenticatedHandle:
        if not source.workbook:
            raise AuthError(source.alias, "source has no workbook configured")
        path = Path(source.workbook)
        if not path.is_file():
            raise AuthError(source.alias, f"workbook {path} not found")
        try:
            collections = read_workbook(path, engine=_engine_for(path))
        except (ValueError, OSError) as exc:
            raise AuthError(source.alias, f"workbook {path} unreadable: {exc}", cause=exc) from exc
        with self._lock:
            self._loaded[str(path)] = collections
        logger.info("Loaded workbook %s for %s", path.name, source.alias)
        return AuthenticatedHandle(source=source, token=str(path))

    def _collection(self, handle: AuthenticatedHandle, kind: EntityKind) -> list:
        with self._lock:
            collections = self._loaded.get(handle.token)
        if collections is None:
            raise FetchError(handle.source.alias, kind.value, "workbook not loaded for this handle")
        return list(collections[kind])

    def fetch_invoices(self, handle: AuthenticatedHandle) -> Sequence[Invoice]:
        return self._collection(handle, EntityKind.INVOICES)

    def fetch_invoice_items(self, handle: AuthenticatedHandle) -> Sequence[InvoiceItem]:
        return self._collection(handle, EntityKind.INVOICE_ITEMS)

    def fetch_purchases(self, handle: AuthenticatedHandle) -> Sequence[Purchase]:
        return self._collection(handle, EntityKind.PURCHASES)

    def fetch_receivables(self, handle: AuthenticatedHandle) -> Sequence[Receivable]:
        return self._collection(handle, EntityKind.RECEIVABLES)

    def fetch_payables(self, handle: AuthenticatedHandle) -> Sequence[Payable]:
        return self._collection(handle, EntityKind.PAYABLES)

    def fetch_products(self, handle: AuthenticatedHandle) -> Sequence[Product]:
        return self._collection(handle, EntityKind.PRODUCTS)

    def fetch_customers(self, handle: AuthenticatedHandle) -> Sequence[Customer]:
        return self._collection(handle, EntityKind.CUSTOMERS)

    def fetch_sellers(self, handle: AuthenticatedHandle) -> Sequence[Seller]:
        return self._collection(handle, EntityKind.SELLERS)


class SourceClientRouter(SourceClient):
    """Sends workbook sources to the workbook client and the rest to the API client."""

    def __init__(self, api_client: SourceClient, workbook_client: SourceClient | None = None) -> None:
        self._api = api_client
        self._workbook = workbook_client or WorkbookSourceClient()

    def _for(self, source: Source) -> SourceClient:
        return self._workbook if source.workbook else self._api

    def authenticate(self, source: Source) -> AuthenticatedHandle:
        return self._for(source).authenticate(source)

    def fetch_invoices(self, handle: AuthenticatedHandle) -> Sequence[Invoice]:
        return self._for(handle.source).fetch_invoices(handle)

    def fetch_invoice_items(self, handle: AuthenticatedHandle) -> Sequence[InvoiceItem]:
        return self._for(handle.source).fetch_invoice_items(handle)

    def fetch_purchases(self, handle: AuthenticatedHandle) -> Sequence[Purchase]:
        return self._for(handle.source).fetch_purchases(handle)

    def fetch_receivables(self, handle: AuthenticatedHandle) -> Sequence[Receivable]:
        return self._for(handle.source).fetch_receivables(handle)

    def fetch_payables(self, handle: AuthenticatedHandle) -> Sequence[Payable]:
        return self._for(handle.source).fetch_payables(handle)

    def fetch_products(self, handle: AuthenticatedHandle) -> Sequence[Product]:
        return self._for(handle.source).fetch_products(handle)

    def fetch_customers(self, handle: AuthenticatedHandle) -> Sequence[Customer]:
        return self._for(handle.source).fetch_customers(handle)

    def fetch_sellers(self, handle: AuthenticatedHandle) -> Sequence[Seller]:
        return self._for(handle.source).fetch_sellers(handle)
