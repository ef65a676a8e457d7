"""httpx-backed client for the remote business-data API."""
from __future__ import annotations

import logging
from typing import Sequence

import httpx

from bizdash.config import SETTINGS, Settings
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
from bizdash.infrastructure.parsing.payloads import records_from_payload

logger = logging.getLogger(__name__)

LOGIN_PATH = "/v1/main/login"
COLLECTION_PATH = "/v1/adm/{endpoint}"
TOKEN_HEADER = "Pragma"


class HttpSourceClient(SourceClient):
    """Logs in with HTTP Basic credentials and reads collections with the session token.

    One instance serves every source; the underlying ``httpx.Client`` is
    thread-safe, so fetches for a handle may run concurrently.
    """

    def __init__(self, settings: Settings = SETTINGS, transport: httpx.BaseTransport | None = None) -> None:
        self._settings = settings
        self._http = httpx.Client(timeout=settings.http_timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "HttpSourceClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @staticmethod
    def _url(source: Source, path: str) -> str:
        return source.base_url.rstrip("/") + path

    def authenticate(self, source: Source) -> AuthenticatedHandle:
        headers = {"x-api-key": self._settings.api_key, "x-api-id": self._settings.api_id}
        try:
            response = self._http.post(
                self._url(source, LOGIN_PATH),
                json={"terminal": self._settings.terminal},
                auth=(source.username, source.password),
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise AuthError(source.alias, f"login request failed: {exc}", cause=exc) from exc

        if response.status_code != httpx.codes.OK:
            raise AuthError(source.alias, f"login rejected with status {response.status_code}")
        token = response.headers.get(TOKEN_HEADER)
        if not token:
            raise AuthError(source.alias, f"login response carried no {TOKEN_HEADER} token")
        logger.info("Logged in to %s", source.alias)
        return AuthenticatedHandle(source=source, token=token)

    def _collection(self, handle: AuthenticatedHandle, kind: EntityKind) -> list:
        alias = handle.source.alias
        url = self._url(handle.source, COLLECTION_PATH.format(endpoint=kind.value))
        try:
            response = self._http.get(url, headers={TOKEN_HEADER: handle.token})
        except httpx.HTTPError as exc:
            raise FetchError(alias, kind.value, str(exc), cause=exc) from exc

        if response.status_code in (httpx.codes.UNAUTHORIZED, httpx.codes.FORBIDDEN):
            raise AuthError(alias, f"session rejected while fetching {kind.value}")
        if response.status_code != httpx.codes.OK:
            raise FetchError(alias, kind.value, f"status {response.status_code}, body: {response.text[:200]}")
        try:
            records = records_from_payload(kind, response.json())
        except ValueError as exc:
            raise FetchError(alias, kind.value, f"malformed payload: {exc}", cause=exc) from exc
        logger.debug("%s returned %d %s", alias, len(records), kind.value)
        return records

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
