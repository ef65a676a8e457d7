"""Concurrent retrieval of a source's entity collections."""
from __future__ import annotations

import logging
from typing import Callable, Sequence

from bizdash.application.concurrency import run_all
from bizdash.domain.dataset import ALL_KINDS, Dataset, EntityKind
from bizdash.domain.errors import FetchError, SourceError
from bizdash.domain.models import AuthenticatedHandle
from bizdash.domain.repositories import SourceClient

logger = logging.getLogger(__name__)

FETCH_METHODS: dict[EntityKind, str] = {
    EntityKind.INVOICES: "fetch_invoices",
    EntityKind.INVOICE_ITEMS: "fetch_invoice_items",
    EntityKind.PURCHASES: "fetch_purchases",
    EntityKind.RECEIVABLES: "fetch_receivables",
    EntityKind.PAYABLES: "fetch_payables",
    EntityKind.PRODUCTS: "fetch_products",
    EntityKind.CUSTOMERS: "fetch_customers",
    EntityKind.SELLERS: "fetch_sellers",
}


class EntityFetcher:
    """Issues one fetch per entity kind for a handle, all at once, all-or-nothing."""

    def __init__(self, client: SourceClient, max_workers: int | None = None) -> None:
        self._client = client
        self._max_workers = max_workers

    def fetch(self, handle: AuthenticatedHandle, kinds: Sequence[EntityKind] = ALL_KINDS) -> Dataset:
        alias = handle.source.alias
        tasks = [self._task(handle, kind) for kind in kinds]
        collections = run_all(tasks, max_workers=self._max_workers or len(tasks))
        dataset = Dataset.from_collections(dict(zip(kinds, collections)))
        logger.info("Fetched %d records from %s", dataset.record_count(), alias)
        return dataset

    def _task(self, handle: AuthenticatedHandle, kind: EntityKind) -> Callable[[], tuple]:
        method = getattr(self._client, FETCH_METHODS[kind])
        alias = handle.source.alias

        def call() -> tuple:
            logger.debug("Fetching %s from %s", kind.value, alias)
            try:
                records = method(handle)
            except SourceError:
                raise
            except Exception as exc:
                raise FetchError(alias, kind.value, str(exc), cause=exc) from exc
            return tuple(records)

        return call
