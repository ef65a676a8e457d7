"""Application services orchestrating source fetches and the analytics."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import Sequence

from bizdash.application.concurrency import run_all
from bizdash.application.dto import ReportingWindow, SourceSelection
from bizdash.application.fetching import EntityFetcher
from bizdash.config import SETTINGS, Settings
from bizdash.domain.basket import MarketBasketAnalyzer
from bizdash.domain.dataset import ALL_KINDS, Dataset, DatasetAccumulator, EntityKind
from bizdash.domain.drilldown import (
    DETAIL_KINDS,
    REQUIRED_KINDS,
    TransactionDetail,
    TransactionList,
    concat_transactions,
    empty_transactions,
    entity_detail,
    entity_kind,
    list_transactions,
    normalize_doc_type,
    transaction_detail,
)
from bizdash.domain.errors import AggregateError, AuthError, RecordNotFound, SourceError
from bizdash.domain.forecasting import SalesForecaster
from bizdash.domain.models import AuthenticatedHandle, Customer, Product, Seller, Source
from bizdash.domain.repositories import HandleCache, SourceClient, SourceRepository
from bizdash.domain.results import ComparativeSummary, MarketBasketResult, SalesForecast
from bizdash.domain.services import PeriodCalculator, build_comparative_summary

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AnalyticsContext:
    client: SourceClient
    source_repository: SourceRepository
    handle_cache: HandleCache | None = None
    settings: Settings = field(default_factory=lambda: SETTINGS)


class SourceDataLoader:
    """Authenticates against sources and gathers their datasets."""

    def __init__(self, context: AnalyticsContext) -> None:
        self._context = context
        self._fetcher = EntityFetcher(context.client, max_workers=context.settings.max_workers)

    def resolve(self, source_id: int) -> Source:
        source = self._context.source_repository.get_source(source_id)
        if source is None:
            raise RecordNotFound("source", str(source_id))
        return source

    def authenticate(self, source: Source, user_id: int | None = None) -> AuthenticatedHandle:
        cache = self._context.handle_cache
        if cache is not None and user_id is not None:
            cached = cache.get(source.id, user_id)
            if cached is not None:
                return cached
        try:
            handle = self._context.client.authenticate(source)
        except SourceError:
            raise
        except Exception as exc:
            raise AuthError(source.alias, str(exc), cause=exc) from exc
        if cache is not None and user_id is not None:
            cache.put(source.id, user_id, handle)
        logger.debug("Authenticated against %s", source.alias)
        return handle

    def load(
        self,
        source: Source,
        kinds: Sequence[EntityKind] = ALL_KINDS,
        user_id: int | None = None,
    ) -> Dataset:
        handle = self.authenticate(source, user_id)
        try:
            return self._fetcher.fetch(handle, kinds)
        except AuthError:
            # The cached session was rejected downstream; force a fresh login next time.
            if self._context.handle_cache is not None and user_id is not None:
                self._context.handle_cache.invalidate(source.id, user_id)
            raise

    def load_all(self, kinds: Sequence[EntityKind] = ALL_KINDS, user_id: int | None = None) -> Dataset:
        sources = list(self._context.source_repository.list_sources())
        accumulator = DatasetAccumulator()
        tasks = [partial(self._load_into, accumulator, source, kinds, user_id) for source in sources]
        run_all(tasks, max_workers=self._context.settings.max_workers)
        dataset = accumulator.snapshot()
        logger.info("Consolidated %d records from %d sources", dataset.record_count(), len(sources))
        return dataset

    def load_selection(self, selection: SourceSelection, kinds: Sequence[EntityKind] = ALL_KINDS) -> Dataset:
        if selection.consolidated:
            return self.load_all(kinds, selection.user_id)
        return self.load(self.resolve(selection.source_id), kinds, selection.user_id)

    def run_per_source(self, task) -> list:
        """Apply ``task(source)`` to every configured source concurrently."""
        sources = list(self._context.source_repository.list_sources())
        return run_all(
            [partial(self._guarded, task, source) for source in sources],
            max_workers=self._context.settings.max_workers,
        )

    def _load_into(
        self,
        accumulator: DatasetAccumulator,
        source: Source,
        kinds: Sequence[EntityKind],
        user_id: int | None,
    ) -> None:
        dataset = self._guarded(lambda src: self.load(src, kinds, user_id), source)
        accumulator.add(dataset)

    @staticmethod
    def _guarded(task, source: Source):
        try:
            return task(source)
        except SourceError as exc:
            logger.warning("Source %s failed: %s", source.alias, exc)
            raise
        except Exception as exc:
            logger.warning("Source %s failed unexpectedly: %s", source.alias, exc)
            raise AggregateError(source.alias, exc) from exc


class ComparativeSummaryUseCase:
    def __init__(self, context: AnalyticsContext) -> None:
        self._loader = SourceDataLoader(context)
        self._calculator = PeriodCalculator(top_n=context.settings.top_n)

    def execute(
        self,
        window: ReportingWindow,
        selection: SourceSelection = SourceSelection(),
        now: datetime | None = None,
    ) -> ComparativeSummary:
        dataset = self._loader.load_selection(selection)
        previous = window.previous()
        moment = now or datetime.now()
        current_summary, previous_summary = run_all(
            [
                partial(self._calculator.calculate, dataset, window.start, window.end, moment),
                partial(self._calculator.calculate, dataset, previous.start, previous.end, moment),
            ],
            max_workers=2,
        )
        logger.info(
            "Comparative summary for %s..%s over %d records",
            window.start.date(),
            window.end.date(),
            dataset.record_count(),
        )
        return build_comparative_summary(current_summary, previous_summary)


class SalesForecastUseCase:
    def __init__(self, context: AnalyticsContext) -> None:
        self._loader = SourceDataLoader(context)
        self._forecaster = SalesForecaster()

    def execute(self, window: ReportingWindow, selection: SourceSelection = SourceSelection()) -> SalesForecast:
        dataset = self._loader.load_selection(selection, kinds=(EntityKind.INVOICES,))
        return self._forecaster.forecast(dataset.invoices, window.start, window.end)


class MarketBasketUseCase:
    def __init__(self, context: AnalyticsContext) -> None:
        settings = context.settings
        self._loader = SourceDataLoader(context)
        self._analyzer = MarketBasketAnalyzer(
            min_confidence=settings.basket_min_confidence,
            min_support=settings.basket_min_support,
            max_results=settings.basket_max_results,
        )

    def execute(
        self,
        window: ReportingWindow | None = None,
        selection: SourceSelection = SourceSelection(),
    ) -> list[MarketBasketResult]:
        dataset = self._loader.load_selection(
            selection, kinds=(EntityKind.INVOICE_ITEMS, EntityKind.PRODUCTS)
        )
        start = window.start if window is not None else None
        end = window.end if window is not None else None
        return self._analyzer.analyze(dataset.invoice_items, dataset.products, start, end)


class DrilldownUseCase:
    def __init__(self, context: AnalyticsContext) -> None:
        self._loader = SourceDataLoader(context)

    def transactions(
        self,
        doc_type: str,
        window: ReportingWindow,
        selection: SourceSelection = SourceSelection(),
    ) -> TransactionList:
        normalized = normalize_doc_type(doc_type)
        kinds = REQUIRED_KINDS[normalized]
        if not selection.consolidated:
            dataset = self._loader.load(self._loader.resolve(selection.source_id), kinds, selection.user_id)
            return list_transactions(dataset, normalized, window.start, window.end)

        # Credit/cash classification needs each source's own receivables.
        def per_source(source: Source) -> TransactionList:
            dataset = self._loader.load(source, kinds, selection.user_id)
            return list_transactions(dataset, normalized, window.start, window.end)

        combined = empty_transactions(normalized)
        for result in self._loader.run_per_source(per_source):
            combined = concat_transactions(combined, result)
        return combined

    def transaction_detail(
        self,
        doc_type: str,
        document_number: str,
        selection: SourceSelection = SourceSelection(),
    ) -> TransactionDetail:
        dataset = self._loader.load_selection(selection, kinds=DETAIL_KINDS)
        return transaction_detail(dataset, doc_type, document_number)

    def entity_detail(
        self,
        entity_type: str,
        code: str,
        selection: SourceSelection = SourceSelection(),
    ) -> Customer | Seller | Product:
        kind = entity_kind(entity_type)
        dataset = self._loader.load_selection(selection, kinds=(kind,))
        return entity_detail(dataset, entity_type, code)
