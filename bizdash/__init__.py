"""Multi-source business KPI and analytics engine."""
from bizdash.application.dto import ReportingWindow, SourceSelection
from bizdash.application.use_cases import (
    AnalyticsContext,
    ComparativeSummaryUseCase,
    DrilldownUseCase,
    MarketBasketUseCase,
    SalesForecastUseCase,
)
from bizdash.domain.dataset import Dataset, merge
from bizdash.domain.services import PeriodCalculator
from bizdash.infrastructure.api.client import HttpSourceClient
from bizdash.infrastructure.storage.source_store import JsonSourceRepository

__all__ = [
    "AnalyticsContext",
    "ComparativeSummaryUseCase",
    "Dataset",
    "DrilldownUseCase",
    "HttpSourceClient",
    "JsonSourceRepository",
    "MarketBasketUseCase",
    "PeriodCalculator",
    "ReportingWindow",
    "SalesForecastUseCase",
    "SourceSelection",
    "merge",
]
