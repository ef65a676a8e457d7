"""Domain-level results produced by the analytics services."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence


@dataclass(frozen=True)
class RankedItem:
    name: str
    value: float


@dataclass(frozen=True)
class PeriodSummary:
    """KPI snapshot for one dataset over one reporting window."""

    window_start: datetime
    window_end: datetime

    total_net_sales: float = 0.0
    total_net_sales_cash: float = 0.0
    total_net_sales_credit: float = 0.0
    cost_of_goods_sold: float = 0.0
    gross_profit: float = 0.0
    gross_profit_margin: float = 0.0
    average_ticket: float = 0.0
    total_invoices: int = 0
    total_active_products: int = 0
    total_active_clients: int = 0

    total_receivables: float = 0.0
    overdue_receivables: float = 0.0
    receivables_turnover_days: float = 0.0
    receivable_overdue_percentage: float = 0.0
    active_clients_with_debt: int = 0
    total_clients_with_overdue: int = 0

    total_payables: float = 0.0
    overdue_payables: float = 0.0
    payables_turnover_days: float = 0.0

    sales_vat: float = 0.0
    purchases_vat: float = 0.0
    vat_payable: float = 0.0
    sales_vat_withheld: float = 0.0
    purchases_vat_withheld: float = 0.0

    top_clients_by_sales: Sequence[RankedItem] = field(default_factory=tuple)
    top_products_by_sales: Sequence[RankedItem] = field(default_factory=tuple)
    top_products_by_profit: Sequence[RankedItem] = field(default_factory=tuple)
    top_sellers_by_sales: Sequence[RankedItem] = field(default_factory=tuple)


@dataclass(frozen=True)
class ComparativeData:
    value: float
    previous_value: float
    percentage_change: float


@dataclass(frozen=True)
class ComparativeSummary:
    current_period: PeriodSummary
    previous_period: PeriodSummary
    total_net_sales: ComparativeData
    gross_profit: ComparativeData
    average_ticket: ComparativeData


@dataclass(frozen=True)
class SalesDataPoint:
    date: datetime
    sales: float


@dataclass(frozen=True)
class SalesForecast:
    historical: Sequence[SalesDataPoint] = field(default_factory=tuple)
    trend: Sequence[SalesDataPoint] = field(default_factory=tuple)
    slope: float = 0.0
    intercept: float = 0.0

    def is_empty(self) -> bool:
        return not self.historical


@dataclass(frozen=True)
class MarketBasketResult:
    item_a: str
    item_b: str
    confidence: float
    support: float
