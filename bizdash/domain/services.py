"""Domain services computing the management-summary KPIs."""
from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Iterable, Mapping, Sequence

from .dataset import Dataset
from .models import Customer, Invoice, InvoiceItem, Product, Seller, parse_timestamp
from .results import ComparativeData, ComparativeSummary, PeriodSummary, RankedItem


def _amount(value: float | None) -> float:
    return value if value is not None else 0.0


def _in_window(text: str | None, start: datetime, end: datetime) -> bool:
    moment = parse_timestamp(text)
    return moment is not None and start <= moment <= end


def _is_past_due(text: str | None, now: datetime) -> bool:
    due = parse_timestamp(text)
    return due is not None and due < now


def days_in_window(start: datetime, end: datetime) -> int:
    """Calendar days covered by the window, counting both ends."""
    return max((end.date() - start.date()).days + 1, 0)


def rank_items(values: Mapping[str, float], limit: int = 5) -> tuple[RankedItem, ...]:
    """Sort descending by value and keep the first ``limit``; ties keep insertion order."""
    ranked = sorted(values.items(), key=lambda pair: pair[1], reverse=True)
    return tuple(RankedItem(name=name, value=value) for name, value in ranked[:limit])


def comparative_data(current: float, previous: float) -> ComparativeData:
    if previous != 0:
        change = (current - previous) / previous * 100
    elif current > 0:
        change = 100.0
    else:
        change = 0.0
    return ComparativeData(value=current, previous_value=previous, percentage_change=change)


def build_comparative_summary(current: PeriodSummary, previous: PeriodSummary) -> ComparativeSummary:
    return ComparativeSummary(
        current_period=current,
        previous_period=previous,
        total_net_sales=comparative_data(current.total_net_sales, previous.total_net_sales),
        gross_profit=comparative_data(current.gross_profit, previous.gross_profit),
        average_ticket=comparative_data(current.average_ticket, previous.average_ticket),
    )


def _name_lookup(records: Iterable[Customer | Seller | Product]) -> dict[str, str]:
    return {
        record.code: record.description
        for record in records
        if record.code is not None and record.description is not None
    }


def sales_by_client(
    items: Sequence[InvoiceItem],
    headers: Mapping[str, Invoice],
    customers: Sequence[Customer],
) -> dict[str, float]:
    names = _name_lookup(customers)
    totals: dict[str, float] = defaultdict(float)
    for item in items:
        if item.document_number is None or item.line_total is None:
            continue
        header = headers.get(item.document_number)
        if header is None or header.customer_code is None:
            continue
        name = names.get(header.customer_code)
        if name is not None:
            totals[name] += item.line_total
    return dict(totals)


def sales_by_seller(
    items: Sequence[InvoiceItem],
    headers: Mapping[str, Invoice],
    sellers: Sequence[Seller],
) -> dict[str, float]:
    names = _name_lookup(sellers)
    totals: dict[str, float] = defaultdict(float)
    for item in items:
        if item.document_number is None or item.line_total is None:
            continue
        header = headers.get(item.document_number)
        if header is None or header.seller_code is None:
            continue
        name = names.get(header.seller_code)
        if name is not None:
            totals[name] += item.line_total
    return dict(totals)


def sales_by_product(items: Sequence[InvoiceItem], products: Sequence[Product]) -> dict[str, float]:
    names = _name_lookup(products)
    totals: dict[str, float] = defaultdict(float)
    for item in items:
        if item.item_code is None or item.line_total is None:
            continue
        name = names.get(item.item_code)
        if name is not None:
            totals[name] += item.line_total
    return dict(totals)


def profit_by_product(items: Sequence[InvoiceItem], products: Sequence[Product]) -> dict[str, float]:
    catalog = {product.code: product for product in products if product.code is not None}
    totals: dict[str, float] = defaultdict(float)
    for item in items:
        if item.item_code is None:
            continue
        product = catalog.get(item.item_code)
        if product is None or product.description is None:
            continue
        # margin is measured against the catalog cost only
        if item.unit_price is None or product.current_cost is None or item.quantity is None:
            continue
        totals[product.description] += (item.unit_price - product.current_cost) * item.quantity
    return dict(totals)


class PeriodCalculator:
    """Computes one :class:`PeriodSummary` from a dataset and a reporting window.

    Sales and purchase figures are restricted to the window. Receivable and
    payable balances and the active-entity counts describe the current state
    of the dataset and ignore it; overdue detection compares due dates to the
    wall clock at calculation time.
    """

    def __init__(self, top_n: int = 5) -> None:
        self._top_n = top_n

    def calculate(
        self,
        dataset: Dataset,
        start: datetime,
        end: datetime,
        now: datetime | None = None,
    ) -> PeriodSummary:
        if now is None:
            now = datetime.now()
        headers = {inv.document_number: inv for inv in dataset.invoices if inv.document_number is not None}

        net_sales = cash_sales = credit_sales = cogs = sales_vat = sales_withheld = 0.0
        invoice_count = 0
        window_documents: set[str] = set()
        for inv in dataset.invoices:
            if not _in_window(inv.issued_at, start, end):
                continue
            invoice_count += 1
            net_sales += _amount(inv.total)
            credit_sales += _amount(inv.credit_amount)
            cash_sales += _amount(inv.cash_amount)
            cogs += _amount(inv.cost_of_goods)
            sales_vat += _amount(inv.tax_amount)
            sales_withheld += _amount(inv.vat_withheld)
            if inv.document_number is not None:
                window_documents.add(inv.document_number)

        average_ticket = net_sales / invoice_count if invoice_count > 0 else 0.0
        gross_profit = net_sales - cogs
        margin = gross_profit / net_sales * 100 if net_sales > 0 else 0.0
        period_days = days_in_window(start, end)

        total_receivables = overdue_receivables = 0.0
        overdue_clients: set[str] = set()
        for receivable in dataset.receivables:
            if receivable.balance is None or receivable.balance <= 0:
                continue
            total_receivables += receivable.balance
            if _is_past_due(receivable.due_at, now):
                overdue_receivables += receivable.balance
                if receivable.customer_code is not None:
                    overdue_clients.add(receivable.customer_code)
        receivables_turnover = (
            total_receivables / credit_sales * period_days if credit_sales > 0 else 0.0
        )
        overdue_share = overdue_receivables / total_receivables * 100 if total_receivables > 0 else 0.0

        purchases_credit = purchases_vat = purchases_withheld = 0.0
        for purchase in dataset.purchases:
            if not _in_window(purchase.issued_at, start, end):
                continue
            purchases_credit += _amount(purchase.credit_amount)
            purchases_vat += _amount(purchase.tax_amount)
            purchases_withheld += _amount(purchase.vat_withheld)

        total_payables = overdue_payables = 0.0
        for payable in dataset.payables:
            if payable.balance is None or payable.balance <= 0:
                continue
            total_payables += payable.balance
            if _is_past_due(payable.due_at, now):
                overdue_payables += payable.balance
        payables_turnover = (
            total_payables / purchases_credit * period_days if purchases_credit > 0 else 0.0
        )

        active_clients = clients_with_debt = 0
        for customer in dataset.customers:
            if customer.active == 1:
                active_clients += 1
                if customer.balance is not None and customer.balance > 0:
                    clients_with_debt += 1
        active_products = sum(1 for product in dataset.products if product.active == 1)

        items = self._items_in_window(dataset.invoice_items, window_documents, headers, start, end)

        return PeriodSummary(
            window_start=start,
            window_end=end,
            total_net_sales=net_sales,
            total_net_sales_cash=cash_sales,
            total_net_sales_credit=credit_sales,
            cost_of_goods_sold=cogs,
            gross_profit=gross_profit,
            gross_profit_margin=margin,
            average_ticket=average_ticket,
            total_invoices=invoice_count,
            total_active_products=active_products,
            total_active_clients=active_clients,
            total_receivables=total_receivables,
            overdue_receivables=overdue_receivables,
            receivables_turnover_days=receivables_turnover,
            receivable_overdue_percentage=overdue_share,
            active_clients_with_debt=clients_with_debt,
            total_clients_with_overdue=len(overdue_clients),
            total_payables=total_payables,
            overdue_payables=overdue_payables,
            payables_turnover_days=payables_turnover,
            sales_vat=sales_vat,
            purchases_vat=purchases_vat,
            vat_payable=sales_vat - purchases_vat,
            sales_vat_withheld=sales_withheld,
            purchases_vat_withheld=purchases_withheld,
            top_clients_by_sales=rank_items(sales_by_client(items, headers, dataset.customers), self._top_n),
            top_products_by_sales=rank_items(sales_by_product(items, dataset.products), self._top_n),
            top_products_by_profit=rank_items(profit_by_product(items, dataset.products), self._top_n),
            top_sellers_by_sales=rank_items(sales_by_seller(items, headers, dataset.sellers), self._top_n),
        )

    @staticmethod
    def _items_in_window(
        items: Sequence[InvoiceItem],
        window_documents: set[str],
        headers: Mapping[str, Invoice],
        start: datetime,
        end: datetime,
    ) -> list[InvoiceItem]:
        # Items follow their invoice header; orphans fall back to their own date.
        selected: list[InvoiceItem] = []
        for item in items:
            if item.document_number is not None and item.document_number in headers:
                if item.document_number in window_documents:
                    selected.append(item)
            elif _in_window(item.issued_at, start, end):
                selected.append(item)
        return selected
