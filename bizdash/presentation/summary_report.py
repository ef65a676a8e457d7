"""Report generators for summaries, rankings, forecasts and basket results."""
from __future__ import annotations

import csv
import html
import io
from typing import Sequence

import pandas as pd

from bizdash.domain.results import (
    ComparativeData,
    ComparativeSummary,
    MarketBasketResult,
    PeriodSummary,
    RankedItem,
    SalesForecast,
)
from bizdash.domain.services import comparative_data

# (label, PeriodSummary attribute)
KPI_FIELDS: tuple[tuple[str, str], ...] = (
    ("Net sales", "total_net_sales"),
    ("Cash sales", "total_net_sales_cash"),
    ("Credit sales", "total_net_sales_credit"),
    ("Cost of goods sold", "cost_of_goods_sold"),
    ("Gross profit", "gross_profit"),
    ("Gross margin %", "gross_profit_margin"),
    ("Average ticket", "average_ticket"),
    ("Invoices", "total_invoices"),
    ("Active products", "total_active_products"),
    ("Active clients", "total_active_clients"),
    ("Receivables", "total_receivables"),
    ("Overdue receivables", "overdue_receivables"),
    ("Receivables turnover days", "receivables_turnover_days"),
    ("Overdue receivables %", "receivable_overdue_percentage"),
    ("Active clients with debt", "active_clients_with_debt"),
    ("Clients with overdue balance", "total_clients_with_overdue"),
    ("Payables", "total_payables"),
    ("Overdue payables", "overdue_payables"),
    ("Payables turnover days", "payables_turnover_days"),
    ("Sales VAT", "sales_vat"),
    ("Purchases VAT", "purchases_vat"),
    ("VAT payable", "vat_payable"),
    ("Sales VAT withheld", "sales_vat_withheld"),
    ("Purchases VAT withheld", "purchases_vat_withheld"),
)

RANKINGS: tuple[tuple[str, str], ...] = (
    ("Top clients by sales", "top_clients_by_sales"),
    ("Top products by sales", "top_products_by_sales"),
    ("Top products by profit", "top_products_by_profit"),
    ("Top sellers by sales", "top_sellers_by_sales"),
)


def summary_to_rows(summary: ComparativeSummary) -> list[dict[str, object]]:
    rows: list[dict[str, object]] = []
    for label, attribute in KPI_FIELDS:
        current = getattr(summary.current_period, attribute)
        previous = getattr(summary.previous_period, attribute)
        rows.append(
            {
                "metric": label,
                "current": round(current, 2),
                "previous": round(previous, 2),
                "change_pct": round(comparative_data(current, previous).percentage_change, 2),
            }
        )
    return rows


def headline_deltas(summary: ComparativeSummary) -> dict[str, ComparativeData]:
    return {
        "Net sales": summary.total_net_sales,
        "Gross profit": summary.gross_profit,
        "Average ticket": summary.average_ticket,
    }


def rankings_to_rows(period: PeriodSummary) -> dict[str, list[dict[str, object]]]:
    tables: dict[str, list[dict[str, object]]] = {}
    for label, attribute in RANKINGS:
        items: Sequence[RankedItem] = getattr(period, attribute)
        tables[label] = [
            {"rank": position, "name": item.name, "value": round(item.value, 2)}
            for position, item in enumerate(items, start=1)
        ]
    return tables


def forecast_to_frame(forecast: SalesForecast) -> pd.DataFrame:
    frame = pd.DataFrame(
        {
            "date": [point.date for point in forecast.historical],
            "sales": [point.sales for point in forecast.historical],
            "trend": [point.sales for point in forecast.trend],
        },
        columns=["date", "sales", "trend"],
    )
    return frame.set_index("date")


def basket_to_rows(results: Sequence[MarketBasketResult]) -> list[dict[str, object]]:
    return [
        {
            "item_a": result.item_a,
            "item_b": result.item_b,
            "confidence": round(result.confidence, 4),
            "support": round(result.support, 4),
        }
        for result in results
    ]


def render_csv(rows: Sequence[dict[str, object]]) -> bytes:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(rows[0].keys()) if rows else [])
    if rows:
        writer.writeheader()
        writer.writerows(rows)
    return buffer.getvalue().encode("utf-8")


def render_html(rows: Sequence[dict[str, object]], empty_message: str = "No data.") -> str:
    if not rows:
        return f"<p>{html.escape(empty_message)}</p>"
    header = "".join(f"<th>{html.escape(str(col))}</th>" for col in rows[0].keys())
    body_parts = []
    for row in rows:
        body_parts.append("<tr>" + "".join(f"<td>{html.escape(str(value))}</td>" for value in row.values()) + "</tr>")
    body_html = "".join(body_parts)
    return f"<table><thead><tr>{header}</tr></thead><tbody>{body_html}</tbody></table>"


def render_xlsx(summary: ComparativeSummary) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame(summary_to_rows(summary)).to_excel(writer, sheet_name="KPIs", index=False)
        for label, rows in rankings_to_rows(summary.current_period).items():
            frame = pd.DataFrame(rows, columns=["rank", "name", "value"])
            frame.to_excel(writer, sheet_name=label[:31], index=False)
    return buffer.getvalue()
