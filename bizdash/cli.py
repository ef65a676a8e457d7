"""Command-line entrypoint for the business analytics engine."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from bizdash.application.dto import ReportingWindow, SourceSelection
from bizdash.application.use_cases import (
    AnalyticsContext,
    ComparativeSummaryUseCase,
    DrilldownUseCase,
    MarketBasketUseCase,
    SalesForecastUseCase,
)
from bizdash.config import SETTINGS
from bizdash.domain.drilldown import DOCUMENT_TYPES, InvoiceTransactions, PayableTransactions, ReceivableTransactions
from bizdash.domain.errors import BizdashError, RecordNotFound
from bizdash.infrastructure.api.client import HttpSourceClient
from bizdash.infrastructure.repositories.excel_repositories import SourceClientRouter
from bizdash.infrastructure.storage.source_store import JsonSourceRepository
from bizdash.presentation.summary_report import basket_to_rows, rankings_to_rows, summary_to_rows

logger = logging.getLogger("bizdash")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Financial KPIs and analytics over business-data sources")
    parser.add_argument("command", choices=["summary", "forecast", "basket", "transactions"])
    parser.add_argument("--source", type=str, help="Source id or alias (default: all sources)")
    parser.add_argument("--start", type=date.fromisoformat, help="Window start (YYYY-MM-DD)")
    parser.add_argument("--end", type=date.fromisoformat, help="Window end (YYYY-MM-DD)")
    parser.add_argument("--type", dest="doc_type", choices=DOCUMENT_TYPES, default="receivables",
                        help="Document type for the transactions command")
    parser.add_argument("--sources", type=Path, help="Path to the sources JSON store")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def build_window(start: date | None, end: date | None, default_days: int) -> ReportingWindow:
    end_date = end or date.today()
    if start:
        return ReportingWindow.from_dates(start, end_date)
    return ReportingWindow.default(default_days, today=end_date)


def optional_window(start: date | None, end: date | None, default_days: int) -> ReportingWindow | None:
    """Window for commands that default to the whole history when no bound is given."""
    if start is None and end is None:
        return None
    return build_window(start, end, default_days)


def _print_summary(use_case: ComparativeSummaryUseCase, window: ReportingWindow, selection: SourceSelection) -> None:
    summary = use_case.execute(window, selection)
    print("Management Summary")
    print("==================")
    print(f"Window: {window.start:%Y-%m-%d} .. {window.end:%Y-%m-%d}")
    for row in summary_to_rows(summary):
        print(f"{row['metric']:<30} {row['current']:>15,.2f} {row['previous']:>15,.2f} {row['change_pct']:>8.2f}%")
    for label, rows in rankings_to_rows(summary.current_period).items():
        print(f"\n{label}:")
        if not rows:
            print("  (none)")
        for row in rows:
            print(f"  {row['rank']}. {row['name']}: {row['value']:,.2f}")


def _print_forecast(use_case: SalesForecastUseCase, window: ReportingWindow, selection: SourceSelection) -> None:
    forecast = use_case.execute(window, selection)
    if forecast.is_empty():
        print("Not enough daily sales to fit a trend.")
        return
    print(f"Trend: sales = {forecast.slope:,.2f} * day + {forecast.intercept:,.2f}")
    for actual, trend in zip(forecast.historical, forecast.trend):
        print(f"{actual.date:%Y-%m-%d} {actual.sales:>15,.2f} {trend.sales:>15,.2f}")


def _print_basket(use_case: MarketBasketUseCase, window: ReportingWindow | None, selection: SourceSelection) -> None:
    rows = basket_to_rows(use_case.execute(window, selection))
    if not rows:
        print("No associations above the thresholds.")
        return
    for row in rows:
        print(f"{row['item_a']} -> {row['item_b']}: confidence {row['confidence']:.2%}, support {row['support']:.2%}")


def _print_transactions(
    use_case: DrilldownUseCase, doc_type: str, window: ReportingWindow, selection: SourceSelection
) -> None:
    transactions = use_case.transactions(doc_type, window, selection)
    match transactions:
        case InvoiceTransactions(records=records):
            for inv in records:
                print(f"{inv.document_number} {inv.issued_at} {inv.customer_code} {inv.total}")
        case ReceivableTransactions(records=records) | PayableTransactions(records=records):
            for entry in records:
                print(f"{entry.document_number} {entry.issued_at} due {entry.due_at} balance {entry.balance}")
    print(f"{len(transactions.records)} {transactions.doc_type}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    repository = JsonSourceRepository(args.sources)
    with HttpSourceClient(SETTINGS) as http_client:
        context = AnalyticsContext(
            client=SourceClientRouter(http_client),
            source_repository=repository,
            settings=SETTINGS,
        )
        try:
            selection = SourceSelection()
            if args.source:
                source = repository.find(args.source)
                if source is None:
                    raise RecordNotFound("source", args.source)
                selection = SourceSelection(source_id=source.id)

            if args.command == "summary":
                window = build_window(args.start, args.end, SETTINGS.summary_default_days)
                _print_summary(ComparativeSummaryUseCase(context), window, selection)
            elif args.command == "forecast":
                window = build_window(args.start, args.end, SETTINGS.forecast_default_days)
                _print_forecast(SalesForecastUseCase(context), window, selection)
            elif args.command == "basket":
                window = optional_window(args.start, args.end, SETTINGS.summary_default_days)
                _print_basket(MarketBasketUseCase(context), window, selection)
            else:
                window = build_window(args.start, args.end, SETTINGS.summary_default_days)
                _print_transactions(DrilldownUseCase(context), args.doc_type, window, selection)
        except (BizdashError, ValueError) as exc:
            logger.error("%s", exc)
            return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
