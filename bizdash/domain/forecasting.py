"""Linear sales-trend forecasting over daily invoice totals."""
from __future__ import annotations

from datetime import datetime
from typing import Sequence

import pandas as pd

from .models import Invoice, parse_timestamp
from .results import SalesDataPoint, SalesForecast

MIN_DAYS_FOR_TREND = 2


def daily_sales(invoices: Sequence[Invoice], start: datetime, end: datetime) -> pd.Series:
    """Net sales per calendar day inside ``[start, end]``, sorted by day."""
    rows = []
    for inv in invoices:
        if inv.total is None:
            continue
        moment = parse_timestamp(inv.issued_at)
        if moment is None or moment < start or moment > end:
            continue
        rows.append((moment, inv.total))
    if not rows:
        return pd.Series(dtype=float)
    frame = pd.DataFrame(rows, columns=["date", "sales"])
    frame["date"] = pd.to_datetime(frame["date"]).dt.normalize()
    return frame.groupby("date")["sales"].sum().sort_index()


def fit_line(values: Sequence[float]) -> tuple[float, float]:
    """Ordinary least squares over ``(index, value)``; returns ``(slope, intercept)``."""
    n = float(len(values))
    sum_x = sum_y = sum_xy = sum_xx = 0.0
    for index, value in enumerate(values):
        x = float(index)
        sum_x += x
        sum_y += value
        sum_xy += x * value
        sum_xx += x * x
    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0, (sum_y / n if n else 0.0)
    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


class SalesForecaster:
    def forecast(self, invoices: Sequence[Invoice], start: datetime, end: datetime) -> SalesForecast:
        series = daily_sales(invoices, start, end)
        if len(series) < MIN_DAYS_FOR_TREND:
            return SalesForecast()

        days = [stamp.to_pydatetime() for stamp in series.index]
        totals = [float(value) for value in series.to_list()]
        slope, intercept = fit_line(totals)

        historical = tuple(SalesDataPoint(date=day, sales=total) for day, total in zip(days, totals))
        trend = tuple(
            SalesDataPoint(date=day, sales=slope * index + intercept) for index, day in enumerate(days)
        )
        return SalesForecast(historical=historical, trend=trend, slope=slope, intercept=intercept)
