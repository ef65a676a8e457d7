"""Streamlit front-end for the business analytics engine."""
from __future__ import annotations

from datetime import date, timedelta
from typing import Sequence

import pandas as pd
import streamlit as st

from bizdash import (
    AnalyticsContext,
    ComparativeSummaryUseCase,
    HttpSourceClient,
    JsonSourceRepository,
    MarketBasketUseCase,
    ReportingWindow,
    SalesForecastUseCase,
    SourceSelection,
)
from bizdash.application.cache import InMemoryHandleCache
from bizdash.config import SETTINGS
from bizdash.domain.errors import BizdashError
from bizdash.domain.models import Source
from bizdash.domain.results import ComparativeSummary, MarketBasketResult, SalesForecast
from bizdash.infrastructure.repositories.excel_repositories import SourceClientRouter
from bizdash.infrastructure.storage import source_store
from bizdash.presentation.summary_report import (
    basket_to_rows,
    forecast_to_frame,
    headline_deltas,
    rankings_to_rows,
    render_csv,
    render_html,
    render_xlsx,
    summary_to_rows,
)

ALL_SOURCES = "All sources"

st.set_page_config(page_title="Business Dashboard", layout="wide")
st.title("Business Dashboard")


def sources_to_dataframe(sources: Sequence[Source]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "id": s.id,
                "alias": s.alias,
                "base_url": s.base_url,
                "workbook": s.workbook or "",
                "refresh_seconds": s.refresh_seconds,
            }
            for s in sources
        ],
        columns=["id", "alias", "base_url", "workbook", "refresh_seconds"],
    )


def get_context() -> AnalyticsContext:
    # one HTTP client and handle cache per browser session
    if "context" not in st.session_state:
        st.session_state["context"] = AnalyticsContext(
            client=SourceClientRouter(HttpSourceClient(SETTINGS)),
            source_repository=JsonSourceRepository(),
            handle_cache=InMemoryHandleCache(),
            settings=SETTINGS,
        )
    return st.session_state["context"]


def run_dashboard(
    window: ReportingWindow, selection: SourceSelection
) -> tuple[ComparativeSummary, SalesForecast, Sequence[MarketBasketResult]]:
    context = get_context()
    summary = ComparativeSummaryUseCase(context).execute(window, selection)
    forecast = SalesForecastUseCase(context).execute(window, selection)
    basket = MarketBasketUseCase(context).execute(window, selection)
    return summary, forecast, basket


if "view" not in st.session_state:
    st.session_state["view"] = "select"
if "result" not in st.session_state:
    st.session_state["result"] = None


if st.session_state["view"] == "select":
    sources = source_store.load_sources()
    labels = {ALL_SOURCES: None}
    labels.update({f"{s.alias} (#{s.id})": s.id for s in sources})

    col1, col2 = st.columns(2)
    with col1:
        source_label = st.selectbox("Source", list(labels.keys()))
    with col2:
        today = date.today()
        date_range = st.date_input(
            "Reporting window",
            value=(today - timedelta(days=SETTINGS.summary_default_days), today),
        )

    with st.expander("Configured sources", expanded=not sources):
        st.caption(f"{len(sources)} sources in {SETTINGS.sources_path}")
        st.dataframe(sources_to_dataframe(sources), hide_index=True, use_container_width=True)

    valid_range = isinstance(date_range, (tuple, list)) and len(date_range) == 2
    run_btn = st.button("Run analysis", disabled=not (sources and valid_range))
    if run_btn and valid_range:
        window = ReportingWindow.from_dates(date_range[0], date_range[1])
        selection = SourceSelection(source_id=labels[source_label])
        try:
            with st.spinner("Fetching and computing..."):
                summary, forecast, basket = run_dashboard(window, selection)
        except BizdashError as exc:
            st.error(str(exc))
        else:
            st.session_state["result"] = {
                "label": source_label,
                "window": window,
                "summary": summary,
                "forecast": forecast,
                "basket": basket,
            }
            st.session_state["view"] = "results"
            st.rerun()
else:
    back_clicked = st.button("← Back", key="back_to_select")
    if back_clicked:
        st.session_state["view"] = "select"
        st.session_state["result"] = None
        st.rerun()

    result = st.session_state.get("result")
    if not result:
        st.info("No results available. Pick a source and run the analysis first.")
    else:
        summary: ComparativeSummary = result["summary"]
        forecast: SalesForecast = result["forecast"]
        basket: Sequence[MarketBasketResult] = result["basket"]
        window: ReportingWindow = result["window"]

        st.subheader(f"{result['label']}: {window.start:%Y-%m-%d} to {window.end:%Y-%m-%d}")
        columns = st.columns(3)
        for column, (label, data) in zip(columns, headline_deltas(summary).items()):
            column.metric(label, f"{data.value:,.2f}", f"{data.percentage_change:.2f}%")

        tabs = st.tabs(["KPIs", "Rankings", "Forecast", "Market basket"])
        with tabs[0]:
            rows = summary_to_rows(summary)
            st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)
            st.download_button("Download KPI CSV", data=render_csv(rows), file_name="kpis.csv", mime="text/csv")
            st.download_button(
                "Download KPI HTML",
                data=render_html(rows).encode("utf-8"),
                file_name="kpis.html",
                mime="text/html",
            )
            st.download_button(
                "Download workbook",
                data=render_xlsx(summary),
                file_name="kpis.xlsx",
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            )
        with tabs[1]:
            for label, ranking in rankings_to_rows(summary.current_period).items():
                st.markdown(f"**{label}**")
                if ranking:
                    st.dataframe(pd.DataFrame(ranking), hide_index=True)
                else:
                    st.caption("No data in this window.")
        with tabs[2]:
            if forecast.is_empty():
                st.info("At least two days of sales are needed to fit a trend.")
            else:
                st.caption(f"sales = {forecast.slope:,.2f} * day + {forecast.intercept:,.2f}")
                st.line_chart(forecast_to_frame(forecast))
        with tabs[3]:
            basket_rows = basket_to_rows(basket)
            if basket_rows:
                st.dataframe(pd.DataFrame(basket_rows), hide_index=True, use_container_width=True)
                st.download_button(
                    "Download basket CSV",
                    data=render_csv(basket_rows),
                    file_name="basket.csv",
                    mime="text/csv",
                )
            else:
                st.info("No product associations above the thresholds.")
