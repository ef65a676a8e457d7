from datetime import date, datetime

import pytest

from bizdash.application.cache import InMemoryHandleCache
from bizdash.application.dto import ReportingWindow, SourceSelection
from bizdash.application.use_cases import AnalyticsContext, ComparativeSummaryUseCase, SourceDataLoader
from bizdash.config import load_settings
from bizdash.domain.dataset import Dataset, EntityKind
from bizdash.domain.errors import AggregateError, AuthError, FetchError, RecordNotFound
from bizdash.domain.models import Invoice
from bizdash.domain.services import comparative_data

from fakes import FakeSourceClient, StaticSourceRepository, make_source

WINDOW = ReportingWindow.from_dates(date(2024, 1, 1), date(2024, 1, 31))
NOW = datetime(2024, 2, 15)


def make_dataset(*totals_by_date: tuple[str, float]) -> Dataset:
    return Dataset(
        invoices=tuple(
            Invoice(document_number=f"F{index}", issued_at=f"{day} 10:00:00", total=total, cost_of_goods=total / 2)
            for index, (day, total) in enumerate(totals_by_date)
        )
    )


def make_context(client, sources, cache=None) -> AnalyticsContext:
    return AnalyticsContext(
        client=client,
        source_repository=StaticSourceRepository(sources),
        handle_cache=cache,
        settings=load_settings({}),
    )


def test_comparative_data_with_zero_previous():
    assert comparative_data(5.0, 0.0).percentage_change == 100.0
    assert comparative_data(0.0, 0.0).percentage_change == 0.0
    assert comparative_data(-5.0, 0.0).percentage_change == 0.0
    assert comparative_data(150.0, 100.0).percentage_change == pytest.approx(50.0)
    assert comparative_data(50.0, 100.0).percentage_change == pytest.approx(-50.0)


def test_previous_window_ends_one_second_before_start():
    previous = WINDOW.previous()

    assert WINDOW.end == datetime(2024, 1, 31, 23, 59, 59)
    assert previous.end == datetime(2023, 12, 31, 23, 59, 59)
    assert previous.start == datetime(2023, 12, 1, 0, 0, 0)
    assert previous.duration == WINDOW.duration


def test_window_rejects_inverted_bounds():
    with pytest.raises(ValueError):
        ReportingWindow(start=datetime(2024, 2, 1), end=datetime(2024, 1, 1))


def test_single_source_summary():
    source = make_source(1)
    dataset = make_dataset(("2024-01-10", 150.0), ("2023-12-10", 100.0))
    client = FakeSourceClient({1: dataset})
    use_case = ComparativeSummaryUseCase(make_context(client, [source]))

    summary = use_case.execute(WINDOW, SourceSelection(source_id=1), now=NOW)

    assert summary.current_period.total_net_sales == pytest.approx(150.0)
    assert summary.previous_period.total_net_sales == pytest.approx(100.0)
    assert summary.total_net_sales.percentage_change == pytest.approx(50.0)
    assert summary.gross_profit.value == pytest.approx(75.0)
    assert summary.average_ticket.previous_value == pytest.approx(100.0)
    assert client.logins == [1]
    assert {kind for _, kind in client.fetches} == set(EntityKind)


def test_consolidated_summary_adds_every_source():
    sources = [make_source(1), make_source(2)]
    client = FakeSourceClient(
        {
            1: make_dataset(("2024-01-10", 100.0)),
            2: make_dataset(("2024-01-11", 40.0), ("2024-01-12", 60.0)),
        }
    )
    use_case = ComparativeSummaryUseCase(make_context(client, sources))

    summary = use_case.execute(WINDOW, SourceSelection(), now=NOW)

    assert summary.current_period.total_net_sales == pytest.approx(200.0)
    assert summary.current_period.total_invoices == 3
    assert sorted(client.logins) == [1, 2]


def test_consolidated_login_failure_aborts_request():
    sources = [make_source(1), make_source(2, alias="branch")]
    client = FakeSourceClient({1: make_dataset(("2024-01-10", 100.0))}, failing_logins=[2])
    use_case = ComparativeSummaryUseCase(make_context(client, sources))

    with pytest.raises(AuthError) as excinfo:
        use_case.execute(WINDOW, SourceSelection(), now=NOW)

    assert excinfo.value.source == "branch"


def test_fetch_failure_is_reported_with_its_entity():
    source = make_source(1)
    client = FakeSourceClient(
        {1: make_dataset(("2024-01-10", 100.0))},
        failing_fetches={(1, EntityKind.PAYABLES): RuntimeError("timeout")},
    )
    use_case = ComparativeSummaryUseCase(make_context(client, [source]))

    with pytest.raises(FetchError) as excinfo:
        use_case.execute(WINDOW, SourceSelection(source_id=1), now=NOW)

    assert excinfo.value.entity == "accpayables"
    assert isinstance(excinfo.value.cause, RuntimeError)


def test_no_sources_gives_empty_summary():
    use_case = ComparativeSummaryUseCase(make_context(FakeSourceClient({}), []))

    summary = use_case.execute(WINDOW, SourceSelection(), now=NOW)

    assert summary.current_period.total_net_sales == 0
    assert summary.total_net_sales.percentage_change == 0


def test_unknown_source_is_not_found():
    use_case = ComparativeSummaryUseCase(make_context(FakeSourceClient({}), [make_source(1)]))

    with pytest.raises(RecordNotFound):
        use_case.execute(WINDOW, SourceSelection(source_id=99), now=NOW)


def test_cached_handle_is_reused_per_user():
    source = make_source(1)
    client = FakeSourceClient({1: make_dataset(("2024-01-10", 10.0))})
    cache = InMemoryHandleCache()
    use_case = ComparativeSummaryUseCase(make_context(client, [source], cache))

    use_case.execute(WINDOW, SourceSelection(source_id=1, user_id=7), now=NOW)
    use_case.execute(WINDOW, SourceSelection(source_id=1, user_id=7), now=NOW)
    use_case.execute(WINDOW, SourceSelection(source_id=1, user_id=8), now=NOW)

    assert client.logins == [1, 1]
    assert len(cache) == 2


def test_rejected_session_is_evicted_from_cache():
    source = make_source(1)
    client = FakeSourceClient(
        {1: Dataset()},
        failing_fetches={(1, EntityKind.INVOICES): AuthError("store-1", "session expired")},
    )
    cache = InMemoryHandleCache()
    use_case = ComparativeSummaryUseCase(make_context(client, [source], cache))

    with pytest.raises(AuthError):
        use_case.execute(WINDOW, SourceSelection(source_id=1, user_id=7), now=NOW)

    assert cache.get(1, 7) is None


def test_unexpected_per_source_failure_is_aggregated():
    loader = SourceDataLoader(make_context(FakeSourceClient({}), [make_source(1, alias="main")]))

    def broken(source):
        raise KeyError("codclie")

    with pytest.raises(AggregateError) as excinfo:
        loader.run_per_source(broken)

    assert excinfo.value.source == "main"
    assert isinstance(excinfo.value.cause, KeyError)
