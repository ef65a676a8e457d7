from datetime import date

import pytest

from bizdash.application.dto import ReportingWindow, SourceSelection
from bizdash.application.use_cases import AnalyticsContext, MarketBasketUseCase, SalesForecastUseCase
from bizdash.config import load_settings
from bizdash.domain.dataset import Dataset, EntityKind
from bizdash.domain.errors import AuthError
from bizdash.domain.models import Invoice, InvoiceItem, Product

from fakes import FakeSourceClient, StaticSourceRepository, make_source

WINDOW = ReportingWindow.from_dates(date(2024, 1, 1), date(2024, 1, 31))
PRODUCTS = (Product(code="A", description="Coffee"), Product(code="B", description="Sugar"))


def make_context(client, sources) -> AnalyticsContext:
    return AnalyticsContext(
        client=client,
        source_repository=StaticSourceRepository(sources),
        settings=load_settings({}),
    )


def make_sales(*days_and_totals: tuple[int, float]) -> Dataset:
    return Dataset(
        invoices=tuple(
            Invoice(document_number=f"F{day}", issued_at=f"2024-01-{day:02d} 10:00:00", total=total)
            for day, total in days_and_totals
        )
    )


def make_baskets(prefix: str) -> Dataset:
    return Dataset(
        invoice_items=(
            InvoiceItem(document_number=f"{prefix}1", item_code="A", issued_at="2024-01-05 10:00:00"),
            InvoiceItem(document_number=f"{prefix}1", item_code="B", issued_at="2024-01-05 10:00:00"),
        ),
        products=PRODUCTS,
    )


def test_consolidated_forecast_merges_sources():
    client = FakeSourceClient({1: make_sales((1, 10.0)), 2: make_sales((2, 20.0), (3, 30.0))})
    use_case = SalesForecastUseCase(make_context(client, [make_source(1), make_source(2)]))

    forecast = use_case.execute(WINDOW, SourceSelection())

    assert [point.sales for point in forecast.historical] == [10.0, 20.0, 30.0]
    assert [point.sales for point in forecast.trend] == pytest.approx([10.0, 20.0, 30.0])
    assert forecast.slope == pytest.approx(10.0)
    assert sorted(client.logins) == [1, 2]
    assert {kind for _, kind in client.fetches} == {EntityKind.INVOICES}


def test_consolidated_forecast_fails_when_a_login_fails():
    client = FakeSourceClient({1: make_sales((1, 10.0), (2, 20.0))}, failing_logins=[2])
    use_case = SalesForecastUseCase(make_context(client, [make_source(1), make_source(2)]))

    with pytest.raises(AuthError):
        use_case.execute(WINDOW, SourceSelection())


def test_consolidated_basket_merges_sources():
    client = FakeSourceClient({1: make_baskets("A"), 2: make_baskets("B")})
    use_case = MarketBasketUseCase(make_context(client, [make_source(1), make_source(2)]))

    results = use_case.execute(WINDOW, SourceSelection())

    assert {(r.item_a, r.item_b) for r in results} == {("Coffee", "Sugar"), ("Sugar", "Coffee")}
    for result in results:
        assert result.support == pytest.approx(1.0)
        assert result.confidence == pytest.approx(1.0)
    assert {kind for _, kind in client.fetches} == {EntityKind.INVOICE_ITEMS, EntityKind.PRODUCTS}


def test_consolidated_basket_fails_when_a_login_fails():
    client = FakeSourceClient({1: make_baskets("A")}, failing_logins=[2])
    use_case = MarketBasketUseCase(make_context(client, [make_source(1), make_source(2)]))

    with pytest.raises(AuthError):
        use_case.execute(None, SourceSelection())


def test_single_source_basket_without_window():
    client = FakeSourceClient({1: make_baskets("A"), 2: make_baskets("B")})
    use_case = MarketBasketUseCase(make_context(client, [make_source(1), make_source(2)]))

    results = use_case.execute(None, SourceSelection(source_id=2))

    assert len(results) == 2
    assert client.logins == [2]
