from datetime import date, datetime

import pytest

from bizdash.application.dto import ReportingWindow, SourceSelection
from bizdash.application.use_cases import AnalyticsContext, DrilldownUseCase
from bizdash.config import load_settings
from bizdash.domain.dataset import Dataset
from bizdash.domain.drilldown import (
    InvoiceTransactions,
    PayableTransactions,
    ReceivableTransactions,
    concat_transactions,
    entity_detail,
    list_transactions,
    transaction_detail,
)
from bizdash.domain.errors import RecordNotFound, UnsupportedDocumentType
from bizdash.domain.models import Customer, Invoice, InvoiceItem, Payable, Receivable, Seller

from fakes import FakeSourceClient, StaticSourceRepository, make_source

START = datetime(2024, 1, 1)
END = datetime(2024, 1, 31, 23, 59, 59)


def make_dataset(prefix: str = "F") -> Dataset:
    return Dataset(
        invoices=(
            Invoice(document_number=f"{prefix}1", issued_at="2024-01-05 10:00:00", customer_code="C1", seller_code="V1", total=100.0),
            Invoice(document_number=f"{prefix}2", issued_at="2024-01-06 10:00:00", customer_code="C2", total=50.0),
            Invoice(document_number=f"{prefix}3", issued_at="2023-12-06 10:00:00", total=70.0),
        ),
        invoice_items=(
            InvoiceItem(document_number=f"{prefix}1", item_code="P1", line_total=60.0),
            InvoiceItem(document_number=f"{prefix}1", item_code="P2", line_total=40.0),
            InvoiceItem(document_number=f"{prefix}2", item_code="P1", line_total=50.0),
        ),
        receivables=(
            Receivable(document_number=f"{prefix}1", customer_code="C1", issued_at="2024-01-05 10:00:00", balance=100.0),
            Receivable(document_number=f"{prefix}2", customer_code="C2", issued_at="2024-01-06 10:00:00", balance=0.0),
        ),
        payables=(Payable(document_number="P9", issued_at="2024-02-02 10:00:00", balance=10.0),),
        customers=(Customer(code="C1", description="Acme"), Customer(code="C2", description="Beta")),
        sellers=(Seller(code="V1", description="Ana"),),
    )


def test_invoices_split_by_outstanding_receivable():
    dataset = make_dataset()

    credit = list_transactions(dataset, "invoices-credit", START, END)
    cash = list_transactions(dataset, "Invoices-Cash", START, END)

    assert isinstance(credit, InvoiceTransactions)
    assert [inv.document_number for inv in credit.records] == ["F1"]
    assert [inv.document_number for inv in cash.records] == ["F2"]
    assert cash.doc_type == "invoices-cash"


def test_receivables_and_payables_filter_on_issue_date():
    dataset = make_dataset()

    receivables = list_transactions(dataset, "receivables", START, END)
    payables = list_transactions(dataset, "payables", START, END)

    assert isinstance(receivables, ReceivableTransactions)
    assert len(receivables.records) == 2
    assert isinstance(payables, PayableTransactions)
    assert payables.records == ()


def test_unknown_document_type_is_rejected():
    with pytest.raises(UnsupportedDocumentType):
        list_transactions(make_dataset(), "quotes", START, END)


def test_invoice_detail_joins_items_customer_and_seller():
    detail = transaction_detail(make_dataset(), "invoice", "F1")

    assert detail.document.total == 100.0
    assert [item.item_code for item in detail.items] == ["P1", "P2"]
    assert detail.customer.description == "Acme"
    assert detail.seller.description == "Ana"


def test_invoice_detail_errors():
    with pytest.raises(RecordNotFound):
        transaction_detail(make_dataset(), "invoice", "F404")
    with pytest.raises(UnsupportedDocumentType):
        transaction_detail(make_dataset(), "purchase", "F1")


def test_entity_detail_lookup():
    assert entity_detail(make_dataset(), "customer", "C2").description == "Beta"
    with pytest.raises(RecordNotFound):
        entity_detail(make_dataset(), "seller", "V9")
    with pytest.raises(UnsupportedDocumentType):
        entity_detail(make_dataset(), "warehouse", "W1")


def test_concat_requires_matching_variants():
    receivables = ReceivableTransactions(records=(Receivable(document_number="R1"),))

    joined = concat_transactions(receivables, receivables)

    assert len(joined.records) == 2
    with pytest.raises(TypeError):
        concat_transactions(receivables, PayableTransactions())
    with pytest.raises(TypeError):
        concat_transactions(InvoiceTransactions("invoices-cash"), InvoiceTransactions("invoices-credit"))


def test_consolidated_transactions_classify_per_source():
    client = FakeSourceClient({1: make_dataset("A"), 2: make_dataset("B")})
    context = AnalyticsContext(
        client=client,
        source_repository=StaticSourceRepository([make_source(1), make_source(2)]),
        settings=load_settings({}),
    )
    window = ReportingWindow.from_dates(date(2024, 1, 1), date(2024, 1, 31))

    credit = DrilldownUseCase(context).transactions("invoices-credit", window, SourceSelection())

    assert [inv.document_number for inv in credit.records] == ["A1", "B1"]


def test_single_source_detail_through_use_case():
    client = FakeSourceClient({1: make_dataset()})
    context = AnalyticsContext(
        client=client,
        source_repository=StaticSourceRepository([make_source(1)]),
        settings=load_settings({}),
    )
    use_case = DrilldownUseCase(context)

    detail = use_case.transaction_detail("invoice", "F2", SourceSelection(source_id=1))
    seller = use_case.entity_detail("seller", "V1", SourceSelection(source_id=1))

    assert detail.customer.code == "C2"
    assert detail.seller is None
    assert seller.description == "Ana"
