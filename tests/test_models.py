"""Consistency between stored ledger codes and the classifier."""

import pytest

from cashflow_report.models import (
    AccountType,
    FinancialCategory,
    Invoice,
    InvoiceType,
    LedgerAccount,
    PaymentMethod,
)
from cashflow_report.services.classification import (
    ActivityCategory,
    Direction,
    LineItem,
    account_direction,
    classify,
    invoice_direction,
    parse_activity,
)
from tests.factories import InvoiceEntryFactory


def test_every_account_type_has_a_direction() -> None:
    assert account_direction(AccountType.RECEIVABLE.value) == Direction.INFLOW
    assert account_direction(AccountType.PAYABLE.value) == Direction.OUTFLOW


def test_every_invoice_type_has_a_direction() -> None:
    assert invoice_direction(InvoiceType.ENTRY.value) == Direction.INFLOW
    assert invoice_direction(InvoiceType.EXIT.value) == Direction.OUTFLOW


@pytest.mark.parametrize("category", list(FinancialCategory))
def test_every_financial_category_maps_to_its_activity(category) -> None:
    assert parse_activity(category.value) == ActivityCategory(category.value)


def test_card_receipts_have_no_dedicated_row() -> None:
    movement = classify(InvoiceEntryFactory.build(payment_method=PaymentMethod.CARD.value))

    assert movement.line_item == LineItem.OTHER_RECEIPTS


def test_tables_expose_the_columns_the_stores_read() -> None:
    account_columns = set(LedgerAccount.__table__.columns.keys())
    invoice_columns = set(Invoice.__table__.columns.keys())

    assert {"account_type", "status", "amount", "payment_date", "financial_category", "subcategory"} <= account_columns
    assert {"invoice_type", "total_amount", "issue_date", "payment_method"} <= invoice_columns
