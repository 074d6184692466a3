"""Tests for ledger adapters and movement ingestion."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from cashflow_report.services.classification import AccountEntry, InvoiceEntry, LineItem
from cashflow_report.services.ledger import (
    LedgerKind,
    MalformedEntry,
    SourceUnavailable,
    SqlAccountsLedger,
    SqlInvoicesLedger,
    build_ledger_store,
    fetch_movements,
    fetch_opening_balance,
)
from cashflow_report.services.periods import InvalidRange
from tests.factories import AccountEntryFactory, InMemoryLedgerStore, InvoiceEntryFactory

JAN_1 = date(2025, 1, 1)
MAR_31 = date(2025, 3, 31)


def _paid(account_type: str, amount: str, on: date):
    return AccountEntryFactory.build(account_type=account_type, amount=Decimal(amount), payment_date=on)


def _session_returning(*, scalars=None, rows=None) -> AsyncMock:
    result = MagicMock()
    result.scalars.return_value.all.return_value = scalars or []
    result.all.return_value = rows or []
    db = AsyncMock()
    db.execute.return_value = result
    return db


class TestSqlStores:
    @pytest.mark.asyncio
    async def test_accounts_rows_are_mapped_to_entries(self) -> None:
        row_id = uuid4()
        row = SimpleNamespace(
            id=row_id,
            account_type="RECEIVABLE",
            status="PAID",
            amount=Decimal("120.50"),
            due_date=date(2025, 1, 31),
            payment_date=date(2025, 2, 3),
            financial_category="OPERATING",
            subcategory="SALES",
            payment_method="PIX",
            description=None,
        )
        db = _session_returning(scalars=[row])

        entries = await SqlAccountsLedger(db).list_entries(JAN_1, MAR_31)

        db.execute.assert_awaited_once()
        assert entries == [
            AccountEntry(
                id=str(row_id),
                account_type="RECEIVABLE",
                status="PAID",
                amount=Decimal("120.50"),
                due_date=date(2025, 1, 31),
                payment_date=date(2025, 2, 3),
                financial_category="OPERATING",
                subcategory="SALES",
                payment_method="PIX",
                description="",
            )
        ]

    @pytest.mark.asyncio
    async def test_invoice_rows_are_mapped_to_entries(self) -> None:
        row_id = uuid4()
        row = SimpleNamespace(
            id=row_id,
            invoice_type="EXIT",
            total_amount=Decimal("80.00"),
            issue_date=date(2025, 3, 2),
            payment_method="BOLETO",
            number="NF-1",
        )
        db = _session_returning(scalars=[row])

        entries = await SqlInvoicesLedger(db).list_entries(JAN_1, MAR_31)

        assert entries == [
            InvoiceEntry(
                id=str(row_id),
                invoice_type="EXIT",
                amount=Decimal("80.00"),
                issue_date=date(2025, 3, 2),
                payment_method="BOLETO",
                number="NF-1",
            )
        ]

    @pytest.mark.asyncio
    async def test_totals_before_returns_type_and_sum(self) -> None:
        db = _session_returning(
            rows=[
                SimpleNamespace(account_type="RECEIVABLE", total=Decimal("500.00")),
                SimpleNamespace(account_type="PAYABLE", total=Decimal("200.00")),
            ]
        )

        totals = await SqlAccountsLedger(db).totals_before(JAN_1)

        assert totals == [("RECEIVABLE", Decimal("500.00")), ("PAYABLE", Decimal("200.00"))]

    @pytest.mark.asyncio
    async def test_paid_status_filter_trims_and_uppercases(self) -> None:
        db = _session_returning()
        store = SqlAccountsLedger(db)

        await store.list_entries(JAN_1, MAR_31)
        await store.totals_before(JAN_1)

        for call in db.execute.await_args_list:
            assert "upper(trim(ledger_accounts.status))" in str(call.args[0])

    def test_build_ledger_store_picks_backend(self) -> None:
        db = AsyncMock()

        assert isinstance(build_ledger_store(LedgerKind.ACCOUNTS, db), SqlAccountsLedger)
        assert isinstance(build_ledger_store(LedgerKind.INVOICES, db), SqlInvoicesLedger)

    @pytest.mark.asyncio
    async def test_database_error_becomes_source_unavailable(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

        with pytest.raises(SourceUnavailable) as exc_info:
            await fetch_movements(SqlAccountsLedger(db), LedgerKind.ACCOUNTS, JAN_1, MAR_31)

        assert exc_info.value.ledger_kind == LedgerKind.ACCOUNTS
        assert exc_info.value.period_start == JAN_1
        assert exc_info.value.period_end == MAR_31
        assert "ACCOUNTS ledger unavailable" in str(exc_info.value)


class TestFetchMovements:
    @pytest.mark.asyncio
    async def test_empty_ledger_is_valid(self) -> None:
        assert await fetch_movements(InMemoryLedgerStore(), LedgerKind.ACCOUNTS, JAN_1, MAR_31) == []

    @pytest.mark.asyncio
    async def test_unpaid_accounts_are_excluded(self) -> None:
        store = InMemoryLedgerStore(
            [
                AccountEntryFactory.build(status="PAID"),
                AccountEntryFactory.build(status="PENDING"),
                AccountEntryFactory.build(status="OVERDUE"),
                AccountEntryFactory.build(status="pago"),
            ]
        )

        movements = await fetch_movements(store, LedgerKind.ACCOUNTS, JAN_1, MAR_31)

        assert len(movements) == 2

    @pytest.mark.asyncio
    async def test_amounts_are_quantized_to_cents(self) -> None:
        store = InMemoryLedgerStore([InvoiceEntryFactory.build(amount=Decimal("10.005"))])

        movements = await fetch_movements(store, LedgerKind.INVOICES, JAN_1, MAR_31)

        assert movements[0].amount == Decimal("10.00")
        assert movements[0].line_item == LineItem.PIX_RECEIPTS

    @pytest.mark.asyncio
    async def test_inverted_range_never_queries_store(self) -> None:
        store = InMemoryLedgerStore()

        with pytest.raises(InvalidRange):
            await fetch_movements(store, LedgerKind.ACCOUNTS, MAR_31, JAN_1)

        assert store.list_calls == []

    @pytest.mark.asyncio
    async def test_negative_amount_is_malformed(self) -> None:
        entry = AccountEntryFactory.build(amount=Decimal("-5.00"))

        with pytest.raises(MalformedEntry) as exc_info:
            await fetch_movements(InMemoryLedgerStore([entry]), LedgerKind.ACCOUNTS, JAN_1, MAR_31)

        assert exc_info.value.entry_id == entry.id
        assert "negative amount" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_numeric_amount_is_malformed(self) -> None:
        entry = InvoiceEntryFactory.build(amount="twelve")

        with pytest.raises(MalformedEntry, match="Not a numeric amount"):
            await fetch_movements(InMemoryLedgerStore([entry]), LedgerKind.INVOICES, JAN_1, MAR_31)

    @pytest.mark.asyncio
    async def test_unknown_type_is_malformed(self) -> None:
        entry = AccountEntryFactory.build(account_type="LOAN")

        with pytest.raises(MalformedEntry, match="Unknown account type"):
            await fetch_movements(InMemoryLedgerStore([entry]), LedgerKind.ACCOUNTS, JAN_1, MAR_31)

    @pytest.mark.asyncio
    async def test_os_error_becomes_source_unavailable(self) -> None:
        store = InMemoryLedgerStore(error=ConnectionRefusedError("refused"))

        with pytest.raises(SourceUnavailable, match="refused"):
            await fetch_movements(store, LedgerKind.INVOICES, JAN_1, MAR_31)


class TestFetchOpeningBalance:
    @pytest.mark.asyncio
    async def test_no_history_opens_at_zero(self) -> None:
        balance = await fetch_opening_balance(InMemoryLedgerStore(), LedgerKind.ACCOUNTS, JAN_1, MAR_31)

        assert balance == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_history_nets_inflows_against_outflows(self) -> None:
        store = InMemoryLedgerStore(
            [
                _paid("RECEIVABLE", "500.00", date(2024, 11, 3)),
                _paid("PAYABLE", "120.00", date(2024, 12, 20)),
                _paid("PAYABLE", "999.00", date(2025, 1, 2)),
            ]
        )

        balance = await fetch_opening_balance(store, LedgerKind.ACCOUNTS, JAN_1, MAR_31)

        assert balance == Decimal("380.00")
        assert store.totals_calls == [JAN_1]

    @pytest.mark.asyncio
    async def test_invoice_history(self) -> None:
        store = InMemoryLedgerStore(
            [
                InvoiceEntryFactory.build(invoice_type="ENTRADA", amount=Decimal("70.00"), issue_date=date(2024, 6, 1)),
                InvoiceEntryFactory.build(invoice_type="SAIDA", amount=Decimal("90.00"), issue_date=date(2024, 7, 1)),
            ]
        )

        assert await fetch_opening_balance(store, LedgerKind.INVOICES, JAN_1, MAR_31) == Decimal("-20.00")

    @pytest.mark.asyncio
    async def test_unknown_type_in_history_is_malformed(self) -> None:
        db = _session_returning(rows=[SimpleNamespace(invoice_type="VOID", total=Decimal("1.00"))])

        with pytest.raises(MalformedEntry):
            await fetch_opening_balance(SqlInvoicesLedger(db), LedgerKind.INVOICES, JAN_1, MAR_31)

    @pytest.mark.asyncio
    async def test_store_failure_becomes_source_unavailable(self) -> None:
        store = InMemoryLedgerStore(error=TimeoutError())

        with pytest.raises(SourceUnavailable, match="TimeoutError"):
            await fetch_opening_balance(store, LedgerKind.ACCOUNTS, JAN_1, MAR_31)

    @pytest.mark.asyncio
    async def test_oversized_history_is_malformed(self) -> None:
        db = _session_returning(rows=[SimpleNamespace(account_type="RECEIVABLE", total=Decimal("1e30"))])

        with pytest.raises(MalformedEntry, match="out of range"):
            await fetch_opening_balance(SqlAccountsLedger(db), LedgerKind.ACCOUNTS, JAN_1, MAR_31)
