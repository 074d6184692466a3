"""Ledger adapters: read accounts or invoices and normalize them into movements."""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cashflow_report.constants.error_ids import ErrorIds
from cashflow_report.logger import get_logger, log_exception
from cashflow_report.models import Invoice, LedgerAccount
from cashflow_report.services.classification import (
    AccountEntry,
    Direction,
    InvoiceEntry,
    Movement,
    account_direction,
    classify,
    invoice_direction,
    normalize_code,
)
from cashflow_report.services.periods import ReportError, validate_range
from cashflow_report.utils.money import ZERO, quantize_money, to_decimal

logger = get_logger(__name__)

# Status codes that mean an account was settled in cash
PAID_STATUS_CODES = ("PAID", "PAGO")

_STORE_ERRORS = (SQLAlchemyError, OSError, TimeoutError)


class LedgerKind(str, enum.Enum):
    """Ledger a report is computed over."""

    ACCOUNTS = "ACCOUNTS"
    INVOICES = "INVOICES"


class SourceUnavailable(ReportError):
    """Raised when a ledger store cannot be reached."""

    def __init__(self, ledger_kind: LedgerKind, period_start: date, period_end: date, reason: str) -> None:
        self.ledger_kind = ledger_kind
        self.period_start = period_start
        self.period_end = period_end
        super().__init__(
            f"{ledger_kind.value} ledger unavailable for {period_start.isoformat()}..{period_end.isoformat()}: {reason}"
        )


class MalformedEntry(ReportError):
    """Raised when a ledger row cannot be ingested (negative or non-numeric amount, unknown type)."""

    def __init__(self, ledger_kind: LedgerKind, entry_id: str | None, reason: str) -> None:
        self.ledger_kind = ledger_kind
        self.entry_id = entry_id
        super().__init__(f"Malformed {ledger_kind.value} entry {entry_id or '<aggregate>'}: {reason}")


class LedgerStore(Protocol):
    """Read-only surface the engine needs from a ledger."""

    async def list_entries(self, start: date, end: date) -> Sequence[AccountEntry | InvoiceEntry]:
        """Entries realized in [start, end]."""
        ...

    async def totals_before(self, start: date) -> Sequence[tuple[str, Decimal]]:
        """Summed amounts per type code of every entry realized before `start`."""
        ...


class SqlAccountsLedger:
    """Accounts ledger backed by the `ledger_accounts` table."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    def _paid(self):
        return (
            select(LedgerAccount)
            .where(func.upper(func.trim(LedgerAccount.status)).in_(PAID_STATUS_CODES))
            .where(LedgerAccount.payment_date.is_not(None))
        )

    async def list_entries(self, start: date, end: date) -> list[AccountEntry]:
        stmt = (
            self._paid()
            .where(LedgerAccount.payment_date >= start)
            .where(LedgerAccount.payment_date <= end)
            .order_by(LedgerAccount.payment_date, LedgerAccount.id)
        )
        result = await self._db.execute(stmt)
        return [
            AccountEntry(
                id=str(row.id),
                account_type=row.account_type,
                status=row.status,
                amount=row.amount,
                due_date=row.due_date,
                payment_date=row.payment_date,
                financial_category=row.financial_category,
                subcategory=row.subcategory,
                payment_method=row.payment_method,
                description=row.description or "",
            )
            for row in result.scalars().all()
        ]

    async def totals_before(self, start: date) -> list[tuple[str, Decimal]]:
        stmt = (
            select(LedgerAccount.account_type, func.sum(LedgerAccount.amount).label("total"))
            .where(func.upper(func.trim(LedgerAccount.status)).in_(PAID_STATUS_CODES))
            .where(LedgerAccount.payment_date < start)
            .group_by(LedgerAccount.account_type)
        )
        result = await self._db.execute(stmt)
        return [(row.account_type, row.total) for row in result.all()]


class SqlInvoicesLedger:
    """Invoices ledger backed by the `invoices` table."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list_entries(self, start: date, end: date) -> list[InvoiceEntry]:
        stmt = (
            select(Invoice)
            .where(Invoice.issue_date >= start)
            .where(Invoice.issue_date <= end)
            .order_by(Invoice.issue_date, Invoice.id)
        )
        result = await self._db.execute(stmt)
        return [
            InvoiceEntry(
                id=str(row.id),
                invoice_type=row.invoice_type,
                amount=row.total_amount,
                issue_date=row.issue_date,
                payment_method=row.payment_method,
                number=row.number or "",
            )
            for row in result.scalars().all()
        ]

    async def totals_before(self, start: date) -> list[tuple[str, Decimal]]:
        stmt = (
            select(Invoice.invoice_type, func.sum(Invoice.total_amount).label("total"))
            .where(Invoice.issue_date < start)
            .group_by(Invoice.invoice_type)
        )
        result = await self._db.execute(stmt)
        return [(row.invoice_type, row.total) for row in result.all()]


def build_ledger_store(ledger_kind: LedgerKind, db: AsyncSession) -> LedgerStore:
    if ledger_kind == LedgerKind.ACCOUNTS:
        return SqlAccountsLedger(db)
    return SqlInvoicesLedger(db)


def _is_realized(entry: AccountEntry | InvoiceEntry) -> bool:
    if isinstance(entry, InvoiceEntry):
        return True
    return normalize_code(entry.status) in PAID_STATUS_CODES and entry.payment_date is not None


def _ingest(ledger_kind: LedgerKind, entry: AccountEntry | InvoiceEntry) -> Movement:
    try:
        amount = to_decimal(entry.amount)
    except ValueError as exc:
        raise MalformedEntry(ledger_kind, entry.id, str(exc)) from exc
    if amount < ZERO:
        raise MalformedEntry(ledger_kind, entry.id, f"negative amount {amount}")

    try:
        return classify(replace(entry, amount=quantize_money(amount)))
    except ValueError as exc:
        raise MalformedEntry(ledger_kind, entry.id, str(exc)) from exc


def _source_unavailable(
    exc: Exception, ledger_kind: LedgerKind, period_start: date, period_end: date
) -> SourceUnavailable:
    log_exception(
        logger,
        exc,
        "Ledger store unavailable",
        include_traceback=False,
        error_id=ErrorIds.LEDGER_SOURCE_UNAVAILABLE,
        ledger_kind=ledger_kind.value,
        period_start=period_start.isoformat(),
        period_end=period_end.isoformat(),
    )
    return SourceUnavailable(ledger_kind, period_start, period_end, str(exc) or type(exc).__name__)


async def fetch_movements(store: LedgerStore, ledger_kind: LedgerKind, start: date, end: date) -> list[Movement]:
    """Read realized entries dated in [start, end] and classify them.

    Accounts count only once paid, on their payment date. Invoices count on
    their issue date. An empty ledger yields an empty list.

    Raises:
        InvalidRange: start is after end; the store is not queried.
        SourceUnavailable: the store could not be read.
        MalformedEntry: a row has a negative/non-numeric amount or an unknown type.
    """
    validate_range(start, end)

    try:
        entries = await store.list_entries(start, end)
    except _STORE_ERRORS as exc:
        raise _source_unavailable(exc, ledger_kind, start, end) from exc

    realized = [entry for entry in entries if _is_realized(entry)]
    movements = [_ingest(ledger_kind, entry) for entry in realized]

    logger.info(
        "Fetched ledger movements",
        ledger_kind=ledger_kind.value,
        period_start=start.isoformat(),
        period_end=end.isoformat(),
        movements=len(movements),
        excluded_unrealized=len(entries) - len(realized),
    )
    return movements


async def fetch_opening_balance(store: LedgerStore, ledger_kind: LedgerKind, start: date, end: date) -> Decimal:
    """Net realized cash of everything before `start`; zero without history."""
    try:
        rows = await store.totals_before(start)
    except _STORE_ERRORS as exc:
        raise _source_unavailable(exc, ledger_kind, start, end) from exc

    direction_of = account_direction if ledger_kind == LedgerKind.ACCOUNTS else invoice_direction
    balance = ZERO
    for type_code, total in rows:
        try:
            direction = direction_of(type_code)
            amount = to_decimal(total if total is not None else ZERO)
        except ValueError as exc:
            raise MalformedEntry(ledger_kind, None, str(exc)) from exc
        balance += amount if direction == Direction.INFLOW else -amount

    try:
        return quantize_money(balance)
    except ValueError as exc:
        raise MalformedEntry(ledger_kind, None, str(exc)) from exc
