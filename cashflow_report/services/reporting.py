"""Cash-flow report generation.

Pipeline, in strict stage order:
fetch + classify -> bucketize by month -> aggregate each month -> thread running
balances -> assemble the report with period-wide totals.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from cashflow_report.constants.error_ids import ErrorIds
from cashflow_report.logger import async_log_timing, get_logger, log_timing
from cashflow_report.services.aggregation import CashFlowTotals, aggregate, build_totals
from cashflow_report.services.balances import MonthBucket, thread_balances
from cashflow_report.services.classification import LineItem
from cashflow_report.services.ledger import (
    LedgerKind,
    LedgerStore,
    MalformedEntry,
    SourceUnavailable,
    fetch_movements,
    fetch_opening_balance,
)
from cashflow_report.services.periods import InvalidRange, ReportError, bucketize, validate_range
from cashflow_report.utils.money import ZERO, quantize_money, to_decimal

logger = get_logger(__name__)

__all__ = [
    "CashFlowReport",
    "CashFlowRequest",
    "InvalidOpeningBalance",
    "InvalidRange",
    "MalformedEntry",
    "PeriodTotals",
    "ReportError",
    "SourceUnavailable",
    "assemble",
    "generate_cash_flow_report",
    "generate_cash_flow_reports",
    "sum_period_totals",
]


class InvalidOpeningBalance(ReportError):
    """Raised when a caller-supplied opening balance is not a usable amount."""

    pass


@dataclass(frozen=True)
class PeriodTotals(CashFlowTotals):
    """Totals across every month of a report. Balances are not summable, so there are none."""


@dataclass(frozen=True)
class CashFlowReport:
    ledger_kind: LedgerKind
    period_start: date
    period_end: date
    months: tuple[MonthBucket, ...]
    totals: PeriodTotals
    opening_balance: Decimal
    closing_balance: Decimal


@dataclass(frozen=True)
class CashFlowRequest:
    ledger_kind: LedgerKind
    period_start: date
    period_end: date
    opening_balance: Decimal | None = None


def sum_period_totals(buckets: Sequence[MonthBucket]) -> PeriodTotals:
    """Sum line items, totals, counts and nets field by field; shares are recomputed."""
    line_item_totals: dict[LineItem, Decimal] = {}
    for bucket in buckets:
        for item, amount in bucket.line_item_totals.items():
            line_item_totals[item] = line_item_totals.get(item, ZERO) + amount

    totals = build_totals(
        line_item_totals=line_item_totals,
        total_inflow=sum((b.total_inflow for b in buckets), ZERO),
        total_outflow=sum((b.total_outflow for b in buckets), ZERO),
        inflow_count=sum(b.inflow_count for b in buckets),
        outflow_count=sum(b.outflow_count for b in buckets),
        net_operating=sum((b.net_operating for b in buckets), ZERO),
        net_investing=sum((b.net_investing for b in buckets), ZERO),
        net_financing=sum((b.net_financing for b in buckets), ZERO),
    )
    return PeriodTotals(**vars(totals))


def assemble(
    period_start: date,
    period_end: date,
    buckets: Sequence[MonthBucket],
    *,
    ledger_kind: LedgerKind = LedgerKind.ACCOUNTS,
) -> CashFlowReport:
    """Package threaded month buckets and their period totals into the final report."""
    months = tuple(buckets)
    return CashFlowReport(
        ledger_kind=ledger_kind,
        period_start=period_start,
        period_end=period_end,
        months=months,
        totals=sum_period_totals(months),
        opening_balance=months[0].opening_balance if months else ZERO,
        closing_balance=months[-1].closing_balance if months else ZERO,
    )


def _checked_opening_balance(value: Decimal) -> Decimal:
    try:
        return quantize_money(to_decimal(value))
    except ValueError as exc:
        raise InvalidOpeningBalance(f"Invalid opening balance: {exc}") from exc


async def generate_cash_flow_report(
    store: LedgerStore,
    *,
    ledger_kind: LedgerKind,
    period_start: date,
    period_end: date,
    opening_balance: Decimal | None = None,
) -> CashFlowReport:
    """Generate a month-by-month cash-flow report over one ledger.

    When `opening_balance` is None the first month opens with the ledger's
    realized net before `period_start` (zero without prior history).

    Raises:
        InvalidRange: period_start is after period_end; nothing is fetched.
        InvalidOpeningBalance: opening_balance does not fit a cent-precision amount.
        SourceUnavailable: the ledger store could not be read. No partial report.
        MalformedEntry: a ledger row could not be ingested.
    """
    if period_start > period_end:
        logger.warning(
            "Rejected cash flow request with inverted range",
            error_id=ErrorIds.REPORT_INVALID_RANGE,
            ledger_kind=ledger_kind.value,
            period_start=period_start.isoformat(),
            period_end=period_end.isoformat(),
        )
    validate_range(period_start, period_end)
    if opening_balance is not None:
        opening_balance = _checked_opening_balance(opening_balance)

    async with async_log_timing(
        "generate_cash_flow_report",
        logger=logger,
        ledger_kind=ledger_kind.value,
        period_start=period_start.isoformat(),
        period_end=period_end.isoformat(),
    ) as timing:
        movements = await fetch_movements(store, ledger_kind, period_start, period_end)
        if opening_balance is None:
            opening_balance = await fetch_opening_balance(store, ledger_kind, period_start, period_end)

        with log_timing("aggregate_months", logger=logger, level="debug"):
            summaries = [aggregate(bucket) for bucket in bucketize(movements, period_start, period_end)]

        buckets = thread_balances(summaries, quantize_money(opening_balance))
        report = assemble(period_start, period_end, buckets, ledger_kind=ledger_kind)
        timing["months"] = len(report.months)
        timing["movements"] = len(movements)

    return report


async def generate_cash_flow_reports(
    requests: Sequence[CashFlowRequest],
    open_store: Callable[[LedgerKind], AbstractAsyncContextManager[LedgerStore]],
) -> list[CashFlowReport]:
    """Run independent report requests concurrently, each on its own store.

    Results keep the order of `requests`. The first failure cancels the other
    requests, whose stores are closed before the error propagates.
    """

    async def _run(request: CashFlowRequest) -> CashFlowReport:
        async with open_store(request.ledger_kind) as store:
            return await generate_cash_flow_report(
                store,
                ledger_kind=request.ledger_kind,
                period_start=request.period_start,
                period_end=request.period_end,
                opening_balance=request.opening_balance,
            )

    tasks: list[asyncio.Task[CashFlowReport]] = []
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(_run(request)) for request in requests]
    except ExceptionGroup as eg:
        # Propagate the first report error as-is
        for exc in eg.exceptions:
            if isinstance(exc, ReportError):
                raise exc
        raise

    return [task.result() for task in tasks]
