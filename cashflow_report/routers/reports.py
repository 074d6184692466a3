"""Cash-flow reporting API router."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import TypeVar

from fastapi import APIRouter, Body, Query

from cashflow_report.config import settings
from cashflow_report.constants.error_ids import ErrorIds
from cashflow_report.database import create_session_maker_from_db
from cashflow_report.deps import DbSession
from cashflow_report.logger import get_logger
from cashflow_report.schemas import CashFlowReportRequest, CashFlowReportResponse
from cashflow_report.services.ledger import LedgerKind, LedgerStore, build_ledger_store
from cashflow_report.services.periods import PeriodPreset, default_range, resolve_preset
from cashflow_report.services.reporting import (
    InvalidOpeningBalance,
    InvalidRange,
    MalformedEntry,
    SourceUnavailable,
    generate_cash_flow_report,
    generate_cash_flow_reports,
)
from cashflow_report.utils import (
    raise_bad_request,
    raise_gateway_timeout,
    raise_service_unavailable,
    raise_unprocessable,
)

router = APIRouter(prefix="/reports", tags=["reports"])
logger = get_logger(__name__)

T = TypeVar("T")

# Upper bound on reports computed by one batch call
MAX_BATCH_SIZE = 24


def _resolve_range(
    period_start: date | None,
    period_end: date | None,
    preset: PeriodPreset | None,
    today: date,
) -> tuple[date, date]:
    """Explicit dates win over a preset; missing ends fall back to the default lookback."""
    if preset is not None and period_start is None and period_end is None:
        return resolve_preset(preset, today)
    default_start, default_end = default_range(today, settings.default_lookback_months)
    return period_start or default_start, period_end or default_end


async def _run_with_timeout(operation: Awaitable[T], **log_context: object) -> T:
    """Await a report computation, translating engine errors to HTTP errors."""
    try:
        return await asyncio.wait_for(operation, timeout=settings.report_timeout_seconds)
    except (InvalidRange, InvalidOpeningBalance) as exc:
        logger.warning("Cash flow report rejected", error=str(exc), **log_context)
        raise_bad_request(str(exc), cause=exc)
    except MalformedEntry as exc:
        logger.warning(
            "Cash flow report aborted on malformed entry",
            error_id=ErrorIds.LEDGER_MALFORMED_ENTRY,
            entry_id=exc.entry_id,
            error=str(exc),
            **log_context,
        )
        raise_unprocessable(str(exc), cause=exc)
    except SourceUnavailable as exc:
        raise_service_unavailable(str(exc), cause=exc)
    except TimeoutError as exc:
        logger.error(
            "Cash flow report timed out",
            error_id=ErrorIds.REPORT_TIMEOUT,
            timeout_seconds=settings.report_timeout_seconds,
            **log_context,
        )
        raise_gateway_timeout(
            f"Report generation exceeded {settings.report_timeout_seconds:g}s",
            cause=exc,
        )


@router.get("/cash-flow", response_model=CashFlowReportResponse)
async def cash_flow(
    period_start: date | None = Query(default=None),
    period_end: date | None = Query(default=None),
    ledger_kind: LedgerKind = Query(default=LedgerKind.ACCOUNTS),
    preset: PeriodPreset | None = Query(default=None),
    opening_balance: Decimal | None = Query(default=None),
    db: DbSession = None,
) -> CashFlowReportResponse:
    """Get a month-by-month cash flow report for a period."""
    start, end = _resolve_range(period_start, period_end, preset, date.today())
    store = build_ledger_store(ledger_kind, db)
    report = await _run_with_timeout(
        generate_cash_flow_report(
            store,
            ledger_kind=ledger_kind,
            period_start=start,
            period_end=end,
            opening_balance=opening_balance,
        ),
        ledger_kind=ledger_kind.value,
        period_start=start.isoformat(),
        period_end=end.isoformat(),
    )
    return CashFlowReportResponse.from_report(report)


@router.post("/cash-flow/batch", response_model=list[CashFlowReportResponse])
async def cash_flow_batch(
    requests: list[CashFlowReportRequest] = Body(..., min_length=1, max_length=MAX_BATCH_SIZE),
    db: DbSession = None,
) -> list[CashFlowReportResponse]:
    """Compute several independent cash flow reports concurrently, in request order."""
    session_maker = create_session_maker_from_db(db)

    @asynccontextmanager
    async def open_store(ledger_kind: LedgerKind) -> AsyncIterator[LedgerStore]:
        async with session_maker() as session:
            yield build_ledger_store(ledger_kind, session)

    reports = await _run_with_timeout(
        generate_cash_flow_reports([request.to_request() for request in requests], open_store),
        batch_size=len(requests),
    )
    return [CashFlowReportResponse.from_report(report) for report in reports]
