"""Pydantic schemas for cash-flow reporting endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer

from cashflow_report.services.balances import MonthBucket
from cashflow_report.services.ledger import LedgerKind
from cashflow_report.services.reporting import CashFlowReport, CashFlowRequest, PeriodTotals


def _format_money(value: Decimal) -> str:
    return f"{value:.2f}"


# Decimal in Python, exact two-place decimal string in JSON
Money = Annotated[Decimal, PlainSerializer(_format_money, return_type=str, when_used="json")]


class CashFlowReportRequest(BaseModel):
    """One report to compute in a batch."""

    ledger_kind: LedgerKind = LedgerKind.ACCOUNTS
    period_start: date
    period_end: date
    opening_balance: Decimal | None = None

    def to_request(self) -> CashFlowRequest:
        return CashFlowRequest(
            ledger_kind=self.ledger_kind,
            period_start=self.period_start,
            period_end=self.period_end,
            opening_balance=self.opening_balance,
        )


class PeriodTotalsResponse(BaseModel):
    """Line items, totals, nets and shares of a month or of a whole report."""

    line_item_totals: dict[str, Money]
    total_inflow: Money
    total_outflow: Money
    inflow_count: int
    outflow_count: int
    net_operating: Money
    net_investing: Money
    net_financing: Money
    net_result: Money
    share_operating: Money
    share_investing: Money
    share_financing: Money
    share_result: Money

    @classmethod
    def _fields_from(cls, totals: PeriodTotals | MonthBucket) -> dict:
        return {
            "line_item_totals": {item.value: amount for item, amount in totals.line_item_totals.items()},
            "total_inflow": totals.total_inflow,
            "total_outflow": totals.total_outflow,
            "inflow_count": totals.inflow_count,
            "outflow_count": totals.outflow_count,
            "net_operating": totals.net_operating,
            "net_investing": totals.net_investing,
            "net_financing": totals.net_financing,
            "net_result": totals.net_result,
            "share_operating": totals.share_operating,
            "share_investing": totals.share_investing,
            "share_financing": totals.share_financing,
            "share_result": totals.share_result,
        }

    @classmethod
    def from_totals(cls, totals: PeriodTotals) -> PeriodTotalsResponse:
        return cls(**cls._fields_from(totals))


class MonthBucketResponse(PeriodTotalsResponse):
    """One calendar month of a report."""

    label: str = Field(description="Month in YYYY-MM form")
    period_start: date
    period_end: date
    opening_balance: Money
    closing_balance: Money

    @classmethod
    def from_bucket(cls, bucket: MonthBucket) -> MonthBucketResponse:
        return cls(
            **cls._fields_from(bucket),
            label=bucket.label,
            period_start=bucket.period_start,
            period_end=bucket.period_end,
            opening_balance=bucket.opening_balance,
            closing_balance=bucket.closing_balance,
        )


class CashFlowReportResponse(BaseModel):
    """Month-by-month cash-flow report."""

    ledger_kind: LedgerKind
    period_start: date
    period_end: date
    opening_balance: Money
    closing_balance: Money
    months: list[MonthBucketResponse]
    totals: PeriodTotalsResponse

    @classmethod
    def from_report(cls, report: CashFlowReport) -> CashFlowReportResponse:
        return cls(
            ledger_kind=report.ledger_kind,
            period_start=report.period_start,
            period_end=report.period_end,
            opening_balance=report.opening_balance,
            closing_balance=report.closing_balance,
            months=[MonthBucketResponse.from_bucket(bucket) for bucket in report.months],
            totals=PeriodTotalsResponse.from_totals(report.totals),
        )
