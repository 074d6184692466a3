"""Per-month aggregation of classified movements."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from cashflow_report.services.classification import ActivityCategory, Direction, LineItem, Movement
from cashflow_report.services.periods import PeriodBucket
from cashflow_report.utils.money import ZERO, percentage_of


@dataclass(frozen=True)
class CashFlowTotals:
    """Line items, totals, per-activity nets and shares of a slice of movements.

    Line item totals are magnitudes: inflow and outflow rows are never netted
    against each other. Shares are percentages of total_inflow + total_outflow.
    """

    line_item_totals: dict[LineItem, Decimal]
    total_inflow: Decimal
    total_outflow: Decimal
    inflow_count: int
    outflow_count: int
    net_operating: Decimal
    net_investing: Decimal
    net_financing: Decimal
    net_result: Decimal
    share_operating: Decimal
    share_investing: Decimal
    share_financing: Decimal
    share_result: Decimal


@dataclass(frozen=True)
class MonthSummary(CashFlowTotals):
    """Aggregated month before running balances are threaded through it."""

    label: str
    period_start: date
    period_end: date


def ordered_line_items(totals: dict[LineItem, Decimal]) -> dict[LineItem, Decimal]:
    """Re-key a line item mapping in presentation order."""
    return {item: totals[item] for item in LineItem if item in totals}


def build_totals(
    *,
    line_item_totals: dict[LineItem, Decimal],
    total_inflow: Decimal,
    total_outflow: Decimal,
    inflow_count: int,
    outflow_count: int,
    net_operating: Decimal,
    net_investing: Decimal,
    net_financing: Decimal,
) -> CashFlowTotals:
    """Derive net result and shares from the summed components."""
    net_result = net_operating + net_investing + net_financing
    volume = total_inflow + total_outflow
    return CashFlowTotals(
        line_item_totals=ordered_line_items(line_item_totals),
        total_inflow=total_inflow,
        total_outflow=total_outflow,
        inflow_count=inflow_count,
        outflow_count=outflow_count,
        net_operating=net_operating,
        net_investing=net_investing,
        net_financing=net_financing,
        net_result=net_result,
        share_operating=percentage_of(net_operating, volume),
        share_investing=percentage_of(net_investing, volume),
        share_financing=percentage_of(net_financing, volume),
        share_result=percentage_of(net_result, volume),
    )


def summarize(movements: Iterable[Movement]) -> CashFlowTotals:
    """Sum movements into line items, directional totals and per-activity nets."""
    line_item_totals: dict[LineItem, Decimal] = {}
    inflow = {activity: ZERO for activity in ActivityCategory}
    outflow = {activity: ZERO for activity in ActivityCategory}
    inflow_count = 0
    outflow_count = 0

    for movement in movements:
        line_item_totals[movement.line_item] = line_item_totals.get(movement.line_item, ZERO) + movement.amount
        if movement.direction == Direction.INFLOW:
            inflow[movement.activity] += movement.amount
            inflow_count += 1
        else:
            outflow[movement.activity] += movement.amount
            outflow_count += 1

    return build_totals(
        line_item_totals=line_item_totals,
        total_inflow=sum(inflow.values(), ZERO),
        total_outflow=sum(outflow.values(), ZERO),
        inflow_count=inflow_count,
        outflow_count=outflow_count,
        net_operating=inflow[ActivityCategory.OPERATING] - outflow[ActivityCategory.OPERATING],
        net_investing=inflow[ActivityCategory.INVESTING] - outflow[ActivityCategory.INVESTING],
        net_financing=inflow[ActivityCategory.FINANCING] - outflow[ActivityCategory.FINANCING],
    )


def aggregate(bucket: PeriodBucket) -> MonthSummary:
    """Aggregate one month bucket. Buckets are independent of each other here."""
    totals = summarize(bucket.movements)
    return MonthSummary(
        **vars(totals),
        label=bucket.label,
        period_start=bucket.start,
        period_end=bucket.end,
    )
