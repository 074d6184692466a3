"""Running balance threading across month buckets."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from functools import reduce

from cashflow_report.services.aggregation import MonthSummary
from cashflow_report.utils.money import ZERO


@dataclass(frozen=True)
class MonthBucket(MonthSummary):
    """A month of the report with its opening and closing cash balance."""

    opening_balance: Decimal
    closing_balance: Decimal


def _carry(threaded: tuple[MonthBucket, ...], summary: MonthSummary, opening: Decimal) -> tuple[MonthBucket, ...]:
    if threaded:
        opening = threaded[-1].closing_balance
    bucket = MonthBucket(
        **vars(summary),
        opening_balance=opening,
        closing_balance=opening + summary.net_result,
    )
    return threaded + (bucket,)


def thread_balances(summaries: Sequence[MonthSummary], opening_balance: Decimal = ZERO) -> tuple[MonthBucket, ...]:
    """Left-fold the opening balance through chronologically ordered months.

    The first month opens with `opening_balance`; every later month opens with
    the previous month's close. This step is inherently sequential.
    """
    return reduce(
        lambda threaded, summary: _carry(threaded, summary, opening_balance),
        sorted(summaries, key=lambda summary: summary.period_start),
        (),
    )
