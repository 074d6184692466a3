"""Calendar-month periods and bucketing of movements."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta

from cashflow_report.logger import get_logger
from cashflow_report.services.classification import Movement

logger = get_logger(__name__)


class ReportError(Exception):
    """Raised when report generation fails or input is invalid."""

    pass


class InvalidRange(ReportError):
    """Raised when a requested period is empty or cannot be resolved."""

    pass


class PeriodPreset(str, enum.Enum):
    """Quick period filters offered by the report screens."""

    CURRENT_MONTH = "current-month"
    PREVIOUS_MONTH = "previous-month"
    QUARTER = "quarter"
    SEMESTER = "semester"
    CURRENT_YEAR = "current-year"
    PREVIOUS_YEAR = "previous-year"


@dataclass
class PeriodBucket:
    """One calendar month of the requested range and the movements dated in it."""

    label: str
    start: date
    end: date
    movements: list[Movement] = field(default_factory=list)


def validate_range(start: date, end: date) -> None:
    if start > end:
        raise InvalidRange(f"period_start {start.isoformat()} is after period_end {end.isoformat()}")


def month_start(value: date) -> date:
    return value.replace(day=1)


def month_end(value: date) -> date:
    next_month = value.replace(day=28) + timedelta(days=4)
    return next_month.replace(day=1) - timedelta(days=1)


def add_months(value: date, months: int) -> date:
    year = value.year + (value.month - 1 + months) // 12
    month = (value.month - 1 + months) % 12 + 1
    day = min(value.day, month_end(date(year, month, 1)).day)
    return date(year, month, day)


def month_label(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def iter_months(start: date, end: date) -> list[PeriodBucket]:
    """Empty buckets for every calendar month touched by [start, end], clipped to the range."""
    validate_range(start, end)
    buckets: list[PeriodBucket] = []
    cursor = month_start(start)

    while cursor <= end:
        buckets.append(
            PeriodBucket(
                label=month_label(cursor),
                start=max(cursor, start),
                end=min(month_end(cursor), end),
            )
        )
        cursor = add_months(cursor, 1)

    return buckets


def bucketize(movements: Iterable[Movement], start: date, end: date) -> list[PeriodBucket]:
    """Group movements into contiguous month buckets spanning [start, end].

    Months without movements still get a bucket. Movements dated outside the
    range are dropped rather than raising.
    """
    buckets = iter_months(start, end)
    by_label = {bucket.label: bucket for bucket in buckets}
    dropped = 0

    for movement in movements:
        if movement.effective_date < start or movement.effective_date > end:
            dropped += 1
            continue
        by_label[month_label(movement.effective_date)].movements.append(movement)

    if dropped:
        logger.warning(
            "Ignored movements outside the requested period",
            dropped=dropped,
            period_start=start.isoformat(),
            period_end=end.isoformat(),
        )

    return buckets


def resolve_preset(preset: PeriodPreset | str, today: date) -> tuple[date, date]:
    """Translate a quick period filter into a concrete [start, end] range."""
    try:
        preset = PeriodPreset(preset)
    except ValueError as exc:
        raise InvalidRange(f"Unsupported period preset: {preset}") from exc

    if preset == PeriodPreset.CURRENT_MONTH:
        return month_start(today), month_end(today)
    if preset == PeriodPreset.PREVIOUS_MONTH:
        previous = add_months(month_start(today), -1)
        return previous, month_end(previous)
    if preset == PeriodPreset.QUARTER:
        first = date(today.year, ((today.month - 1) // 3) * 3 + 1, 1)
        return first, month_end(add_months(first, 2))
    if preset == PeriodPreset.SEMESTER:
        first = date(today.year, 1 if today.month <= 6 else 7, 1)
        return first, month_end(add_months(first, 5))
    if preset == PeriodPreset.CURRENT_YEAR:
        return date(today.year, 1, 1), date(today.year, 12, 31)
    return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)


def default_range(today: date, lookback_months: int) -> tuple[date, date]:
    """Range used when a caller names neither dates nor a preset."""
    return add_months(today, -lookback_months), today
