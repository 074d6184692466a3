"""Pydantic schemas."""

from cashflow_report.schemas.reporting import (
    CashFlowReportRequest,
    CashFlowReportResponse,
    MonthBucketResponse,
    PeriodTotalsResponse,
)

__all__ = [
    "CashFlowReportRequest",
    "CashFlowReportResponse",
    "MonthBucketResponse",
    "PeriodTotalsResponse",
]
