"""Stable error identifiers attached to error logs.

Dashboards and alerts key on these values, so they never change once shipped.
"""


class ErrorIds:
    REPORT_INVALID_RANGE = "CF-REPORT-001"
    REPORT_GENERATION_FAILED = "CF-REPORT-002"
    REPORT_TIMEOUT = "CF-REPORT-003"
    LEDGER_SOURCE_UNAVAILABLE = "CF-LEDGER-001"
    LEDGER_MALFORMED_ENTRY = "CF-LEDGER-002"
