"""SQLAlchemy models package."""

from cashflow_report.models.account import AccountStatus, AccountType, FinancialCategory, LedgerAccount
from cashflow_report.models.invoice import Invoice, InvoiceType, PaymentMethod

__all__ = [
    "AccountStatus",
    "AccountType",
    "FinancialCategory",
    "Invoice",
    "InvoiceType",
    "LedgerAccount",
    "PaymentMethod",
]
