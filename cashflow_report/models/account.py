"""Accounts payable/receivable ledger model."""

from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from cashflow_report.database import Base
from cashflow_report.models.base import TimestampMixin, UUIDMixin


class AccountType(str, enum.Enum):
    """Whether the account is money owed to us or by us."""

    RECEIVABLE = "RECEIVABLE"
    PAYABLE = "PAYABLE"


class AccountStatus(str, enum.Enum):
    """Settlement status of an account."""

    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class FinancialCategory(str, enum.Enum):
    """Cash-flow statement section an account is tagged with."""

    OPERATING = "OPERATING"
    INVESTING = "INVESTING"
    FINANCING = "FINANCING"


class LedgerAccount(UUIDMixin, TimestampMixin, Base):
    """
    A payable or receivable maintained by the administrative console.

    Type, status and classification tags are stored as free strings: the console
    has written both English and legacy codes over time, and the reporting engine
    normalizes them on read instead of rejecting rows.
    """

    __tablename__ = "ledger_accounts"
    __table_args__ = (Index("ix_ledger_accounts_status_payment_date", "status", "payment_date"),)

    account_type: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=AccountStatus.PENDING.value)
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(32), nullable=True)
    financial_category: Mapped[str | None] = mapped_column(String(32), nullable=True)
    subcategory: Mapped[str | None] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<LedgerAccount {self.account_type} {self.amount} ({self.status})>"
