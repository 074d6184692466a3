"""Invoices ledger model."""

from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from cashflow_report.database import Base
from cashflow_report.models.base import TimestampMixin, UUIDMixin


class InvoiceType(str, enum.Enum):
    """Entry or exit fiscal document."""

    ENTRY = "ENTRY"
    EXIT = "EXIT"


class PaymentMethod(str, enum.Enum):
    """Payment methods offered by the console forms."""

    BOLETO = "BOLETO"
    TRANSFER = "TRANSFER"
    PIX = "PIX"
    CARD = "CARD"


class Invoice(UUIDMixin, TimestampMixin, Base):
    """An issued entry/exit invoice. Invoices have no pending state."""

    __tablename__ = "invoices"

    invoice_type: Mapped[str] = mapped_column(String(16), nullable=False)
    number: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    issue_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    payment_method: Mapped[str | None] = mapped_column(String(32), nullable=True)

    def __repr__(self) -> str:
        return f"<Invoice {self.number} {self.invoice_type} {self.total_amount}>"
