"""Activity classification for ledger entries.

Maps every raw ledger entry onto exactly one cash-flow direction, activity
section and report line item. Classification is total: unknown tags fall back
to the "other" row of the section instead of failing the report.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from cashflow_report.logger import get_logger

logger = get_logger(__name__)


class SourceKind(str, enum.Enum):
    """Ledger a movement was read from."""

    ACCOUNT = "ACCOUNT"
    INVOICE = "INVOICE"


class Direction(str, enum.Enum):
    INFLOW = "INFLOW"
    OUTFLOW = "OUTFLOW"


class ActivityCategory(str, enum.Enum):
    """The three sections of a cash-flow statement."""

    OPERATING = "OPERATING"
    INVESTING = "INVESTING"
    FINANCING = "FINANCING"


class LineItem(str, enum.Enum):
    """Named report rows, declared in presentation order."""

    # Operating
    SALES_RECEIPTS = "SALES_RECEIPTS"
    BOLETO_RECEIPTS = "BOLETO_RECEIPTS"
    TRANSFER_RECEIPTS = "TRANSFER_RECEIPTS"
    PIX_RECEIPTS = "PIX_RECEIPTS"
    OTHER_RECEIPTS = "OTHER_RECEIPTS"
    SUPPLIER_PAYMENTS = "SUPPLIER_PAYMENTS"
    VARIABLE_EXPENSES = "VARIABLE_EXPENSES"
    TAX_PAYMENTS = "TAX_PAYMENTS"
    ADMINISTRATIVE_EXPENSES = "ADMINISTRATIVE_EXPENSES"
    PAYROLL = "PAYROLL"
    FINANCIAL_EXPENSES = "FINANCIAL_EXPENSES"
    THIRD_PARTY_SERVICES = "THIRD_PARTY_SERVICES"
    MAINTENANCE = "MAINTENANCE"
    MARKETING = "MARKETING"
    INVOICE_PAYMENTS = "INVOICE_PAYMENTS"
    UNIDENTIFIED_PAYMENTS = "UNIDENTIFIED_PAYMENTS"
    # Investing
    YIELD_BONUS = "YIELD_BONUS"
    AUTOMATIC_REDEMPTION = "AUTOMATIC_REDEMPTION"
    AUTOMATIC_INVESTMENT = "AUTOMATIC_INVESTMENT"
    FIXED_ASSET_ACQUISITIONS = "FIXED_ASSET_ACQUISITIONS"
    CONSTRUCTION_RENOVATION = "CONSTRUCTION_RENOVATION"
    OTHER_INVESTMENTS = "OTHER_INVESTMENTS"
    # Financing
    LOAN_RECEIPTS = "LOAN_RECEIPTS"
    INSURANCE_RECEIPTS = "INSURANCE_RECEIPTS"
    OTHER_COMPANY_RECEIPTS = "OTHER_COMPANY_RECEIPTS"
    CUSTOMER_REIMBURSEMENT = "CUSTOMER_REIMBURSEMENT"
    LOAN_PAYMENTS = "LOAN_PAYMENTS"
    FINANCING_PAYMENTS = "FINANCING_PAYMENTS"
    WITHDRAWAL_NORDESTE_SERVICO = "WITHDRAWAL_NORDESTE_SERVICO"
    WITHDRAWAL_RENTAL_CAR = "WITHDRAWAL_RENTAL_CAR"
    PARTNER_WITHDRAWALS_NSERVICOS = "PARTNER_WITHDRAWALS_NSERVICOS"
    PARTNER_WITHDRAWALS = "PARTNER_WITHDRAWALS"
    OTHER_FINANCING = "OTHER_FINANCING"


_OPERATING_ITEMS = (
    LineItem.SALES_RECEIPTS,
    LineItem.BOLETO_RECEIPTS,
    LineItem.TRANSFER_RECEIPTS,
    LineItem.PIX_RECEIPTS,
    LineItem.OTHER_RECEIPTS,
    LineItem.SUPPLIER_PAYMENTS,
    LineItem.VARIABLE_EXPENSES,
    LineItem.TAX_PAYMENTS,
    LineItem.ADMINISTRATIVE_EXPENSES,
    LineItem.PAYROLL,
    LineItem.FINANCIAL_EXPENSES,
    LineItem.THIRD_PARTY_SERVICES,
    LineItem.MAINTENANCE,
    LineItem.MARKETING,
    LineItem.INVOICE_PAYMENTS,
    LineItem.UNIDENTIFIED_PAYMENTS,
)
_INVESTING_ITEMS = (
    LineItem.YIELD_BONUS,
    LineItem.AUTOMATIC_REDEMPTION,
    LineItem.AUTOMATIC_INVESTMENT,
    LineItem.FIXED_ASSET_ACQUISITIONS,
    LineItem.CONSTRUCTION_RENOVATION,
    LineItem.OTHER_INVESTMENTS,
)
_FINANCING_ITEMS = (
    LineItem.LOAN_RECEIPTS,
    LineItem.INSURANCE_RECEIPTS,
    LineItem.OTHER_COMPANY_RECEIPTS,
    LineItem.CUSTOMER_REIMBURSEMENT,
    LineItem.LOAN_PAYMENTS,
    LineItem.FINANCING_PAYMENTS,
    LineItem.WITHDRAWAL_NORDESTE_SERVICO,
    LineItem.WITHDRAWAL_RENTAL_CAR,
    LineItem.PARTNER_WITHDRAWALS_NSERVICOS,
    LineItem.PARTNER_WITHDRAWALS,
    LineItem.OTHER_FINANCING,
)

_SECTIONS: dict[ActivityCategory, tuple[LineItem, ...]] = {
    ActivityCategory.OPERATING: _OPERATING_ITEMS,
    ActivityCategory.INVESTING: _INVESTING_ITEMS,
    ActivityCategory.FINANCING: _FINANCING_ITEMS,
}

_ACTIVITY_BY_ITEM: dict[LineItem, ActivityCategory] = {
    item: activity for activity, items in _SECTIONS.items() for item in items
}

# Subcategory codes, English first, then the legacy codes written by the console forms.
_SUBCATEGORY_CODES: dict[str, LineItem] = {
    "SALES": LineItem.SALES_RECEIPTS,
    "SALE": LineItem.SALES_RECEIPTS,
    "VENDA": LineItem.SALES_RECEIPTS,
    "VENDAS": LineItem.SALES_RECEIPTS,
    "SUPPLIER": LineItem.SUPPLIER_PAYMENTS,
    "SUPPLIER_PAYMENT": LineItem.SUPPLIER_PAYMENTS,
    "FORNECEDOR": LineItem.SUPPLIER_PAYMENTS,
    "VARIABLE_EXPENSE": LineItem.VARIABLE_EXPENSES,
    "DESPESA_VARIAVEL": LineItem.VARIABLE_EXPENSES,
    "TAX": LineItem.TAX_PAYMENTS,
    "TAX_PAYMENT": LineItem.TAX_PAYMENTS,
    "IMPOSTO": LineItem.TAX_PAYMENTS,
    "ADMINISTRATIVE_EXPENSE": LineItem.ADMINISTRATIVE_EXPENSES,
    "DESPESA_ADMINISTRATIVA": LineItem.ADMINISTRATIVE_EXPENSES,
    "PAYROLL": LineItem.PAYROLL,
    "PERSONNEL": LineItem.PAYROLL,
    "PESSOAL": LineItem.PAYROLL,
    "FINANCIAL_EXPENSE": LineItem.FINANCIAL_EXPENSES,
    "DESPESA_FINANCEIRA": LineItem.FINANCIAL_EXPENSES,
    "THIRD_PARTY_SERVICE": LineItem.THIRD_PARTY_SERVICES,
    "SERVICO_TERCEIRO": LineItem.THIRD_PARTY_SERVICES,
    "MAINTENANCE": LineItem.MAINTENANCE,
    "MANUTENCAO": LineItem.MAINTENANCE,
    "MARKETING": LineItem.MARKETING,
    "YIELD_BONUS": LineItem.YIELD_BONUS,
    "BONUS_RENDIMENTO": LineItem.YIELD_BONUS,
    "AUTOMATIC_REDEMPTION": LineItem.AUTOMATIC_REDEMPTION,
    "RESGATE_AUTOMATICO": LineItem.AUTOMATIC_REDEMPTION,
    "AUTOMATIC_INVESTMENT": LineItem.AUTOMATIC_INVESTMENT,
    "APLICACAO_AUTOMATICA": LineItem.AUTOMATIC_INVESTMENT,
    "FIXED_ASSET_ACQUISITION": LineItem.FIXED_ASSET_ACQUISITIONS,
    "AQUISICAO_ATIVO_IMOBILIZADO": LineItem.FIXED_ASSET_ACQUISITIONS,
    "CONSTRUCTION_RENOVATION": LineItem.CONSTRUCTION_RENOVATION,
    "OBRAS_REFORMAS": LineItem.CONSTRUCTION_RENOVATION,
    "INVESTMENT": LineItem.OTHER_INVESTMENTS,
    "INVESTIMENTO": LineItem.OTHER_INVESTMENTS,
    "LOAN_RECEIVED": LineItem.LOAN_RECEIPTS,
    "EMPRESTIMO_RECEBIDO": LineItem.LOAN_RECEIPTS,
    "INSURANCE_RECEIVED": LineItem.INSURANCE_RECEIPTS,
    "SEGURO_RECEBIDO": LineItem.INSURANCE_RECEIPTS,
    "OTHER_COMPANIES": LineItem.OTHER_COMPANY_RECEIPTS,
    "OUTRAS_EMPRESAS": LineItem.OTHER_COMPANY_RECEIPTS,
    "CUSTOMER_REIMBURSEMENT": LineItem.CUSTOMER_REIMBURSEMENT,
    "RESSARCIMENTO_CLIENTE": LineItem.CUSTOMER_REIMBURSEMENT,
    "LOAN_PAID": LineItem.LOAN_PAYMENTS,
    "LOAN_PAYMENT": LineItem.LOAN_PAYMENTS,
    "EMPRESTIMO_PAGO": LineItem.LOAN_PAYMENTS,
    "FINANCING_PAID": LineItem.FINANCING_PAYMENTS,
    "FINANCING_PAYMENT": LineItem.FINANCING_PAYMENTS,
    "FINANCIAMENTO_PAGO": LineItem.FINANCING_PAYMENTS,
    "WITHDRAWAL_NORDESTE_SERVICO": LineItem.WITHDRAWAL_NORDESTE_SERVICO,
    "RETIRADA_NORDESTE_SERVICO": LineItem.WITHDRAWAL_NORDESTE_SERVICO,
    "WITHDRAWAL_RENTAL_CAR": LineItem.WITHDRAWAL_RENTAL_CAR,
    "RETIRADA_RENTAL_CAR": LineItem.WITHDRAWAL_RENTAL_CAR,
    "PARTNER_WITHDRAWAL_NSERVICOS": LineItem.PARTNER_WITHDRAWALS_NSERVICOS,
    "RETIRADA_SOCIO_NSERVICOS": LineItem.PARTNER_WITHDRAWALS_NSERVICOS,
    "OWNER_WITHDRAWAL": LineItem.PARTNER_WITHDRAWALS,
    "PARTNER_WITHDRAWAL": LineItem.PARTNER_WITHDRAWALS,
    "RETIRADA_SOCIO": LineItem.PARTNER_WITHDRAWALS,
}

_CATEGORY_CODES: dict[str, ActivityCategory] = {
    "OPERATING": ActivityCategory.OPERATING,
    "OPERACIONAL": ActivityCategory.OPERATING,
    "INVESTING": ActivityCategory.INVESTING,
    "INVESTIMENTO": ActivityCategory.INVESTING,
    "FINANCING": ActivityCategory.FINANCING,
    "FINANCIAMENTO": ActivityCategory.FINANCING,
}

_ACCOUNT_DIRECTIONS: dict[str, Direction] = {
    "RECEIVABLE": Direction.INFLOW,
    "RECEBER": Direction.INFLOW,
    "PAYABLE": Direction.OUTFLOW,
    "PAGAR": Direction.OUTFLOW,
}

_INVOICE_DIRECTIONS: dict[str, Direction] = {
    "ENTRY": Direction.INFLOW,
    "ENTRADA": Direction.INFLOW,
    "EXIT": Direction.OUTFLOW,
    "SAIDA": Direction.OUTFLOW,
}

_INVOICE_RECEIPT_ITEMS: dict[str, LineItem] = {
    "BOLETO": LineItem.BOLETO_RECEIPTS,
    "TRANSFER": LineItem.TRANSFER_RECEIPTS,
    "TRANSFERENCIA": LineItem.TRANSFER_RECEIPTS,
    "PIX": LineItem.PIX_RECEIPTS,
}

_FALLBACK_ITEMS: dict[tuple[ActivityCategory, Direction], LineItem] = {
    (ActivityCategory.OPERATING, Direction.INFLOW): LineItem.OTHER_RECEIPTS,
    (ActivityCategory.OPERATING, Direction.OUTFLOW): LineItem.UNIDENTIFIED_PAYMENTS,
    (ActivityCategory.INVESTING, Direction.INFLOW): LineItem.OTHER_INVESTMENTS,
    (ActivityCategory.INVESTING, Direction.OUTFLOW): LineItem.OTHER_INVESTMENTS,
    (ActivityCategory.FINANCING, Direction.INFLOW): LineItem.OTHER_FINANCING,
    (ActivityCategory.FINANCING, Direction.OUTFLOW): LineItem.OTHER_FINANCING,
}


@dataclass(frozen=True)
class AccountEntry:
    """A payable/receivable row as read from the accounts ledger."""

    id: str
    account_type: str
    status: str
    amount: Decimal
    due_date: date | None = None
    payment_date: date | None = None
    financial_category: str | None = None
    subcategory: str | None = None
    payment_method: str | None = None
    description: str = ""


@dataclass(frozen=True)
class InvoiceEntry:
    """An invoice row as read from the invoices ledger."""

    id: str
    invoice_type: str
    amount: Decimal
    issue_date: date
    payment_method: str | None = None
    number: str = ""


@dataclass(frozen=True)
class Movement:
    """A normalized, classified cash movement."""

    id: str
    source_kind: SourceKind
    direction: Direction
    amount: Decimal
    effective_date: date
    activity: ActivityCategory
    line_item: LineItem


def normalize_code(value: str | None) -> str:
    """Uppercase a free-form tag and turn spaces/dashes into underscores."""
    if not value:
        return ""
    return value.strip().upper().replace("-", "_").replace(" ", "_")


def activity_of(line_item: LineItem) -> ActivityCategory:
    """Section that owns a line item."""
    return _ACTIVITY_BY_ITEM[line_item]


def line_items_for(activity: ActivityCategory) -> tuple[LineItem, ...]:
    """Rows of a section in presentation order."""
    return _SECTIONS[activity]


def parse_activity(tag: str | None) -> ActivityCategory:
    """Resolve a financial-category tag; missing or unknown tags are Operating."""
    return _CATEGORY_CODES.get(normalize_code(tag), ActivityCategory.OPERATING)


def account_direction(account_type: str) -> Direction:
    direction = _ACCOUNT_DIRECTIONS.get(normalize_code(account_type))
    if direction is None:
        raise ValueError(f"Unknown account type: {account_type!r}")
    return direction


def invoice_direction(invoice_type: str) -> Direction:
    direction = _INVOICE_DIRECTIONS.get(normalize_code(invoice_type))
    if direction is None:
        raise ValueError(f"Unknown invoice type: {invoice_type!r}")
    return direction


def _account_line_item(subcategory: str | None, activity: ActivityCategory, direction: Direction) -> LineItem:
    line_item = _SUBCATEGORY_CODES.get(normalize_code(subcategory))
    if line_item is not None and activity_of(line_item) == activity:
        return line_item

    fallback = _FALLBACK_ITEMS[(activity, direction)]
    if subcategory and normalize_code(subcategory) not in ("OTHER", "OTHERS", "OUTROS"):
        logger.debug(
            "Unrecognized subcategory routed to fallback line item",
            subcategory=subcategory,
            activity=activity.value,
            line_item=fallback.value,
        )
    return fallback


def _invoice_line_item(payment_method: str | None, direction: Direction) -> LineItem:
    if direction == Direction.OUTFLOW:
        return LineItem.INVOICE_PAYMENTS
    return _INVOICE_RECEIPT_ITEMS.get(normalize_code(payment_method), LineItem.OTHER_RECEIPTS)


def classify(entry: AccountEntry | InvoiceEntry) -> Movement:
    """Classify a raw ledger entry into a Movement.

    Accounts take their direction from the account type, their section from the
    financial-category tag and their row from the subcategory. Invoices are
    always operating; receipts are split by payment method and every exit
    invoice lands on the generic invoice payment row.

    Raises:
        ValueError: the entry's type code is neither an inflow nor an outflow,
            or a paid account has no payment date.
    """
    if isinstance(entry, AccountEntry):
        if entry.payment_date is None:
            raise ValueError(f"Account {entry.id} has no payment date")
        direction = account_direction(entry.account_type)
        activity = parse_activity(entry.financial_category)
        return Movement(
            id=entry.id,
            source_kind=SourceKind.ACCOUNT,
            direction=direction,
            amount=entry.amount,
            effective_date=entry.payment_date,
            activity=activity,
            line_item=_account_line_item(entry.subcategory, activity, direction),
        )

    direction = invoice_direction(entry.invoice_type)
    return Movement(
        id=entry.id,
        source_kind=SourceKind.INVOICE,
        direction=direction,
        amount=entry.amount,
        effective_date=entry.issue_date,
        activity=ActivityCategory.OPERATING,
        line_item=_invoice_line_item(entry.payment_method, direction),
    )
