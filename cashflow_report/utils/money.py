"""Decimal helpers for money and percentage values."""

from decimal import Decimal, InvalidOperation

ZERO = Decimal("0")
_CENT = Decimal("0.01")
_HUNDRED = Decimal("100")


def quantize_money(amount: Decimal | int | str) -> Decimal:
    """Round to cents. Raises ValueError when the result does not fit the decimal context."""
    try:
        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        return amount.quantize(_CENT)
    except InvalidOperation as exc:
        raise ValueError(f"Amount out of range: {amount!r}") from exc


def to_decimal(value: object) -> Decimal:
    """Coerce a stored numeric value to Decimal, raising ValueError when it is not a finite number."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise ValueError(f"Not a numeric amount: {value!r}")
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"Not a numeric amount: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a finite amount: {value!r}")
    return result


def percentage_of(part: Decimal, whole: Decimal) -> Decimal:
    """`part` as a percentage of `whole`, two places; zero when `whole` is zero."""
    if whole == ZERO:
        return quantize_money(ZERO)
    return quantize_money(part * _HUNDRED / whole)
