"""
Formatting helpers for handing ledger rows to JSON consumers.
No business rules live here.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce a stored or user supplied value into a cent-quantized Decimal."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def is_whole_cents(value) -> bool:
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return False
    if not amount.is_finite():
        return False
    try:
        return amount == amount.quantize(CENT)
    except InvalidOperation:
        # Too many digits to carry cents in the decimal context
        return False


def format_money(value, symbol: str = "") -> str:
    return f"{symbol}{to_money(value):,.2f}"


def serialize_decimal(value):
    if value is None:
        return None
    return float(value)


def serialize_datetime(value):
    if value is None:
        return None
    return value.isoformat()
