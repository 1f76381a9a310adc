"""
FIFO distribution of one payment over several open debts.

Pure functions over already-loaded Debt rows: nothing here touches the session,
so the ordering and split rules can be tested without a database.
"""
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Sequence, Tuple

from backoffice.core.errors import OverpaymentError
from backoffice.core.serialization_helpers import format_money, to_money
from backoffice.core.statuses import DebtStatus, SalePaymentStatus
from backoffice.models.debt import Debt

# Sorts after every real due date
_NO_DUE_DATE = datetime.max


def customer_order_key(debt: Debt):
    """Oldest due date first, debts without a due date last, then creation order."""
    return (
        debt.due_date is None,
        debt.due_date or _NO_DUE_DATE,
        debt.created_at,
        debt.id,
    )


def receipt_order_key(debt: Debt):
    """Lines of one receipt share a checkout moment, so creation order decides."""
    return (debt.created_at, debt.id)


def order_debts(debts: Iterable[Debt], key=customer_order_key) -> List[Debt]:
    return sorted(debts, key=key)


def total_outstanding(debts: Iterable[Debt]) -> Decimal:
    return sum((to_money(d.amount_due) for d in debts), Decimal("0.00"))


def plan_allocation(ordered_debts: Sequence[Debt], amount: Decimal) -> List[Tuple[Debt, Decimal]]:
    """
    Split ``amount`` greedily over ``ordered_debts``.

    Returns (debt, allocated) pairs for the debts that receive money, in order.
    Debts reached after the money runs out are not included.

    Raises:
        OverpaymentError: if ``amount`` exceeds the summed amount due
    """
    amount = to_money(amount)
    outstanding = total_outstanding(ordered_debts)
    if amount > outstanding:
        raise OverpaymentError(
            f"Payment amount ({format_money(amount)}) cannot exceed total outstanding "
            f"balance ({format_money(outstanding)})",
            valid_amount=outstanding,
        )

    remaining = amount
    plan: List[Tuple[Debt, Decimal]] = []
    for debt in ordered_debts:
        if remaining <= 0:
            break
        due = to_money(debt.amount_due)
        if due <= 0:
            continue
        allocated = min(remaining, due)
        plan.append((debt, allocated))
        remaining -= allocated

    return plan


def next_status(total_amount: Decimal, amount_paid: Decimal) -> DebtStatus:
    """Stored progress status for the given amounts."""
    if to_money(total_amount) - to_money(amount_paid) <= 0:
        return DebtStatus.paid
    if to_money(amount_paid) > 0:
        return DebtStatus.partial
    return DebtStatus.outstanding


def mirrored_sale_status(debt_status: str, amount_paid: Decimal) -> str:
    """Payment status a sale must show for its debt."""
    if debt_status == DebtStatus.paid.value:
        return SalePaymentStatus.paid.value
    if to_money(amount_paid) > 0:
        return SalePaymentStatus.partial.value
    return SalePaymentStatus.credit.value
