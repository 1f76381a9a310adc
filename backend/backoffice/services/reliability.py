from decimal import Decimal

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from backoffice.core.serialization_helpers import to_money
from backoffice.models.debt import Debt
from backoffice.models.debt_payment import DebtPayment

PERFECT_SCORE = Decimal("100.00")


def reliability_score(total_payments: int, late_payments: int) -> Decimal:
    """
    Share of payments made on or before their debt's due date, as 0-100.
    Customers without payment history get the full score.
    """
    if total_payments <= 0:
        return PERFECT_SCORE
    on_time = total_payments - late_payments
    return to_money(Decimal(on_time) * 100 / Decimal(total_payments))


def count_customer_payments(db: Session, customer_id: int):
    """
    Returns (total, late) payment counts for a customer.

    A payment is late when it landed after the due date of the debt it was
    applied to, so one split payment can be partly late.
    """
    total = (
        db.query(func.count(DebtPayment.id))
        .join(Debt, DebtPayment.debt_id == Debt.id)
        .filter(Debt.customer_id == customer_id)
        .scalar()
    )
    late = (
        db.query(func.count(DebtPayment.id))
        .join(Debt, DebtPayment.debt_id == Debt.id)
        .filter(
            and_(
                Debt.customer_id == customer_id,
                Debt.due_date.isnot(None),
                DebtPayment.payment_date > Debt.due_date,
            )
        )
        .scalar()
    )
    return int(total or 0), int(late or 0)


def customer_reliability_score(db: Session, customer_id: int) -> Decimal:
    total, late = count_customer_payments(db, customer_id)
    return reliability_score(total, late)
