"""
Consistency audit for the debt ledger.

Checks every debt against the rules the payment paths maintain and, on
request, repairs what can be derived from ``amount_paid``. Payment rows and
``amount_paid`` itself are never rewritten: when they disagree with each other
the finding is reported and left for a person to resolve.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, TypedDict

from sqlalchemy.orm import Session, joinedload

from backoffice.core.config import settings
from backoffice.core.serialization_helpers import to_money
from backoffice.core.statuses import DebtStatus
from backoffice.models.customer import Customer
from backoffice.models.debt import Debt
from backoffice.services.allocation import mirrored_sale_status, next_status
from backoffice.services.customer_service import refresh_customer_stats

logger = logging.getLogger(__name__)

AMOUNT_DUE_MISMATCH = "amount_due_mismatch"
NEGATIVE_AMOUNT_DUE = "negative_amount_due"
PAYMENTS_MISMATCH = "payments_mismatch"
STATUS_MISMATCH = "status_mismatch"
SALE_STATUS_MISMATCH = "sale_status_mismatch"

# Findings fix_debts can repair from amount_paid alone
REPAIRABLE = {AMOUNT_DUE_MISMATCH, NEGATIVE_AMOUNT_DUE, STATUS_MISMATCH, SALE_STATUS_MISMATCH}


class DebtFinding(TypedDict):
    debt_id: int
    customer_id: int
    receipt_number: Optional[str]
    customer_name: Optional[str]
    kind: str
    recorded: str
    expected: str


def _finding(debt: Debt, kind: str, recorded, expected) -> DebtFinding:
    return {
        "debt_id": debt.id,
        "customer_id": debt.customer_id,
        "receipt_number": debt.sale.receipt_number if debt.sale else None,
        "customer_name": debt.customer.name if debt.customer else None,
        "kind": kind,
        "recorded": str(recorded),
        "expected": str(expected),
    }


def verify_debts(db: Session, tolerance: Optional[Decimal] = None) -> List[DebtFinding]:
    """Return one finding per broken rule per debt; an empty list means consistent."""
    tolerance = settings.debt_tolerance if tolerance is None else tolerance
    debts = (
        db.query(Debt)
        .options(joinedload(Debt.sale), joinedload(Debt.customer), joinedload(Debt.payments))
        .order_by(Debt.id)
        .all()
    )

    findings: List[DebtFinding] = []
    for debt in debts:
        total = to_money(debt.total_amount)
        paid = to_money(debt.amount_paid)
        due = to_money(debt.amount_due)
        expected_due = total - paid

        if abs(due - expected_due) > tolerance:
            findings.append(_finding(debt, AMOUNT_DUE_MISMATCH, due, expected_due))
        if due < 0:
            findings.append(_finding(debt, NEGATIVE_AMOUNT_DUE, due, Decimal("0.00")))

        paid_by_rows = sum((to_money(p.amount) for p in debt.payments), Decimal("0.00"))
        if abs(paid_by_rows - paid) > tolerance:
            findings.append(_finding(debt, PAYMENTS_MISMATCH, paid, paid_by_rows))

        expected_status = next_status(total, paid).value
        # Older rows may carry a stored OVERDUE; it is equivalent to any unpaid status
        stored_overdue_ok = debt.status == DebtStatus.overdue.value and expected_status != DebtStatus.paid.value
        if debt.status != expected_status and not stored_overdue_ok:
            findings.append(_finding(debt, STATUS_MISMATCH, debt.status, expected_status))

        if debt.sale is not None:
            expected_sale_status = mirrored_sale_status(expected_status, paid)
            if debt.sale.payment_status != expected_sale_status:
                findings.append(
                    _finding(debt, SALE_STATUS_MISMATCH, debt.sale.payment_status, expected_sale_status)
                )

    logger.info("verified %s debts, %s findings", len(debts), len(findings))
    return findings


def fix_debts(db: Session, findings: List[DebtFinding]) -> List[int]:
    """
    Repair amount due, status and the sale mirror of the debts named in
    ``findings`` from their ``amount_paid``, then refresh the owning customers.

    Commits on success, rolls back on failure. Returns the ids of repaired debts.
    """
    debt_ids = sorted({f["debt_id"] for f in findings if f["kind"] in REPAIRABLE})
    if not debt_ids:
        return []

    try:
        debts = db.query(Debt).filter(Debt.id.in_(debt_ids)).with_for_update().all()
        repaired = []
        customer_ids = set()
        for debt in debts:
            total = to_money(debt.total_amount)
            paid = to_money(debt.amount_paid)
            if paid > total:
                logger.warning("debt %s has more paid than owed (%s > %s); left for manual review", debt.id, paid, total)
                continue
            debt.amount_due = total - paid
            debt.status = next_status(total, paid).value
            if debt.sale is not None:
                debt.sale.payment_status = mirrored_sale_status(debt.status, paid)
            repaired.append(debt.id)
            customer_ids.add(debt.customer_id)

        for customer in db.query(Customer).filter(Customer.id.in_(customer_ids)).with_for_update().all():
            refresh_customer_stats(db, customer)

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("repaired %s debts", len(repaired))
    return repaired


def recalculate_customer_stats(db: Session, customer_id: Optional[int] = None) -> Dict[int, Dict[str, Decimal]]:
    """Recompute outstanding debt and reliability score for one or all customers."""
    query = db.query(Customer)
    if customer_id is not None:
        query = query.filter(Customer.id == customer_id)

    result = {}
    try:
        for customer in query.order_by(Customer.id).with_for_update().all():
            refresh_customer_stats(db, customer)
            result[customer.id] = {
                "outstanding_debt": to_money(customer.outstanding_debt),
                "payment_reliability_score": to_money(customer.payment_reliability_score),
            }
        db.commit()
    except Exception:
        db.rollback()
        raise
    return result
