"""
Read models over the debt ledger.

Everything here is computed from the canonical per-debt rows on every call;
nothing is written back. OVERDUE only exists in these projections: a debt is
overdue when it still has an amount due and its due date has passed.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from backoffice.core.errors import NotFoundError
from backoffice.core.serialization_helpers import serialize_datetime, serialize_decimal, to_money
from backoffice.core.statuses import DebtStatus
from backoffice.models.customer import Customer
from backoffice.models.debt import Debt

# Receipt listing order
STATUS_ORDER = {
    DebtStatus.overdue.value: 0,
    DebtStatus.outstanding.value: 1,
    DebtStatus.partial.value: 2,
    DebtStatus.paid.value: 3,
}


def classify_debt(debt: Debt, now: Optional[datetime] = None) -> str:
    """Read-time status of a debt. Never mutates the debt."""
    now = now or datetime.utcnow()
    if to_money(debt.amount_due) <= 0:
        return DebtStatus.paid.value
    if debt.due_date is not None and debt.due_date < now:
        return DebtStatus.overdue.value
    if to_money(debt.amount_paid) > 0:
        return DebtStatus.partial.value
    return DebtStatus.outstanding.value


def _serialize_payment(payment) -> Dict[str, Any]:
    return {
        "id": payment.id,
        "debt_id": payment.debt_id,
        "amount": serialize_decimal(payment.amount),
        "payment_method": payment.payment_method,
        "payment_date": serialize_datetime(payment.payment_date),
        "reference_number": payment.reference_number,
        "notes": payment.notes,
    }


def _serialize_customer(customer: Customer) -> Dict[str, Any]:
    return {
        "id": customer.id,
        "name": customer.name,
        "phone": customer.phone,
        "email": customer.email,
        "customer_type": customer.customer_type,
        "outstanding_debt": serialize_decimal(customer.outstanding_debt),
        "payment_reliability_score": serialize_decimal(customer.payment_reliability_score),
        "last_payment_date": serialize_datetime(customer.last_payment_date),
    }


def _receipt_status(debts: List[Debt], now: datetime) -> str:
    statuses = [classify_debt(d, now) for d in debts]
    if all(s == DebtStatus.paid.value for s in statuses):
        return DebtStatus.paid.value
    if DebtStatus.overdue.value in statuses:
        return DebtStatus.overdue.value
    if any(to_money(d.amount_paid) > 0 for d in debts):
        return DebtStatus.partial.value
    return DebtStatus.outstanding.value


def list_receipts(
    db: Session,
    status: Optional[str] = None,
    now: Optional[datetime] = None,
    page: int = 1,
    limit: int = 20,
) -> Dict[str, Any]:
    """
    Group debts by receipt number.

    Args:
        db: Database session
        status: Only keep receipts whose overall status matches (None or "all" keeps every receipt)
        now: Reference time for overdue classification
        page: 1-based page number
        limit: Receipts per page

    Returns:
        Dict with the page of receipts, pagination info and per-status totals
    """
    now = now or datetime.utcnow()
    debts = (
        db.query(Debt)
        .options(joinedload(Debt.sale), joinedload(Debt.customer), joinedload(Debt.payments))
        .order_by(Debt.created_at.desc(), Debt.id.desc())
        .all()
    )

    grouped: Dict[str, List[Debt]] = {}
    for debt in debts:
        grouped.setdefault(debt.sale.receipt_number, []).append(debt)

    receipts = []
    for receipt_number, receipt_debts in grouped.items():
        first = receipt_debts[0]
        payments = {}
        for debt in receipt_debts:
            for payment in debt.payments:
                payments.setdefault(payment.id, payment)
        ordered_payments = sorted(
            payments.values(), key=lambda p: (p.payment_date, p.id), reverse=True
        )

        receipts.append({
            "receipt_number": receipt_number,
            "customer": _serialize_customer(first.customer),
            "total_amount": serialize_decimal(sum(to_money(d.total_amount) for d in receipt_debts)),
            "amount_paid": serialize_decimal(sum(to_money(d.amount_paid) for d in receipt_debts)),
            "amount_due": serialize_decimal(sum(to_money(d.amount_due) for d in receipt_debts)),
            "status": _receipt_status(receipt_debts, now),
            "due_date": serialize_datetime(first.due_date),
            "created_at": first.sale.created_at,
            "payment_method": first.sale.payment_method,
            "debt_ids": [d.id for d in receipt_debts],
            "products": [
                {
                    "debt_id": d.id,
                    "sale_id": d.sale_id,
                    "product_name": d.sale.product_name,
                    "quantity": d.sale.quantity,
                    "unit_price": serialize_decimal(d.sale.unit_price),
                    "total_amount": serialize_decimal(d.total_amount),
                    "amount_paid": serialize_decimal(d.amount_paid),
                    "amount_due": serialize_decimal(d.amount_due),
                    "status": classify_debt(d, now),
                }
                for d in receipt_debts
            ],
            "payments": [_serialize_payment(p) for p in ordered_payments],
            "payment_count": len(ordered_payments),
            "last_payment_date": serialize_datetime(ordered_payments[0].payment_date) if ordered_payments else None,
            "product_count": len(receipt_debts),
        })

    if status and status != "all":
        receipts = [r for r in receipts if r["status"] == status]

    receipts.sort(key=lambda r: r["created_at"], reverse=True)
    receipts.sort(key=lambda r: STATUS_ORDER[r["status"]])
    for receipt in receipts:
        receipt["created_at"] = serialize_datetime(receipt["created_at"])

    total = len(receipts)
    skip = (page - 1) * limit
    return {
        "receipts": receipts[skip:skip + limit],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": -(-total // limit) if limit else 0,
        },
        "analytics": status_breakdown(db, now),
    }


def customer_summary(db: Session, customer_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Customer cached stats alongside totals recomputed from the debt rows."""
    now = now or datetime.utcnow()
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFoundError("Customer", customer_id)

    debts = (
        db.query(Debt)
        .options(joinedload(Debt.sale), joinedload(Debt.payments))
        .filter(Debt.customer_id == customer_id)
        .order_by(Debt.created_at.desc(), Debt.id.desc())
        .all()
    )
    overdue = [d for d in debts if classify_debt(d, now) == DebtStatus.overdue.value]

    return {
        "customer": _serialize_customer(customer),
        "summary": {
            "total_debt": serialize_decimal(sum((to_money(d.total_amount) for d in debts), Decimal("0"))),
            "total_paid": serialize_decimal(sum((to_money(d.amount_paid) for d in debts), Decimal("0"))),
            "outstanding_amount": serialize_decimal(sum((to_money(d.amount_due) for d in debts), Decimal("0"))),
            "number_of_debts": len(debts),
            "overdue_count": len(overdue),
            "overdue_amount": serialize_decimal(sum((to_money(d.amount_due) for d in overdue), Decimal("0"))),
        },
        "debts": [
            {
                "id": d.id,
                "receipt_number": d.sale.receipt_number,
                "product_name": d.sale.product_name,
                "total_amount": serialize_decimal(d.total_amount),
                "amount_paid": serialize_decimal(d.amount_paid),
                "amount_due": serialize_decimal(d.amount_due),
                "due_date": serialize_datetime(d.due_date),
                "status": classify_debt(d, now),
                "payments": [_serialize_payment(p) for p in d.payments],
            }
            for d in debts
        ],
    }


def status_breakdown(db: Session, now: Optional[datetime] = None) -> Dict[str, Dict[str, Any]]:
    """Count and money totals per read-time status."""
    now = now or datetime.utcnow()
    breakdown: Dict[str, Dict[str, Any]] = {}
    for debt in db.query(Debt).all():
        bucket = breakdown.setdefault(classify_debt(debt, now), {
            "count": 0,
            "total_amount": Decimal("0.00"),
            "amount_paid": Decimal("0.00"),
            "amount_due": Decimal("0.00"),
        })
        bucket["count"] += 1
        bucket["total_amount"] += to_money(debt.total_amount)
        bucket["amount_paid"] += to_money(debt.amount_paid)
        bucket["amount_due"] += to_money(debt.amount_due)

    return {
        status: {
            "count": values["count"],
            "total_amount": serialize_decimal(values["total_amount"]),
            "amount_paid": serialize_decimal(values["amount_paid"]),
            "amount_due": serialize_decimal(values["amount_due"]),
        }
        for status, values in breakdown.items()
    }
