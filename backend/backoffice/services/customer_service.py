from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.core.errors import NotFoundError
from backoffice.core.serialization_helpers import to_money
from backoffice.core.statuses import DebtStatus
from backoffice.models.customer import Customer
from backoffice.models.debt import Debt
from backoffice.services.reliability import customer_reliability_score


def _normalize_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def upsert_customer(
    db: Session,
    name: Optional[str],
    phone: Optional[str],
    email: Optional[str] = None,
    customer_type: str = "INDIVIDUAL",
) -> Optional[Customer]:
    """
    Ensure there is a Customer record for the given phone (or name when phone absent).
    - Phone is the primary grouping key.
    - When phone is missing, fall back to name+NULL phone grouping.
    """
    normalized_name = _normalize_text(name)
    normalized_phone = _normalize_text(phone)

    if not normalized_name and not normalized_phone:
        return None

    if normalized_phone:
        customer = db.query(Customer).filter(Customer.phone == normalized_phone).first()
    else:
        customer = (
            db.query(Customer)
            .filter(Customer.phone.is_(None), Customer.name == normalized_name)
            .first()
        )

    if customer:
        if normalized_name and customer.name != normalized_name:
            customer.name = normalized_name
        if email and customer.email != email:
            customer.email = _normalize_text(email)
        return customer

    customer = Customer(
        name=normalized_name or "Walk-in Customer",
        phone=normalized_phone,
        email=_normalize_text(email),
        customer_type=customer_type,
    )
    db.add(customer)
    db.flush()
    return customer


def get_customer(db: Session, customer_id: int, lock: bool = False) -> Customer:
    query = db.query(Customer).filter(Customer.id == customer_id)
    if lock:
        query = query.with_for_update()
    customer = query.first()
    if not customer:
        raise NotFoundError("Customer", customer_id)
    return customer


def outstanding_debt(db: Session, customer_id: int) -> Decimal:
    """Sum of amount due across the customer's debts that are not paid off."""
    total = (
        db.query(func.coalesce(func.sum(Debt.amount_due), 0))
        .filter(Debt.customer_id == customer_id, Debt.status != DebtStatus.paid.value)
        .scalar()
    )
    return to_money(total)


def refresh_customer_stats(
    db: Session,
    customer: Customer,
    last_payment_date: Optional[datetime] = None,
) -> Customer:
    """
    Recompute the customer's cached debt figures from the debt and payment rows.

    Must run after the debts touched by an operation have been flushed so the
    aggregates see post-allocation state. Does not commit.
    """
    db.flush()
    customer.outstanding_debt = outstanding_debt(db, customer.id)
    customer.payment_reliability_score = customer_reliability_score(db, customer.id)
    if last_payment_date is not None:
        customer.last_payment_date = last_payment_date
    return customer
