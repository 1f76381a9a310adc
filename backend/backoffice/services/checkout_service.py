"""
Credit checkout: records a sale that is not fully paid and opens its debt.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, TypedDict

from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.errors import InvalidAmountError, InvalidTargetError
from backoffice.core.serialization_helpers import format_money, is_whole_cents, to_money
from backoffice.core.statuses import PaymentMethod, SalePaymentStatus
from backoffice.models.cash_flow import CashFlowEntry
from backoffice.models.debt import Debt
from backoffice.models.debt_payment import DebtPayment
from backoffice.models.sale import Sale
from backoffice.services import cash_flow_service
from backoffice.services.allocation import next_status
from backoffice.services.customer_service import get_customer, refresh_customer_stats
from backoffice.services.receipt_numbers import generate_receipt_number
from backoffice.services.status_history_service import create_status_history

logger = logging.getLogger(__name__)


class CreditSaleResult(TypedDict):
    sale: Sale
    debt: Optional[Debt]
    initial_payment: Optional[DebtPayment]
    cash_entry: Optional[CashFlowEntry]


def sale_status_at_checkout(total: Decimal, amount_paid: Decimal) -> str:
    if amount_paid <= 0:
        return SalePaymentStatus.credit.value
    if amount_paid < total:
        return SalePaymentStatus.partial.value
    return SalePaymentStatus.paid.value


def record_credit_sale(
    db: Session,
    customer_id: int,
    product_name: str,
    quantity: int,
    unit_price,
    amount_paid,
    operator_id: int,
    payment_method: Optional[str] = None,
    due_date: Optional[datetime] = None,
    receipt_number: Optional[str] = None,
    notes: Optional[str] = None,
) -> CreditSaleResult:
    """
    Record one credit sale line and open its debt.

    Lines checked out together pass the same ``receipt_number``; when it is
    omitted a fresh one is generated. Any amount paid at the till becomes the
    debt's first payment and a single cash-in entry.

    Does not commit: the caller commits the checkout as a whole.

    Raises:
        InvalidAmountError: on non-positive quantity or price, a negative or
            sub-cent amount paid, an amount paid above the total, or a
            payment without a method
        InvalidTargetError: if the payment method is unknown
        NotFoundError: if the customer does not exist
    """
    if quantity <= 0:
        raise InvalidAmountError("Quantity must be greater than 0")
    if not is_whole_cents(unit_price) or to_money(unit_price) <= 0:
        raise InvalidAmountError("Unit price must be a positive amount in cents")
    if not is_whole_cents(amount_paid) or to_money(amount_paid) < 0:
        raise InvalidAmountError("Amount paid must be zero or a positive amount in cents")

    total = to_money(to_money(unit_price) * quantity)
    paid = to_money(amount_paid)
    if paid > total:
        raise InvalidAmountError(
            f"Amount paid ({format_money(paid, settings.currency_symbol)}) cannot exceed "
            f"total amount ({format_money(total, settings.currency_symbol)})",
            valid_amount=total,
        )
    if paid > 0 and not payment_method:
        raise InvalidAmountError("Payment method is required for partial payment")
    try:
        method = PaymentMethod(payment_method).value if payment_method else None
    except ValueError:
        raise InvalidTargetError(f"Unknown payment method: {payment_method!r}")

    customer = get_customer(db, customer_id, lock=True)
    receipt_number = receipt_number or generate_receipt_number(db)
    now = datetime.utcnow()

    sale = Sale(
        customer_id=customer.id,
        receipt_number=receipt_number,
        product_name=product_name,
        quantity=quantity,
        unit_price=to_money(unit_price),
        total_amount=total,
        payment_method=method,
        payment_status=sale_status_at_checkout(total, paid),
        credit_due_date=due_date,
        credit_notes=notes,
        sales_officer=operator_id,
    )
    db.add(sale)
    db.flush()

    cash_entry = None
    if paid > 0:
        cash_entry = cash_flow_service.record_cash_in(
            db,
            amount=paid,
            payment_method=method,
            description=cash_flow_service.checkout_payment_description(customer.name, product_name),
            reference_number=receipt_number,
            cashier=operator_id,
        )

    debt = None
    initial_payment = None
    customer.total_credit_purchases = (customer.total_credit_purchases or 0) + 1
    customer.total_credit_amount = to_money(customer.total_credit_amount) + total

    if paid < total:
        status = next_status(total, paid)
        debt = Debt(
            customer_id=customer.id,
            sale_id=sale.id,
            total_amount=total,
            amount_paid=paid,
            amount_due=total - paid,
            due_date=due_date,
            status=status.value,
        )
        db.add(debt)
        db.flush()
        create_status_history(db, "debt", debt.id, None, debt.status, operator_id, notes="Debt opened at checkout")

        if paid > 0:
            initial_payment = DebtPayment(
                debt_id=debt.id,
                amount=paid,
                payment_method=method,
                payment_date=now,
                notes="Initial partial payment at sale",
                received_by=operator_id,
            )
            db.add(initial_payment)

    refresh_customer_stats(db, customer, last_payment_date=now if paid > 0 else None)

    logger.info(
        "credit sale receipt=%s customer_id=%s total=%s paid=%s debt_id=%s",
        receipt_number, customer.id, total, paid, debt.id if debt else None,
    )
    return {"sale": sale, "debt": debt, "initial_payment": initial_payment, "cash_entry": cash_entry}
