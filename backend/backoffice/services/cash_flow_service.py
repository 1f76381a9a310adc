from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.statuses import TransactionType
from backoffice.models.cash_flow import CashFlowEntry


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def debt_payment_description(customer_name: str, product_name: str, receipt_number: str) -> str:
    return f"Debt payment from {customer_name} - {product_name} (Receipt: {receipt_number})"


def receipt_payment_description(customer_name: str, receipt_number: str, products_touched: int) -> str:
    return (
        f"Debt payment from {customer_name} - Receipt: {receipt_number} "
        f"({_plural(products_touched, 'product')})"
    )


def customer_payment_description(customer_name: str, debts_touched: int) -> str:
    return f"Debt payment from {customer_name} - Allocated across {_plural(debts_touched, 'debt')}"


def checkout_payment_description(customer_name: str, product_name: str) -> str:
    return f"Partial payment on credit sale: {product_name} - {customer_name}"


def record_cash_in(
    db: Session,
    amount: Decimal,
    payment_method: str,
    description: str,
    reference_number: Optional[str],
    cashier: int,
) -> CashFlowEntry:
    """Add a single inflow entry to the caller's transaction."""
    entry = CashFlowEntry(
        transaction_type=TransactionType.cash_in.value,
        amount=amount,
        payment_method=payment_method,
        description=description,
        reference_number=reference_number,
        cashier=cashier,
        module=settings.ledger_module,
    )
    db.add(entry)
    db.flush()
    return entry
