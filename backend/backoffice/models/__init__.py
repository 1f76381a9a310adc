from .customer import Customer
from .sale import Sale
from .debt import Debt
from .debt_payment import DebtPayment
from .cash_flow import CashFlowEntry
from .status_history import StatusHistory
from .receipt_counter import ReceiptCounter

__all__ = [
    "Customer",
    "Sale",
    "Debt",
    "DebtPayment",
    "CashFlowEntry",
    "StatusHistory",
    "ReceiptCounter",
]
