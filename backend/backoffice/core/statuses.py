from enum import Enum


class DebtStatus(str, Enum):
    outstanding = "OUTSTANDING"
    partial = "PARTIAL"
    overdue = "OVERDUE"
    paid = "PAID"


class SalePaymentStatus(str, Enum):
    paid = "PAID"
    partial = "PARTIAL"
    credit = "CREDIT"


class PaymentMethod(str, Enum):
    cash = "CASH"
    bank_transfer = "BANK_TRANSFER"
    check = "CHECK"
    card = "CARD"
    mobile_money = "MOBILE_MONEY"


class TransactionType(str, Enum):
    cash_in = "CASH_IN"
    cash_out = "CASH_OUT"


class TargetKind(str, Enum):
    debt = "DEBT"
    receipt = "RECEIPT"
    customer = "CUSTOMER"
