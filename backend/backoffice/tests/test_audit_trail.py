from datetime import datetime

import pytest

from backoffice.core.errors import ImmutableRecordError, NotFoundError, OverpaymentError
from backoffice.models.debt_payment import DebtPayment
from backoffice.services.customer_service import upsert_customer
from backoffice.services.status_history_service import get_status_history
from backoffice.tests.conftest import OPERATOR_ID


def test_debt_payments_cannot_be_edited(db, ledger, make_customer, make_debt):
    customer = make_customer()
    debt = make_debt(customer, "100.00")
    payment = ledger.apply_payment_to_debt(debt.id, "40.00", "CASH", datetime(2026, 1, 5), OPERATOR_ID)["payment"]

    payment.amount = 4
    with pytest.raises(ImmutableRecordError):
        db.flush()
    db.rollback()

    assert db.get(DebtPayment, payment.id).amount == 40


def test_status_history_newest_first(db, ledger, make_customer, make_debt):
    customer = make_customer()
    debt = make_debt(customer, "100.00")
    ledger.apply_payment_to_debt(debt.id, "50.00", "CASH", datetime(2026, 1, 5), OPERATOR_ID)
    ledger.apply_payment_to_debt(debt.id, "50.00", "CASH", datetime(2026, 1, 6), OPERATOR_ID)

    debt_rows = get_status_history(db, "debt", debt.id)
    sale_rows = get_status_history(db, "sale", debt.sale_id)

    assert [r.new_status for r in debt_rows] == ["PAID", "PARTIAL"]
    assert [(r.old_status, r.new_status) for r in sale_rows] == [("PARTIAL", "PAID"), ("CREDIT", "PARTIAL")]
    with pytest.raises(ValueError):
        get_status_history(db, "invoice", debt.id)


def test_error_payload():
    err = OverpaymentError("Payment amount cannot exceed outstanding balance", valid_amount=12.5)

    assert err.to_dict() == {
        "error": "OVERPAYMENT",
        "message": "Payment amount cannot exceed outstanding balance",
        "valid_amount": 12.5,
    }
    assert NotFoundError("Debt", 3).to_dict() == {"error": "NOT_FOUND", "message": "Debt 3 not found"}


def test_upsert_customer_groups_by_phone(db):
    first = upsert_customer(db, " Ada Okafor ", "08030000001")
    again = upsert_customer(db, "Ada O.", "08030000001", email="ada@example.com")
    walk_in = upsert_customer(db, None, "08030000002")

    assert again.id == first.id
    assert again.name == "Ada O."
    assert again.email == "ada@example.com"
    assert walk_in.name == "Walk-in Customer"
    assert upsert_customer(db, "  ", None) is None
