from datetime import date, datetime
from decimal import Decimal

import pytest

from backoffice.core.errors import InvalidAmountError, InvalidTargetError, NotFoundError
from backoffice.models.cash_flow import CashFlowEntry
from backoffice.models.debt import Debt
from backoffice.models.status_history import StatusHistory
from backoffice.services.checkout_service import record_credit_sale, sale_status_at_checkout
from backoffice.services.receipt_numbers import generate_receipt_number
from backoffice.tests.conftest import OPERATOR_ID


def test_partial_payment_at_checkout_opens_debt(db, make_customer):
    customer = make_customer()

    result = record_credit_sale(
        db, customer.id, "Full Cream Milk", 10, "80.00", "300.00", OPERATOR_ID,
        payment_method="CASH", due_date=datetime(2026, 2, 1), receipt_number="WHS-20260115-0001",
    )
    db.commit()

    sale, debt = result["sale"], result["debt"]
    assert sale.total_amount == Decimal("800.00")
    assert sale.payment_status == "PARTIAL"
    assert debt.amount_paid == Decimal("300.00")
    assert debt.amount_due == Decimal("500.00")
    assert debt.status == "PARTIAL"
    assert result["initial_payment"].amount == Decimal("300.00")
    assert result["cash_entry"].description == "Partial payment on credit sale: Full Cream Milk - Ada Okafor"
    assert result["cash_entry"].reference_number == "WHS-20260115-0001"

    db.refresh(customer)
    assert customer.total_credit_purchases == 1
    assert customer.total_credit_amount == Decimal("800.00")
    assert customer.outstanding_debt == Decimal("500.00")

    history = db.query(StatusHistory).filter(StatusHistory.entity_id == debt.id).one()
    assert (history.old_status, history.new_status) == (None, "PARTIAL")


def test_unpaid_checkout_has_no_cash_entry(db, make_customer):
    customer = make_customer()

    result = record_credit_sale(db, customer.id, "Cocoa", 2, "150.50", "0", OPERATOR_ID)
    db.commit()

    assert result["sale"].payment_status == "CREDIT"
    assert result["debt"].status == "OUTSTANDING"
    assert result["debt"].amount_due == Decimal("301.00")
    assert result["initial_payment"] is None
    assert result["cash_entry"] is None
    assert db.query(CashFlowEntry).count() == 0


def test_fully_paid_checkout_opens_no_debt(db, make_customer):
    customer = make_customer()

    result = record_credit_sale(db, customer.id, "Sugar", 1, "99.99", "99.99", OPERATOR_ID, payment_method="CARD")
    db.commit()

    assert result["sale"].payment_status == "PAID"
    assert result["debt"] is None
    assert db.query(Debt).count() == 0
    assert db.query(CashFlowEntry).one().amount == Decimal("99.99")


@pytest.mark.parametrize(
    "quantity, unit_price, amount_paid, method, error",
    [
        (0, "10.00", "0", None, InvalidAmountError),
        (1, "-10.00", "0", None, InvalidAmountError),
        (1, "10.001", "0", None, InvalidAmountError),
        (1, "1E30", "0", None, InvalidAmountError),
        (1, "10.00", "-1", "CASH", InvalidAmountError),
        (1, "10.00", "10.01", "CASH", InvalidAmountError),
        (1, "10.00", "5.00", None, InvalidAmountError),
        (1, "100.00", "10.00", "BITCOIN", InvalidTargetError),
    ],
)
def test_checkout_rejects_bad_input(db, make_customer, quantity, unit_price, amount_paid, method, error):
    customer = make_customer()

    with pytest.raises(error):
        record_credit_sale(
            db, customer.id, "Milk", quantity, unit_price, amount_paid, OPERATOR_ID, payment_method=method,
        )


def test_checkout_for_unknown_customer(db):
    with pytest.raises(NotFoundError):
        record_credit_sale(db, 999, "Milk", 1, "10.00", "0", OPERATOR_ID)


def test_lines_of_one_checkout_share_a_receipt(db, ledger, make_customer):
    customer = make_customer()
    receipt = generate_receipt_number(db, on=date(2026, 1, 15))
    record_credit_sale(db, customer.id, "Milk", 1, "800.00", "0", OPERATOR_ID, receipt_number=receipt)
    record_credit_sale(db, customer.id, "Cocoa", 1, "1000.00", "0", OPERATOR_ID, receipt_number=receipt)
    db.commit()

    result = ledger.pay_receipt(receipt, "1800.00", "CASH", datetime(2026, 1, 20), OPERATOR_ID)

    assert [line.new_status for line in result["allocation"]] == ["PAID", "PAID"]


def test_receipt_numbers_are_sequential_per_day(db):
    first = generate_receipt_number(db, on=date(2025, 10, 25))
    second = generate_receipt_number(db, on=date(2025, 10, 25))
    other_day = generate_receipt_number(db, on=date(2025, 10, 26))
    other_prefix = generate_receipt_number(db, on=date(2025, 10, 25), prefix="RTL")

    assert first == "WHS-20251025-0001"
    assert second == "WHS-20251025-0002"
    assert other_day == "WHS-20251026-0001"
    assert other_prefix == "RTL-20251025-0001"


@pytest.mark.parametrize(
    "total, paid, expected",
    [("100.00", "0.00", "CREDIT"), ("100.00", "1.00", "PARTIAL"), ("100.00", "100.00", "PAID")],
)
def test_sale_status_at_checkout(total, paid, expected):
    assert sale_status_at_checkout(Decimal(total), Decimal(paid)) == expected
