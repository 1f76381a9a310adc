from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from backoffice.core.errors import NotFoundError
from backoffice.models.debt import Debt
from backoffice.services.debtor_views import classify_debt, customer_summary, list_receipts, status_breakdown
from backoffice.tests.conftest import OPERATOR_ID

NOW = datetime(2026, 2, 1, 12, 0)


def _debt(total, paid, due_date=None):
    total = Decimal(total)
    paid = Decimal(paid)
    return Debt(total_amount=total, amount_paid=paid, amount_due=total - paid, due_date=due_date, status="PARTIAL")


@pytest.mark.parametrize(
    "total, paid, due_date, expected",
    [
        ("100.00", "0.00", None, "OUTSTANDING"),
        ("100.00", "40.00", None, "PARTIAL"),
        ("100.00", "100.00", NOW - timedelta(days=30), "PAID"),
        ("100.00", "40.00", NOW - timedelta(days=1), "OVERDUE"),
        ("100.00", "0.00", NOW - timedelta(seconds=1), "OVERDUE"),
        ("100.00", "0.00", NOW + timedelta(days=1), "OUTSTANDING"),
    ],
)
def test_classify_debt(total, paid, due_date, expected):
    assert classify_debt(_debt(total, paid, due_date), now=NOW) == expected


def test_classify_debt_is_idempotent_and_read_only():
    debt = _debt("100.00", "40.00", NOW - timedelta(days=1))

    first = classify_debt(debt, now=NOW)
    second = classify_debt(debt, now=NOW)

    assert first == second == "OVERDUE"
    assert debt.status == "PARTIAL"
    assert debt.amount_due == Decimal("60.00")


def test_list_receipts_groups_lines_and_orders_by_status(db, ledger, make_customer, make_debt):
    ada = make_customer()
    bello = make_customer(name="Bello Stores")
    make_debt(ada, "800.00", receipt_number="WHS-20260105-0001", product_name="Milk")
    make_debt(ada, "1000.00", receipt_number="WHS-20260105-0001", product_name="Cocoa")
    make_debt(bello, "300.00", receipt_number="WHS-20260106-0001", due_date=NOW - timedelta(days=3))
    paid_off = make_debt(bello, "50.00", receipt_number="WHS-20260107-0001")
    ledger.apply_payment_to_debt(paid_off.id, "50.00", "CASH", NOW, OPERATOR_ID)
    ledger.pay_receipt("WHS-20260105-0001", "100.00", "CASH", NOW, OPERATOR_ID)

    result = list_receipts(db, now=NOW)

    receipts = result["receipts"]
    assert [r["receipt_number"] for r in receipts] == [
        "WHS-20260106-0001",
        "WHS-20260105-0001",
        "WHS-20260107-0001",
    ]
    assert [r["status"] for r in receipts] == ["OVERDUE", "PARTIAL", "PAID"]

    two_line = receipts[1]
    assert two_line["product_count"] == 2
    assert two_line["total_amount"] == 1800.0
    assert two_line["amount_paid"] == 100.0
    assert two_line["amount_due"] == 1700.0
    assert two_line["payment_count"] == 1
    assert two_line["customer"]["name"] == "Ada Okafor"
    assert result["pagination"] == {"page": 1, "limit": 20, "total": 3, "pages": 1}


def test_list_receipts_filters_and_paginates(db, make_customer, make_debt):
    customer = make_customer()
    for n in range(1, 4):
        make_debt(customer, "10.00", receipt_number=f"WHS-20260110-000{n}")
    make_debt(customer, "10.00", receipt_number="WHS-20260110-0009", due_date=NOW - timedelta(days=1))

    overdue = list_receipts(db, status="OVERDUE", now=NOW)
    assert [r["receipt_number"] for r in overdue["receipts"]] == ["WHS-20260110-0009"]

    page = list_receipts(db, status="OUTSTANDING", now=NOW, page=2, limit=2)
    assert page["pagination"]["total"] == 3
    assert page["pagination"]["pages"] == 2
    assert len(page["receipts"]) == 1


def test_customer_summary_recomputes_totals(db, ledger, make_customer, make_debt):
    customer = make_customer()
    late = make_debt(customer, "500.00", due_date=NOW - timedelta(days=10), receipt_number="WHS-20260101-0001")
    make_debt(customer, "200.00", due_date=NOW + timedelta(days=10), receipt_number="WHS-20260101-0002")
    ledger.apply_payment_to_debt(late.id, "100.00", "CASH", NOW, OPERATOR_ID)

    summary = customer_summary(db, customer.id, now=NOW)

    assert summary["summary"] == {
        "total_debt": 700.0,
        "total_paid": 100.0,
        "outstanding_amount": 600.0,
        "number_of_debts": 2,
        "overdue_count": 1,
        "overdue_amount": 400.0,
    }
    assert summary["customer"]["outstanding_debt"] == 600.0
    statuses = {d["receipt_number"]: d["status"] for d in summary["debts"]}
    assert statuses == {"WHS-20260101-0001": "OVERDUE", "WHS-20260101-0002": "OUTSTANDING"}


def test_customer_summary_unknown_customer(db):
    with pytest.raises(NotFoundError):
        customer_summary(db, 404, now=NOW)


def test_status_breakdown(db, make_customer, make_debt):
    customer = make_customer()
    make_debt(customer, "100.00")
    make_debt(customer, "100.00", amount_paid="25.00")
    make_debt(customer, "100.00", due_date=NOW - timedelta(days=1))
    make_debt(customer, "100.00", amount_paid="100.00")

    breakdown = status_breakdown(db, now=NOW)

    assert breakdown["OUTSTANDING"]["count"] == 1
    assert breakdown["PARTIAL"]["amount_due"] == 75.0
    assert breakdown["OVERDUE"]["amount_due"] == 100.0
    assert breakdown["PAID"]["amount_paid"] == 100.0
    assert sum(b["count"] for b in breakdown.values()) == 4
