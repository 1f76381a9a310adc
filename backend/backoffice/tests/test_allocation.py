from datetime import datetime
from decimal import Decimal

import pytest

from backoffice.core.errors import OverpaymentError
from backoffice.models.debt import Debt
from backoffice.services.allocation import (
    customer_order_key,
    mirrored_sale_status,
    next_status,
    order_debts,
    plan_allocation,
    receipt_order_key,
    total_outstanding,
)


def _debt(id, due, due_date=None, created_at=datetime(2026, 1, 1)):
    return Debt(
        id=id,
        total_amount=Decimal(due),
        amount_paid=Decimal("0"),
        amount_due=Decimal(due),
        due_date=due_date,
        created_at=created_at,
    )


def test_customer_order_puts_earliest_due_first_and_missing_due_dates_last():
    no_due = _debt(1, "100", due_date=None, created_at=datetime(2025, 1, 1))
    late = _debt(2, "100", due_date=datetime(2026, 3, 1))
    early = _debt(3, "100", due_date=datetime(2026, 2, 1))

    ordered = order_debts([no_due, late, early], customer_order_key)

    assert [d.id for d in ordered] == [3, 2, 1]


def test_customer_order_breaks_due_date_ties_by_creation():
    second = _debt(1, "100", due_date=datetime(2026, 2, 1), created_at=datetime(2026, 1, 5))
    first = _debt(2, "100", due_date=datetime(2026, 2, 1), created_at=datetime(2026, 1, 2))

    assert [d.id for d in order_debts([second, first], customer_order_key)] == [2, 1]


def test_receipt_order_ignores_due_dates():
    a = _debt(1, "100", due_date=datetime(2026, 5, 1), created_at=datetime(2026, 1, 1, 10, 0, 0))
    b = _debt(2, "100", due_date=datetime(2026, 2, 1), created_at=datetime(2026, 1, 1, 10, 0, 1))

    assert [d.id for d in order_debts([b, a], receipt_order_key)] == [1, 2]


def test_plan_fills_oldest_debts_first_and_leaves_the_rest():
    debts = [_debt(1, "1000.00"), _debt(2, "2000.00"), _debt(3, "3000.00")]

    plan = plan_allocation(debts, Decimal("2500.00"))

    assert [(d.id, amount) for d, amount in plan] == [(1, Decimal("1000.00")), (2, Decimal("1500.00"))]


def test_plan_never_leaks_cents():
    debts = [_debt(1, "0.33"), _debt(2, "0.33"), _debt(3, "0.34")]

    plan = plan_allocation(debts, Decimal("0.99"))

    assert sum(amount for _, amount in plan) == Decimal("0.99")
    assert plan[-1][1] == Decimal("0.33")


def test_plan_skips_debts_already_settled():
    settled = _debt(1, "0.00")
    open_debt = _debt(2, "50.00")

    plan = plan_allocation([settled, open_debt], Decimal("20.00"))

    assert [(d.id, amount) for d, amount in plan] == [(2, Decimal("20.00"))]


def test_plan_rejects_more_than_outstanding_with_valid_amount():
    debts = [_debt(1, "800.00"), _debt(2, "1000.00")]

    with pytest.raises(OverpaymentError) as exc_info:
        plan_allocation(debts, Decimal("1800.01"))

    assert exc_info.value.valid_amount == Decimal("1800.00")
    assert exc_info.value.to_dict()["valid_amount"] == 1800.0


def test_total_outstanding_sums_amount_due():
    assert total_outstanding([_debt(1, "10.10"), _debt(2, "5.05")]) == Decimal("15.15")


@pytest.mark.parametrize("total,paid,expected", [
    ("100.00", "0.00", "OUTSTANDING"),
    ("100.00", "0.01", "PARTIAL"),
    ("100.00", "100.00", "PAID"),
])
def test_next_status(total, paid, expected):
    assert next_status(Decimal(total), Decimal(paid)).value == expected


def test_mirrored_sale_status():
    assert mirrored_sale_status("PAID", Decimal("10")) == "PAID"
    assert mirrored_sale_status("PARTIAL", Decimal("10")) == "PARTIAL"
    assert mirrored_sale_status("OUTSTANDING", Decimal("0")) == "CREDIT"
