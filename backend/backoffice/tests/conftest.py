from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import backoffice.models  # noqa: F401
from backoffice.models.customer import Base, Customer
from backoffice.models.debt import Debt
from backoffice.models.debt_payment import DebtPayment
from backoffice.models.sale import Sale
from backoffice.services.allocation import mirrored_sale_status, next_status
from backoffice.services.debt_ledger import DebtLedger

OPERATOR_ID = 7


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def ledger(db):
    return DebtLedger(db)


@pytest.fixture
def make_customer(db):
    def _make(name="Ada Okafor", phone=None):
        customer = Customer(name=name, phone=phone)
        db.add(customer)
        db.commit()
        return customer
    return _make


@pytest.fixture
def make_debt(db):
    """Create a credit sale line and its debt without going through checkout."""
    def _make(
        customer,
        amount,
        due_date=None,
        receipt_number="WHS-20260101-0001",
        product_name="Full Cream Milk",
        created_at=None,
        amount_paid="0",
    ):
        total = Decimal(str(amount))
        paid = Decimal(str(amount_paid))
        status = next_status(total, paid).value
        sale = Sale(
            customer_id=customer.id,
            receipt_number=receipt_number,
            product_name=product_name,
            quantity=1,
            unit_price=total,
            total_amount=total,
            payment_status=mirrored_sale_status(status, paid),
            credit_due_date=due_date,
        )
        db.add(sale)
        db.flush()
        debt = Debt(
            customer_id=customer.id,
            sale_id=sale.id,
            total_amount=total,
            amount_paid=paid,
            amount_due=total - paid,
            due_date=due_date,
            status=status,
        )
        if created_at is not None:
            debt.created_at = created_at
        db.add(debt)
        db.flush()
        if paid > 0:
            db.add(DebtPayment(
                debt_id=debt.id,
                amount=paid,
                payment_method="CASH",
                payment_date=created_at or datetime.utcnow(),
                notes="Initial partial payment at sale",
                received_by=OPERATOR_ID,
            ))
        db.commit()
        return debt
    return _make
