from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from backoffice.models.customer import Customer
from backoffice.services.checkout_service import record_credit_sale
from backoffice.services.customer_service import upsert_customer
from backoffice.services.receipt_numbers import generate_receipt_number

SEED_OPERATOR_ID = 1


def seed_demo(db: Session):
    """Two customers, one two-line credit receipt and one single-line credit sale."""
    if db.query(Customer).filter(Customer.phone == "08030000001").first():
        return

    now = datetime.utcnow()
    ada = upsert_customer(db, "Ada Okafor", "08030000001", email="ada@example.com")
    bello = upsert_customer(db, "Bello Stores", "08030000002", customer_type="BUSINESS")

    receipt = generate_receipt_number(db)
    record_credit_sale(
        db, ada.id, "Full Cream Milk 400g", 10, Decimal("80.00"), Decimal("0.00"),
        SEED_OPERATOR_ID, receipt_number=receipt, due_date=now + timedelta(days=14),
    )
    record_credit_sale(
        db, ada.id, "Chocolate Drink 500g", 5, Decimal("200.00"), Decimal("0.00"),
        SEED_OPERATOR_ID, receipt_number=receipt, due_date=now + timedelta(days=14),
    )
    record_credit_sale(
        db, bello.id, "Evaporated Milk Carton", 2, Decimal("1500.00"), Decimal("500.00"),
        SEED_OPERATOR_ID, payment_method="CASH", due_date=now + timedelta(days=30),
    )
    db.commit()
