from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from backoffice.models.customer import Base


class Sale(Base):
    __tablename__ = "warehouse_sales"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("warehouse_customers.id", ondelete="RESTRICT"), nullable=True, index=True)
    # Every line checked out together shares one receipt number
    receipt_number = Column(String(50), nullable=False, index=True)

    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    payment_method = Column(String(20), nullable=True)

    # Mirror of the debt status: "PAID", "PARTIAL" or "CREDIT"
    payment_status = Column(String(20), nullable=False, default="PAID")
    credit_due_date = Column(DateTime, nullable=True)
    credit_notes = Column(Text, nullable=True)

    sales_officer = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    customer = relationship("Customer", back_populates="sales")
    debt = relationship("Debt", back_populates="sale", uselist=False)
