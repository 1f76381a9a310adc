from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


class Customer(Base):
    __tablename__ = "warehouse_customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True, index=True)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    customer_type = Column(String(20), nullable=False, default="INDIVIDUAL")
    credit_limit = Column(Numeric(12, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # Credit stats, maintained by the ledger only
    total_credit_purchases = Column(Integer, nullable=False, default=0)
    total_credit_amount = Column(Numeric(15, 2), nullable=False, default=0)
    outstanding_debt = Column(Numeric(15, 2), nullable=False, default=0)
    payment_reliability_score = Column(Numeric(5, 2), nullable=False, default=100)
    last_payment_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)
    version_id = Column(Integer, nullable=False, default=1)

    debts = relationship("Debt", back_populates="customer")
    sales = relationship("Sale", back_populates="customer")

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Customer id={self.id} name={self.name!r} outstanding={self.outstanding_debt}>"
