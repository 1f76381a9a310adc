from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from backoffice.models.customer import Base


class Debt(Base):
    __tablename__ = "warehouse_debtors"
    __table_args__ = (
        CheckConstraint("amount_due >= 0", name="ck_debtors_amount_due_non_negative"),
        CheckConstraint("amount_paid >= 0", name="ck_debtors_amount_paid_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("warehouse_customers.id", ondelete="RESTRICT"), nullable=False, index=True)
    sale_id = Column(Integer, ForeignKey("warehouse_sales.id", ondelete="RESTRICT"), nullable=False, unique=True)

    total_amount = Column(Numeric(12, 2), nullable=False)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    # Always total_amount - amount_paid
    amount_due = Column(Numeric(12, 2), nullable=False)
    due_date = Column(DateTime, nullable=True, index=True)

    # Stored progress: "OUTSTANDING", "PARTIAL" or "PAID". OVERDUE is derived at read time.
    status = Column(String(20), nullable=False, default="OUTSTANDING", index=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)
    version_id = Column(Integer, nullable=False, default=1)

    customer = relationship("Customer", back_populates="debts")
    sale = relationship("Sale", back_populates="debt")
    payments = relationship("DebtPayment", back_populates="debt", order_by="DebtPayment.id")

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Debt id={self.id} sale_id={self.sale_id} due={self.amount_due} status={self.status}>"
