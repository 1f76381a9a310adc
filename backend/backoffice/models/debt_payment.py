from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text, event
from sqlalchemy.orm import relationship

from backoffice.core.errors import ImmutableRecordError
from backoffice.models.customer import Base


class DebtPayment(Base):
    __tablename__ = "warehouse_debtor_payments"

    id = Column(Integer, primary_key=True, index=True)
    debt_id = Column(Integer, ForeignKey("warehouse_debtors.id", ondelete="RESTRICT"), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    # "CASH", "BANK_TRANSFER", "CHECK", "CARD" or "MOBILE_MONEY"
    payment_method = Column(String(20), nullable=False)
    payment_date = Column(DateTime, nullable=False, index=True)
    reference_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    # Operator who took the money
    received_by = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    debt = relationship("Debt", back_populates="payments")


@event.listens_for(DebtPayment, "before_update")
def prevent_payment_update(mapper, connection, target):
    raise ImmutableRecordError(f"Debt payment {target.id} is append-only")
