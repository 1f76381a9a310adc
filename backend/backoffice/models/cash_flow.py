from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, Numeric, String, Text

from backoffice.models.customer import Base


class CashFlowEntry(Base):
    """One row per physical money movement, however it was allocated internally."""

    __tablename__ = "cash_flow"

    id = Column(Integer, primary_key=True, index=True)
    # "CASH_IN" or "CASH_OUT"
    transaction_type = Column(String(20), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(20), nullable=False)
    description = Column(Text, nullable=True)
    reference_number = Column(String(100), nullable=True, index=True)

    # Set by external bookkeeping when matched against the bank statement
    is_reconciled = Column(Boolean, nullable=False, default=False)
    reconciliation_date = Column(Date, nullable=True)

    cashier = Column(Integer, nullable=False, index=True)
    module = Column(String(20), nullable=False, default="WAREHOUSE", index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
