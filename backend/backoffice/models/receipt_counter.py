from sqlalchemy import Column, Integer, String, UniqueConstraint

from backoffice.models.customer import Base


class ReceiptCounter(Base):
    __tablename__ = "receipt_counters"
    __table_args__ = (
        UniqueConstraint("prefix", "day", name="uq_receipt_counters_prefix_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    prefix = Column(String(10), nullable=False)
    # YYYYMMDD
    day = Column(String(8), nullable=False, index=True)
    next_seq = Column(Integer, nullable=False, default=1)
