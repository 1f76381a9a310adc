from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from backoffice.models.customer import Base


class StatusHistory(Base):
    __tablename__ = "status_history"

    id = Column(Integer, primary_key=True, index=True)

    # "debt" or "sale"
    entity_type = Column(String(20), nullable=False)
    entity_id = Column(Integer, nullable=False, index=True)

    old_status = Column(String(50), nullable=True)  # null on creation
    new_status = Column(String(50), nullable=False)

    user_id = Column(Integer, nullable=False)
    notes = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
