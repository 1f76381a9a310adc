from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from backoffice.core.serialization_helpers import is_whole_cents
from backoffice.core.statuses import PaymentMethod, TargetKind


# Room left in reference_number (String(100)) for the per-debt "-0042" suffix
REFERENCE_MAX_LENGTH = 90


class PaymentIntent(BaseModel):
    """What the request layer hands the ledger once the caller is authenticated."""

    target_id: str
    target_kind: TargetKind
    amount: Decimal = Field(gt=0)
    method: PaymentMethod
    payment_date: datetime
    reference: Optional[str] = Field(default=None, max_length=REFERENCE_MAX_LENGTH)
    notes: Optional[str] = None
    operator_id: int

    @field_validator("amount")
    @classmethod
    def amount_in_cents(cls, value: Decimal) -> Decimal:
        if not is_whole_cents(value):
            raise ValueError("Amount cannot have more than two decimal places")
        return value

    @field_validator("reference", "notes")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None


class PaymentAllocationLine(BaseModel):
    debt_id: int
    sale_id: int
    payment_id: int
    amount_allocated: Decimal
    amount_due: Decimal
    new_status: str

    class Config:
        from_attributes = True
