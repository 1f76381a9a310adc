"""
Typed failures raised by the debt ledger.

Every error carries a stable ``code`` and can be rendered with ``to_dict()`` so
the request layer can hand it to a client unchanged. Amount-related errors also
carry ``valid_amount``: the largest amount the caller could have submitted.
"""
from decimal import Decimal
from typing import Any, Dict, Optional


class LedgerError(Exception):
    code = "LEDGER_ERROR"

    def __init__(self, message: str, valid_amount: Optional[Decimal] = None):
        super().__init__(message)
        self.message = message
        self.valid_amount = valid_amount

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.valid_amount is not None:
            payload["valid_amount"] = float(self.valid_amount)
        return payload


class InvalidAmountError(LedgerError):
    code = "INVALID_AMOUNT"


class OverpaymentError(LedgerError):
    code = "OVERPAYMENT"


class NotFoundError(LedgerError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, identifier: Any):
        super().__init__(f"{entity} {identifier} not found")
        self.entity = entity
        self.identifier = identifier


class InvalidTargetError(LedgerError):
    code = "INVALID_TARGET"


class ConcurrentModificationError(LedgerError):
    code = "CONCURRENT_MODIFICATION"


class ImmutableRecordError(LedgerError):
    code = "IMMUTABLE_RECORD"


class InvalidReferenceError(LedgerError):
    code = "INVALID_REFERENCE"
