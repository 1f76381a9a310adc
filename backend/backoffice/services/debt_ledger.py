"""
Debt ledger: applies customer payments to outstanding credit-sale debts.

One payment operation produces one cash-flow entry (the physical money
movement) and one DebtPayment per debt it reaches (the internal allocation).
Each operation runs in a single transaction on the injected session: debts
and the customer row are locked, every mutation is flushed, and the customer's
cached figures are recomputed once at the end from post-allocation state.
"""
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Iterable, List, Optional, TypedDict

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from backoffice.core.config import settings
from backoffice.core.errors import (
    ConcurrentModificationError,
    InvalidAmountError,
    InvalidReferenceError,
    InvalidTargetError,
    LedgerError,
    NotFoundError,
    OverpaymentError,
)
from backoffice.core.serialization_helpers import CENT, format_money, to_money
from backoffice.core.statuses import DebtStatus, PaymentMethod, TargetKind
from backoffice.models.cash_flow import CashFlowEntry
from backoffice.models.customer import Customer
from backoffice.models.debt import Debt
from backoffice.models.debt_payment import DebtPayment
from backoffice.models.sale import Sale
from backoffice.schemas.payments import REFERENCE_MAX_LENGTH, PaymentAllocationLine, PaymentIntent
from backoffice.services import cash_flow_service, debtor_views
from backoffice.services.allocation import (
    customer_order_key,
    mirrored_sale_status,
    next_status,
    order_debts,
    plan_allocation,
    receipt_order_key,
)
from backoffice.services.customer_service import get_customer, refresh_customer_stats
from backoffice.services.status_history_service import create_status_history

logger = logging.getLogger(__name__)


class PaymentResult(TypedDict):
    """Outcome of a single-debt payment."""
    payment: DebtPayment
    debt: Debt
    cash_entry: CashFlowEntry


class AllocationResult(TypedDict):
    """Outcome of a payment split across several debts."""
    payments: List[DebtPayment]
    debts: List[Debt]
    cash_entry: CashFlowEntry
    allocation: List[PaymentAllocationLine]


class DebtLedger:
    def __init__(self, db: Session, max_retries: Optional[int] = None):
        self.db = db
        self.max_retries = max_retries if max_retries is not None else settings.max_payment_retries

    # ------------------------------------------------------------------
    # Payment operations
    # ------------------------------------------------------------------

    def apply_payment_to_debt(
        self,
        debt_id: int,
        amount,
        method,
        payment_date: datetime,
        operator_id: int,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> PaymentResult:
        """
        Pay part or all of one debt.

        Raises:
            InvalidAmountError: amount is not a positive whole-cent value
            NotFoundError: the debt or its sale/customer does not exist
            OverpaymentError: amount exceeds the debt's amount due
        """
        amount = self._validate_amount(amount)
        method = self._validate_method(method)
        reference = self._validate_reference(reference)

        def work() -> PaymentResult:
            debt = self._load_debts([debt_id])[0]
            if debt.sale is None:
                raise NotFoundError("Sale", debt.sale_id)
            due = to_money(debt.amount_due)
            if amount > due:
                raise OverpaymentError(
                    f"Payment amount ({format_money(amount, settings.currency_symbol)}) cannot exceed "
                    f"outstanding balance ({format_money(due, settings.currency_symbol)})",
                    valid_amount=due,
                )
            customer = get_customer(self.db, debt.customer_id, lock=True)

            payment = self._post_allocation(debt, amount, method, payment_date, operator_id, reference, notes)
            cash_entry = cash_flow_service.record_cash_in(
                self.db,
                amount=amount,
                payment_method=method,
                description=cash_flow_service.debt_payment_description(
                    customer.name, debt.sale.product_name, debt.sale.receipt_number
                ),
                reference_number=reference or f"DEBT-PAY-{payment.id:08d}",
                cashier=operator_id,
            )
            refresh_customer_stats(self.db, customer, last_payment_date=payment_date)
            return {"payment": payment, "debt": debt, "cash_entry": cash_entry}

        result = self._atomic(work, f"payment on debt {debt_id}")
        logger.info(
            "debt payment debt_id=%s amount=%s status=%s cash_flow_id=%s",
            debt_id, amount, result["debt"].status, result["cash_entry"].id,
        )
        return result

    def apply_payment_across_debts(
        self,
        debt_ids: Iterable[int],
        amount,
        method,
        payment_date: datetime,
        operator_id: int,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        target_kind: TargetKind = TargetKind.customer,
    ) -> AllocationResult:
        """
        Split one payment FIFO over an explicit set of debts of one customer.

        ``target_kind`` picks the ordering and the cash-flow wording: RECEIPT
        orders by creation only, CUSTOMER by due date (no due date last) then
        creation.
        """
        amount = self._validate_amount(amount)
        method = self._validate_method(method)
        reference = self._validate_reference(reference)
        debt_ids = list(dict.fromkeys(debt_ids))
        if not debt_ids:
            raise InvalidTargetError("No debts given to allocate the payment to")

        def work() -> AllocationResult:
            debts = self._load_debts(debt_ids)
            return self._allocate(
                debts, amount, method, payment_date, operator_id, reference, notes, target_kind
            )

        result = self._atomic(work, f"payment across {len(debt_ids)} debts")
        self._log_allocation(result, amount)
        return result

    def pay_receipt(
        self,
        receipt_number: str,
        amount,
        method,
        payment_date: datetime,
        operator_id: int,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AllocationResult:
        """Pay down every open line of a receipt, oldest line first."""
        amount = self._validate_amount(amount)
        method = self._validate_method(method)
        reference = self._validate_reference(reference)

        def work() -> AllocationResult:
            debts = (
                self.db.query(Debt)
                .join(Sale, Debt.sale_id == Sale.id)
                .filter(
                    Sale.receipt_number == receipt_number,
                    Debt.status != DebtStatus.paid.value,
                    Debt.amount_due > 0,
                )
                .order_by(Debt.id)
                .with_for_update(of=Debt)
                .all()
            )
            if not debts:
                exists = self.db.query(Sale.id).filter(Sale.receipt_number == receipt_number).first()
                if not exists:
                    raise NotFoundError("Receipt", receipt_number)
                raise OverpaymentError(
                    f"No outstanding debts found for receipt: {receipt_number}",
                    valid_amount=Decimal("0.00"),
                )
            return self._allocate(
                debts, amount, method, payment_date, operator_id, reference, notes, TargetKind.receipt
            )

        result = self._atomic(work, f"payment on receipt {receipt_number}")
        self._log_allocation(result, amount)
        return result

    def pay_customer(
        self,
        customer_id: int,
        amount,
        method,
        payment_date: datetime,
        operator_id: int,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AllocationResult:
        """Pay down a customer's open debts, earliest due date first."""
        amount = self._validate_amount(amount)
        method = self._validate_method(method)
        reference = self._validate_reference(reference)

        def work() -> AllocationResult:
            get_customer(self.db, customer_id)
            debts = (
                self.db.query(Debt)
                .filter(
                    Debt.customer_id == customer_id,
                    Debt.status != DebtStatus.paid.value,
                    Debt.amount_due > 0,
                )
                .order_by(Debt.id)
                .with_for_update()
                .all()
            )
            if not debts:
                raise OverpaymentError(
                    "No outstanding debts found for this customer",
                    valid_amount=Decimal("0.00"),
                )
            return self._allocate(
                debts, amount, method, payment_date, operator_id, reference, notes, TargetKind.customer
            )

        result = self._atomic(work, f"payment for customer {customer_id}")
        self._log_allocation(result, amount)
        return result

    def apply_intent(self, intent: PaymentIntent):
        """Route a validated payment intent to the matching payment path."""
        common = dict(
            amount=intent.amount,
            method=intent.method,
            payment_date=intent.payment_date,
            operator_id=intent.operator_id,
            reference=intent.reference,
            notes=intent.notes,
        )
        if intent.target_kind == TargetKind.debt:
            return self.apply_payment_to_debt(_int_id(intent.target_id, "Debt"), **common)
        if intent.target_kind == TargetKind.receipt:
            return self.pay_receipt(intent.target_id, **common)
        return self.pay_customer(_int_id(intent.target_id, "Customer"), **common)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def debt_state(self, debt_id: int, now: Optional[datetime] = None) -> Dict:
        debt = self.db.query(Debt).filter(Debt.id == debt_id).first()
        if not debt:
            raise NotFoundError("Debt", debt_id)
        return {
            "id": debt.id,
            "status": debtor_views.classify_debt(debt, now),
            "total_amount": to_money(debt.total_amount),
            "amount_paid": to_money(debt.amount_paid),
            "amount_due": to_money(debt.amount_due),
            "due_date": debt.due_date,
        }

    def customer_state(self, customer_id: int) -> Dict:
        customer = get_customer(self.db, customer_id)
        return {
            "id": customer.id,
            "outstanding_debt": to_money(customer.outstanding_debt),
            "payment_reliability_score": to_money(customer.payment_reliability_score),
            "last_payment_date": customer.last_payment_date,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _atomic(self, work: Callable, label: str):
        """Run ``work`` and commit; roll back on any failure, retry on stale rows."""
        for attempt in range(1, self.max_retries + 1):
            try:
                result = work()
                self.db.commit()
                return result
            except StaleDataError:
                self.db.rollback()
                logger.warning("%s hit a concurrent update (attempt %s/%s)", label, attempt, self.max_retries)
            except LedgerError as exc:
                self.db.rollback()
                logger.info("%s rejected: %s %s", label, exc.code, exc.message)
                raise
            except Exception:
                self.db.rollback()
                raise
        raise ConcurrentModificationError(
            f"{label} kept conflicting with concurrent updates; retry the payment"
        )

    def _validate_amount(self, amount) -> Decimal:
        try:
            value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        except (InvalidOperation, ValueError):
            raise InvalidAmountError(f"Invalid payment amount: {amount!r}")
        if not value.is_finite() or value <= 0:
            raise InvalidAmountError("Payment amount must be greater than 0")
        try:
            cents = value.quantize(CENT)
        except InvalidOperation:
            raise InvalidAmountError(f"Payment amount is out of range: {amount!r}")
        if cents != value:
            raise InvalidAmountError("Payment amount cannot have more than two decimal places")
        return cents

    def _validate_reference(self, reference: Optional[str]) -> Optional[str]:
        if reference is not None and len(reference) > REFERENCE_MAX_LENGTH:
            raise InvalidReferenceError(
                f"Payment reference cannot exceed {REFERENCE_MAX_LENGTH} characters"
            )
        return reference

    def _validate_method(self, method) -> str:
        try:
            return PaymentMethod(method).value
        except ValueError:
            raise InvalidTargetError(f"Unknown payment method: {method!r}")

    def _load_debts(self, debt_ids: List[int]) -> List[Debt]:
        """Lock the given debts in id order and check every reference resolves."""
        debts = (
            self.db.query(Debt)
            .filter(Debt.id.in_(debt_ids))
            .order_by(Debt.id)
            .with_for_update()
            .all()
        )
        found = {d.id for d in debts}
        for debt_id in debt_ids:
            if debt_id not in found:
                raise NotFoundError("Debt", debt_id)
        return debts

    def _allocate(
        self,
        debts: List[Debt],
        amount: Decimal,
        method: str,
        payment_date: datetime,
        operator_id: int,
        reference: Optional[str],
        notes: Optional[str],
        target_kind: TargetKind,
    ) -> AllocationResult:
        customer_ids = {d.customer_id for d in debts}
        if len(customer_ids) != 1:
            raise InvalidTargetError("A single payment cannot cover debts of several customers")
        for debt in debts:
            if debt.sale is None:
                raise NotFoundError("Sale", debt.sale_id)

        key = receipt_order_key if target_kind == TargetKind.receipt else customer_order_key
        plan = plan_allocation(order_debts(debts, key), amount)
        customer = get_customer(self.db, customer_ids.pop(), lock=True)

        payments: List[DebtPayment] = []
        touched: List[Debt] = []
        for debt, allocated in plan:
            payments.append(
                self._post_allocation(
                    debt,
                    allocated,
                    method,
                    payment_date,
                    operator_id,
                    reference=f"{reference}-{debt.id:04d}" if reference else None,
                    notes=notes or f"Payment allocation: {format_money(allocated, settings.currency_symbol)}",
                )
            )
            touched.append(debt)

        cash_entry = cash_flow_service.record_cash_in(
            self.db,
            amount=amount,
            payment_method=method,
            description=self._describe(customer, touched, target_kind),
            reference_number=reference or self._fallback_reference(customer, touched, target_kind, payment_date),
            cashier=operator_id,
        )
        refresh_customer_stats(self.db, customer, last_payment_date=payment_date)

        allocation = [
            PaymentAllocationLine(
                debt_id=debt.id,
                sale_id=debt.sale_id,
                payment_id=payment.id,
                amount_allocated=to_money(payment.amount),
                amount_due=to_money(debt.amount_due),
                new_status=debt.status,
            )
            for debt, payment in zip(touched, payments)
        ]
        return {"payments": payments, "debts": touched, "cash_entry": cash_entry, "allocation": allocation}

    def _post_allocation(
        self,
        debt: Debt,
        amount: Decimal,
        method: str,
        payment_date: datetime,
        operator_id: int,
        reference: Optional[str],
        notes: Optional[str],
    ) -> DebtPayment:
        """Record one sub-payment and bring the debt and its sale up to date."""
        payment = DebtPayment(
            debt_id=debt.id,
            amount=amount,
            payment_method=method,
            payment_date=payment_date,
            reference_number=reference,
            notes=notes,
            received_by=operator_id,
        )
        self.db.add(payment)

        old_status = debt.status
        debt.amount_paid = to_money(debt.amount_paid) + amount
        debt.amount_due = to_money(debt.total_amount) - debt.amount_paid
        debt.status = next_status(debt.total_amount, debt.amount_paid).value

        sale = debt.sale
        old_sale_status = sale.payment_status
        sale.payment_status = mirrored_sale_status(debt.status, debt.amount_paid)

        if old_status != debt.status:
            create_status_history(
                self.db, "debt", debt.id, old_status, debt.status, operator_id,
                notes=f"Payment of {format_money(amount, settings.currency_symbol)}",
            )
        if old_sale_status != sale.payment_status:
            create_status_history(
                self.db, "sale", sale.id, old_sale_status, sale.payment_status, operator_id,
            )

        self.db.flush()
        return payment

    def _describe(self, customer: Customer, touched: List[Debt], target_kind: TargetKind) -> str:
        receipts = {d.sale.receipt_number for d in touched}
        if target_kind == TargetKind.receipt and len(receipts) == 1:
            return cash_flow_service.receipt_payment_description(customer.name, receipts.pop(), len(touched))
        return cash_flow_service.customer_payment_description(customer.name, len(touched))

    def _fallback_reference(
        self, customer: Customer, touched: List[Debt], target_kind: TargetKind, payment_date: datetime
    ) -> str:
        receipts = {d.sale.receipt_number for d in touched}
        if target_kind == TargetKind.receipt and len(receipts) == 1:
            return f"DEBT-PAY-{receipts.pop()}"
        return f"DEBT-PAY-C{customer.id}-{payment_date:%Y%m%d%H%M%S}"

    def _log_allocation(self, result: AllocationResult, amount: Decimal) -> None:
        logger.info(
            "debt payment allocated amount=%s debts=%s cash_flow_id=%s",
            amount, [line.debt_id for line in result["allocation"]], result["cash_entry"].id,
        )


def _int_id(value, entity: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise NotFoundError(entity, value)
