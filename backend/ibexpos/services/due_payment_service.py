from __future__ import annotations

from .. import messages
from ..extensions import db
from ..models import DuePayment
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, apply_patch, validate_payload
from .balance_service import TX_DUE_PAYMENT, record_transaction
from .concurrency import lock_for_update, run_with_retry
from .customer_service import get_relation
from .errors import NotFoundError, ServiceError
from .tenant_service import scoped_query

DUE_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_id", "name", "invoice", "item_name", "item_amount", "amount", "status", "note",
        "date_in", "due_date",
    },
    required_on_create={"name", "amount", "due_date"},
    non_negative={"amount", "item_amount"},
)

DUE_STATUSES = ("paid", "unpaid")


class DuePaymentError(ServiceError):
    """Raised for due payment errors."""


def _check_patch(store_id: int, patch: dict) -> None:
    if "status" in patch and patch["status"] not in DUE_STATUSES:
        raise DuePaymentError("حالة الدين غير صحيحة")
    if patch.get("customer_id") is not None and get_relation(patch["customer_id"], store_id) is None:
        raise NotFoundError(messages.CUSTOMER_NOT_FOUND)


def list_due_payments(store_id: int) -> list[DuePayment]:
    return scoped_query(DuePayment, store_id).order_by(DuePayment.due_date, DuePayment.id).all()


def get_due_payment(store_id: int, due_id: int, *, for_update: bool = False) -> DuePayment:
    query = scoped_query(DuePayment, store_id).filter(DuePayment.id == due_id)
    if for_update:
        query = lock_for_update(query)
    due = query.first()
    if not due:
        raise NotFoundError(messages.DUE_PAYMENT_NOT_FOUND)
    return due


def add_due_payment(store_id: int, data: dict) -> DuePayment:
    def _op():
        patch = validate_payload(model=DuePayment, payload=data, policy=DUE_POLICY, partial=False)
        _check_patch(store_id, patch)
        due = DuePayment(store_id=store_id, status="unpaid", item_amount=0, date_in=utcnow())
        apply_patch(due, patch)
        db.session.add(due)
        db.session.commit()
        return due

    return run_with_retry(_op)


def update_due_payment(store_id: int, due_id: int, data: dict) -> DuePayment:
    def _op():
        due = get_due_payment(store_id, due_id, for_update=True)
        patch = validate_payload(model=DuePayment, payload=data, policy=DUE_POLICY, partial=True)
        _check_patch(store_id, patch)
        apply_patch(due, patch)
        db.session.commit()
        return due

    return run_with_retry(_op)


def delete_due_payment(store_id: int, due_id: int) -> bool:
    def _op():
        due = get_due_payment(store_id, due_id)
        due.soft_delete()
        db.session.commit()
        return True

    return run_with_retry(_op)


def mark_paid(store_id: int, due_id: int) -> DuePayment:
    """Settle a due; a customer's due also lands in their ledger."""
    def _op():
        due = get_due_payment(store_id, due_id, for_update=True)
        if due.status == "paid":
            raise DuePaymentError(messages.REQUEST_ALREADY_PROCESSED)
        due.status = "paid"
        if due.customer_id is not None:
            record_transaction(
                customer_id=due.customer_id,
                store_id=store_id,
                type=TX_DUE_PAYMENT,
                amount=due.amount,
                reference=due.invoice,
                metadata={"duePaymentId": due.id},
            )
        db.session.commit()
        return due

    return run_with_retry(_op)
