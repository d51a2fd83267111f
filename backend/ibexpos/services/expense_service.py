from __future__ import annotations

from .. import messages
from ..extensions import db
from ..models import Expense
from ..validation import ModelValidationPolicy, apply_patch, validate_payload
from .concurrency import run_with_retry
from .errors import NotFoundError
from .tenant_service import scoped_query

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"title", "note", "amount"},
    required_on_create={"title", "amount"},
    non_negative={"amount"},
)


def list_expenses(store_id: int) -> list[Expense]:
    return scoped_query(Expense, store_id).order_by(Expense.created_at.desc(), Expense.id.desc()).all()


def add_expense(store_id: int, data: dict) -> Expense:
    def _op():
        patch = validate_payload(model=Expense, payload=data, policy=EXPENSE_POLICY, partial=False)
        expense = Expense(store_id=store_id)
        apply_patch(expense, patch)
        db.session.add(expense)
        db.session.commit()
        return expense

    return run_with_retry(_op)


def delete_expense(store_id: int, expense_id: int) -> bool:
    def _op():
        expense = scoped_query(Expense, store_id).filter(Expense.id == expense_id).first()
        if not expense:
            raise NotFoundError(messages.EXPENSE_NOT_FOUND)
        expense.soft_delete()
        db.session.commit()
        return True

    return run_with_retry(_op)
