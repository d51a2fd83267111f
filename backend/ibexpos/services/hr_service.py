# Overview: Attendance and payroll for store staff.

from __future__ import annotations

import re
from decimal import Decimal

from .. import messages
from ..extensions import db
from ..models import Presence, Salary
from ..money import quantize_money, to_decimal
from ..validation import ValidationError, require_positive_int
from .auth_service import list_store_users
from .concurrency import run_with_retry
from .errors import NotFoundError, ServiceError
from .tenant_service import scoped_query

PRESENCE_STATUSES = ("present", "absent", "sick")
SALARY_STATUSES = ("pending", "paid")
PERIOD_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


class PayrollError(ServiceError):
    """Raised for attendance and salary errors."""


def _require_staff(store_id: int, user_id) -> int:
    user_id = require_positive_int(user_id, "userId")
    if user_id not in {user.id for user in list_store_users(store_id)}:
        raise NotFoundError(messages.EMPLOYEE_NOT_IN_STORE)
    return user_id


def list_presences(store_id: int) -> list[Presence]:
    return (
        db.session.query(Presence)
        .filter(Presence.store_id == store_id)
        .order_by(Presence.created_at.desc(), Presence.id.desc())
        .all()
    )


def _coordinate(value, field: str):
    if value is None or value == "":
        return None
    return to_decimal(value, field)


def check_in(store_id: int, data: dict) -> Presence:
    data = data or {}
    status = data.get("status") or "present"
    if status not in PRESENCE_STATUSES:
        raise PayrollError("حالة الحضور غير صحيحة")

    def _op():
        presence = Presence(
            store_id=store_id,
            user_id=_require_staff(store_id, data.get("userId")),
            status=status,
            note=str(data.get("note") or "").strip() or None,
            path=data.get("path") or None,
            lat=_coordinate(data.get("lat"), "lat"),
            long=_coordinate(data.get("long"), "long"),
        )
        db.session.add(presence)
        db.session.commit()
        return presence

    return run_with_retry(_op)


def list_salaries(store_id: int) -> list[Salary]:
    return scoped_query(Salary, store_id).order_by(Salary.created_at.desc(), Salary.id.desc()).all()


def _entries(value, field: str) -> tuple[list[dict], Decimal]:
    """Normalize [{description, amount}] and return it with its sum."""
    if value is None:
        return [], Decimal("0")
    if not isinstance(value, list):
        raise ValidationError(f"{field} يجب أن تكون قائمة")
    entries = []
    total = Decimal("0")
    for raw in value:
        if not isinstance(raw, dict):
            raise ValidationError(f"{field} يجب أن تكون قائمة")
        amount = quantize_money(to_decimal(raw.get("amount"), f"{field}.amount"))
        if amount < 0:
            raise ValidationError(f"{field}.amount لا يمكن أن يكون سالباً")
        entries.append({"description": str(raw.get("description") or "").strip(), "amount": str(amount)})
        total += amount
    return entries, total


def generate_salary(store_id: int, data: dict) -> Salary:
    """total = sum(items.amount) - sum(deductions.amount)"""
    data = data or {}
    period = str(data.get("period") or "").strip()
    if not PERIOD_RE.match(period):
        raise ValidationError("period يجب أن يكون بصيغة YYYY-MM")
    items, earned = _entries(data.get("items"), "items")
    deductions, deducted = _entries(data.get("deductions"), "deductions")

    def _op():
        salary = Salary(
            store_id=store_id,
            user_id=_require_staff(store_id, data.get("userId")),
            period=period,
            items=items,
            deductions=deductions,
            total=quantize_money(earned - deducted),
            status="pending",
            note=str(data.get("note") or "").strip() or None,
        )
        db.session.add(salary)
        db.session.commit()
        return salary

    return run_with_retry(_op)


def update_salary_status(store_id: int, salary_id: int, status: str) -> Salary:
    if status not in SALARY_STATUSES:
        raise PayrollError("حالة الراتب غير صحيحة")

    def _op():
        salary = scoped_query(Salary, store_id).filter(Salary.id == salary_id).first()
        if not salary:
            raise NotFoundError(messages.SALARY_NOT_FOUND)
        salary.status = status
        db.session.commit()
        return salary

    return run_with_retry(_op)
