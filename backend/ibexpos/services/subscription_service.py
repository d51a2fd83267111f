"""
Subscription Service: platform plans and store subscription requests.

A store asks for a plan (create_request), pays offline, and a platform
admin approves it. Approval activates the store on that plan until
now + plan.duration_months calendar months.
"""

from __future__ import annotations

import logging

from .. import messages
from ..extensions import db
from ..models import Store, SubscriptionPlan, SubscriptionRequest
from ..money import quantize_money, to_decimal
from ..time_utils import add_months, to_utc_z, utcnow
from ..validation import ModelValidationPolicy, ValidationError, apply_patch, require_positive_int, validate_payload
from .concurrency import lock_for_update, run_with_retry
from .errors import NotFoundError, ServiceError

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("bank_transfer", "cash", "card")

PLAN_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "display_name", "description", "price", "duration_months", "features",
        "max_products", "max_users", "max_stores", "active",
    },
    required_on_create={"name", "display_name", "price"},
    non_negative={"price", "max_products", "max_users", "max_stores"},
)


class SubscriptionError(ServiceError):
    """Raised for subscription workflow errors."""


# Plans

def list_active_plans() -> list[SubscriptionPlan]:
    return (
        db.session.query(SubscriptionPlan)
        .filter(SubscriptionPlan.active.is_(True), SubscriptionPlan.alive())
        .order_by(SubscriptionPlan.price, SubscriptionPlan.id)
        .all()
    )


def list_all_plans() -> list[SubscriptionPlan]:
    return (
        db.session.query(SubscriptionPlan)
        .filter(SubscriptionPlan.alive())
        .order_by(SubscriptionPlan.price, SubscriptionPlan.id)
        .all()
    )


def get_plan(plan_id: int) -> SubscriptionPlan:
    plan = (
        db.session.query(SubscriptionPlan)
        .filter(SubscriptionPlan.id == plan_id, SubscriptionPlan.alive())
        .first()
    )
    if not plan:
        raise NotFoundError(messages.PLAN_NOT_FOUND)
    return plan


def _check_duration(patch: dict) -> None:
    if "duration_months" in patch and (patch["duration_months"] is None or patch["duration_months"] < 1):
        raise ValidationError("duration_months يجب أن يكون أكبر من صفر")


def add_plan(data: dict) -> SubscriptionPlan:
    def _op():
        patch = validate_payload(model=SubscriptionPlan, payload=data, policy=PLAN_POLICY, partial=False)
        _check_duration(patch)
        plan = SubscriptionPlan(duration_months=1, features=[], max_stores=1, active=True)
        apply_patch(plan, patch)
        db.session.add(plan)
        db.session.commit()
        return plan

    return run_with_retry(_op)


def update_plan(plan_id: int, data: dict) -> SubscriptionPlan:
    def _op():
        plan = get_plan(plan_id)
        patch = validate_payload(model=SubscriptionPlan, payload=data, policy=PLAN_POLICY, partial=True)
        _check_duration(patch)
        apply_patch(plan, patch)
        db.session.commit()
        return plan

    return run_with_retry(_op)


def delete_plan(plan_id: int) -> bool:
    def _op():
        get_plan(plan_id).soft_delete()
        db.session.commit()
        return True

    return run_with_retry(_op)


# Requests

def create_request(store_id: int, data: dict) -> SubscriptionRequest:
    data = data or {}
    payment_method = data.get("paymentMethod") or "bank_transfer"
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(messages.PAYMENT_METHOD_INVALID)

    def _op():
        store = db.session.query(Store).filter(Store.id == store_id, Store.alive()).first()
        if not store:
            raise NotFoundError(messages.STORE_NOT_FOUND)
        plan = get_plan(require_positive_int(data.get("planId"), "planId"))
        if not plan.active:
            raise NotFoundError(messages.PLAN_NOT_FOUND)

        amount = data.get("amount")
        amount = quantize_money(to_decimal(amount, "amount")) if amount is not None else plan.price
        if amount < 0:
            raise ValidationError(messages.AMOUNT_INVALID)

        req = SubscriptionRequest(
            store_id=store.id,
            plan_id=plan.id,
            amount=amount,
            payment_method=payment_method,
            payment_reference=str(data.get("paymentReference") or "").strip() or None,
            payment_receipt=data.get("paymentReceipt") or None,
            status="pending",
        )
        db.session.add(req)
        db.session.commit()
        logger.info("Subscription request %s: store %s plan %s", req.id, store.id, plan.name)
        return req

    return run_with_retry(_op)


def list_store_requests(store_id: int) -> list[SubscriptionRequest]:
    return (
        db.session.query(SubscriptionRequest)
        .filter(SubscriptionRequest.store_id == store_id)
        .order_by(SubscriptionRequest.created_at.desc(), SubscriptionRequest.id.desc())
        .all()
    )


def list_all_requests() -> list[SubscriptionRequest]:
    return (
        db.session.query(SubscriptionRequest)
        .order_by(SubscriptionRequest.created_at.desc(), SubscriptionRequest.id.desc())
        .all()
    )


def _get_pending_request(request_id: int) -> SubscriptionRequest:
    req = lock_for_update(
        db.session.query(SubscriptionRequest).filter(SubscriptionRequest.id == request_id)
    ).first()
    if not req:
        raise NotFoundError(messages.SUBSCRIPTION_REQUEST_NOT_FOUND)
    if req.status != "pending":
        raise SubscriptionError(messages.SUBSCRIPTION_ALREADY_PROCESSED)
    return req


def approve_request(request_id: int, admin_user_id: int) -> dict:
    """Settle the request and activate the store in one commit."""
    def _op():
        req = _get_pending_request(request_id)
        plan = db.session.get(SubscriptionPlan, req.plan_id)
        if plan is None:
            raise NotFoundError(messages.PLAN_NOT_FOUND)
        store = lock_for_update(db.session.query(Store).filter(Store.id == req.store_id)).first()
        if store is None:
            raise NotFoundError(messages.STORE_NOT_FOUND)

        now = utcnow()
        expiry = add_months(now, plan.duration_months or 1)

        req.status = "approved"
        req.approved_by = admin_user_id
        req.approved_at = now

        store.subscription_plan = plan.name
        store.subscription_status = "active"
        store.subscription_expiry = expiry

        db.session.commit()
        logger.info("Store %s subscribed to %s until %s", store.id, plan.name, expiry.isoformat())
        return {"success": True, "expiryDate": to_utc_z(expiry)}

    return run_with_retry(_op)


def reject_request(request_id: int, admin_user_id: int, reason: str | None = None) -> bool:
    def _op():
        req = _get_pending_request(request_id)
        req.status = "rejected"
        req.approved_by = admin_user_id
        req.rejection_reason = (reason or "").strip() or None
        db.session.commit()
        return True

    return run_with_retry(_op)
