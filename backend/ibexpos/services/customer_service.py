"""
Customer Service: store-side customer management.

Customers are global (one row per phone); a store sees a customer only
through a CustomerStoreRelation. Relation status:
    active     can buy on balance/credit
    suspended  kept in listings, cannot use balance
    removed    hidden from the store
"""

from __future__ import annotations

import logging
import secrets

from sqlalchemy import func, or_

from .. import messages
from ..extensions import db
from ..models import Customer, CustomerStoreRelation
from ..money import money_str
from ..validation import ModelValidationPolicy, apply_patch, normalize_phone, validate_payload
from . import audit_service
from .auth_service import hash_password
from .concurrency import run_with_retry
from .errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

RELATION_ACTIVE = "active"
RELATION_SUSPENDED = "suspended"
RELATION_REMOVED = "removed"

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "whatsapp", "allow_credit", "credit_limit", "ktp", "dob", "notes", "status"},
    required_on_create={"name"},
    non_negative={"credit_limit"},
)


def _with_relation(customer: Customer, relation: CustomerStoreRelation) -> dict:
    data = customer.to_dict()
    data["balance"] = money_str(relation.balance)
    data["relationStatus"] = relation.status
    data["registeredAt"] = relation.to_dict()["registeredAt"]
    return data


def _store_customers(store_id: int):
    return (
        db.session.query(Customer, CustomerStoreRelation)
        .join(CustomerStoreRelation, CustomerStoreRelation.customer_id == Customer.id)
        .filter(
            CustomerStoreRelation.store_id == store_id,
            CustomerStoreRelation.status != RELATION_REMOVED,
            Customer.alive(),
        )
    )


def list_customers(store_id: int, search: str | None = None) -> list[dict]:
    query = _store_customers(store_id)
    search = (search or "").strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Customer.name.ilike(pattern), Customer.phone.like(pattern)))
    rows = query.order_by(Customer.created_at.desc(), Customer.id.desc()).all()
    return [_with_relation(customer, relation) for customer, relation in rows]


def get_store_customer(store_id: int, customer_id: int) -> tuple[Customer, CustomerStoreRelation]:
    row = _store_customers(store_id).filter(Customer.id == customer_id).first()
    if not row:
        raise NotFoundError(messages.CUSTOMER_NOT_FOUND)
    return row


def find_by_phone(phone: str) -> Customer | None:
    return db.session.query(Customer).filter(Customer.phone == phone, Customer.alive()).first()


def get_relation(customer_id: int, store_id: int) -> CustomerStoreRelation | None:
    return (
        db.session.query(CustomerStoreRelation)
        .filter(
            CustomerStoreRelation.customer_id == customer_id,
            CustomerStoreRelation.store_id == store_id,
        )
        .first()
    )


def add_customer(store_id: int, data: dict) -> dict:
    """
    Register a customer at the counter.

    A phone that already belongs to a live customer links that customer to the
    store instead of creating a duplicate. Counter registrations skip the
    approval queue.
    """
    data = data or {}
    phone = normalize_phone(data.get("phone"))

    def _op():
        customer = find_by_phone(phone)
        if customer is None:
            patch = validate_payload(model=Customer, payload=data, policy=CUSTOMER_POLICY, partial=False)
            # The customer sets a real password when joining the portal
            password = data.get("password") or secrets.token_urlsafe(12)
            customer = Customer(
                phone=phone,
                password_hash=hash_password(password),
                registration_status="approved",
            )
            apply_patch(customer, patch)
            if not customer.whatsapp:
                customer.whatsapp = phone
            db.session.add(customer)
            db.session.flush()

        relation = get_relation(customer.id, store_id)
        if relation is None:
            relation = CustomerStoreRelation(customer_id=customer.id, store_id=store_id, balance=0)
            db.session.add(relation)
        relation.status = RELATION_ACTIVE

        db.session.commit()
        return _with_relation(customer, relation)

    return run_with_retry(_op)


def update_customer(store_id: int, customer_id: int, data: dict) -> dict:
    data = data or {}

    def _op():
        customer, relation = get_store_customer(store_id, customer_id)
        patch = validate_payload(model=Customer, payload=data, policy=CUSTOMER_POLICY, partial=True)

        if data.get("phone") is not None:
            phone = normalize_phone(data["phone"])
            other = find_by_phone(phone)
            if other is not None and other.id != customer.id:
                raise ConflictError(messages.PHONE_TAKEN)
            patch["phone"] = phone

        if data.get("relationStatus") in (RELATION_ACTIVE, RELATION_SUSPENDED):
            relation.status = data["relationStatus"]

        apply_patch(customer, patch)
        db.session.commit()
        return _with_relation(customer, relation)

    return run_with_retry(_op)


def delete_customer(store_id: int, customer_id: int, *, acting_user_id: int | None = None) -> bool:
    """
    Remove a customer from a store.

    The customer row itself is soft-deleted only when no other store still
    holds a relation to it.
    """
    def _op():
        customer, relation = get_store_customer(store_id, customer_id)
        relation.status = RELATION_REMOVED

        others = (
            db.session.query(CustomerStoreRelation.id)
            .filter(
                CustomerStoreRelation.customer_id == customer.id,
                CustomerStoreRelation.store_id != store_id,
                CustomerStoreRelation.status != RELATION_REMOVED,
            )
            .first()
        )
        if others is None:
            customer.soft_delete()

        audit_service.log_event(
            user_id=acting_user_id,
            action="customer_delete",
            entity_type="customer",
            entity_id=customer.id,
            store_id=store_id,
            old_value={"balance": money_str(relation.balance)},
        )
        db.session.commit()
        return True

    return run_with_retry(_op)


def _pending_query(store_ids: set[int] | None):
    query = (
        db.session.query(Customer)
        .join(CustomerStoreRelation, CustomerStoreRelation.customer_id == Customer.id)
        .filter(Customer.registration_status == "pending", Customer.alive())
    )
    if store_ids is not None:
        query = query.filter(CustomerStoreRelation.store_id.in_(store_ids or {-1}))
    return query


def pending_registrations_count(store_ids: set[int] | None) -> int:
    """store_ids=None counts across all stores."""
    return (
        _pending_query(store_ids)
        .with_entities(func.count(func.distinct(Customer.id)))
        .scalar()
        or 0
    )


def pending_registrations(store_id: int) -> list[dict]:
    rows = _pending_query({store_id}).distinct().order_by(Customer.created_at.desc(), Customer.id.desc()).all()
    return [customer.to_dict() for customer in rows]
