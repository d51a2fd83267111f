"""
Customer Authentication Service

Portal customers register with phone + password against a store link (slug)
and wait for the store to approve them. Login is phone based and returns the
stores the customer is an active member of.
"""

from __future__ import annotations

import logging

from .. import messages
from ..extensions import db
from ..models import Customer, CustomerStoreRelation, Store
from ..money import as_number
from ..time_utils import to_utc_z
from ..validation import ValidationError, normalize_phone
from . import session_service
from .auth_service import hash_password, validate_password, verify_password
from .concurrency import run_with_retry
from .customer_service import RELATION_ACTIVE, find_by_phone, get_relation
from .errors import AuthError, ConflictError, ForbiddenError, NotFoundError
from .store_service import get_store_by_slug

logger = logging.getLogger(__name__)

REGISTRATION_PENDING = "pending"
REGISTRATION_APPROVED = "approved"
REGISTRATION_REJECTED = "rejected"


def register(data: dict) -> dict:
    data = data or {}
    phone = normalize_phone(data.get("phone"))
    validate_password(data.get("password"))
    name = str(data.get("name") or "").strip()

    store = get_store_by_slug(str(data.get("storeSlug") or "").strip())
    if not store:
        raise NotFoundError(messages.STORE_NOT_FOUND)

    def _op():
        customer = find_by_phone(phone)
        if customer is not None:
            # Suspended and removed links included
            if get_relation(customer.id, store.id) is not None:
                raise ConflictError(messages.ALREADY_REGISTERED)
            db.session.add(CustomerStoreRelation(
                customer_id=customer.id,
                store_id=store.id,
                balance=0,
                status=RELATION_ACTIVE,
            ))
        else:
            if not name:
                raise ValidationError(messages.NAME_REQUIRED)
            customer = Customer(
                name=name,
                phone=phone,
                whatsapp=str(data.get("whatsapp") or "").strip() or phone,
                password_hash=hash_password(data["password"]),
                registration_status=REGISTRATION_PENDING,
                status=True,
            )
            db.session.add(customer)
            db.session.flush()
            db.session.add(CustomerStoreRelation(
                customer_id=customer.id,
                store_id=store.id,
                balance=0,
                status=RELATION_ACTIVE,
            ))

        db.session.commit()
        logger.info("Customer %s registered at store %s", customer.id, store.id)
        return {
            "success": True,
            "message": messages.REGISTRATION_SUBMITTED,
            "customerId": customer.id,
        }

    return run_with_retry(_op)


def active_stores(customer_id: int) -> list[tuple[Store, CustomerStoreRelation]]:
    return (
        db.session.query(Store, CustomerStoreRelation)
        .join(CustomerStoreRelation, CustomerStoreRelation.store_id == Store.id)
        .filter(
            CustomerStoreRelation.customer_id == customer_id,
            CustomerStoreRelation.status == RELATION_ACTIVE,
            Store.alive(),
        )
        .order_by(CustomerStoreRelation.registered_at.desc(), Store.id)
        .all()
    )


def authenticate_customer(phone, password) -> Customer:
    digits = "".join(ch for ch in str(phone or "") if ch.isdigit())
    customer = find_by_phone(digits) if digits else None
    if not customer:
        raise AuthError(messages.PHONE_NOT_REGISTERED)

    if not verify_password(password, customer.password_hash):
        raise AuthError(messages.PASSWORD_WRONG)

    if customer.registration_status == REGISTRATION_REJECTED:
        raise ForbiddenError(messages.REGISTRATION_REJECTED)
    if customer.registration_status != REGISTRATION_APPROVED:
        raise ForbiddenError(messages.REGISTRATION_PENDING)
    return customer


def login(phone, password, *, user_agent: str | None = None, ip_address: str | None = None) -> dict:
    customer = authenticate_customer(phone, password)
    _, token = session_service.create_customer_session(customer.id, user_agent=user_agent, ip_address=ip_address)

    stores = [
        {
            "id": store.id,
            "name": store.name,
            "slug": store.slug,
            "description": store.description,
            "settings": store.settings or {},
            "balance": as_number(relation.balance),
            "registeredAt": to_utc_z(relation.registered_at),
        }
        for store, relation in active_stores(customer.id)
    ]
    return {"customer": customer.to_dict(), "stores": stores, "token": token}


def _set_registration_status(customer_id: int, status: str) -> bool:
    def _op():
        customer = db.session.query(Customer).filter(Customer.id == customer_id, Customer.alive()).first()
        if not customer:
            raise NotFoundError(messages.CUSTOMER_NOT_FOUND)
        customer.registration_status = status
        db.session.commit()
        logger.info("Customer %s registration %s", customer.id, status)
        return True

    return run_with_retry(_op)


def approve(customer_id: int) -> bool:
    return _set_registration_status(customer_id, REGISTRATION_APPROVED)


def reject(customer_id: int) -> bool:
    return _set_registration_status(customer_id, REGISTRATION_REJECTED)
