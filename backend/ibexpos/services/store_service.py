from __future__ import annotations

import logging
import re

from .. import messages
from ..extensions import db
from ..models import GeneralRequest, Store, User
from ..models.auth import ROLE_MERCHANT
from ..time_utils import coerce_datetime
from ..validation import ModelValidationPolicy, ValidationError, apply_patch, validate_payload
from . import audit_service
from .concurrency import lock_for_update, run_with_retry
from .errors import NotFoundError, ServiceError

logger = logging.getLogger(__name__)

SUBSCRIPTION_STATUSES = ("active", "expired", "pending", "cancelled")
REQUEST_STATUSES = ("pending", "approved", "rejected", "completed")

STORE_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "description", "phone", "bank_accounts", "contact_info", "settings", "currency_id",
    },
    required_on_create={"name"},
)

REQUEST_POLICY = ModelValidationPolicy(
    writable_fields={"store_id", "title", "note"},
    required_on_create={"title"},
)


class StoreError(ServiceError):
    """Raised when store operations fail."""


def generate_slug(name: str) -> str:
    """
    URL-safe slug that keeps Arabic letters: "متجر النور 2" -> "متجر-النور-2".
    """
    slug = (name or "").strip().lower()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^a-z0-9؀-ۿ-]", "", slug)
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    return slug or "store"


def unique_slug(name: str, *, exclude_store_id: int | None = None) -> str:
    """Base slug, then base-1, base-2, ... until unused (deleted stores still hold theirs)."""
    base = generate_slug(name)
    slug = base
    counter = 1
    while True:
        query = db.session.query(Store.id).filter(Store.slug == slug)
        if exclude_store_id is not None:
            query = query.filter(Store.id != exclude_store_id)
        if query.first() is None:
            return slug
        slug = f"{base}-{counter}"
        counter += 1


def get_store(store_id: int) -> Store | None:
    return db.session.query(Store).filter(Store.id == store_id, Store.alive()).first()


def get_store_by_slug(slug: str) -> Store | None:
    if not slug:
        return None
    return db.session.query(Store).filter(Store.slug == slug, Store.alive()).first()


def list_merchant_stores(merchant_id: int) -> list[Store]:
    return (
        db.session.query(Store)
        .filter(Store.merchant_id == merchant_id, Store.alive())
        .order_by(Store.created_at.desc(), Store.id.desc())
        .all()
    )


def list_stores() -> list[Store]:
    return db.session.query(Store).filter(Store.alive()).order_by(Store.created_at.desc(), Store.id.desc()).all()


def create_store(data: dict) -> Store:
    """
    New store for a merchant. Subscription starts pending on the basic plan.

    The first store of a merchant becomes its default store.
    """
    data = data or {}

    def _op():
        merchant_id = data.get("merchantId")
        merchant = (
            db.session.query(User).filter(User.id == merchant_id, User.alive()).first()
            if merchant_id else None
        )
        if not merchant or merchant.role != ROLE_MERCHANT:
            raise NotFoundError(messages.MERCHANT_NOT_FOUND)

        patch = validate_payload(model=Store, payload=data, policy=STORE_POLICY, partial=False)
        contact_info = patch.pop("contact_info", None) or {}
        if merchant.phone and "phone" not in contact_info:
            contact_info["phone"] = merchant.phone

        store = Store(
            merchant_id=merchant.id,
            slug=unique_slug(patch["name"]),
            subscription_plan=data.get("subscriptionPlan") or "basic",
            subscription_status="pending",
            bank_accounts=patch.pop("bank_accounts", None) or [],
            contact_info=contact_info,
            settings=patch.pop("settings", None) or {},
        )
        apply_patch(store, patch)
        db.session.add(store)
        db.session.flush()

        if merchant.store_id is None:
            merchant.store_id = store.id

        db.session.commit()
        logger.info("Store %s (%s) created for merchant %s", store.id, store.slug, merchant.id)
        return store

    return run_with_retry(_op)


def update_store(store_id: int, data: dict) -> Store:
    """Partial update; renaming regenerates the slug."""
    def _op():
        store = lock_for_update(db.session.query(Store).filter(Store.id == store_id, Store.alive())).first()
        if not store:
            raise NotFoundError(messages.STORE_NOT_FOUND)

        patch = validate_payload(model=Store, payload=data, policy=STORE_POLICY, partial=True)
        new_name = patch.get("name")
        if new_name and new_name != store.name:
            store.slug = unique_slug(new_name, exclude_store_id=store.id)
        apply_patch(store, patch)

        db.session.commit()
        return store

    return run_with_retry(_op)


def upload_logo(store_id: int, image_data: str) -> dict:
    """Keep the logo (a data URL) inside settings.logo."""
    if not image_data:
        raise ValidationError("imageData مطلوب")

    def _op():
        store = lock_for_update(db.session.query(Store).filter(Store.id == store_id, Store.alive())).first()
        if not store:
            raise NotFoundError(messages.STORE_NOT_FOUND)
        settings = dict(store.settings or {})
        settings["logo"] = image_data
        store.settings = settings
        db.session.commit()
        return {"success": True, "logo": image_data}

    return run_with_retry(_op)


def delete_store(store_id: int, *, acting_user_id: int | None = None) -> bool:
    def _op():
        store = db.session.query(Store).filter(Store.id == store_id, Store.alive()).first()
        if not store:
            raise NotFoundError(messages.STORE_NOT_FOUND)
        store.soft_delete()
        audit_service.log_event(
            user_id=acting_user_id,
            action="store_delete",
            entity_type="store",
            entity_id=store.id,
            store_id=store.id,
            description=f"Store {store.slug} deleted",
        )
        db.session.commit()
        return True

    return run_with_retry(_op)


def update_subscription(store_id: int, *, status: str, plan: str | None = None, expiry=None) -> Store:
    if status not in SUBSCRIPTION_STATUSES:
        raise StoreError("حالة الاشتراك غير صحيحة")

    def _op():
        store = lock_for_update(db.session.query(Store).filter(Store.id == store_id, Store.alive())).first()
        if not store:
            raise NotFoundError(messages.STORE_NOT_FOUND)
        store.subscription_status = status
        if plan:
            store.subscription_plan = plan
        if expiry is not None:
            try:
                store.subscription_expiry = coerce_datetime(expiry)
            except ValueError:
                raise ValidationError("subscriptionExpiry يجب أن يكون تاريخاً صالحاً")
        db.session.commit()
        return store

    return run_with_retry(_op)


# General requests

def list_requests(store_ids: set[int] | None = None) -> list[GeneralRequest]:
    """store_ids=None lists every request (platform view)."""
    query = db.session.query(GeneralRequest).filter(GeneralRequest.alive())
    if store_ids is not None:
        query = query.filter(GeneralRequest.store_id.in_(store_ids or {-1}))
    return query.order_by(GeneralRequest.created_at.desc(), GeneralRequest.id.desc()).all()


def add_request(data: dict, *, store_id: int | None) -> GeneralRequest:
    def _op():
        patch = validate_payload(model=GeneralRequest, payload=data, policy=REQUEST_POLICY, partial=False)
        patch["store_id"] = store_id
        req = GeneralRequest(status="pending")
        apply_patch(req, patch)
        db.session.add(req)
        db.session.commit()
        return req

    return run_with_retry(_op)


def update_request_status(request_id: int, status: str, *, store_ids: set[int] | None = None) -> GeneralRequest:
    if status not in REQUEST_STATUSES:
        raise StoreError("حالة الطلب غير صحيحة")

    def _op():
        query = db.session.query(GeneralRequest).filter(GeneralRequest.id == request_id, GeneralRequest.alive())
        if store_ids is not None:
            query = query.filter(GeneralRequest.store_id.in_(store_ids or {-1}))
        req = query.first()
        if not req:
            raise NotFoundError(messages.GENERAL_REQUEST_NOT_FOUND)
        req.status = status
        db.session.commit()
        return req

    return run_with_retry(_op)
