"""
Platform Admin Service: merchant lifecycle, store oversight and
platform-wide statistics.
"""

from __future__ import annotations

import logging
import math
from datetime import timedelta

from sqlalchemy import func

from .. import messages
from ..extensions import db
from ..models import Customer, CustomerBalanceRequest, Product, Sale, Store, User
from ..models.auth import ROLE_MERCHANT
from ..money import money_str
from ..time_utils import as_naive_utc, to_utc_z, utcnow
from ..validation import ValidationError
from . import audit_service, session_service
from .concurrency import run_with_retry
from .errors import NotFoundError

logger = logging.getLogger(__name__)

MERCHANT_STATUSES = ("active", "pending", "suspended")
REVENUE_WINDOW_DAYS = 30

SUBSCRIPTION_REASONS = {
    None: messages.SUBSCRIPTION_NONE,
    "pending": messages.SUBSCRIPTION_PENDING,
    "cancelled": messages.SUBSCRIPTION_SUSPENDED,
    "expired": messages.SUBSCRIPTION_EXPIRED,
}


def _merchants():
    return db.session.query(User).filter(User.role == ROLE_MERCHANT, User.alive())


def list_merchants() -> list[User]:
    return _merchants().order_by(User.created_at.desc(), User.id.desc()).all()


def get_merchant(merchant_id: int) -> dict:
    merchant = _merchants().filter(User.id == merchant_id).first()
    if not merchant:
        raise NotFoundError(messages.MERCHANT_NOT_FOUND)
    stores = (
        db.session.query(Store)
        .filter(Store.merchant_id == merchant.id, Store.alive())
        .order_by(Store.created_at.desc(), Store.id.desc())
        .all()
    )
    data = merchant.to_dict()
    data["stores"] = [store.to_dict() for store in stores]
    return data


def update_merchant_status(merchant_id: int, status: str, *, acting_user_id: int | None = None) -> User:
    if status not in MERCHANT_STATUSES:
        raise ValidationError("حالة التاجر غير صحيحة")

    def _op():
        merchant = _merchants().filter(User.id == merchant_id).first()
        if not merchant:
            raise NotFoundError(messages.MERCHANT_NOT_FOUND)
        old_status = merchant.status
        merchant.status = status
        if status != "active":
            session_service.revoke_all_user_sessions(merchant.id, reason=f"Merchant {status}")
        audit_service.log_event(
            user_id=acting_user_id,
            action="merchant_status",
            entity_type="user",
            entity_id=merchant.id,
            old_value={"status": old_status},
            new_value={"status": status},
        )
        db.session.commit()
        logger.info("Merchant %s status %s -> %s", merchant.id, old_status, status)
        return merchant

    return run_with_retry(_op)


def delete_merchant(merchant_id: int, *, acting_user_id: int | None = None) -> bool:
    """Soft-delete the merchant together with its stores."""
    def _op():
        merchant = _merchants().filter(User.id == merchant_id).first()
        if not merchant:
            raise NotFoundError(messages.MERCHANT_NOT_FOUND)
        merchant.soft_delete()
        stores = db.session.query(Store).filter(Store.merchant_id == merchant.id, Store.alive()).all()
        for store in stores:
            store.soft_delete()
        session_service.revoke_all_user_sessions(merchant.id, reason="Merchant deleted")
        audit_service.log_event(
            user_id=acting_user_id,
            action="merchant_delete",
            entity_type="user",
            entity_id=merchant.id,
            description=f"{len(stores)} store(s) deleted with the merchant",
        )
        db.session.commit()
        return True

    return run_with_retry(_op)


def list_stores_with_merchant() -> list[dict]:
    rows = (
        db.session.query(Store, User)
        .outerjoin(User, User.id == Store.merchant_id)
        .filter(Store.alive())
        .order_by(Store.created_at.desc(), Store.id.desc())
        .all()
    )
    result = []
    for store, merchant in rows:
        data = store.to_dict()
        data["merchant"] = (
            {"id": merchant.id, "name": merchant.name, "email": merchant.email, "phone": merchant.phone}
            if merchant is not None else None
        )
        result.append(data)
    return result


def check_subscription(store: Store) -> dict:
    """
    Report whether the store may operate. An active subscription past its
    expiry is flipped to expired here.
    """
    now = utcnow()
    expiry = as_naive_utc(store.subscription_expiry)
    result = {
        "valid": False,
        "status": store.subscription_status,
        "plan": store.subscription_plan,
        "expiry": to_utc_z(expiry),
        "daysRemaining": None,
    }

    if store.subscription_status != "active":
        result["reason"] = SUBSCRIPTION_REASONS.get(store.subscription_status, messages.SUBSCRIPTION_NONE)
        return result

    if expiry is not None and expiry < now:
        def _op():
            store.subscription_status = "expired"
            db.session.commit()
        run_with_retry(_op)
        logger.info("Store %s subscription expired at %s", store.id, expiry.isoformat())
        result.update({"status": "expired", "reason": messages.SUBSCRIPTION_EXPIRED, "daysRemaining": 0})
        return result

    result["valid"] = True
    if expiry is not None:
        result["daysRemaining"] = math.ceil((expiry - now) / timedelta(days=1))
    return result


def list_balance_requests(limit=100, status: str | None = None) -> list[dict]:
    try:
        limit = max(1, min(int(limit), 500))
    except (TypeError, ValueError):
        limit = 100
    query = (
        db.session.query(CustomerBalanceRequest, Customer, Store)
        .outerjoin(Customer, Customer.id == CustomerBalanceRequest.customer_id)
        .outerjoin(Store, Store.id == CustomerBalanceRequest.store_id)
    )
    if status:
        query = query.filter(CustomerBalanceRequest.status == status)
    rows = (
        query.order_by(CustomerBalanceRequest.created_at.desc(), CustomerBalanceRequest.id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "request": req.to_dict(),
            "customer": {"id": customer.id, "name": customer.name, "phone": customer.phone} if customer else None,
            "store": {"id": store.id, "name": store.name, "merchantId": store.merchant_id} if store else None,
        }
        for req, customer, store in rows
    ]


def dashboard() -> dict:
    since = utcnow() - timedelta(days=REVENUE_WINDOW_DAYS)
    stores = db.session.query(Store).filter(Store.alive())

    sales_count, revenue = (
        db.session.query(func.count(Sale.id), func.coalesce(func.sum(Sale.total), 0))
        .filter(Sale.alive(), Sale.created_at >= since)
        .one()
    )
    return {
        "merchants": _merchants().count(),
        "pendingMerchants": _merchants().filter(User.status == "pending").count(),
        "stores": stores.count(),
        "activeStores": stores.filter(Store.subscription_status == "active").count(),
        "expiredStores": stores.filter(Store.subscription_status == "expired").count(),
        "customers": db.session.query(Customer).filter(Customer.alive()).count(),
        "products": db.session.query(Product).filter(Product.alive()).count(),
        "salesCount": sales_count or 0,
        "totalRevenue": money_str(revenue or 0),
    }


def top_stores(limit=10) -> list[dict]:
    try:
        limit = max(1, min(int(limit), 100))
    except (TypeError, ValueError):
        limit = 10
    revenue = func.coalesce(func.sum(Sale.total), 0)
    rows = (
        db.session.query(
            Store.id,
            Store.name,
            User.name.label("merchant_name"),
            revenue.label("total_sales"),
            func.count(Sale.id).label("sales_count"),
        )
        .outerjoin(User, User.id == Store.merchant_id)
        .outerjoin(Sale, (Sale.store_id == Store.id) & Sale.alive())
        .filter(Store.alive())
        .group_by(Store.id, Store.name, User.name)
        .order_by(revenue.desc(), Store.id)
        .limit(limit)
        .all()
    )
    return [
        {
            "storeId": row.id,
            "storeName": row.name,
            "merchantName": row.merchant_name,
            "totalSales": money_str(row.total_sales),
            "salesCount": row.sales_count,
        }
        for row in rows
    ]


def subscription_stats() -> dict:
    by_status = (
        db.session.query(Store.subscription_status, func.count(Store.id))
        .filter(Store.alive())
        .group_by(Store.subscription_status)
        .all()
    )
    by_plan = (
        db.session.query(Store.subscription_plan, func.count(Store.id))
        .filter(Store.alive())
        .group_by(Store.subscription_plan)
        .all()
    )
    return {
        "byStatus": [{"status": status, "count": count} for status, count in by_status],
        "byPlan": [{"plan": plan, "count": count} for plan, count in by_plan],
    }
