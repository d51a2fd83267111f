"""
Multi-Tenant Service: Store Access and Scoping Helpers

Every store-scoped read and write goes through a store_id that has been
checked against the calling principal.

SECURITY INVARIANTS:
1. platform_admin may reach any store
2. merchant may reach only stores whose merchant_id is its own id
3. cashier may reach only its own store_id
4. A foreign store is reported exactly like a missing one
5. Denials are logged as security warnings

USAGE:
    from ibexpos.services.tenant_service import require_store_access

    store = require_store_access(store_id)          # principal from g
    store = require_store_access(store_id, user)    # explicit principal
"""

from __future__ import annotations

import logging

from flask import g, has_request_context, request

from .. import messages
from ..extensions import db
from ..models import CustomerStoreRelation, Store, User
from ..models.auth import ROLE_CASHIER, ROLE_MERCHANT, ROLE_PLATFORM_ADMIN
from ..validation import ValidationError
from .errors import AuthError, ForbiddenError, TenantAccessError

logger = logging.getLogger(__name__)


def get_current_user() -> User | None:
    return getattr(g, "current_user", None) if has_request_context() else None


def get_current_store_id() -> int | None:
    """Default store of the session (None for platform admins and most merchants)."""
    return getattr(g, "store_id", None) if has_request_context() else None


def require_current_user() -> User:
    user = get_current_user()
    if user is None:
        raise AuthError(messages.AUTH_REQUIRED)
    return user


def get_merchant_store_ids(merchant_id: int) -> set[int]:
    rows = db.session.query(Store.id).filter(Store.merchant_id == merchant_id, Store.alive()).all()
    return {row.id for row in rows}


def accessible_store_ids(user: User) -> set[int] | None:
    """
    Store ids the user may touch. None means unrestricted (platform admin).
    """
    if user.role == ROLE_PLATFORM_ADMIN:
        return None
    if user.role == ROLE_MERCHANT:
        ids = get_merchant_store_ids(user.id)
        if user.store_id:
            ids.add(user.store_id)
        return ids
    if user.role == ROLE_CASHIER and user.store_id:
        return {user.store_id}
    return set()


def can_access_store(user: User, store_id: int) -> bool:
    allowed = accessible_store_ids(user)
    return allowed is None or store_id in allowed


def resolve_store_id(store_id) -> int:
    """
    Use the explicit store id, else the session's default store.

    Raises "يجب تحديد المتجر" when neither is present.
    """
    if store_id in (None, "", 0):
        store_id = get_current_store_id()
    if store_id in (None, "", 0):
        raise ValidationError(messages.STORE_REQUIRED)
    try:
        return int(store_id)
    except (TypeError, ValueError):
        raise ValidationError(messages.STORE_REQUIRED)


def require_store(store_id: int) -> Store:
    store = db.session.query(Store).filter(Store.id == store_id, Store.alive()).first()
    if not store:
        raise TenantAccessError()
    return store


def require_store_access(store_id, user: User | None = None) -> Store:
    """
    Validate that the principal may act on store_id and return the store.

    SECURITY: Core tenant isolation check. Call this before any operation
    that uses a store_id from client input.
    """
    user = user or require_current_user()
    store_id = resolve_store_id(store_id)

    store = db.session.query(Store).filter(Store.id == store_id, Store.alive()).first()
    if not store:
        _log_cross_tenant_attempt(f"Store {store_id} not found", user=user)
        raise TenantAccessError()

    if not can_access_store(user, store.id):
        # Don't reveal it exists under another merchant
        _log_cross_tenant_attempt(
            f"Store {store_id} belongs to merchant {store.merchant_id}",
            user=user,
            attempted_store_id=store_id,
        )
        raise TenantAccessError()

    return store


def require_role(*roles: str, user: User | None = None) -> User:
    user = user or require_current_user()
    if user.role not in roles:
        raise ForbiddenError(messages.FORBIDDEN)
    return user


def require_customer_in_accessible_store(customer_id: int, user: User | None = None) -> None:
    """
    Staff may act on a customer only through a store both of them share.
    """
    user = user or require_current_user()
    allowed = accessible_store_ids(user)
    query = db.session.query(CustomerStoreRelation.id).filter(
        CustomerStoreRelation.customer_id == customer_id
    )
    if allowed is not None:
        if not allowed:
            raise ForbiddenError(messages.FORBIDDEN)
        query = query.filter(CustomerStoreRelation.store_id.in_(allowed))
    if query.first() is None:
        raise TenantAccessError(messages.CUSTOMER_NOT_FOUND)


def scoped_query(model, store_id: int, *, include_deleted: bool = False):
    """
    Base query for a store-owned model, filtered by store and by deleted_at.

    Usage:
        products = scoped_query(Product, store_id).order_by(Product.name).all()
    """
    query = db.session.query(model).filter(model.store_id == store_id)
    if not include_deleted and hasattr(model, "deleted_at"):
        query = query.filter(model.deleted_at.is_(None))
    return query


def _log_cross_tenant_attempt(reason: str, user: User | None = None, attempted_store_id: int | None = None) -> None:
    logger.warning(
        "CROSS_TENANT_ACCESS_DENIED user=%s role=%s store=%s path=%s reason=%s",
        getattr(user, "id", None),
        getattr(user, "role", None),
        attempted_store_id,
        request.path if has_request_context() else None,
        reason,
    )
