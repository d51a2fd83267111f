"""
Customer Portal Service

Everything a logged-in customer can do inside a store they belong to, plus
the store-side handling of portal orders.

SECURITY: every customer operation takes (customer_id, store_id) and goes
through _require_relation(); callers must already have matched customer_id
against the session.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from .. import messages
from ..extensions import db
from ..models import (
    CustomerBalanceRequest,
    CustomerOrder,
    CustomerOrderItem,
    CustomerStoreRelation,
    CustomerTransaction,
    Product,
    Sale,
    Store,
    StoreOffer,
)
from ..money import as_number, money_str, quantize_money, to_decimal
from ..time_utils import to_utc_z, utcnow
from ..validation import ValidationError, require_positive_int
from .concurrency import lock_for_update, run_with_retry
from .customer_auth_service import active_stores
from .customer_service import RELATION_ACTIVE
from .errors import ForbiddenError, NotFoundError, ServiceError
from .tenant_service import scoped_query

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50

ORDER_PENDING = "pending"
ORDER_APPROVED = "approved"
ORDER_REJECTED = "rejected"
ORDER_COMPLETED = "completed"

# status -> statuses it may move to
ORDER_TRANSITIONS = {
    ORDER_PENDING: {ORDER_APPROVED, ORDER_REJECTED, ORDER_COMPLETED},
    ORDER_APPROVED: {ORDER_COMPLETED, ORDER_REJECTED},
}


class OrderError(ServiceError):
    """Raised for portal order errors."""


def _require_store(store_id: int) -> Store:
    store = db.session.query(Store).filter(Store.id == store_id, Store.alive()).first()
    if not store:
        raise NotFoundError(messages.STORE_NOT_FOUND)
    return store


def _require_relation(customer_id: int, store_id: int, *, active: bool = True) -> CustomerStoreRelation:
    query = db.session.query(CustomerStoreRelation).filter(
        CustomerStoreRelation.customer_id == customer_id,
        CustomerStoreRelation.store_id == store_id,
    )
    if active:
        query = query.filter(CustomerStoreRelation.status == RELATION_ACTIVE)
    relation = query.first()
    if not relation:
        raise ForbiddenError(messages.STORE_FORBIDDEN)
    return relation


def _limit(value, default: int = DEFAULT_LIMIT) -> int:
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return max(1, min(value, 500))


def get_stores(customer_id: int) -> list[dict]:
    result = []
    for store, relation in active_stores(customer_id):
        last_sale = (
            scoped_query(Sale, store.id)
            .filter(Sale.customer_id == customer_id)
            .order_by(Sale.created_at.desc(), Sale.id.desc())
            .first()
        )
        data = store.to_public_dict()
        data["balance"] = as_number(relation.balance)
        data["registeredAt"] = to_utc_z(relation.registered_at)
        data["lastPurchase"] = (
            {"id": last_sale.id, "total": money_str(last_sale.total), "createdAt": to_utc_z(last_sale.created_at)}
            if last_sale is not None else None
        )
        result.append(data)
    return result


def get_store_details(customer_id: int, store_id: int) -> dict:
    store = _require_store(store_id)
    relation = _require_relation(customer_id, store_id)
    return {"store": store.to_public_dict(), "balance": money_str(relation.balance)}


def request_balance(data: dict) -> dict:
    data = data or {}
    customer_id = require_positive_int(data.get("customerId"), "customerId")
    store_id = require_positive_int(data.get("storeId"), "storeId")
    amount = to_decimal(data.get("amount"), "amount")
    if amount <= 0:
        raise ValidationError(messages.AMOUNT_INVALID)
    bank = str(data.get("bank") or "").strip()
    reference = str(data.get("referenceNumber") or "").strip()
    if not bank or not reference:
        raise ValidationError("البنك ورقم المرجع مطلوبان")

    def _op():
        _require_relation(customer_id, store_id)
        receipt = data.get("receiptImage")
        req = CustomerBalanceRequest(
            customer_id=customer_id,
            store_id=store_id,
            bank=bank,
            amount=quantize_money(amount),
            reference_number=reference,
            status="pending",
            metadata_json={"receiptImage": receipt} if receipt else None,
        )
        db.session.add(req)
        db.session.commit()
        return req.to_dict()

    return run_with_retry(_op)


def get_transactions(customer_id: int, store_id: int, limit=DEFAULT_LIMIT) -> list[dict]:
    _require_relation(customer_id, store_id, active=False)
    rows = (
        db.session.query(CustomerTransaction)
        .filter(CustomerTransaction.customer_id == customer_id, CustomerTransaction.store_id == store_id)
        .order_by(CustomerTransaction.created_at.desc(), CustomerTransaction.id.desc())
        .limit(_limit(limit))
        .all()
    )
    return [row.to_dict() for row in rows]


def get_products(store_id: int) -> list[dict]:
    _require_store(store_id)
    rows = (
        scoped_query(Product, store_id)
        .filter(Product.show_in_portal.is_(True))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .all()
    )
    return [row.to_portal_dict() for row in rows]


def get_offers(store_id: int) -> list[dict]:
    """Active offers whose window contains now."""
    now = utcnow()
    rows = (
        scoped_query(StoreOffer, store_id)
        .filter(
            StoreOffer.active.is_(True),
            StoreOffer.start_date <= now,
            StoreOffer.end_date >= now,
        )
        .order_by(StoreOffer.created_at.desc(), StoreOffer.id.desc())
        .all()
    )
    return [row.to_dict() for row in rows]


def get_invoices(customer_id: int, store_id: int, limit=DEFAULT_LIMIT) -> list[dict]:
    _require_relation(customer_id, store_id, active=False)
    rows = (
        scoped_query(Sale, store_id)
        .filter(Sale.customer_id == customer_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(_limit(limit))
        .all()
    )
    return [row.to_dict(include_items=True) for row in rows]


def create_order(data: dict) -> dict:
    """
    Place a pending order. Prices are taken from the catalog, never the client.

    Stock is not reserved; it moves when the order is rung up at the POS.
    """
    data = data or {}
    customer_id = require_positive_int(data.get("customerId"), "customerId")
    store_id = require_positive_int(data.get("storeId"), "storeId")
    items = data.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError(messages.ITEMS_REQUIRED)

    lines = []
    for raw in items:
        if not isinstance(raw, dict):
            raise ValidationError(messages.ITEMS_REQUIRED)
        lines.append((
            require_positive_int(raw.get("productId"), "productId"),
            require_positive_int(raw.get("quantity"), "quantity"),
        ))

    def _op():
        _require_relation(customer_id, store_id)

        total = Decimal("0")
        order_items = []
        for product_id, quantity in lines:
            product = (
                scoped_query(Product, store_id)
                .filter(Product.id == product_id, Product.show_in_portal.is_(True))
                .first()
            )
            if not product:
                raise NotFoundError(messages.PRODUCT_NOT_IN_STORE.format(product_id=product_id))
            line_total = quantize_money(product.price * quantity)
            total += line_total
            order_items.append(CustomerOrderItem(
                product_id=product.id,
                quantity=quantity,
                price=product.price,
                total=line_total,
            ))

        order = CustomerOrder(
            customer_id=customer_id,
            store_id=store_id,
            total=quantize_money(total),
            status=ORDER_PENDING,
            notes=(str(data.get("notes")).strip() or None) if data.get("notes") else None,
        )
        db.session.add(order)
        db.session.flush()
        for item in order_items:
            item.order_id = order.id
            db.session.add(item)

        db.session.commit()
        logger.info("Portal order %s created: customer %s store %s", order.id, customer_id, store_id)
        return {"orderId": order.id, "success": True}

    return run_with_retry(_op)


def get_orders(customer_id: int, store_id: int) -> list[dict]:
    _require_relation(customer_id, store_id, active=False)
    rows = (
        scoped_query(CustomerOrder, store_id)
        .filter(CustomerOrder.customer_id == customer_id)
        .order_by(CustomerOrder.created_at.desc(), CustomerOrder.id.desc())
        .all()
    )
    return [row.to_dict(include_items=True) for row in rows]


def list_pending_orders(store_id: int) -> list[dict]:
    rows = (
        scoped_query(CustomerOrder, store_id)
        .filter(CustomerOrder.status == ORDER_PENDING)
        .order_by(CustomerOrder.created_at.desc(), CustomerOrder.id.desc())
        .all()
    )
    result = []
    for order in rows:
        data = order.to_dict(include_items=True)
        data["customer"] = order.customer.to_dict() if order.customer is not None else None
        result.append(data)
    return result


def _get_order(store_ids: set[int] | None, order_id: int, *, for_update: bool = False) -> CustomerOrder:
    query = db.session.query(CustomerOrder).filter(CustomerOrder.id == order_id, CustomerOrder.alive())
    if store_ids is not None:
        query = query.filter(CustomerOrder.store_id.in_(store_ids or {-1}))
    if for_update:
        query = lock_for_update(query)
    order = query.first()
    if not order:
        raise NotFoundError(messages.ORDER_NOT_FOUND)
    return order


def update_order_status(
    store_id: int,
    order_id: int,
    status: str,
    *,
    merchant_notes: str | None = None,
    approved_by: int | None = None,
) -> dict:
    def _op():
        order = _get_order({store_id}, order_id, for_update=True)
        if status not in ORDER_TRANSITIONS.get(order.status, set()):
            raise OrderError(messages.ORDER_STATUS_INVALID)

        now = utcnow()
        order.status = status
        if merchant_notes is not None:
            order.merchant_notes = merchant_notes
        if status == ORDER_APPROVED:
            order.approved_by = approved_by
            order.approved_at = now
        elif status == ORDER_COMPLETED:
            if order.approved_at is None:
                order.approved_by = approved_by
                order.approved_at = now
            order.completed_at = now

        db.session.commit()
        return order.to_dict()

    return run_with_retry(_op)


def convert_order_to_invoice(order_id: int, *, store_ids: set[int] | None) -> dict:
    """Cart payload the POS screen loads to ring the order up as a sale."""
    order = _get_order(store_ids, order_id)
    if order.status != ORDER_PENDING:
        raise OrderError(messages.ORDER_NOT_PENDING)

    items = []
    for item in order.items:
        product = item.product
        items.append({
            "id": item.product_id,
            "productId": item.product_id,
            "name": product.name if product is not None else f"Product {item.product_id}",
            "price": as_number(item.price),
            "quantity": item.quantity,
            "stock": product.stock if product is not None else 0,
        })

    return {
        "orderId": order.id,
        "customerId": order.customer_id,
        "storeId": order.store_id,
        "items": items,
        "total": as_number(order.total),
        "notes": order.notes,
    }

