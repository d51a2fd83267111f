"""
Purchase Service: suppliers and stock receiving.

Receiving stock re-averages product cost:

    new_cost = (stock * cost + qty * unit_cost) / (stock + qty)

when the product already has stock and a cost, otherwise the unit cost is
taken as-is. Deferred ("due") purchases from a supplier open a due payment.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func

from .. import messages
from ..extensions import db
from ..models import DuePayment, Product, Purchase, PurchaseItem, Supplier
from ..money import quantize_money, to_decimal
from ..time_utils import coerce_datetime, utcnow
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    apply_patch,
    optional_int,
    require_positive_int,
    validate_payload,
)
from .concurrency import lock_for_update, run_with_retry
from .errors import NotFoundError, ServiceError
from .tenant_service import scoped_query

logger = logging.getLogger(__name__)

PAYMENT_TYPES = ("cash", "due")

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "email", "address", "contact_person", "notes"},
    required_on_create={"name"},
)

PURCHASE_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"notes", "invoice_number", "due_date"},
)


class PurchaseError(ServiceError):
    """Raised for purchase operation errors."""


# Suppliers

def list_suppliers(store_id: int) -> list[Supplier]:
    return scoped_query(Supplier, store_id).order_by(Supplier.name, Supplier.id).all()


def get_supplier(store_id: int, supplier_id: int) -> Supplier:
    supplier = scoped_query(Supplier, store_id).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise NotFoundError(messages.SUPPLIER_NOT_FOUND)
    return supplier


def add_supplier(store_id: int, data: dict) -> Supplier:
    def _op():
        patch = validate_payload(model=Supplier, payload=data, policy=SUPPLIER_POLICY, partial=False)
        supplier = Supplier(store_id=store_id)
        apply_patch(supplier, patch)
        db.session.add(supplier)
        db.session.commit()
        return supplier

    return run_with_retry(_op)


def update_supplier(store_id: int, supplier_id: int, data: dict) -> Supplier:
    def _op():
        supplier = get_supplier(store_id, supplier_id)
        patch = validate_payload(model=Supplier, payload=data, policy=SUPPLIER_POLICY, partial=True)
        apply_patch(supplier, patch)
        db.session.commit()
        return supplier

    return run_with_retry(_op)


def delete_supplier(store_id: int, supplier_id: int) -> bool:
    def _op():
        supplier = get_supplier(store_id, supplier_id)
        supplier.soft_delete()
        db.session.commit()
        return True

    return run_with_retry(_op)


# Purchases

def weighted_average_cost(stock: int, cost, quantity: int, unit_cost) -> Decimal:
    stock = stock or 0
    cost = Decimal(cost or 0)
    unit_cost = Decimal(unit_cost)
    if stock > 0 and cost > 0:
        return quantize_money((stock * cost + quantity * unit_cost) / (stock + quantity))
    return quantize_money(unit_cost)


def list_purchases(store_id: int) -> list[dict]:
    counts = dict(
        db.session.query(PurchaseItem.purchase_id, func.count(PurchaseItem.id))
        .join(Purchase, Purchase.id == PurchaseItem.purchase_id)
        .filter(Purchase.store_id == store_id)
        .group_by(PurchaseItem.purchase_id)
        .all()
    )
    rows = scoped_query(Purchase, store_id).order_by(Purchase.created_at.desc(), Purchase.id.desc()).all()
    result = []
    for purchase in rows:
        data = purchase.to_dict()
        data["itemCount"] = counts.get(purchase.id, 0)
        result.append(data)
    return result


def get_purchase(store_id: int, purchase_id: int) -> Purchase:
    purchase = scoped_query(Purchase, store_id).filter(Purchase.id == purchase_id).first()
    if not purchase:
        raise NotFoundError(messages.PURCHASE_NOT_FOUND)
    return purchase


def _parse_items(items) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise ValidationError(messages.ITEMS_REQUIRED)
    lines = []
    for raw in items:
        if not isinstance(raw, dict):
            raise ValidationError(messages.ITEMS_REQUIRED)
        cost = to_decimal(raw.get("cost"), "cost")
        if cost < 0:
            raise ValidationError("cost لا يمكن أن يكون سالباً")
        lines.append({
            "product_id": require_positive_int(raw.get("productId"), "productId"),
            "quantity": require_positive_int(raw.get("quantity"), "quantity"),
            "cost": quantize_money(cost),
        })
    return lines


def create_purchase(store_id: int, data: dict, *, user_id: int | None = None) -> dict:
    """Receive stock in one transaction. Returns {"purchaseId", "success"}."""
    data = data or {}
    lines = _parse_items(data.get("items"))

    payment_type = data.get("paymentType") or "cash"
    if payment_type not in PAYMENT_TYPES:
        raise ValidationError(messages.PAYMENT_METHOD_INVALID)

    try:
        due_date = coerce_datetime(data.get("dueDate") or None)
    except ValueError:
        raise ValidationError("dueDate يجب أن يكون تاريخاً صالحاً")
    if payment_type == "due" and due_date is None:
        raise PurchaseError(messages.DUE_DATE_REQUIRED)

    supplier_id = optional_int(data.get("supplierId"), "supplierId")
    invoice_number = str(data.get("invoiceNumber") or "").strip() or None
    notes = str(data.get("notes") or "").strip() or None

    def _op():
        supplier = get_supplier(store_id, supplier_id) if supplier_id is not None else None

        total = quantize_money(sum(line["cost"] * line["quantity"] for line in lines))
        purchase = Purchase(
            store_id=store_id,
            supplier_id=supplier.id if supplier is not None else None,
            total=total,
            payment_type=payment_type,
            purchase_date=utcnow(),
            due_date=due_date,
            invoice_number=invoice_number,
            notes=notes,
            user_id=user_id,
        )
        db.session.add(purchase)
        db.session.flush()

        for line in lines:
            product = lock_for_update(
                scoped_query(Product, store_id).filter(Product.id == line["product_id"])
            ).first()
            if not product:
                raise NotFoundError(messages.PRODUCT_ID_NOT_FOUND.format(product_id=line["product_id"]))

            db.session.add(PurchaseItem(
                purchase_id=purchase.id,
                product_id=product.id,
                quantity=line["quantity"],
                cost=line["cost"],
                total=quantize_money(line["cost"] * line["quantity"]),
            ))
            product.cost = weighted_average_cost(product.stock, product.cost, line["quantity"], line["cost"])
            product.stock = (product.stock or 0) + line["quantity"]

        if payment_type == "due" and supplier is not None:
            db.session.add(DuePayment(
                store_id=store_id,
                name=supplier.name,
                invoice=invoice_number or f"PURCHASE-{purchase.id}",
                item_name=messages.PURCHASE_ITEM_NAME,
                item_amount=len(lines),
                amount=total,
                status="unpaid",
                note=notes or f"فاتورة شراء رقم {purchase.id}",
                date_in=utcnow(),
                due_date=due_date,
            ))

        db.session.commit()
        logger.info("Purchase %s received: store=%s total=%s type=%s", purchase.id, store_id, total, payment_type)
        return {"purchaseId": purchase.id, "success": True}

    return run_with_retry(_op)


def update_purchase(store_id: int, purchase_id: int, data: dict) -> Purchase:
    """Header fields only; lines and stock effects are immutable."""
    def _op():
        purchase = get_purchase(store_id, purchase_id)
        patch = validate_payload(model=Purchase, payload=data, policy=PURCHASE_UPDATE_POLICY, partial=True)
        apply_patch(purchase, patch)
        db.session.commit()
        return purchase

    return run_with_retry(_op)


def delete_purchase(store_id: int, purchase_id: int) -> bool:
    def _op():
        purchase = get_purchase(store_id, purchase_id)
        purchase.soft_delete()
        db.session.commit()
        return True

    return run_with_retry(_op)
