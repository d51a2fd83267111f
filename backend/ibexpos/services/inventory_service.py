"""
Inventory Service: per-store product catalog.

Stock here is the on-hand count; sales decrement it and purchases add to it
(see sales_service and purchase_service). This module only covers catalog
maintenance.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from .. import messages
from ..extensions import db
from ..models import Category, Product
from ..validation import ModelValidationPolicy, ValidationError, apply_patch, validate_payload
from . import audit_service
from .concurrency import lock_for_update, run_with_retry
from .errors import NotFoundError, ServiceError
from .tenant_service import scoped_query

logger = logging.getLogger(__name__)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "barcode", "price", "cost", "stock", "category_id", "category", "show_in_portal"},
    required_on_create={"name", "price"},
    non_negative={"price", "cost", "stock"},
)

MAX_IMPORT_ITEMS = 5000


class InventoryError(ServiceError):
    """Raised for catalog operation errors."""


def list_products(store_id: int) -> list[Product]:
    return (
        scoped_query(Product, store_id)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .all()
    )


def get_product(store_id: int, product_id: int, *, for_update: bool = False) -> Product:
    query = scoped_query(Product, store_id).filter(Product.id == product_id)
    if for_update:
        query = lock_for_update(query)
    product = query.first()
    if not product:
        raise NotFoundError(messages.PRODUCT_NOT_FOUND)
    return product


def _check_category(store_id: int, category_id) -> None:
    if category_id is None:
        return
    exists = scoped_query(Category, store_id).filter(Category.id == category_id).first()
    if exists is None:
        raise NotFoundError(messages.CATEGORY_NOT_FOUND)


def _build_product(store_id: int, payload: dict) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    _check_category(store_id, patch.get("category_id"))
    product = Product(store_id=store_id, cost=0, stock=0, show_in_portal=True)
    apply_patch(product, patch)
    return product


def add_product(store_id: int, payload: dict) -> Product:
    def _op():
        product = _build_product(store_id, payload)
        db.session.add(product)
        db.session.commit()
        return product

    return run_with_retry(_op)


def import_products(store_id: int, items) -> int:
    """All-or-nothing batch insert; every row is forced into store_id."""
    if not isinstance(items, list):
        raise ValidationError("items يجب أن تكون قائمة")
    if len(items) > MAX_IMPORT_ITEMS:
        raise InventoryError(f"لا يمكن استيراد أكثر من {MAX_IMPORT_ITEMS} منتج في المرة الواحدة")

    def _op():
        count = 0
        for index, item in enumerate(items, start=1):
            if not isinstance(item, dict):
                raise ValidationError(f"السطر {index}: بيانات غير صالحة")
            try:
                product = _build_product(store_id, item)
            except ServiceError as exc:
                raise ValidationError(f"السطر {index}: {exc.message}")
            db.session.add(product)
            count += 1
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise InventoryError("فشل استيراد المنتجات")
        logger.info("Imported %d products into store %s", count, store_id)
        return count

    return run_with_retry(_op)


def update_product(store_id: int, product_id: int, payload: dict, *, acting_user_id: int | None = None) -> Product:
    def _op():
        product = get_product(store_id, product_id, for_update=True)
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        if "category_id" in patch:
            _check_category(store_id, patch["category_id"])

        old_price = product.price
        apply_patch(product, patch)

        if "price" in patch and patch["price"] != old_price:
            audit_service.log_event(
                user_id=acting_user_id,
                action="price_update",
                entity_type="product",
                entity_id=product.id,
                store_id=store_id,
                old_value={"price": str(old_price)},
                new_value={"price": str(patch["price"])},
            )

        db.session.commit()
        return product

    return run_with_retry(_op)


def delete_product(store_id: int, product_id: int, *, acting_user_id: int | None = None) -> bool:
    def _op():
        product = get_product(store_id, product_id)
        product.soft_delete()
        audit_service.log_event(
            user_id=acting_user_id,
            action="product_delete",
            entity_type="product",
            entity_id=product.id,
            store_id=store_id,
            description=product.name,
        )
        db.session.commit()
        return True

    return run_with_retry(_op)
