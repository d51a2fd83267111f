from __future__ import annotations

from sqlalchemy import func

from .. import messages
from ..extensions import db
from ..models import Category, Product
from ..validation import ValidationError
from .concurrency import run_with_retry
from .errors import ConflictError, NotFoundError
from .tenant_service import scoped_query


class CategoryError(ConflictError):
    """Raised when a category name clashes or the category is still in use."""


def _clean_name(name) -> str:
    name = str(name or "").strip()
    if not name:
        raise ValidationError(messages.CATEGORY_NAME_REQUIRED)
    if len(name) > 255:
        raise ValidationError("name يتجاوز الطول المسموح 255")
    return name


def _ensure_unique(store_id: int, name: str, *, exclude_id: int | None = None) -> None:
    query = scoped_query(Category, store_id).filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first() is not None:
        raise CategoryError(messages.CATEGORY_EXISTS)


def get_category(store_id: int, category_id: int) -> Category:
    category = scoped_query(Category, store_id).filter(Category.id == category_id).first()
    if not category:
        raise NotFoundError(messages.CATEGORY_NOT_FOUND)
    return category


def list_categories(store_id: int) -> list[Category]:
    return scoped_query(Category, store_id).order_by(Category.name, Category.id).all()


def add_category(store_id: int, name) -> Category:
    name = _clean_name(name)

    def _op():
        _ensure_unique(store_id, name)
        category = Category(store_id=store_id, name=name)
        db.session.add(category)
        db.session.commit()
        return category

    return run_with_retry(_op)


def update_category(store_id: int, category_id: int, name) -> Category:
    name = _clean_name(name)

    def _op():
        category = get_category(store_id, category_id)
        _ensure_unique(store_id, name, exclude_id=category.id)
        category.name = name
        db.session.commit()
        return category

    return run_with_retry(_op)


def delete_category(store_id: int, category_id: int) -> bool:
    def _op():
        category = get_category(store_id, category_id)
        in_use = (
            scoped_query(Product, store_id)
            .filter(Product.category_id == category.id)
            .first()
        )
        if in_use is not None:
            raise CategoryError(messages.CATEGORY_IN_USE)
        category.soft_delete()
        db.session.commit()
        return True

    return run_with_retry(_op)
