from __future__ import annotations

from ..extensions import db
from ..money import money_str
from ..time_utils import to_utc_z
from .mixins import SoftDeleteMixin


class Category(SoftDeleteMixin, db.Model):
    """Product category. Names are unique among a store's live categories."""
    __tablename__ = "categories"
    __table_args__ = (
        db.Index("ix_categories_store_name", "store_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "name": self.name,
            "createdAt": to_utc_z(self.created_at),
        }


class Product(SoftDeleteMixin, db.Model):
    """
    Per-store catalog entry with its on-hand stock and moving average cost.

    Stock is mutated by sales (decrement) and purchases (increment plus cost
    re-averaging), so the row carries an optimistic lock.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_store_barcode", "store_id", "barcode"),
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    barcode = db.Column(db.String(128), nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    cost = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)
    # Free-text category kept for rows imported before categories existed
    category = db.Column(db.String(255), nullable=True)
    show_in_portal = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    category_ref = db.relationship("Category", backref=db.backref("products", lazy=True))

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} store_id={self.store_id} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "name": self.name,
            "barcode": self.barcode,
            "price": money_str(self.price),
            "cost": money_str(self.cost),
            "stock": self.stock,
            "categoryId": self.category_id,
            "category": self.category_ref.name if self.category_ref is not None else self.category,
            "showInPortal": self.show_in_portal,
            "createdAt": to_utc_z(self.created_at),
        }

    def to_portal_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": money_str(self.price),
            "stock": self.stock,
            "categoryId": self.category_id,
            "barcode": self.barcode,
        }
