from __future__ import annotations

from ..extensions import db
from ..money import money_str
from ..time_utils import to_utc_z
from .mixins import SoftDeleteMixin


class Supplier(SoftDeleteMixin, db.Model):
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    contact_person = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "contactPerson": self.contact_person,
            "notes": self.notes,
            "createdAt": to_utc_z(self.created_at),
        }


class Purchase(SoftDeleteMixin, db.Model):
    """Stock received from a supplier. payment_type: cash | due"""
    __tablename__ = "purchases"
    __table_args__ = (
        db.Index("ix_purchases_store_date", "store_id", "purchase_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True)
    total = db.Column(db.Numeric(10, 2), nullable=False)
    payment_type = db.Column(db.String(16), nullable=False, default="cash")
    purchase_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)
    invoice_number = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    supplier = db.relationship("Supplier")
    items = db.relationship("PurchaseItem", backref="purchase", lazy=True, order_by="PurchaseItem.id")

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "storeId": self.store_id,
            "supplierId": self.supplier_id,
            "supplierName": self.supplier.name if self.supplier is not None else None,
            "total": money_str(self.total),
            "paymentType": self.payment_type,
            "purchaseDate": to_utc_z(self.purchase_date),
            "dueDate": to_utc_z(self.due_date),
            "invoiceNumber": self.invoice_number,
            "notes": self.notes,
            "userId": self.user_id,
            "createdAt": to_utc_z(self.created_at),
        }
        if include_items:
            data["supplier"] = self.supplier.to_dict() if self.supplier is not None else None
            data["items"] = [item.to_dict() for item in self.items]
        return data


class PurchaseItem(db.Model):
    __tablename__ = "purchase_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    # Unit cost
    cost = db.Column(db.Numeric(10, 2), nullable=False)
    total = db.Column(db.Numeric(10, 2), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchaseId": self.purchase_id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "cost": money_str(self.cost),
            "total": money_str(self.total),
            "product": {
                "id": self.product.id,
                "name": self.product.name,
                "barcode": self.product.barcode,
            } if self.product is not None else None,
        }
