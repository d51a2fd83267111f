from __future__ import annotations

from ..extensions import db
from ..money import decimal_str, money_str
from ..time_utils import to_utc_z
from .mixins import SoftDeleteMixin

PAYMENT_CASH = "cash"
PAYMENT_CARD = "card"
PAYMENT_CUSTOMER_BALANCE = "customer_balance"
PAYMENT_MIXED = "mixed"
PAYMENT_CREDIT = "credit"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_CARD, PAYMENT_CUSTOMER_BALANCE, PAYMENT_MIXED, PAYMENT_CREDIT)
# Methods that need an active customer relation
CUSTOMER_PAYMENT_METHODS = (PAYMENT_CUSTOMER_BALANCE, PAYMENT_MIXED, PAYMENT_CREDIT)


class Sale(SoftDeleteMixin, db.Model):
    """
    Completed POS sale. Walk-in sales have no customer.

    exchange_rate freezes the currency rate in force when the sale was rung up.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_store_created", "store_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    total = db.Column(db.Numeric(10, 2), nullable=False)
    payment_method = db.Column(db.String(32), nullable=False, default=PAYMENT_CASH)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    currency_id = db.Column(db.String(8), db.ForeignKey("currencies.id"), nullable=True)
    exchange_rate = db.Column(db.Numeric(10, 4), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship("SaleItem", backref="sale", lazy=True, order_by="SaleItem.id")
    customer = db.relationship("Customer")
    user = db.relationship("User")

    def __repr__(self) -> str:
        return f"<Sale id={self.id} store_id={self.store_id} total={self.total}>"

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "storeId": self.store_id,
            "customerId": self.customer_id,
            "total": money_str(self.total),
            "paymentMethod": self.payment_method,
            "userId": self.user_id,
            "currencyId": self.currency_id,
            "exchangeRate": decimal_str(self.exchange_rate),
            "createdAt": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    total = db.Column(db.Numeric(10, 2), nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "saleId": self.sale_id,
            "productId": self.product_id,
            "productName": self.product.name if self.product is not None else None,
            "quantity": self.quantity,
            "price": money_str(self.price),
            "total": money_str(self.total),
        }


class DuePayment(SoftDeleteMixin, db.Model):
    """
    Money owed: by a customer for a credit sale, or to a supplier for a
    deferred purchase. status: paid | unpaid
    """
    __tablename__ = "due_payments"
    __table_args__ = (
        db.Index("ix_due_payments_store_status", "store_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    invoice = db.Column(db.String(255), nullable=True)
    item_name = db.Column(db.String(255), nullable=True)
    item_amount = db.Column(db.Integer, nullable=False, default=0)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="unpaid")
    note = db.Column(db.Text, nullable=True)
    date_in = db.Column(db.DateTime(timezone=True), nullable=False)
    due_date = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "customerId": self.customer_id,
            "name": self.name,
            "invoice": self.invoice,
            "itemName": self.item_name,
            "itemAmount": self.item_amount,
            "amount": money_str(self.amount),
            "status": self.status,
            "note": self.note,
            "dateIn": to_utc_z(self.date_in),
            "dueDate": to_utc_z(self.due_date),
            "createdAt": to_utc_z(self.created_at),
        }


class Expense(SoftDeleteMixin, db.Model):
    __tablename__ = "expenses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    note = db.Column(db.Text, nullable=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "title": self.title,
            "note": self.note,
            "amount": money_str(self.amount),
            "createdAt": to_utc_z(self.created_at),
        }
