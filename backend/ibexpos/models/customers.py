from __future__ import annotations

from ..extensions import db
from ..money import money_str
from ..time_utils import to_utc_z
from .mixins import JSONType, SoftDeleteMixin


class Customer(SoftDeleteMixin, db.Model):
    """
    Portal customer identified globally by a 9-digit phone.

    MULTI-TENANT: a customer is not owned by any store. Membership and the
    per-store balance live in CustomerStoreRelation, and every store-side read
    joins through it.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_phone", "phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(16), nullable=False)
    whatsapp = db.Column(db.String(32), nullable=True)
    password_hash = db.Column("password", db.String(255), nullable=False)
    # pending | approved | rejected
    registration_status = db.Column(db.String(32), nullable=False, default="pending", index=True)
    allow_credit = db.Column(db.Boolean, nullable=False, default=False)
    credit_limit = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    ktp = db.Column(db.String(64), nullable=True)
    dob = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Customer id={self.id} phone={self.phone!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "whatsapp": self.whatsapp,
            "registrationStatus": self.registration_status,
            "allowCredit": self.allow_credit,
            "creditLimit": money_str(self.credit_limit),
            "ktp": self.ktp,
            "dob": to_utc_z(self.dob),
            "notes": self.notes,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
        }


class CustomerStoreRelation(db.Model):
    """
    Customer membership in one store, carrying that store's balance.

    The balance is debited by sales and credited by approved deposits, so the
    row is optimistically locked.
    """
    __tablename__ = "customer_store_relations"
    __table_args__ = (
        db.UniqueConstraint("customer_id", "store_id", name="uq_customer_store_relation"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    balance = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    # active | suspended
    status = db.Column(db.String(32), nullable=False, default="active")
    registered_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer", backref=db.backref("store_relations", lazy=True))
    store = db.relationship("Store", backref=db.backref("customer_relations", lazy=True))

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerId": self.customer_id,
            "storeId": self.store_id,
            "balance": money_str(self.balance),
            "status": self.status,
            "registeredAt": to_utc_z(self.registered_at),
        }


class CustomerBalanceRequest(db.Model):
    """Deposit claim raised from the portal; a merchant approves or rejects it."""
    __tablename__ = "customer_balance_requests"
    __table_args__ = (
        db.Index("ix_balance_requests_store_status", "store_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False)
    bank = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    reference_number = db.Column(db.String(255), nullable=False)
    # pending | approved | rejected
    status = db.Column(db.String(32), nullable=False, default="pending")
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    # receiptImage and other client data
    metadata_json = db.Column("metadata", JSONType, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    customer = db.relationship("Customer")
    store = db.relationship("Store")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerId": self.customer_id,
            "storeId": self.store_id,
            "bank": self.bank,
            "amount": money_str(self.amount),
            "referenceNumber": self.reference_number,
            "status": self.status,
            "approvedBy": self.approved_by,
            "metadata": self.metadata_json,
            "createdAt": to_utc_z(self.created_at),
            "approvedAt": to_utc_z(self.approved_at),
        }


class CustomerTransaction(db.Model):
    """
    Append-only balance ledger entry.

    type: invoice (balance spent) | deposit | due_payment | refund
    """
    __tablename__ = "customer_transactions"
    __table_args__ = (
        db.Index("ix_customer_transactions_customer_store", "customer_id", "store_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    type = db.Column(db.String(32), nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    reference = db.Column(db.String(255), nullable=True)
    metadata_json = db.Column("metadata", JSONType, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerId": self.customer_id,
            "storeId": self.store_id,
            "type": self.type,
            "amount": money_str(self.amount),
            "reference": self.reference,
            "metadata": self.metadata_json,
            "createdAt": to_utc_z(self.created_at),
        }


class CustomerOrder(SoftDeleteMixin, db.Model):
    """Portal shopping-cart order; status: pending | approved | rejected | completed."""
    __tablename__ = "customer_orders"
    __table_args__ = (
        db.Index("ix_customer_orders_store_status", "store_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False)
    total = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(32), nullable=False, default="pending")
    notes = db.Column(db.Text, nullable=True)
    merchant_notes = db.Column(db.Text, nullable=True)
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    customer = db.relationship("Customer")
    items = db.relationship(
        "CustomerOrderItem",
        backref="order",
        lazy=True,
        order_by="CustomerOrderItem.id",
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "customerId": self.customer_id,
            "storeId": self.store_id,
            "total": money_str(self.total),
            "status": self.status,
            "notes": self.notes,
            "merchantNotes": self.merchant_notes,
            "approvedBy": self.approved_by,
            "createdAt": to_utc_z(self.created_at),
            "approvedAt": to_utc_z(self.approved_at),
            "completedAt": to_utc_z(self.completed_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class CustomerOrderItem(db.Model):
    __tablename__ = "customer_order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("customer_orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    # Price snapshot at order time
    price = db.Column(db.Numeric(10, 2), nullable=False)
    total = db.Column(db.Numeric(10, 2), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "price": money_str(self.price),
            "total": money_str(self.total),
            "product": {"id": self.product.id, "name": self.product.name} if self.product is not None else None,
        }
