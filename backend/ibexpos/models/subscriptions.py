from __future__ import annotations

from ..extensions import db
from ..money import money_str
from ..time_utils import to_utc_z
from .mixins import JSONType, SoftDeleteMixin


class SubscriptionPlan(SoftDeleteMixin, db.Model):
    """
    Sellable platform plan. NULL limits mean unlimited.
    """
    __tablename__ = "subscription_plans"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    display_name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    duration_months = db.Column(db.Integer, nullable=False, default=1)
    # [{name, included}]
    features = db.Column(JSONType, nullable=True, default=list)
    max_products = db.Column(db.Integer, nullable=True)
    max_users = db.Column(db.Integer, nullable=True)
    max_stores = db.Column(db.Integer, nullable=True, default=1)
    active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "displayName": self.display_name,
            "description": self.description,
            "price": money_str(self.price),
            "durationMonths": self.duration_months,
            "features": self.features or [],
            "maxProducts": self.max_products,
            "maxUsers": self.max_users,
            "maxStores": self.max_stores,
            "active": self.active,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class SubscriptionRequest(db.Model):
    """Store's request to start or renew a plan, settled by a platform admin."""
    __tablename__ = "subscription_requests"
    __table_args__ = (
        db.Index("ix_subscription_requests_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    plan_id = db.Column(db.Integer, db.ForeignKey("subscription_plans.id"), nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    # bank_transfer | cash | card
    payment_method = db.Column(db.String(32), nullable=False)
    payment_reference = db.Column(db.String(255), nullable=True)
    payment_receipt = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="pending")
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)
    metadata_json = db.Column("metadata", JSONType, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    store = db.relationship("Store")
    plan = db.relationship("SubscriptionPlan")

    def to_dict(self, include_relations: bool = False) -> dict:
        data = {
            "id": self.id,
            "storeId": self.store_id,
            "planId": self.plan_id,
            "amount": money_str(self.amount),
            "paymentMethod": self.payment_method,
            "paymentReference": self.payment_reference,
            "paymentReceipt": self.payment_receipt,
            "status": self.status,
            "approvedBy": self.approved_by,
            "approvedAt": to_utc_z(self.approved_at),
            "rejectionReason": self.rejection_reason,
            "metadata": self.metadata_json,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
        if include_relations:
            data["plan"] = self.plan.to_dict() if self.plan is not None else None
            data["store"] = (
                {"id": self.store.id, "name": self.store.name, "slug": self.store.slug}
                if self.store is not None else None
            )
        return data
