from __future__ import annotations

from ..extensions import db
from ..money import money_str
from ..time_utils import to_utc_z
from .mixins import SoftDeleteMixin


class RentItem(SoftDeleteMixin, db.Model):
    """Item offered for rent with its three tariff tiers."""
    __tablename__ = "rent_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(64), nullable=False)
    note = db.Column(db.Text, nullable=True)
    stock = db.Column(db.Integer, nullable=False, default=0)
    rent_3_days = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    rent_1_week = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    rent_1_month = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "name": self.name,
            "code": self.code,
            "note": self.note,
            "stock": self.stock,
            "rent3Days": money_str(self.rent_3_days),
            "rent1Week": money_str(self.rent_1_week),
            "rent1Month": money_str(self.rent_1_month),
            "createdAt": to_utc_z(self.created_at),
        }


class Rent(SoftDeleteMixin, db.Model):
    __tablename__ = "rents"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    item_count = db.Column(db.Integer, nullable=False, default=1)
    note = db.Column(db.Text, nullable=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    penalty = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    # Whether an identity document / photo was left as deposit
    identity = db.Column(db.Boolean, nullable=False, default=False)
    picture = db.Column(db.Boolean, nullable=False, default=False)
    paid = db.Column(db.Boolean, nullable=False, default=False)
    duration_days = db.Column(db.Integer, nullable=False)
    rent_date = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "name": self.name,
            "itemCount": self.item_count,
            "note": self.note,
            "amount": money_str(self.amount),
            "penalty": money_str(self.penalty),
            "identity": self.identity,
            "picture": self.picture,
            "paid": self.paid,
            "durationDays": self.duration_days,
            "rentDate": to_utc_z(self.rent_date),
            "createdAt": to_utc_z(self.created_at),
        }
