from __future__ import annotations

from ..extensions import db
from ..money import decimal_str, money_str
from ..time_utils import to_utc_z
from .mixins import JSONType, SoftDeleteMixin


class Presence(db.Model):
    """Attendance check-in; status: present | absent | sick"""
    __tablename__ = "presences"
    __table_args__ = (
        db.Index("ix_presences_store_created", "store_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False)
    note = db.Column(db.Text, nullable=True)
    path = db.Column(db.Text, nullable=True)
    long = db.Column(db.Numeric(10, 7), nullable=True)
    lat = db.Column(db.Numeric(10, 7), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "userId": self.user_id,
            "userName": self.user.name if self.user is not None else None,
            "status": self.status,
            "note": self.note,
            "path": self.path,
            "long": decimal_str(self.long),
            "lat": decimal_str(self.lat),
            "createdAt": to_utc_z(self.created_at),
        }


class Salary(SoftDeleteMixin, db.Model):
    """
    Monthly payslip. items and deductions are [{description, amount}] lists;
    total is their difference. status: pending | paid
    """
    __tablename__ = "salaries"
    __table_args__ = (
        db.Index("ix_salaries_store_period", "store_id", "period"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default="pending")
    # YYYY-MM
    period = db.Column(db.String(7), nullable=False)
    items = db.Column(JSONType, nullable=True)
    deductions = db.Column(JSONType, nullable=True)
    total = db.Column(db.Numeric(10, 2), nullable=False)
    note = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "userId": self.user_id,
            "userName": self.user.name if self.user is not None else None,
            "status": self.status,
            "period": self.period,
            "items": self.items or [],
            "deductions": self.deductions or [],
            "total": money_str(self.total),
            "note": self.note,
            "createdAt": to_utc_z(self.created_at),
        }
