from __future__ import annotations

from ..extensions import db
from ..money import decimal_str
from ..time_utils import to_utc_z
from .mixins import JSONType, SoftDeleteMixin


class Currency(SoftDeleteMixin, db.Model):
    """
    Currency with its rate against the base currency (SAR = 1).

    The primary key is the ISO code itself so stores and sales can reference
    "SAR", "YER" or "USD" directly.
    """
    __tablename__ = "currencies"

    id = db.Column(db.String(8), primary_key=True)
    code = db.Column(db.String(8), nullable=False)
    symbol = db.Column(db.String(16), nullable=False)
    name = db.Column(db.String(64), nullable=False)
    exchange_rate = db.Column(db.Numeric(10, 4), nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Currency {self.id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "symbol": self.symbol,
            "name": self.name,
            "exchangeRate": decimal_str(self.exchange_rate),
            "createdAt": to_utc_z(self.created_at),
        }


class Store(SoftDeleteMixin, db.Model):
    """
    Tenant root. Every store-scoped row points here via store_id.

    MULTI-TENANT: a store belongs to exactly one merchant (merchant_id). The
    slug is globally unique because customer portal links are built from it.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.Index("ix_stores_merchant_id", "merchant_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    merchant_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    subscription_plan = db.Column(db.String(64), nullable=True, default="basic")
    # active | expired | pending | cancelled
    subscription_status = db.Column(db.String(32), nullable=True, default="pending", index=True)
    subscription_expiry = db.Column(db.DateTime(timezone=True), nullable=True)

    bank_accounts = db.Column(JSONType, nullable=True, default=list)
    contact_info = db.Column(JSONType, nullable=True, default=dict)
    settings = db.Column(JSONType, nullable=True, default=dict)
    currency_id = db.Column(db.String(8), db.ForeignKey("currencies.id"), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    merchant = db.relationship("User", foreign_keys=[merchant_id], backref=db.backref("owned_stores", lazy=True))
    currency = db.relationship("Currency")

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Store id={self.id} slug={self.slug!r}>"

    def to_public_dict(self) -> dict:
        """Fields the customer portal may see."""
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "phone": self.phone,
            "contactInfo": self.contact_info or {},
            "settings": self.settings or {},
            "bankAccounts": self.bank_accounts or [],
        }

    def to_dict(self) -> dict:
        data = self.to_public_dict()
        data.update({
            "merchantId": self.merchant_id,
            "subscriptionPlan": self.subscription_plan,
            "subscriptionStatus": self.subscription_status,
            "subscriptionExpiry": to_utc_z(self.subscription_expiry),
            "currencyId": self.currency_id,
            "createdAt": to_utc_z(self.created_at),
            "deletedAt": to_utc_z(self.deleted_at),
        })
        return data


class StoreOffer(SoftDeleteMixin, db.Model):
    __tablename__ = "store_offers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.Text, nullable=True)
    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=False)
    active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "title": self.title,
            "description": self.description,
            "imageUrl": self.image_url,
            "startDate": to_utc_z(self.start_date),
            "endDate": to_utc_z(self.end_date),
            "active": self.active,
            "createdAt": to_utc_z(self.created_at),
        }


class GeneralRequest(SoftDeleteMixin, db.Model):
    """Free-form request raised by a store (or the platform when store_id is NULL)."""
    __tablename__ = "requests"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True, index=True)
    title = db.Column(db.String(255), nullable=False)
    note = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(32), nullable=False, default="pending")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "title": self.title,
            "note": self.note,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
        }
