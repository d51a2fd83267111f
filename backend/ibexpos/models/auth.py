from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .mixins import SoftDeleteMixin

ROLE_PLATFORM_ADMIN = "platform_admin"
ROLE_MERCHANT = "merchant"
ROLE_CASHIER = "cashier"
STAFF_ROLES = (ROLE_PLATFORM_ADMIN, ROLE_MERCHANT, ROLE_CASHIER)


class User(SoftDeleteMixin, db.Model):
    """
    Staff accounts: platform admins, merchants and cashiers.

    MULTI-TENANT: merchants own stores through Store.merchant_id; cashiers are
    pinned to one store through store_id. Platform admins have no store.
    Emails are stored lower-cased and are globally unique.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column("password", db.String(255), nullable=False)

    # platform_admin | merchant | cashier
    role = db.Column(db.String(32), nullable=False, default=ROLE_CASHIER)

    # Cashier's store, or the merchant's primary store (users <-> stores is a cycle)
    store_id = db.Column(
        db.Integer,
        db.ForeignKey("stores.id", use_alter=True, name="fk_users_store_id"),
        nullable=True,
        index=True,
    )
    phone = db.Column(db.String(32), nullable=True)

    # active | suspended | pending
    status = db.Column(db.String(32), nullable=False, default="active")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    store = db.relationship("Store", foreign_keys=[store_id])

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"

    @property
    def is_platform_admin(self) -> bool:
        return self.role == ROLE_PLATFORM_ADMIN

    @property
    def is_merchant(self) -> bool:
        return self.role == ROLE_MERCHANT

    def to_dict(self) -> dict:
        # Password hash never leaves the server
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "storeId": self.store_id,
            "phone": self.phone,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
            "lastLoginAt": to_utc_z(self.last_login_at),
        }


class SessionToken(db.Model):
    """
    Secure session token for either a staff user or a portal customer.

    Exactly one of user_id / customer_id is set. store_id is captured at
    creation time and is immutable for the session lifetime.

    SECURITY NOTES:
    - Tokens stored hashed in database (SHA-256)
    - 24-hour absolute timeout
    - 2-hour idle timeout
    - Revocable on logout
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        db.CheckConstraint(
            "(user_id IS NULL) <> (customer_id IS NULL)",
            name="ck_session_tokens_one_principal",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True, index=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)  # IPv6 max length

    user = db.relationship("User", backref=db.backref("session_tokens", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("session_tokens", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "customerId": self.customer_id,
            "storeId": self.store_id,
            "createdAt": to_utc_z(self.created_at),
            "lastUsedAt": to_utc_z(self.last_used_at),
            "expiresAt": to_utc_z(self.expires_at),
            "isRevoked": self.is_revoked,
        }
