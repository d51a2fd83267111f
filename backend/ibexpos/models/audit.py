from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .mixins import JSONType


class AuditLog(db.Model):
    """
    Append-only record of sensitive operations (balance changes, deletions,
    price updates). Never updated or deleted by the application.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_entity", "entity_type", "entity_id"),
        db.Index("ix_audit_logs_store_created", "store_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    action = db.Column(db.String(64), nullable=False)
    entity_type = db.Column(db.String(64), nullable=False)
    entity_id = db.Column(db.Integer, nullable=True)
    description = db.Column(db.Text, nullable=True)
    old_value = db.Column(JSONType, nullable=True)
    new_value = db.Column(JSONType, nullable=True)
    metadata_json = db.Column("metadata", JSONType, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "userId": self.user_id,
            "userName": self.user.name if self.user is not None else None,
            "action": self.action,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "description": self.description,
            "oldValue": self.old_value,
            "newValue": self.new_value,
            "metadata": self.metadata_json,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "createdAt": to_utc_z(self.created_at),
        }


class AppliedSqlMigration(db.Model):
    """Tracking row for a hand-written SQL file that has been executed."""
    __tablename__ = "sql_migrations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    applied_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "appliedAt": to_utc_z(self.applied_at)}
