from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB

from ..extensions import db
from ..time_utils import utcnow

# JSON everywhere, JSONB on Postgres
JSONType = db.JSON().with_variant(JSONB(), "postgresql")


class SoftDeleteMixin:
    """
    Rows are hidden, never removed: deleted_at is stamped and every read path
    filters on alive().
    """

    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    @classmethod
    def alive(cls):
        return cls.deleted_at.is_(None)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        if self.deleted_at is None:
            self.deleted_at = utcnow()
