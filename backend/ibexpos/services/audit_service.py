# Overview: Append-only audit trail for sensitive operations.

from __future__ import annotations

from flask import has_request_context, request

from ..extensions import db
from ..models import AuditLog

DEFAULT_LIMIT = 100
ENTITY_DEFAULT_LIMIT = 50
MAX_LIMIT = 500


def log_event(
    *,
    user_id: int | None,
    action: str,
    entity_type: str,
    entity_id: int | None = None,
    store_id: int | None = None,
    description: str | None = None,
    old_value: dict | None = None,
    new_value: dict | None = None,
    metadata: dict | None = None,
) -> AuditLog | None:
    """
    Append an audit row to the current transaction.

    The caller owns the commit, so the entry lands or rolls back together with
    the change it describes. Actions without a staff actor are not recorded.
    """
    if user_id is None:
        return None

    entry = AuditLog(
        store_id=store_id,
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
        old_value=old_value,
        new_value=new_value,
        metadata_json=metadata,
        ip_address=request.remote_addr if has_request_context() else None,
        user_agent=request.headers.get("User-Agent") if has_request_context() else None,
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def _clamp(limit, default: int) -> int:
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        return default
    return max(1, min(limit, MAX_LIMIT))


def get_logs(*, store_ids: set[int] | None, store_id: int | None = None, limit=DEFAULT_LIMIT) -> list[AuditLog]:
    """
    Latest audit rows.

    store_ids is the caller's accessible set (None = unrestricted); store_id
    narrows to one store inside it.
    """
    query = db.session.query(AuditLog)
    if store_id is not None:
        query = query.filter(AuditLog.store_id == store_id)
    elif store_ids is not None:
        query = query.filter(AuditLog.store_id.in_(store_ids or {-1}))
    return (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(_clamp(limit, DEFAULT_LIMIT))
        .all()
    )


def get_entity_logs(
    *,
    entity_type: str,
    entity_id: int,
    store_ids: set[int] | None,
    limit=ENTITY_DEFAULT_LIMIT,
) -> list[AuditLog]:
    query = db.session.query(AuditLog).filter(
        AuditLog.entity_type == entity_type,
        AuditLog.entity_id == entity_id,
    )
    if store_ids is not None:
        query = query.filter(AuditLog.store_id.in_(store_ids or {-1}))
    return (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(_clamp(limit, ENTITY_DEFAULT_LIMIT))
        .all()
    )
