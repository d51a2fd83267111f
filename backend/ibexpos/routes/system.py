# Overview: IPC channels for the audit trail and SQL migrations.

from ibexpos import messages
from ibexpos.decorators import ACCESS_MERCHANT, ACCESS_PLATFORM_ADMIN
from ibexpos.ipc import channel
from ibexpos.services import audit_service, sql_migration_service
from ibexpos.services.tenant_service import accessible_store_ids, require_current_user, require_store_access
from ibexpos.validation import as_payload, require_positive_int


@channel("audit:get-logs", access=ACCESS_MERCHANT, failure="فشل جلب سجل العمليات")
def get_logs(query=None):
    data = as_payload(query)
    user = require_current_user()
    store_id = require_store_access(data["storeId"], user).id if data.get("storeId") else None
    rows = audit_service.get_logs(
        store_ids=accessible_store_ids(user),
        store_id=store_id,
        limit=data.get("limit", audit_service.DEFAULT_LIMIT),
    )
    return [row.to_dict() for row in rows]


@channel("audit:get-entity-logs", access=ACCESS_MERCHANT, failure="فشل جلب سجل العمليات")
def get_entity_logs(query):
    data = as_payload(query)
    rows = audit_service.get_entity_logs(
        entity_type=str(data.get("entityType") or "").strip(),
        entity_id=require_positive_int(data.get("entityId"), "entityId"),
        store_ids=accessible_store_ids(require_current_user()),
    )
    return [row.to_dict() for row in rows]


@channel("migrations:run", access=ACCESS_PLATFORM_ADMIN, failure="فشل تطبيق التحديثات")
def run_migrations():
    result = sql_migration_service.apply_pending()
    return {"success": True, "message": messages.MIGRATIONS_APPLIED, **result}
