# Overview: IPC channels for point-of-sale checkout and sale history.

from ibexpos.ipc import channel
from ibexpos.services import sales_service
from ibexpos.services.tenant_service import require_current_user, require_store_access
from ibexpos.validation import as_payload, require_positive_int


@channel("sales:create", failure="فشل إتمام عملية البيع")
def create(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return sales_service.create_sale(store.id, data, user_id=require_current_user().id)


@channel("sales:get-all", failure="فشل جلب المبيعات")
def get_all(store_id=None):
    store = require_store_access(store_id)
    return [sale.to_dict() for sale in sales_service.list_sales(store.id)]


@channel("sales:get-by-id", failure="فشل جلب الفاتورة")
def get_by_id(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return sales_service.get_sale(store.id, require_positive_int(data.get("id"), "id")).to_dict(include_items=True)
