# Overview: IPC channels for rents and the rentable items they reference.

from ibexpos.ipc import channel
from ibexpos.services import rent_service
from ibexpos.services.tenant_service import require_store_access
from ibexpos.validation import as_payload, require_positive_int


@channel("rents:get-all", failure="فشل جلب الإيجارات")
def get_rents(store_id=None):
    store = require_store_access(store_id)
    return [rent.to_dict() for rent in rent_service.list_rents(store.id)]


@channel("rents:add", failure="فشل إضافة الإيجار")
def add_rent(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return rent_service.add_rent(store.id, data).to_dict()


@channel("rents:update", failure="فشل تحديث الإيجار")
def update_rent(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return rent_service.update_rent(store.id, require_positive_int(data.get("id"), "id"), data).to_dict()


@channel("rents:delete", failure="فشل حذف الإيجار")
def delete_rent(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return rent_service.delete_rent(store.id, require_positive_int(data.get("id"), "id"))


@channel("rent-items:get-all", failure="فشل جلب عناصر الإيجار")
def get_rent_items(store_id=None):
    store = require_store_access(store_id)
    return [item.to_dict() for item in rent_service.list_rent_items(store.id)]


@channel("rent-items:add", failure="فشل إضافة عنصر الإيجار")
def add_rent_item(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return rent_service.add_rent_item(store.id, data).to_dict()


@channel("rent-items:delete", failure="فشل حذف عنصر الإيجار")
def delete_rent_item(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return rent_service.delete_rent_item(store.id, require_positive_int(data.get("id"), "id"))
