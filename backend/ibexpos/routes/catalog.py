# Overview: IPC channels for categories and inventory; every call is scoped to an accessible store.

from ibexpos.ipc import channel
from ibexpos.services import category_service, inventory_service
from ibexpos.services.tenant_service import require_current_user, require_store_access
from ibexpos.validation import as_payload, require_positive_int


@channel("categories:get-all", failure="فشل جلب التصنيفات")
def get_categories(store_id=None):
    store = require_store_access(store_id)
    return [category.to_dict() for category in category_service.list_categories(store.id)]


@channel("categories:add", failure="فشل إضافة التصنيف")
def add_category(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return category_service.add_category(store.id, data.get("name")).to_dict()


@channel("categories:update", failure="فشل تحديث التصنيف")
def update_category(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    category = category_service.update_category(
        store.id, require_positive_int(data.get("id"), "id"), data.get("name")
    )
    return category.to_dict()


@channel("categories:delete", failure="فشل حذف التصنيف")
def delete_category(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    category_service.delete_category(store.id, require_positive_int(data.get("id"), "id"))
    return True


@channel("inventory:get-all", failure="فشل جلب المنتجات")
def get_products(store_id=None):
    store = require_store_access(store_id)
    return [product.to_dict() for product in inventory_service.list_products(store.id)]


@channel("inventory:add", failure="فشل إضافة المنتج")
def add_product(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return inventory_service.add_product(store.id, data).to_dict()


@channel("inventory:import", failure="فشل استيراد المنتجات")
def import_products(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return inventory_service.import_products(store.id, data.get("items"))


@channel("inventory:update", failure="فشل تحديث المنتج")
def update_product(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    product = inventory_service.update_product(
        store.id,
        require_positive_int(data.get("id"), "id"),
        data,
        acting_user_id=require_current_user().id,
    )
    return product.to_dict()


@channel("inventory:delete", failure="فشل حذف المنتج")
def delete_product(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    inventory_service.delete_product(
        store.id, require_positive_int(data.get("id"), "id"), acting_user_id=require_current_user().id
    )
    return True
