# Overview: IPC channels for suppliers and stock purchases.

from ibexpos.ipc import channel
from ibexpos.services import purchase_service
from ibexpos.services.tenant_service import require_current_user, require_store_access
from ibexpos.validation import as_payload, require_positive_int


def _store_and_id(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return store.id, require_positive_int(data.get("id"), "id")


@channel("suppliers:get-all", failure="فشل جلب الموردين")
def get_suppliers(store_id=None):
    store = require_store_access(store_id)
    return [supplier.to_dict() for supplier in purchase_service.list_suppliers(store.id)]


@channel("suppliers:add", failure="فشل إضافة المورد")
def add_supplier(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return purchase_service.add_supplier(store.id, data).to_dict()


@channel("suppliers:update", failure="فشل تحديث المورد")
def update_supplier(data):
    store_id, supplier_id = _store_and_id(data)
    return purchase_service.update_supplier(store_id, supplier_id, data).to_dict()


@channel("suppliers:delete", failure="فشل حذف المورد")
def delete_supplier(data):
    store_id, supplier_id = _store_and_id(data)
    return purchase_service.delete_supplier(store_id, supplier_id)


@channel("purchases:get-all", failure="فشل جلب المشتريات")
def get_purchases(store_id=None):
    store = require_store_access(store_id)
    return purchase_service.list_purchases(store.id)


@channel("purchases:get-by-id", failure="فشل جلب الشراء")
def get_purchase(data):
    store_id, purchase_id = _store_and_id(data)
    return purchase_service.get_purchase(store_id, purchase_id).to_dict(include_items=True)


@channel("purchases:create", failure="فشل إنشاء فاتورة الشراء")
def create_purchase(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return purchase_service.create_purchase(store.id, data, user_id=require_current_user().id)


@channel("purchases:update", failure="فشل تحديث الشراء")
def update_purchase(data):
    store_id, purchase_id = _store_and_id(data)
    return purchase_service.update_purchase(store_id, purchase_id, data).to_dict()


@channel("purchases:delete", failure="فشل حذف الشراء")
def delete_purchase(data):
    store_id, purchase_id = _store_and_id(data)
    return purchase_service.delete_purchase(store_id, purchase_id)
