# Overview: IPC channels for managing store offers shown in the customer portal.

from ibexpos.ipc import channel
from ibexpos.services import offer_service
from ibexpos.services.tenant_service import require_store_access
from ibexpos.validation import as_payload, require_positive_int


@channel("offers:get-all", failure="فشل جلب العروض")
def get_all(store_id=None):
    store = require_store_access(store_id)
    return [offer.to_dict() for offer in offer_service.list_offers(store.id)]


@channel("offers:add", failure="فشل إضافة العرض")
def add(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return offer_service.add_offer(store.id, data).to_dict()


@channel("offers:delete", failure="فشل حذف العرض")
def delete(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return offer_service.delete_offer(store.id, require_positive_int(data.get("id"), "id"))
