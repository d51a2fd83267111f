# Overview: IPC channels for store management, store settings and general requests.

from ibexpos import messages
from ibexpos.decorators import ACCESS_MERCHANT, ACCESS_PLATFORM_ADMIN, ACCESS_PUBLIC
from ibexpos.ipc import channel
from ibexpos.models.auth import ROLE_PLATFORM_ADMIN
from ibexpos.services import store_service
from ibexpos.services.errors import ForbiddenError, NotFoundError
from ibexpos.services.tenant_service import (
    accessible_store_ids,
    get_current_store_id,
    require_current_user,
    require_store_access,
)
from ibexpos.validation import as_payload, require_positive_int


@channel("stores:get-by-slug", access=ACCESS_PUBLIC, failure="فشل جلب بيانات المتجر")
def get_by_slug(slug):
    store = store_service.get_store_by_slug(str(slug or "").strip())
    if not store:
        raise NotFoundError(messages.STORE_NOT_FOUND)
    return store.to_public_dict()


@channel("stores:get-by-id", failure="فشل جلب بيانات المتجر")
def get_by_id(store_id):
    return require_store_access(store_id).to_dict()


@channel("stores:get-merchant-stores", access=ACCESS_MERCHANT, failure="فشل جلب المتاجر")
def get_merchant_stores(merchant_id):
    merchant_id = require_positive_int(merchant_id, "merchantId")
    user = require_current_user()
    if user.role != ROLE_PLATFORM_ADMIN and merchant_id != user.id:
        raise ForbiddenError(messages.FORBIDDEN)
    return [store.to_dict() for store in store_service.list_merchant_stores(merchant_id)]


@channel("stores:create", access=ACCESS_MERCHANT, failure="فشل إنشاء المتجر")
def create(data):
    data = dict(as_payload(data))
    user = require_current_user()
    if user.role != ROLE_PLATFORM_ADMIN:
        # Merchants always create for themselves
        data["merchantId"] = user.id
    return store_service.create_store(data).to_dict()


@channel("stores:update", access=ACCESS_MERCHANT, failure="فشل تحديث المتجر")
def update(data):
    data = as_payload(data)
    store = require_store_access(require_positive_int(data.get("id"), "id"))
    return store_service.update_store(store.id, data).to_dict()


@channel("stores:delete", access=ACCESS_MERCHANT, failure="فشل حذف المتجر")
def delete(store_id):
    store = require_store_access(require_positive_int(store_id, "id"))
    store_service.delete_store(store.id, acting_user_id=require_current_user().id)
    return True


@channel("stores:update-subscription", access=ACCESS_PLATFORM_ADMIN, failure="فشل تحديث الاشتراك")
def update_subscription(data):
    data = as_payload(data)
    store = store_service.update_subscription(
        require_positive_int(data.get("id"), "id"),
        status=data.get("status"),
        plan=data.get("plan"),
        expiry=data.get("expiry"),
    )
    return store.to_dict()


@channel("stores:get-all", access=ACCESS_PLATFORM_ADMIN, failure="فشل جلب المتاجر")
def get_all():
    return [store.to_dict() for store in store_service.list_stores()]


# Store settings

@channel("store:get", failure="فشل جلب إعدادات المتجر")
def get_settings(store_id=None):
    return require_store_access(store_id).to_dict()


@channel("store:save", access=ACCESS_MERCHANT, failure="فشل حفظ إعدادات المتجر")
def save_settings(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return store_service.update_store(store.id, data).to_dict()


@channel("store:upload-logo", access=ACCESS_MERCHANT, failure="فشل رفع الشعار")
def upload_logo(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return store_service.upload_logo(store.id, data.get("imageData"))


# General requests

@channel("requests:get-all", failure="فشل جلب الطلبات")
def get_requests():
    user = require_current_user()
    return [req.to_dict() for req in store_service.list_requests(accessible_store_ids(user))]


@channel("requests:add", failure="فشل إضافة الطلب")
def add_request(data):
    data = as_payload(data)
    store_id = data.get("storeId") or get_current_store_id()
    if store_id:
        store_id = require_store_access(store_id).id
    return store_service.add_request(data, store_id=store_id).to_dict()


@channel("requests:update-status", access=ACCESS_MERCHANT, failure="فشل تحديث حالة الطلب")
def update_request_status(data):
    data = as_payload(data)
    user = require_current_user()
    req = store_service.update_request_status(
        require_positive_int(data.get("id"), "id"),
        data.get("status"),
        store_ids=accessible_store_ids(user),
    )
    return req.to_dict()
