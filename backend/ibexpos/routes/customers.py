# Overview: IPC channels for store customers, portal registration and balance top-ups.

from flask import request

from ibexpos.decorators import ACCESS_PUBLIC
from ibexpos.ipc import channel
from ibexpos.services import balance_service, customer_auth_service, customer_service
from ibexpos.services.tenant_service import (
    accessible_store_ids,
    require_current_user,
    require_customer_in_accessible_store,
    require_store_access,
)
from ibexpos.validation import as_payload, require_positive_int


@channel("customers:get-all", failure="فشل جلب العملاء")
def get_all(query=None):
    data = as_payload(query)
    store = require_store_access(data.get("storeId"))
    return customer_service.list_customers(store.id, data.get("search"))


@channel("customers:add", failure="فشل إضافة العميل")
def add(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return customer_service.add_customer(store.id, data)


@channel("customers:update", failure="فشل تحديث العميل")
def update(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return customer_service.update_customer(store.id, require_positive_int(data.get("id"), "id"), data)


@channel("customers:delete", failure="فشل حذف العميل")
def delete(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return customer_service.delete_customer(
        store.id, require_positive_int(data.get("id"), "id"), acting_user_id=require_current_user().id
    )


@channel("customers:get-pending-registrations-count", failure="فشل جلب عدد طلبات التسجيل")
def pending_registrations_count(store_id=None):
    if store_id:
        store_ids = {require_store_access(store_id).id}
    else:
        store_ids = accessible_store_ids(require_current_user())
    return customer_service.pending_registrations_count(store_ids)


@channel("customers:get-pending-registrations", failure="فشل جلب طلبات التسجيل")
def pending_registrations(store_id=None):
    store = require_store_access(store_id)
    return customer_service.pending_registrations(store.id)


# Portal sign-up

@channel("customer-auth:register", access=ACCESS_PUBLIC, failure="فشل إنشاء الحساب")
def register(data):
    return customer_auth_service.register(as_payload(data))


@channel("customer-auth:login", access=ACCESS_PUBLIC, failure="فشل تسجيل الدخول")
def login(credentials):
    data = as_payload(credentials)
    return customer_auth_service.login(
        data.get("phone"),
        data.get("password"),
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )


@channel("customer-auth:approve", failure="فشل الموافقة على العميل")
def approve(customer_id):
    customer_id = require_positive_int(customer_id, "customerId")
    require_customer_in_accessible_store(customer_id)
    return customer_auth_service.approve(customer_id)


@channel("customer-auth:reject", failure="فشل رفض العميل")
def reject(customer_id):
    customer_id = require_positive_int(customer_id, "customerId")
    require_customer_in_accessible_store(customer_id)
    return customer_auth_service.reject(customer_id)


# Balance top-up requests

@channel("customer-balance:get-requests", failure="فشل جلب طلبات الرصيد")
def balance_requests(store_id=None):
    store = require_store_access(store_id)
    return balance_service.list_requests(store.id)


@channel("customer-balance:approve", failure="فشل الموافقة على الطلب")
def approve_balance(data):
    data = as_payload(data)
    user = require_current_user()
    # Recorded approver is always the session user
    return balance_service.approve_request(
        require_positive_int(data.get("requestId"), "requestId"),
        approved_by=user.id,
        store_ids=accessible_store_ids(user),
    )


@channel("customer-balance:reject", failure="فشل رفض الطلب")
def reject_balance(request_id):
    user = require_current_user()
    return balance_service.reject_request(
        require_positive_int(request_id, "requestId"), store_ids=accessible_store_ids(user)
    )


@channel("customer-balance:get-pending-count", failure="فشل جلب عدد الطلبات")
def balance_pending_count(store_id=None):
    store = require_store_access(store_id)
    return balance_service.pending_count(store.id)
