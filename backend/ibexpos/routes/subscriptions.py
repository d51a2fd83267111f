# Overview: IPC channels for subscription plans and store subscription requests.

from ibexpos.decorators import ACCESS_MERCHANT, ACCESS_PLATFORM_ADMIN, ACCESS_PUBLIC
from ibexpos.ipc import channel
from ibexpos.services import subscription_service
from ibexpos.services.tenant_service import require_current_user, require_store_access
from ibexpos.validation import as_payload, require_positive_int


@channel("subscriptions:get-plans", access=ACCESS_PUBLIC, failure="فشل جلب الباقات")
def get_plans():
    return [plan.to_dict() for plan in subscription_service.list_active_plans()]


@channel("subscriptions:get-all-plans", access=ACCESS_PLATFORM_ADMIN, failure="فشل جلب الباقات")
def get_all_plans():
    return [plan.to_dict() for plan in subscription_service.list_all_plans()]


@channel("subscriptions:get-plan", access=ACCESS_PUBLIC, failure="فشل جلب الباقة")
def get_plan(plan_id):
    return subscription_service.get_plan(require_positive_int(plan_id, "planId")).to_dict()


@channel("subscriptions:add-plan", access=ACCESS_PLATFORM_ADMIN, failure="فشل إضافة الباقة")
def add_plan(data):
    return subscription_service.add_plan(as_payload(data)).to_dict()


@channel("subscriptions:update-plan", access=ACCESS_PLATFORM_ADMIN, failure="فشل تحديث الباقة")
def update_plan(plan_id, data):
    return subscription_service.update_plan(require_positive_int(plan_id, "planId"), as_payload(data)).to_dict()


@channel("subscriptions:delete-plan", access=ACCESS_PLATFORM_ADMIN, failure="فشل حذف الباقة")
def delete_plan(plan_id):
    return subscription_service.delete_plan(require_positive_int(plan_id, "planId"))


@channel("subscriptions:create-request", access=ACCESS_MERCHANT, failure="فشل إرسال طلب الاشتراك")
def create_request(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return subscription_service.create_request(store.id, data).to_dict(include_relations=True)


@channel("subscriptions:get-store-requests", access=ACCESS_MERCHANT, failure="فشل جلب طلبات الاشتراك")
def get_store_requests(store_id=None):
    store = require_store_access(store_id)
    return [req.to_dict(include_relations=True) for req in subscription_service.list_store_requests(store.id)]


@channel("subscriptions:get-all-requests", access=ACCESS_PLATFORM_ADMIN, failure="فشل جلب طلبات الاشتراك")
def get_all_requests():
    return [req.to_dict(include_relations=True) for req in subscription_service.list_all_requests()]


# The decision is recorded against the session admin, whatever id the client sends.

@channel("subscriptions:approve-request", access=ACCESS_PLATFORM_ADMIN, failure="فشل الموافقة على طلب الاشتراك")
def approve_request(request_id, admin_user_id=None):
    return subscription_service.approve_request(
        require_positive_int(request_id, "requestId"), require_current_user().id
    )


@channel("subscriptions:reject-request", access=ACCESS_PLATFORM_ADMIN, failure="فشل رفض طلب الاشتراك")
def reject_request(request_id, admin_user_id=None, reason=None):
    return subscription_service.reject_request(
        require_positive_int(request_id, "requestId"), require_current_user().id, reason
    )
