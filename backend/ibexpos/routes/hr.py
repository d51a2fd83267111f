# Overview: IPC channels for staff presence, salaries and the store's user list.

from ibexpos.decorators import ACCESS_MERCHANT
from ibexpos.ipc import channel
from ibexpos.services import auth_service, hr_service
from ibexpos.services.tenant_service import require_store_access
from ibexpos.validation import as_payload, require_positive_int


@channel("presence:get-all", failure="فشل جلب سجل الحضور")
def get_presences(store_id=None):
    store = require_store_access(store_id)
    return [presence.to_dict() for presence in hr_service.list_presences(store.id)]


@channel("presence:check-in", failure="فشل تسجيل الحضور")
def check_in(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return hr_service.check_in(store.id, data).to_dict()


@channel("salaries:get-all", access=ACCESS_MERCHANT, failure="فشل جلب الرواتب")
def get_salaries(store_id=None):
    store = require_store_access(store_id)
    return [salary.to_dict() for salary in hr_service.list_salaries(store.id)]


@channel("salaries:generate", access=ACCESS_MERCHANT, failure="فشل إنشاء الراتب")
def generate_salary(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return hr_service.generate_salary(store.id, data).to_dict()


@channel("salaries:update-status", access=ACCESS_MERCHANT, failure="فشل تحديث حالة الراتب")
def update_salary_status(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    salary = hr_service.update_salary_status(store.id, require_positive_int(data.get("id"), "id"), data.get("status"))
    return salary.to_dict()


@channel("users:get-all", failure="فشل جلب المستخدمين")
def get_users(store_id=None):
    store = require_store_access(store_id)
    return [user.to_dict() for user in auth_service.list_store_users(store.id)]
