# Overview: IPC channels for staff authentication and merchant sign-up.

from flask import request

from ibexpos.decorators import ACCESS_MERCHANT, ACCESS_PUBLIC, ACCESS_STAFF
from ibexpos.ipc import channel
from ibexpos.services import auth_service
from ibexpos.services.tenant_service import require_current_user
from ibexpos.validation import as_payload, require_positive_int


@channel("auth:login", access=ACCESS_PUBLIC, failure="فشل تسجيل الدخول")
def login(credentials):
    data = as_payload(credentials)
    return auth_service.login(
        data.get("email"),
        data.get("password"),
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )


@channel("auth:logout", access=ACCESS_PUBLIC, failure="فشل تسجيل الخروج")
def logout(payload=None):
    data = as_payload(payload)
    return {"success": auth_service.logout(data.get("token") or "")}


@channel("auth:register", access=ACCESS_MERCHANT, failure="فشل إنشاء المستخدم")
def register(data):
    user = auth_service.register_user(as_payload(data), acting_user=require_current_user())
    return user.to_dict()


@channel("auth:register-merchant", access=ACCESS_PUBLIC, failure="فشل إنشاء الحساب")
def register_merchant(data):
    return auth_service.register_merchant(as_payload(data))


@channel("auth:get-user", access=ACCESS_STAFF, failure="فشل جلب بيانات المستخدم")
def get_user(user_id):
    user_id = require_positive_int(user_id, "userId")
    return auth_service.get_visible_user(user_id, require_current_user()).to_dict()
