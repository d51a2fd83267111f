# Overview: IPC channels for the platform admin console: merchants, stores and platform statistics.

from ibexpos.decorators import ACCESS_PLATFORM_ADMIN, ACCESS_STAFF
from ibexpos.ipc import channel
from ibexpos.services import platform_admin_service, store_service
from ibexpos.services.tenant_service import require_current_user, require_store_access
from ibexpos.validation import as_payload, require_positive_int


def admin_channel(name: str, failure: str):
    return channel(f"platform-admin:{name}", access=ACCESS_PLATFORM_ADMIN, failure=failure)


@admin_channel("get-merchants", "فشل جلب التجار")
def get_merchants():
    return [merchant.to_dict() for merchant in platform_admin_service.list_merchants()]


@admin_channel("get-merchant", "فشل جلب بيانات التاجر")
def get_merchant(merchant_id):
    return platform_admin_service.get_merchant(require_positive_int(merchant_id, "merchantId"))


@admin_channel("update-merchant-status", "فشل تحديث حالة التاجر")
def update_merchant_status(data):
    data = as_payload(data)
    merchant = platform_admin_service.update_merchant_status(
        require_positive_int(data.get("merchantId"), "merchantId"),
        data.get("status"),
        acting_user_id=require_current_user().id,
    )
    return merchant.to_dict()


@admin_channel("delete-merchant", "فشل حذف التاجر")
def delete_merchant(merchant_id):
    return platform_admin_service.delete_merchant(
        require_positive_int(merchant_id, "merchantId"), acting_user_id=require_current_user().id
    )


@admin_channel("get-all-stores", "فشل جلب المتاجر")
def get_all_stores():
    return platform_admin_service.list_stores_with_merchant()


@admin_channel("update-store-subscription", "فشل تحديث اشتراك المتجر")
def update_store_subscription(data):
    data = as_payload(data)
    store = store_service.update_subscription(
        require_positive_int(data.get("storeId"), "storeId"),
        status=data.get("status"),
        plan=data.get("plan"),
        expiry=data.get("expiry"),
    )
    return store.to_dict()


@channel("platform-admin:check-subscription", access=ACCESS_STAFF, failure="فشل التحقق من الاشتراك")
def check_subscription(store_id=None):
    return platform_admin_service.check_subscription(require_store_access(store_id))


@admin_channel("get-all-balance-requests", "فشل جلب طلبات الرصيد")
def get_all_balance_requests(query=None):
    data = as_payload(query)
    return platform_admin_service.list_balance_requests(data.get("limit", 100), data.get("status"))


@admin_channel("delete-store", "فشل حذف المتجر")
def delete_store(store_id):
    return store_service.delete_store(
        require_positive_int(store_id, "storeId"), acting_user_id=require_current_user().id
    )


@admin_channel("dashboard", "فشل جلب إحصائيات المنصة")
def dashboard():
    return platform_admin_service.dashboard()


@admin_channel("top-stores", "فشل جلب أفضل المتاجر")
def top_stores(limit=10):
    return platform_admin_service.top_stores(limit)


@admin_channel("subscription-stats", "فشل جلب إحصائيات الاشتراكات")
def subscription_stats():
    return platform_admin_service.subscription_stats()
