# Overview: IPC channels for the customer portal and the store-side order queue.

from ibexpos.decorators import ACCESS_CUSTOMER, ACCESS_PUBLIC, require_customer_match
from ibexpos.ipc import channel
from ibexpos.services import customer_portal_service
from ibexpos.services.tenant_service import accessible_store_ids, require_current_user, require_store_access
from ibexpos.validation import as_payload, require_positive_int


def _customer_store(data) -> tuple[int, int]:
    """(customer_id, store_id) from a portal payload; the customer must be the caller."""
    data = as_payload(data)
    customer_id = require_customer_match(data.get("customerId"))
    return customer_id, require_positive_int(data.get("storeId"), "storeId")


@channel("customer-portal:get-stores", access=ACCESS_CUSTOMER, failure="فشل جلب المتاجر")
def get_stores(customer_id):
    return customer_portal_service.get_stores(require_customer_match(customer_id))


@channel("customer-portal:get-store-details", access=ACCESS_CUSTOMER, failure="فشل جلب بيانات المتجر")
def get_store_details(data):
    customer_id, store_id = _customer_store(data)
    return customer_portal_service.get_store_details(customer_id, store_id)


@channel("customer-portal:request-balance", access=ACCESS_CUSTOMER, failure="فشل إرسال طلب الرصيد")
def request_balance(data):
    data = as_payload(data)
    require_customer_match(data.get("customerId"))
    return customer_portal_service.request_balance(data)


@channel("customer-portal:get-transactions", access=ACCESS_CUSTOMER, failure="فشل جلب المعاملات")
def get_transactions(data):
    customer_id, store_id = _customer_store(data)
    return customer_portal_service.get_transactions(customer_id, store_id, as_payload(data).get("limit"))


@channel("customer-portal:get-products", access=ACCESS_PUBLIC, failure="فشل جلب المنتجات")
def get_products(store_id):
    return customer_portal_service.get_products(require_positive_int(store_id, "storeId"))


@channel("customer-portal:get-offers", access=ACCESS_PUBLIC, failure="فشل جلب العروض")
def get_offers(store_id):
    return customer_portal_service.get_offers(require_positive_int(store_id, "storeId"))


@channel("customer-portal:get-invoices", access=ACCESS_CUSTOMER, failure="فشل جلب الفواتير")
def get_invoices(data):
    customer_id, store_id = _customer_store(data)
    return customer_portal_service.get_invoices(customer_id, store_id)


@channel("customer-portal:create-order", access=ACCESS_CUSTOMER, failure="فشل إنشاء الطلب")
def create_order(data):
    data = as_payload(data)
    require_customer_match(data.get("customerId"))
    return customer_portal_service.create_order(data)


@channel("customer-portal:get-orders", access=ACCESS_CUSTOMER, failure="فشل جلب الطلبات")
def get_orders(data):
    customer_id, store_id = _customer_store(data)
    return customer_portal_service.get_orders(customer_id, store_id)


# Store side

@channel("customer-portal:get-pending-orders", failure="فشل جلب الطلبات المعلقة")
def get_pending_orders(store_id=None):
    store = require_store_access(store_id)
    return customer_portal_service.list_pending_orders(store.id)


@channel("customer-portal:update-order-status", failure="فشل تحديث حالة الطلب")
def update_order_status(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return customer_portal_service.update_order_status(
        store.id,
        require_positive_int(data.get("orderId"), "orderId"),
        data.get("status"),
        merchant_notes=data.get("merchantNotes"),
        approved_by=require_current_user().id,
    )


@channel("customer-portal:convert-order-to-invoice", failure="فشل تحويل الطلب إلى فاتورة")
def convert_order_to_invoice(order_id):
    return customer_portal_service.convert_order_to_invoice(
        require_positive_int(order_id, "orderId"),
        store_ids=accessible_store_ids(require_current_user()),
    )
