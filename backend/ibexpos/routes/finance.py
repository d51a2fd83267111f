# Overview: IPC channels for due payments and expenses.

from ibexpos.ipc import channel
from ibexpos.services import due_payment_service, expense_service
from ibexpos.services.tenant_service import require_store_access
from ibexpos.validation import as_payload, require_positive_int


def _store_and_id(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return store.id, require_positive_int(data.get("id"), "id")


@channel("due-payments:get-all", failure="فشل جلب الديون")
def get_due_payments(store_id=None):
    store = require_store_access(store_id)
    return [due.to_dict() for due in due_payment_service.list_due_payments(store.id)]


@channel("due-payments:add", failure="فشل إضافة الدين")
def add_due_payment(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return due_payment_service.add_due_payment(store.id, data).to_dict()


@channel("due-payments:update", failure="فشل تحديث الدين")
def update_due_payment(data):
    store_id, due_id = _store_and_id(data)
    return due_payment_service.update_due_payment(store_id, due_id, data).to_dict()


@channel("due-payments:delete", failure="فشل حذف الدين")
def delete_due_payment(data):
    store_id, due_id = _store_and_id(data)
    return due_payment_service.delete_due_payment(store_id, due_id)


@channel("due-payments:mark-paid", failure="فشل تسديد الدين")
def mark_paid(data):
    store_id, due_id = _store_and_id(data)
    return due_payment_service.mark_paid(store_id, due_id).to_dict()


@channel("expenses:get-all", failure="فشل جلب المصروفات")
def get_expenses(store_id=None):
    store = require_store_access(store_id)
    return [expense.to_dict() for expense in expense_service.list_expenses(store.id)]


@channel("expenses:add", failure="فشل إضافة المصروف")
def add_expense(data):
    data = as_payload(data)
    store = require_store_access(data.get("storeId"))
    return expense_service.add_expense(store.id, data).to_dict()


@channel("expenses:delete", failure="فشل حذف المصروف")
def delete_expense(data):
    store_id, expense_id = _store_and_id(data)
    return expense_service.delete_expense(store_id, expense_id)
