# Overview: IPC channels for currencies and conversion between them.

from ibexpos.decorators import ACCESS_PUBLIC
from ibexpos.ipc import channel
from ibexpos.services import currency_service
from ibexpos.services.tenant_service import require_store
from ibexpos.validation import as_payload, require_positive_int


@channel("currencies:get-all", access=ACCESS_PUBLIC, failure="فشل جلب العملات")
def get_all():
    return [currency.to_dict() for currency in currency_service.list_currencies()]


@channel("currencies:get-by-id", access=ACCESS_PUBLIC, failure="فشل جلب العملة")
def get_by_id(currency_id):
    return currency_service.get_currency(currency_id).to_dict()


@channel("currencies:get-store-currency", access=ACCESS_PUBLIC, failure="فشل جلب عملة المتجر")
def get_store_currency(store_id):
    store = require_store(require_positive_int(store_id, "storeId"))
    return currency_service.get_store_currency(store).to_dict()


@channel("currencies:convert", access=ACCESS_PUBLIC, failure="فشل تحويل العملة")
def convert(data):
    data = as_payload(data)
    return currency_service.convert(data.get("amount"), data.get("fromCurrency"), data.get("toCurrency"))
