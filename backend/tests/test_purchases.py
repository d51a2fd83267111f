# Overview: Pytest coverage for suppliers, stock receiving and cost averaging.

from datetime import datetime
from decimal import Decimal

import pytest

from ibexpos import messages
from ibexpos.models import DuePayment, Product, Purchase, PurchaseItem
from ibexpos.services.purchase_service import weighted_average_cost
from tests.conftest import ipc, make_product


@pytest.fixture
def supplier_id(client, store, merchant_token):
    response = ipc(client, 'suppliers:add', {
        'storeId': store.id,
        'name': 'Hodeidah Wholesale',
        'phone': '733000111',
        'contactPerson': 'Saleh',
    }, token=merchant_token)
    assert response.status_code == 200
    return response.get_json()['id']


@pytest.mark.parametrize('stock, cost, quantity, unit_cost, expected', [
    (20, '6.00', 10, '9.00', Decimal('7.00')),
    (0, '6.00', 5, '9.00', Decimal('9.00')),
    (10, '0', 5, '4.50', Decimal('4.50')),
    (3, '1.00', 1, '2.00', Decimal('1.25')),
])
def test_weighted_average_cost(stock, cost, quantity, unit_cost, expected):
    assert weighted_average_cost(stock, Decimal(cost), quantity, Decimal(unit_cost)) == expected


class TestSuppliers:

    def test_add_and_list(self, client, store, merchant_token, supplier_id):
        response = ipc(client, 'suppliers:get-all', store.id, token=merchant_token)

        suppliers = response.get_json()
        assert [s['id'] for s in suppliers] == [supplier_id]
        assert suppliers[0]['contactPerson'] == 'Saleh'

    def test_update_and_delete(self, client, store, merchant_token, supplier_id):
        updated = ipc(client, 'suppliers:update', {'storeId': store.id, 'id': supplier_id, 'phone': '733999999'},
                      token=merchant_token)
        deleted = ipc(client, 'suppliers:delete', {'storeId': store.id, 'id': supplier_id}, token=merchant_token)

        assert updated.get_json()['phone'] == '733999999'
        assert deleted.get_json() is True
        assert ipc(client, 'suppliers:get-all', store.id, token=merchant_token).get_json() == []

    def test_supplier_of_another_store_is_hidden(self, client, other_store, other_merchant, supplier_id):
        from tests.conftest import token_for

        response = ipc(client, 'suppliers:update', {'storeId': other_store.id, 'id': supplier_id, 'name': 'Mine'},
                       token=token_for(other_merchant))

        assert response.status_code == 404
        assert response.get_json()['error'] == messages.SUPPLIER_NOT_FOUND


class TestCreatePurchase:

    def test_cash_purchase_adds_stock_and_averages_cost(self, client, db_session, store, product, merchant_token):
        response = ipc(client, 'purchases:create', {
            'storeId': store.id,
            'items': [{'productId': product.id, 'quantity': 10, 'cost': 9}],
            'invoiceNumber': 'INV-77',
        }, token=merchant_token)

        assert response.status_code == 200
        body = response.get_json()
        assert body['success'] is True

        refreshed = db_session.get(Product, product.id)
        assert refreshed.stock == 30
        assert refreshed.cost == Decimal('7.00')

        purchase = db_session.get(Purchase, body['purchaseId'])
        assert purchase.total == Decimal('90.00')
        assert purchase.payment_type == 'cash'
        assert db_session.query(PurchaseItem).count() == 1
        assert db_session.query(DuePayment).count() == 0

    def test_repeated_product_lines_average_in_sequence(self, client, db_session, store, merchant_token):
        fresh = make_product(db_session, store, name="Flour", price="8.00", stock=0, cost="0")

        ipc(client, 'purchases:create', {
            'storeId': store.id,
            'items': [
                {'productId': fresh.id, 'quantity': 2, 'cost': 4},
                {'productId': fresh.id, 'quantity': 2, 'cost': 6},
            ],
        }, token=merchant_token)

        refreshed = db_session.get(Product, fresh.id)
        assert refreshed.stock == 4
        assert refreshed.cost == Decimal('5.00')

    def test_due_purchase_opens_due_payment(self, client, db_session, store, product, merchant_token, supplier_id):
        response = ipc(client, 'purchases:create', {
            'storeId': store.id,
            'supplierId': supplier_id,
            'paymentType': 'due',
            'dueDate': '2030-01-15',
            'items': [{'productId': product.id, 'quantity': 4, 'cost': '7.50'}],
        }, token=merchant_token)

        assert response.status_code == 200
        purchase_id = response.get_json()['purchaseId']

        due = db_session.query(DuePayment).one()
        assert due.name == 'Hodeidah Wholesale'
        assert due.amount == Decimal('30.00')
        assert due.status == 'unpaid'
        assert due.invoice == f'PURCHASE-{purchase_id}'
        assert due.due_date == datetime(2030, 1, 15)

    def test_due_purchase_requires_due_date(self, client, db_session, store, product, merchant_token, supplier_id):
        response = ipc(client, 'purchases:create', {
            'storeId': store.id,
            'supplierId': supplier_id,
            'paymentType': 'due',
            'items': [{'productId': product.id, 'quantity': 1, 'cost': 5}],
        }, token=merchant_token)

        assert response.status_code == 400
        assert response.get_json()['error'] == messages.DUE_DATE_REQUIRED
        assert db_session.get(Product, product.id).stock == 20

    def test_unknown_product_rolls_back_everything(self, client, db_session, store, product, merchant_token):
        response = ipc(client, 'purchases:create', {
            'storeId': store.id,
            'items': [
                {'productId': product.id, 'quantity': 5, 'cost': 5},
                {'productId': 424242, 'quantity': 1, 'cost': 5},
            ],
        }, token=merchant_token)

        assert response.status_code == 404
        assert response.get_json()['error'] == messages.PRODUCT_ID_NOT_FOUND.format(product_id=424242)
        assert db_session.get(Product, product.id).stock == 20
        assert db_session.query(Purchase).count() == 0

    def test_foreign_product_is_not_received(self, client, db_session, store, other_product, merchant_token):
        response = ipc(client, 'purchases:create', {
            'storeId': store.id,
            'items': [{'productId': other_product.id, 'quantity': 5, 'cost': 5}],
        }, token=merchant_token)

        assert response.status_code == 404
        assert db_session.get(Product, other_product.id).stock == 5

    def test_invalid_payment_type(self, client, store, product, merchant_token):
        response = ipc(client, 'purchases:create', {
            'storeId': store.id,
            'paymentType': 'barter',
            'items': [{'productId': product.id, 'quantity': 1, 'cost': 5}],
        }, token=merchant_token)

        assert response.status_code == 400


class TestPurchaseQueries:

    def test_listing_counts_items(self, client, store, product, merchant_token):
        ipc(client, 'purchases:create', {
            'storeId': store.id,
            'items': [{'productId': product.id, 'quantity': 1, 'cost': 5}],
        }, token=merchant_token)

        rows = ipc(client, 'purchases:get-all', store.id, token=merchant_token).get_json()

        assert len(rows) == 1
        assert rows[0]['itemCount'] == 1
        assert rows[0]['total'] == '5.00'

    def test_get_by_id_includes_items(self, client, store, product, merchant_token, supplier_id):
        created = ipc(client, 'purchases:create', {
            'storeId': store.id,
            'supplierId': supplier_id,
            'items': [{'productId': product.id, 'quantity': 3, 'cost': 2}],
        }, token=merchant_token).get_json()

        response = ipc(client, 'purchases:get-by-id', {'storeId': store.id, 'id': created['purchaseId']},
                       token=merchant_token)

        body = response.get_json()
        assert body['supplier']['name'] == 'Hodeidah Wholesale'
        assert body['items'][0]['product']['name'] == 'Rice 5kg'
        assert body['items'][0]['total'] == '6.00'

    def test_update_header_only(self, client, db_session, store, product, merchant_token):
        created = ipc(client, 'purchases:create', {
            'storeId': store.id,
            'items': [{'productId': product.id, 'quantity': 3, 'cost': 2}],
        }, token=merchant_token).get_json()

        response = ipc(client, 'purchases:update', {
            'storeId': store.id,
            'id': created['purchaseId'],
            'notes': 'checked',
            'total': 1,
        }, token=merchant_token)

        assert response.get_json()['notes'] == 'checked'
        assert response.get_json()['total'] == '6.00'

    def test_delete_is_soft(self, client, db_session, store, product, merchant_token):
        created = ipc(client, 'purchases:create', {
            'storeId': store.id,
            'items': [{'productId': product.id, 'quantity': 1, 'cost': 6}],
        }, token=merchant_token).get_json()

        deleted = ipc(client, 'purchases:delete', {'storeId': store.id, 'id': created['purchaseId']},
                      token=merchant_token)

        assert deleted.get_json() is True
        assert ipc(client, 'purchases:get-all', store.id, token=merchant_token).get_json() == []
        assert db_session.get(Purchase, created['purchaseId']).deleted_at is not None
        # Stock already received stays on the shelf
        assert db_session.get(Product, product.id).stock == 21
