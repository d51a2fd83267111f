# Overview: Pytest coverage for the customer portal and the store-side order queue.

"""
Customer Portal Tests

Customers only ever see their own data, inside stores they belong to.
Orders price from the catalog and move through pending -> approved/rejected
-> completed.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from ibexpos import messages
from ibexpos.models import CustomerOrder, Product, StoreOffer
from ibexpos.time_utils import utcnow
from tests.conftest import customer_token_for, ipc, make_customer, make_product, token_for


@pytest.fixture
def order_id(client, store, product, customer, customer_token):
    response = ipc(client, 'customer-portal:create-order', {
        'customerId': customer.id,
        'storeId': store.id,
        'items': [{'productId': product.id, 'quantity': 2, 'price': 1}],
        'notes': 'Deliver after 5pm',
    }, token=customer_token)
    assert response.status_code == 200
    return response.get_json()['orderId']


class TestPortalReads:

    def test_get_stores_lists_memberships_with_balance(self, client, store, customer, customer_token):
        response = ipc(client, 'customer-portal:get-stores', customer.id, token=customer_token)

        assert response.status_code == 200
        stores = response.get_json()
        assert [s['id'] for s in stores] == [store.id]
        assert stores[0]['balance'] == 100.0
        assert stores[0]['lastPurchase'] is None

    def test_get_store_details_returns_balance_string(self, client, store, customer, customer_token):
        response = ipc(client, 'customer-portal:get-store-details',
                       {'customerId': customer.id, 'storeId': store.id}, token=customer_token)

        assert response.status_code == 200
        body = response.get_json()
        assert body['balance'] == '100.00'
        assert body['store']['slug'] == 'store-a'
        assert 'merchantId' not in body['store']

    def test_customer_cannot_read_another_customer(self, client, db_session, store, customer, customer_token):
        other = make_customer(db_session, store, phone="779999999", balance="5")

        response = ipc(client, 'customer-portal:get-store-details',
                       {'customerId': other.id, 'storeId': store.id}, token=customer_token)

        assert response.status_code == 403
        assert response.get_json()['error'] == messages.FORBIDDEN

    def test_store_without_membership_is_forbidden(self, client, other_store, customer, customer_token):
        response = ipc(client, 'customer-portal:get-store-details',
                       {'customerId': customer.id, 'storeId': other_store.id}, token=customer_token)

        assert response.status_code == 403
        assert response.get_json()['error'] == messages.STORE_FORBIDDEN

    def test_staff_token_cannot_use_customer_channels(self, client, store, customer, merchant_token):
        response = ipc(client, 'customer-portal:get-stores', customer.id, token=merchant_token)

        assert response.status_code == 403

    def test_get_products_hides_unlisted_and_deleted(self, client, db_session, store, product):
        hidden = make_product(db_session, store, name="Back office only")
        hidden.show_in_portal = False
        gone = make_product(db_session, store, name="Discontinued")
        gone.soft_delete()
        db_session.commit()

        response = ipc(client, 'customer-portal:get-products', store.id)

        assert response.status_code == 200
        assert [p['id'] for p in response.get_json()] == [product.id]

    def test_get_offers_returns_only_current(self, client, db_session, store):
        now = utcnow()
        db_session.add_all([
            StoreOffer(store_id=store.id, title="Now", start_date=now - timedelta(days=1),
                       end_date=now + timedelta(days=1), active=True),
            StoreOffer(store_id=store.id, title="Later", start_date=now + timedelta(days=2),
                       end_date=now + timedelta(days=5), active=True),
            StoreOffer(store_id=store.id, title="Off", start_date=now - timedelta(days=1),
                       end_date=now + timedelta(days=1), active=False),
        ])
        db_session.commit()

        response = ipc(client, 'customer-portal:get-offers', store.id)

        assert [o['title'] for o in response.get_json()] == ["Now"]


class TestOrders:

    def test_order_prices_come_from_catalog(self, db_session, order_id):
        order = db_session.get(CustomerOrder, order_id)

        assert order.status == 'pending'
        assert order.total == Decimal('20.00')
        assert order.items[0].price == Decimal('10.00')
        assert order.notes == 'Deliver after 5pm'

    def test_order_does_not_reserve_stock(self, db_session, product, order_id):
        assert db_session.get(Product, product.id).stock == 20

    def test_get_orders_includes_items(self, client, store, customer, customer_token, order_id):
        response = ipc(client, 'customer-portal:get-orders',
                       {'customerId': customer.id, 'storeId': store.id}, token=customer_token)

        orders = response.get_json()
        assert [o['id'] for o in orders] == [order_id]
        assert orders[0]['items'][0]['product']['name'] == 'Rice 5kg'

    def test_order_for_foreign_product_fails(self, client, store, other_product, customer, customer_token):
        response = ipc(client, 'customer-portal:create-order', {
            'customerId': customer.id,
            'storeId': store.id,
            'items': [{'productId': other_product.id, 'quantity': 1}],
        }, token=customer_token)

        assert response.status_code == 404

    def test_pending_queue_and_approval(self, client, db_session, merchant, store, merchant_token, order_id):
        pending = ipc(client, 'customer-portal:get-pending-orders', store.id, token=merchant_token).get_json()
        assert [o['id'] for o in pending] == [order_id]
        assert pending[0]['customer']['phone'] == '771234567'

        response = ipc(client, 'customer-portal:update-order-status', {
            'storeId': store.id,
            'orderId': order_id,
            'status': 'approved',
            'merchantNotes': 'Ready tomorrow',
        }, token=merchant_token)

        assert response.status_code == 200
        body = response.get_json()
        assert body['status'] == 'approved'
        assert body['approvedBy'] == merchant.id
        assert body['merchantNotes'] == 'Ready tomorrow'

        completed = ipc(client, 'customer-portal:update-order-status',
                        {'storeId': store.id, 'orderId': order_id, 'status': 'completed'}, token=merchant_token)
        assert completed.get_json()['completedAt'] is not None

    def test_rejected_order_cannot_be_reopened(self, client, store, merchant_token, order_id):
        ipc(client, 'customer-portal:update-order-status',
            {'storeId': store.id, 'orderId': order_id, 'status': 'rejected'}, token=merchant_token)

        response = ipc(client, 'customer-portal:update-order-status',
                       {'storeId': store.id, 'orderId': order_id, 'status': 'approved'}, token=merchant_token)

        assert response.status_code == 400
        assert response.get_json()['error'] == messages.ORDER_STATUS_INVALID

    def test_convert_order_to_invoice_builds_cart(self, client, product, merchant_token, order_id):
        response = ipc(client, 'customer-portal:convert-order-to-invoice', order_id, token=merchant_token)

        assert response.status_code == 200
        cart = response.get_json()
        assert cart['orderId'] == order_id
        assert cart['total'] == 20.0
        assert cart['items'] == [{
            'id': product.id,
            'productId': product.id,
            'name': 'Rice 5kg',
            'price': 10.0,
            'quantity': 2,
            'stock': 20,
        }]

    def test_foreign_merchant_cannot_see_order(self, client, other_merchant, other_store, order_id):
        response = ipc(client, 'customer-portal:convert-order-to-invoice', order_id,
                       token=token_for(other_merchant))

        assert response.status_code == 404
        assert response.get_json()['error'] == messages.ORDER_NOT_FOUND


class TestHistory:

    def _sell(self, client, store, product, customer, cashier_token):
        response = ipc(client, 'sales:create', {
            'storeId': store.id,
            'customerId': customer.id,
            'items': [{'id': product.id, 'quantity': 2}],
            'paymentMethod': 'customer_balance',
        }, token=cashier_token)
        assert response.status_code == 200
        return response.get_json()['saleId']

    def test_transactions_show_balance_spent(self, client, store, product, customer, cashier_token, customer_token):
        sale_id = self._sell(client, store, product, customer, cashier_token)

        rows = ipc(client, 'customer-portal:get-transactions', {'customerId': customer.id, 'storeId': store.id},
                   token=customer_token).get_json()

        assert [(r['type'], r['reference'], r['amount']) for r in rows] == [('invoice', f'SALE-{sale_id}', '20.00')]

    def test_invoices_include_items(self, client, store, product, customer, cashier_token, customer_token):
        sale_id = self._sell(client, store, product, customer, cashier_token)

        invoices = ipc(client, 'customer-portal:get-invoices', {'customerId': customer.id, 'storeId': store.id},
                       token=customer_token).get_json()

        assert [i['id'] for i in invoices] == [sale_id]
        assert invoices[0]['items'][0]['productName'] == 'Rice 5kg'
        assert invoices[0]['items'][0]['quantity'] == 2

    def test_history_of_other_store_is_forbidden(self, client, other_store, customer, customer_token):
        response = ipc(client, 'customer-portal:get-invoices', {'customerId': customer.id, 'storeId': other_store.id},
                       token=customer_token)

        assert response.status_code == 403


def test_pending_customer_session_is_refused(client, db_session, store):
    pending = make_customer(db_session, store, phone="775555555", status="approved")
    token = customer_token_for(pending)
    pending.registration_status = 'pending'
    db_session.commit()

    response = ipc(client, 'customer-portal:get-stores', pending.id, token=token)

    assert response.status_code == 401
    assert response.get_json()['error'] == messages.SESSION_INVALID
