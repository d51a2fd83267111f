# Overview: Pytest coverage for subscription plans, requests and the platform admin console.

from datetime import timedelta
from decimal import Decimal

import pytest

from ibexpos import messages
from ibexpos.models import Sale, Store, SubscriptionRequest, User
from ibexpos.time_utils import add_months, utcnow
from tests.conftest import ipc, token_for


@pytest.fixture
def plan_id(client, admin_token):
    response = ipc(client, 'subscriptions:add-plan', {
        'name': 'pro',
        'displayName': 'الباقة الاحترافية',
        'price': 150,
        'durationMonths': 3,
        'features': ['portal', 'reports'],
        'maxProducts': 5000,
    }, token=admin_token)
    assert response.status_code == 200
    return response.get_json()['id']


@pytest.fixture
def request_id(client, store, merchant_token, plan_id):
    response = ipc(client, 'subscriptions:create-request', {
        'storeId': store.id,
        'planId': plan_id,
        'paymentReference': 'BANK-555',
    }, token=merchant_token)
    assert response.status_code == 200
    return response.get_json()['id']


class TestPlans:

    def test_public_plan_listing(self, client, plan_id):
        response = ipc(client, 'subscriptions:get-plans')

        plans = response.get_json()
        assert [p['id'] for p in plans] == [plan_id]
        assert plans[0]['price'] == '150.00'
        assert plans[0]['features'] == ['portal', 'reports']

    def test_plan_requires_display_name(self, client, admin_token):
        response = ipc(client, 'subscriptions:add-plan', {'name': 'basic', 'price': 0}, token=admin_token)

        assert response.status_code == 400
        assert 'display_name' in response.get_json()['error']

    def test_merchant_cannot_add_plan(self, client, merchant_token):
        response = ipc(client, 'subscriptions:add-plan', {'name': 'x', 'displayName': 'x', 'price': 1},
                       token=merchant_token)

        assert response.status_code == 403

    def test_inactive_plans_are_hidden_from_public(self, client, admin_token, plan_id):
        ipc(client, 'subscriptions:update-plan', plan_id, {'active': False}, token=admin_token)

        assert ipc(client, 'subscriptions:get-plans').get_json() == []
        assert len(ipc(client, 'subscriptions:get-all-plans', token=admin_token).get_json()) == 1

    def test_get_and_delete_plan(self, client, admin_token, plan_id):
        assert ipc(client, 'subscriptions:get-plan', plan_id).get_json()['name'] == 'pro'

        deleted = ipc(client, 'subscriptions:delete-plan', plan_id, token=admin_token)
        missing = ipc(client, 'subscriptions:get-plan', plan_id)

        assert deleted.get_json() is True
        assert missing.status_code == 404
        assert missing.get_json()['error'] == messages.PLAN_NOT_FOUND


class TestRequests:

    def test_request_defaults_amount_to_plan_price(self, db_session, request_id):
        req = db_session.get(SubscriptionRequest, request_id)

        assert req.status == 'pending'
        assert req.amount == Decimal('150.00')
        assert req.payment_method == 'bank_transfer'

    def test_approve_activates_store(self, client, db_session, store, platform_admin, admin_token, request_id):
        before = utcnow()

        # A forged approver id is ignored
        response = ipc(client, 'subscriptions:approve-request', request_id, 12345, token=admin_token)

        assert response.status_code == 200
        body = response.get_json()
        assert body['success'] is True
        assert body['expiryDate'].endswith('Z')

        req = db_session.get(SubscriptionRequest, request_id)
        assert req.status == 'approved'
        assert req.approved_by == platform_admin.id

        refreshed = db_session.get(Store, store.id)
        assert refreshed.subscription_status == 'active'
        assert refreshed.subscription_plan == 'pro'
        assert refreshed.subscription_expiry >= add_months(before, 3) - timedelta(seconds=1)

    def test_request_is_settled_once(self, client, admin_token, request_id):
        ipc(client, 'subscriptions:approve-request', request_id, token=admin_token)

        again = ipc(client, 'subscriptions:approve-request', request_id, token=admin_token)
        reject = ipc(client, 'subscriptions:reject-request', request_id, None, 'late', token=admin_token)

        for response in (again, reject):
            assert response.status_code == 400
            assert response.get_json()['error'] == messages.SUBSCRIPTION_ALREADY_PROCESSED

    def test_reject_records_reason(self, client, db_session, store, admin_token, request_id):
        response = ipc(client, 'subscriptions:reject-request', request_id, None, ' Receipt unreadable ',
                       token=admin_token)

        assert response.get_json() is True
        req = db_session.get(SubscriptionRequest, request_id)
        assert req.status == 'rejected'
        assert req.rejection_reason == 'Receipt unreadable'
        assert db_session.get(Store, store.id).subscription_plan == 'basic'

    def test_store_requests_are_tenant_scoped(self, client, other_store, other_merchant, store, request_id):
        foreign = ipc(client, 'subscriptions:get-store-requests', store.id, token=token_for(other_merchant))
        own = ipc(client, 'subscriptions:get-store-requests', other_store.id, token=token_for(other_merchant))

        assert foreign.status_code == 404
        assert own.get_json() == []

    def test_admin_lists_all_requests(self, client, admin_token, request_id):
        rows = ipc(client, 'subscriptions:get-all-requests', token=admin_token).get_json()

        assert rows[0]['id'] == request_id
        assert rows[0]['store']['slug'] == 'store-a'
        assert rows[0]['plan']['name'] == 'pro'


class TestCheckSubscription:

    def test_open_ended_active_store_is_valid(self, client, store, merchant_token):
        body = ipc(client, 'platform-admin:check-subscription', store.id, token=merchant_token).get_json()

        assert body['valid'] is True
        assert body['daysRemaining'] is None

    def test_days_remaining_rounds_up(self, client, db_session, store, merchant_token):
        store.subscription_expiry = utcnow() + timedelta(days=9, hours=1)
        db_session.commit()

        body = ipc(client, 'platform-admin:check-subscription', store.id, token=merchant_token).get_json()

        assert body['daysRemaining'] == 10

    def test_expired_store_is_flipped(self, client, db_session, store, merchant_token):
        store.subscription_expiry = utcnow() - timedelta(days=1)
        db_session.commit()

        body = ipc(client, 'platform-admin:check-subscription', store.id, token=merchant_token).get_json()

        assert body['valid'] is False
        assert body['status'] == 'expired'
        assert body['reason'] == messages.SUBSCRIPTION_EXPIRED
        assert db_session.get(Store, store.id).subscription_status == 'expired'

    def test_pending_store_reason(self, client, db_session, store, merchant_token):
        store.subscription_status = 'pending'
        db_session.commit()

        body = ipc(client, 'platform-admin:check-subscription', store.id, token=merchant_token).get_json()

        assert body['valid'] is False
        assert body['reason'] == messages.SUBSCRIPTION_PENDING


class TestPlatformAdmin:

    def test_merchant_listing_and_details(self, client, merchant, store, other_merchant, admin_token):
        listing = ipc(client, 'platform-admin:get-merchants', token=admin_token).get_json()
        details = ipc(client, 'platform-admin:get-merchant', merchant.id, token=admin_token).get_json()

        assert {m['id'] for m in listing} == {merchant.id, other_merchant.id}
        assert [s['id'] for s in details['stores']] == [store.id]

    def test_invalid_merchant_status(self, client, merchant, admin_token):
        response = ipc(client, 'platform-admin:update-merchant-status',
                       {'merchantId': merchant.id, 'status': 'banned'}, token=admin_token)

        assert response.status_code == 400

    def test_delete_merchant_takes_stores_along(self, client, db_session, merchant, store, admin_token):
        response = ipc(client, 'platform-admin:delete-merchant', merchant.id, token=admin_token)

        assert response.get_json() is True
        assert db_session.get(User, merchant.id).deleted_at is not None
        assert db_session.get(Store, store.id).deleted_at is not None

    def test_dashboard_counts(self, client, db_session, store, product, cashier, admin_token):
        db_session.add(Sale(store_id=store.id, total=Decimal('40.00'), payment_method='cash', user_id=cashier.id))
        db_session.commit()

        body = ipc(client, 'platform-admin:dashboard', token=admin_token).get_json()

        assert body['merchants'] == 1
        assert body['stores'] == 1
        assert body['activeStores'] == 1
        assert body['products'] == 1
        assert body['salesCount'] == 1
        assert body['totalRevenue'] == '40.00'

    def test_top_stores_orders_by_revenue(self, client, db_session, store, other_store, cashier, admin_token):
        db_session.add(Sale(store_id=other_store.id, total=Decimal('90.00'), payment_method='cash',
                            user_id=cashier.id))
        db_session.commit()

        rows = ipc(client, 'platform-admin:top-stores', 5, token=admin_token).get_json()

        assert [r['storeId'] for r in rows] == [other_store.id, store.id]
        assert rows[0]['totalSales'] == '90.00'
        assert rows[1]['salesCount'] == 0

    def test_subscription_stats(self, client, store, other_store, admin_token):
        body = ipc(client, 'platform-admin:subscription-stats', token=admin_token).get_json()

        assert body['byStatus'] == [{'status': 'active', 'count': 2}]
        assert body['byPlan'] == [{'plan': 'basic', 'count': 2}]

    def test_merchant_cannot_use_admin_console(self, client, merchant_token):
        response = ipc(client, 'platform-admin:dashboard', token=merchant_token)

        assert response.status_code == 403

    def test_store_listing_includes_merchant(self, client, merchant, store, admin_token):
        rows = ipc(client, 'platform-admin:get-all-stores', token=admin_token).get_json()

        assert [r['id'] for r in rows] == [store.id]
        assert rows[0]['merchant']['email'] == merchant.email

    def test_update_store_subscription(self, client, store, admin_token):
        response = ipc(client, 'platform-admin:update-store-subscription',
                       {'storeId': store.id, 'status': 'expired', 'plan': 'pro'}, token=admin_token)

        body = response.get_json()
        assert body['subscriptionStatus'] == 'expired'
        assert body['subscriptionPlan'] == 'pro'

    def test_delete_store(self, client, db_session, store, admin_token):
        response = ipc(client, 'platform-admin:delete-store', store.id, token=admin_token)

        assert response.get_json() is True
        assert db_session.get(Store, store.id).deleted_at is not None

    def test_balance_requests_across_stores(self, client, store, customer, customer_token, admin_token):
        ipc(client, 'customer-portal:request-balance', {
            'customerId': customer.id,
            'storeId': store.id,
            'bank': 'Kuraimi',
            'amount': 50,
            'referenceNumber': 'TRX-1',
        }, token=customer_token)

        pending = ipc(client, 'platform-admin:get-all-balance-requests', {'status': 'pending'},
                      token=admin_token).get_json()
        approved = ipc(client, 'platform-admin:get-all-balance-requests', {'status': 'approved'},
                       token=admin_token).get_json()

        assert len(pending) == 1
        assert pending[0]['customer']['phone'] == customer.phone
        assert pending[0]['store']['id'] == store.id
        assert approved == []
