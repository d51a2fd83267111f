# Overview: Pytest coverage for store-side customer management and portal registration.

from decimal import Decimal

from ibexpos import messages
from ibexpos.models import AuditLog, Customer, CustomerStoreRelation
from tests.conftest import PASSWORD, ipc, make_customer, token_for


def _register(client, slug='store-a', phone='775550000', name='Huda'):
    return ipc(client, 'customer-auth:register', {
        'name': name,
        'phone': phone,
        'password': 'portal123',
        'storeSlug': slug,
    })


class TestStoreCustomers:

    def test_add_customer_at_counter(self, client, db_session, store, cashier_token):
        response = ipc(client, 'customers:add', {
            'storeId': store.id,
            'name': 'Ali',
            'phone': '773 000 111',
            'allowCredit': True,
            'creditLimit': 500,
        }, token=cashier_token)

        assert response.status_code == 200
        body = response.get_json()
        assert body['phone'] == '773000111'
        assert body['whatsapp'] == '773000111'
        assert body['registrationStatus'] == 'approved'
        assert body['balance'] == '0.00'
        assert body['creditLimit'] == '500.00'
        assert 'password' not in body

    def test_existing_phone_is_linked_not_duplicated(
        self, client, db_session, store, other_store, customer, other_merchant
    ):
        response = ipc(client, 'customers:add', {'storeId': other_store.id, 'name': 'Ignored', 'phone': customer.phone},
                       token=token_for(other_merchant))

        assert response.get_json()['id'] == customer.id
        assert response.get_json()['name'] == 'Customer'
        assert db_session.query(Customer).count() == 1
        relation = db_session.query(CustomerStoreRelation).filter_by(store_id=other_store.id).one()
        # Balances are per store
        assert relation.balance == Decimal('0.00')

    def test_search_by_name_or_phone(self, client, db_session, store, customer, cashier_token):
        make_customer(db_session, store, phone='779000000', name='Fatima')

        by_name = ipc(client, 'customers:get-all', {'storeId': store.id, 'search': 'fati'}, token=cashier_token)
        by_phone = ipc(client, 'customers:get-all', {'storeId': store.id, 'search': '7712'}, token=cashier_token)

        assert [c['name'] for c in by_name.get_json()] == ['Fatima']
        assert [c['id'] for c in by_phone.get_json()] == [customer.id]

    def test_update_phone_conflict(self, client, db_session, store, customer, cashier_token):
        other = make_customer(db_session, store, phone='779000000', name='Fatima')

        response = ipc(client, 'customers:update', {'storeId': store.id, 'id': other.id, 'phone': customer.phone},
                       token=cashier_token)

        assert response.status_code == 409
        assert response.get_json()['error'] == messages.PHONE_TAKEN

    def test_suspend_relation(self, client, db_session, store, customer, cashier_token):
        response = ipc(client, 'customers:update', {
            'storeId': store.id,
            'id': customer.id,
            'relationStatus': 'suspended',
            'notes': 'Bounced cheque',
        }, token=cashier_token)

        body = response.get_json()
        assert body['relationStatus'] == 'suspended'
        assert body['notes'] == 'Bounced cheque'

    def test_delete_last_relation_soft_deletes_customer(self, client, db_session, store, customer, merchant_token):
        response = ipc(client, 'customers:delete', {'storeId': store.id, 'id': customer.id}, token=merchant_token)

        assert response.get_json() is True
        assert db_session.get(Customer, customer.id).deleted_at is not None
        audit = db_session.query(AuditLog).filter_by(action='customer_delete').one()
        assert audit.old_value == {'balance': '100.00'}

    def test_delete_keeps_customer_shared_with_other_store(
        self, client, db_session, store, other_store, customer, merchant_token
    ):
        db_session.add(CustomerStoreRelation(customer_id=customer.id, store_id=other_store.id, balance=0,
                                             status='active'))
        db_session.commit()

        ipc(client, 'customers:delete', {'storeId': store.id, 'id': customer.id}, token=merchant_token)

        assert db_session.get(Customer, customer.id).deleted_at is None
        listing = ipc(client, 'customers:get-all', {'storeId': store.id}, token=merchant_token).get_json()
        assert listing == []

    def test_customer_of_other_store_cannot_be_updated(self, client, db_session, other_store, cashier_token, store):
        outsider = make_customer(db_session, other_store, phone='778888888')

        response = ipc(client, 'customers:update', {'storeId': store.id, 'id': outsider.id, 'name': 'Mine'},
                       token=cashier_token)

        assert response.status_code == 404
        assert response.get_json()['error'] == messages.CUSTOMER_NOT_FOUND


class TestPortalRegistration:

    def test_register_creates_pending_customer(self, client, db_session, store):
        response = _register(client)

        assert response.status_code == 200
        body = response.get_json()
        assert body['message'] == messages.REGISTRATION_SUBMITTED
        customer = db_session.get(Customer, body['customerId'])
        assert customer.registration_status == 'pending'

    def test_unknown_store_slug(self, client, db_session):
        response = _register(client, slug='nowhere')

        assert response.status_code == 404
        assert response.get_json()['error'] == messages.STORE_NOT_FOUND

    def test_already_registered(self, client, store, customer):
        response = _register(client, phone=customer.phone)

        assert response.status_code == 409
        assert response.get_json()['error'] == messages.ALREADY_REGISTERED

    def test_suspended_customer_cannot_reactivate_by_registering(self, client, db_session, store, customer,
                                                                 cashier_token):
        ipc(client, 'customers:update', {'storeId': store.id, 'id': customer.id, 'relationStatus': 'suspended'},
            token=cashier_token)

        response = ipc(client, 'customer-auth:register', {
            'phone': customer.phone,
            'password': 'whatever1',
            'storeSlug': 'store-a',
        })

        assert response.status_code == 409
        assert response.get_json()['error'] == messages.ALREADY_REGISTERED
        db_session.expire_all()
        relation = db_session.query(CustomerStoreRelation).filter_by(customer_id=customer.id,
                                                                     store_id=store.id).one()
        assert relation.status == 'suspended'

    def test_existing_customer_joins_second_store(self, client, db_session, store, other_store, customer):
        response = _register(client, slug='store-b', phone=customer.phone)

        assert response.get_json()['customerId'] == customer.id
        assert db_session.query(CustomerStoreRelation).filter_by(customer_id=customer.id).count() == 2

    def test_pending_queue_and_approval(self, client, db_session, store, merchant_token):
        customer_id = _register(client).get_json()['customerId']

        count = ipc(client, 'customers:get-pending-registrations-count', token=merchant_token)
        queue = ipc(client, 'customers:get-pending-registrations', store.id, token=merchant_token)
        assert count.get_json() == 1
        assert [c['id'] for c in queue.get_json()] == [customer_id]

        approved = ipc(client, 'customer-auth:approve', customer_id, token=merchant_token)
        assert approved.get_json() is True

        login = ipc(client, 'customer-auth:login', {'phone': '775550000', 'password': 'portal123'})
        assert login.status_code == 200
        assert [s['slug'] for s in login.get_json()['stores']] == ['store-a']

    def test_rejected_customer_cannot_log_in(self, client, db_session, store, merchant_token):
        customer_id = _register(client).get_json()['customerId']
        ipc(client, 'customer-auth:reject', customer_id, token=merchant_token)

        response = ipc(client, 'customer-auth:login', {'phone': '775550000', 'password': 'portal123'})

        assert response.status_code == 403
        assert response.get_json()['error'] == messages.REGISTRATION_REJECTED

    def test_ipc_login_distinguishes_errors(self, client, customer):
        unknown = ipc(client, 'customer-auth:login', {'phone': '770000000', 'password': PASSWORD})
        wrong = ipc(client, 'customer-auth:login', {'phone': customer.phone, 'password': 'wrong-pass'})

        assert unknown.get_json()['error'] == messages.PHONE_NOT_REGISTERED
        assert wrong.get_json()['error'] == messages.PASSWORD_WRONG
