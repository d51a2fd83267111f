# Overview: Pytest coverage for dues, expenses, rents, attendance, payroll and offers.

from decimal import Decimal

from ibexpos import messages
from ibexpos.models import CustomerTransaction, DuePayment, Expense
from tests.conftest import ipc, make_customer, make_user


class TestDuePayments:

    def test_add_and_mark_paid_records_ledger(self, client, db_session, store, customer, cashier_token):
        created = ipc(client, 'due-payments:add', {
            'storeId': store.id,
            'customerId': customer.id,
            'name': 'Customer',
            'invoice': 'INV-9',
            'amount': '45.5',
            'dueDate': '2030-02-01',
        }, token=cashier_token)

        assert created.status_code == 200
        due_id = created.get_json()['id']
        assert created.get_json()['status'] == 'unpaid'

        paid = ipc(client, 'due-payments:mark-paid', {'storeId': store.id, 'id': due_id}, token=cashier_token)

        assert paid.get_json()['status'] == 'paid'
        tx = db_session.query(CustomerTransaction).one()
        assert tx.type == 'due_payment'
        assert tx.amount == Decimal('45.50')
        assert tx.reference == 'INV-9'

    def test_due_cannot_be_paid_twice(self, client, store, cashier_token):
        due_id = ipc(client, 'due-payments:add', {
            'storeId': store.id, 'name': 'Walk-in', 'amount': 10, 'dueDate': '2030-02-01',
        }, token=cashier_token).get_json()['id']
        ipc(client, 'due-payments:mark-paid', {'storeId': store.id, 'id': due_id}, token=cashier_token)

        response = ipc(client, 'due-payments:mark-paid', {'storeId': store.id, 'id': due_id}, token=cashier_token)

        assert response.status_code == 400

    def test_due_for_customer_outside_store(self, client, db_session, store, other_store, cashier_token):
        outsider = make_customer(db_session, other_store, phone='778888888')

        response = ipc(client, 'due-payments:add', {
            'storeId': store.id, 'customerId': outsider.id, 'name': 'x', 'amount': 1, 'dueDate': '2030-02-01',
        }, token=cashier_token)

        assert response.status_code == 404
        assert response.get_json()['error'] == messages.CUSTOMER_NOT_FOUND

    def test_invalid_status(self, client, store, cashier_token):
        due_id = ipc(client, 'due-payments:add', {
            'storeId': store.id, 'name': 'Walk-in', 'amount': 10, 'dueDate': '2030-02-01',
        }, token=cashier_token).get_json()['id']

        response = ipc(client, 'due-payments:update', {'storeId': store.id, 'id': due_id, 'status': 'forgiven'},
                       token=cashier_token)

        assert response.status_code == 400

    def test_listing_and_delete(self, client, db_session, store, cashier_token):
        due_id = ipc(client, 'due-payments:add', {
            'storeId': store.id, 'name': 'Walk-in', 'amount': 10, 'dueDate': '2030-02-01',
        }, token=cashier_token).get_json()['id']

        assert len(ipc(client, 'due-payments:get-all', store.id, token=cashier_token).get_json()) == 1
        ipc(client, 'due-payments:delete', {'storeId': store.id, 'id': due_id}, token=cashier_token)

        assert ipc(client, 'due-payments:get-all', store.id, token=cashier_token).get_json() == []
        assert db_session.get(DuePayment, due_id).deleted_at is not None


class TestExpenses:

    def test_add_list_delete(self, client, db_session, store, cashier_token):
        created = ipc(client, 'expenses:add', {'storeId': store.id, 'title': 'Electricity', 'amount': 120},
                      token=cashier_token).get_json()

        assert created['amount'] == '120.00'
        assert [e['title'] for e in ipc(client, 'expenses:get-all', store.id, token=cashier_token).get_json()] == [
            'Electricity'
        ]

        deleted = ipc(client, 'expenses:delete', {'storeId': store.id, 'id': created['id']}, token=cashier_token)
        assert deleted.get_json() is True
        assert db_session.get(Expense, created['id']).deleted_at is not None

    def test_negative_amount(self, client, store, cashier_token):
        response = ipc(client, 'expenses:add', {'storeId': store.id, 'title': 'Refund?', 'amount': -5},
                       token=cashier_token)

        assert response.status_code == 400

    def test_foreign_expense(self, client, db_session, store, other_store, cashier_token):
        foreign = Expense(store_id=other_store.id, title='Theirs', amount=Decimal('9.00'))
        db_session.add(foreign)
        db_session.commit()

        response = ipc(client, 'expenses:delete', {'storeId': store.id, 'id': foreign.id}, token=cashier_token)

        assert response.status_code == 404
        assert response.get_json()['error'] == messages.EXPENSE_NOT_FOUND


class TestRents:

    def test_rent_item_and_rent(self, client, store, cashier_token):
        item = ipc(client, 'rent-items:add', {
            'storeId': store.id, 'name': 'Projector', 'code': 'PRJ-1', 'stock': 2, 'rent3Days': 30,
        }, token=cashier_token)
        rent = ipc(client, 'rents:add', {
            'storeId': store.id, 'name': 'Projector for wedding', 'amount': 30, 'durationDays': 3, 'itemCount': 1,
        }, token=cashier_token)

        assert item.status_code == 200
        assert item.get_json()['code'] == 'PRJ-1'
        assert rent.status_code == 200
        assert rent.get_json()['durationDays'] == 3

        updated = ipc(client, 'rents:update', {'storeId': store.id, 'id': rent.get_json()['id'], 'paid': True},
                      token=cashier_token)
        assert updated.get_json()['paid'] is True

        listed = ipc(client, 'rents:get-all', store.id, token=cashier_token).get_json()
        assert [r['name'] for r in listed] == ['Projector for wedding']

        ipc(client, 'rents:delete', {'storeId': store.id, 'id': rent.get_json()['id']}, token=cashier_token)
        assert ipc(client, 'rents:get-all', store.id, token=cashier_token).get_json() == []

    def test_rent_requires_duration(self, client, store, cashier_token):
        response = ipc(client, 'rents:add', {'storeId': store.id, 'name': 'x', 'amount': 1}, token=cashier_token)

        assert response.status_code == 400

    def test_delete_rent_item(self, client, store, cashier_token):
        item_id = ipc(client, 'rent-items:add', {'storeId': store.id, 'name': 'Tent', 'code': 'T-1'},
                      token=cashier_token).get_json()['id']

        ipc(client, 'rent-items:delete', {'storeId': store.id, 'id': item_id}, token=cashier_token)

        assert ipc(client, 'rent-items:get-all', store.id, token=cashier_token).get_json() == []


class TestStaff:

    def test_store_users_include_merchant_and_cashiers(self, client, merchant, cashier, store, merchant_token):
        rows = ipc(client, 'users:get-all', store.id, token=merchant_token).get_json()

        assert {u['id'] for u in rows} == {merchant.id, cashier.id}

    def test_check_in(self, client, store, cashier, cashier_token):
        response = ipc(client, 'presence:check-in', {
            'storeId': store.id, 'userId': cashier.id, 'lat': '15.3694', 'long': '44.1910',
        }, token=cashier_token)

        assert response.status_code == 200
        body = response.get_json()
        assert body['status'] == 'present'
        assert Decimal(body['lat']) == Decimal('15.3694')

        history = ipc(client, 'presence:get-all', store.id, token=cashier_token).get_json()
        assert [(p['userId'], p['userName']) for p in history] == [(cashier.id, cashier.name)]

    def test_check_in_for_foreign_employee(self, client, db_session, store, other_store, cashier_token):
        stranger = make_user(db_session, email='cashier_b@example.com', role='cashier', store_id=other_store.id)

        response = ipc(client, 'presence:check-in', {'storeId': store.id, 'userId': stranger.id},
                       token=cashier_token)

        assert response.status_code == 404
        assert response.get_json()['error'] == messages.EMPLOYEE_NOT_IN_STORE

    def test_generate_salary_totals_items_minus_deductions(self, client, store, cashier, merchant_token):
        response = ipc(client, 'salaries:generate', {
            'storeId': store.id,
            'userId': cashier.id,
            'period': '2025-06',
            'items': [{'description': 'Base', 'amount': 1500}, {'description': 'Overtime', 'amount': '120.5'}],
            'deductions': [{'description': 'Advance', 'amount': 200}],
        }, token=merchant_token)

        assert response.status_code == 200
        body = response.get_json()
        assert body['total'] == '1420.50'
        assert body['items'][1] == {'description': 'Overtime', 'amount': '120.50'}
        assert body['status'] == 'pending'

        paid = ipc(client, 'salaries:update-status', {'storeId': store.id, 'id': body['id'], 'status': 'paid'},
                   token=merchant_token)
        assert paid.get_json()['status'] == 'paid'

    def test_salary_period_format(self, client, store, cashier, merchant_token):
        response = ipc(client, 'salaries:generate', {'storeId': store.id, 'userId': cashier.id, 'period': '2025-13'},
                       token=merchant_token)

        assert response.status_code == 400

    def test_cashier_cannot_read_salaries(self, client, store, cashier_token):
        response = ipc(client, 'salaries:get-all', store.id, token=cashier_token)

        assert response.status_code == 403


class TestOffers:

    def test_add_list_delete(self, client, store, merchant_token):
        created = ipc(client, 'offers:add', {
            'storeId': store.id,
            'title': 'Eid discount',
            'startDate': '2030-04-01',
            'endDate': '2030-04-10',
        }, token=merchant_token)

        assert created.status_code == 200
        offer_id = created.get_json()['id']
        assert [o['id'] for o in ipc(client, 'offers:get-all', store.id, token=merchant_token).get_json()] == [
            offer_id
        ]

        ipc(client, 'offers:delete', {'storeId': store.id, 'id': offer_id}, token=merchant_token)
        assert ipc(client, 'offers:get-all', store.id, token=merchant_token).get_json() == []

    def test_end_before_start(self, client, store, merchant_token):
        response = ipc(client, 'offers:add', {
            'storeId': store.id,
            'title': 'Backwards',
            'startDate': '2030-04-10',
            'endDate': '2030-04-01',
        }, token=merchant_token)

        assert response.status_code == 400
