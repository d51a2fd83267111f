# Overview: Pytest coverage for deposit requests and their approval.

from decimal import Decimal

from ibexpos import messages
from ibexpos.models import AuditLog, CustomerBalanceRequest, CustomerStoreRelation, CustomerTransaction
from tests.conftest import ipc, token_for


def _request_deposit(client, customer, store, customer_token, amount=50):
    return ipc(client, 'customer-portal:request-balance', {
        'customerId': customer.id,
        'storeId': store.id,
        'amount': amount,
        'bank': 'Al Kuraimi',
        'referenceNumber': 'TRX-1001',
        'receiptImage': 'data:image/png;base64,AAAA',
    }, token=customer_token)


def test_customer_can_request_deposit(client, db_session, store, customer, customer_token):
    response = _request_deposit(client, customer, store, customer_token)

    assert response.status_code == 200
    body = response.get_json()
    assert body['status'] == 'pending'
    assert body['amount'] == '50.00'
    assert body['metadata'] == {'receiptImage': 'data:image/png;base64,AAAA'}


def test_deposit_amount_must_be_positive(client, store, customer, customer_token):
    response = _request_deposit(client, customer, store, customer_token, amount=0)

    assert response.status_code == 400
    assert response.get_json()['error'] == messages.AMOUNT_INVALID


def test_approve_credits_balance_and_writes_ledger(
    client, db_session, merchant, store, customer, customer_token, merchant_token
):
    request_id = _request_deposit(client, customer, store, customer_token).get_json()['id']

    # A forged approver id in the payload is ignored
    response = ipc(client, 'customer-balance:approve', {'requestId': request_id, 'approvedBy': 999},
                   token=merchant_token)

    assert response.status_code == 200
    assert response.get_json() == {'success': True}

    relation = db_session.query(CustomerStoreRelation).filter_by(customer_id=customer.id, store_id=store.id).one()
    assert relation.balance == Decimal('150.00')

    req = db_session.get(CustomerBalanceRequest, request_id)
    assert req.status == 'approved'
    assert req.approved_by == merchant.id
    assert req.approved_at is not None

    tx = db_session.query(CustomerTransaction).one()
    assert tx.type == 'deposit'
    assert tx.amount == Decimal('50.00')
    assert tx.reference == 'TRX-1001'
    assert tx.metadata_json['receiptImage'] == 'data:image/png;base64,AAAA'

    audit = db_session.query(AuditLog).filter_by(action='balance_change').one()
    assert audit.old_value == {'balance': '100.00'}
    assert audit.new_value == {'balance': '150.00'}


def test_request_cannot_be_approved_twice(client, db_session, store, customer, customer_token, merchant_token):
    request_id = _request_deposit(client, customer, store, customer_token).get_json()['id']
    ipc(client, 'customer-balance:approve', {'requestId': request_id}, token=merchant_token)

    response = ipc(client, 'customer-balance:approve', {'requestId': request_id}, token=merchant_token)

    assert response.status_code == 400
    assert response.get_json()['error'] == messages.REQUEST_ALREADY_PROCESSED
    relation = db_session.query(CustomerStoreRelation).filter_by(customer_id=customer.id, store_id=store.id).one()
    assert relation.balance == Decimal('150.00')


def test_deposit_for_removed_customer_is_not_credited(
    client, db_session, store, customer, customer_token, merchant_token
):
    request_id = _request_deposit(client, customer, store, customer_token).get_json()['id']
    relation = db_session.query(CustomerStoreRelation).filter_by(customer_id=customer.id, store_id=store.id).one()
    relation.status = 'removed'
    db_session.commit()

    response = ipc(client, 'customer-balance:approve', {'requestId': request_id}, token=merchant_token)

    assert response.status_code == 400
    assert response.get_json()['error'] == messages.RELATION_NOT_FOUND
    db_session.expire_all()
    assert db_session.get(CustomerBalanceRequest, request_id).status == 'pending'
    assert relation.balance == Decimal('100.00')
    assert db_session.query(CustomerTransaction).count() == 0


def test_foreign_merchant_cannot_approve(
    client, db_session, store, other_merchant, other_store, customer, customer_token
):
    request_id = _request_deposit(client, customer, store, customer_token).get_json()['id']

    response = ipc(client, 'customer-balance:approve', {'requestId': request_id},
                   token=token_for(other_merchant))

    assert response.status_code == 404
    assert response.get_json()['error'] == messages.BALANCE_REQUEST_NOT_FOUND
    assert db_session.get(CustomerBalanceRequest, request_id).status == 'pending'


def test_reject_leaves_balance_alone(client, db_session, store, customer, customer_token, merchant_token):
    request_id = _request_deposit(client, customer, store, customer_token).get_json()['id']

    response = ipc(client, 'customer-balance:reject', request_id, token=merchant_token)

    assert response.status_code == 200
    assert response.get_json() is True
    assert db_session.get(CustomerBalanceRequest, request_id).status == 'rejected'
    relation = db_session.query(CustomerStoreRelation).filter_by(customer_id=customer.id, store_id=store.id).one()
    assert relation.balance == Decimal('100.00')
    assert db_session.query(CustomerTransaction).count() == 0


def test_pending_count_and_listing(client, store, customer, customer_token, merchant_token):
    _request_deposit(client, customer, store, customer_token)
    _request_deposit(client, customer, store, customer_token, amount=20)

    count = ipc(client, 'customer-balance:get-pending-count', store.id, token=merchant_token)
    listing = ipc(client, 'customer-balance:get-requests', store.id, token=merchant_token)

    assert count.get_json() == 2
    rows = listing.get_json()
    assert len(rows) == 2
    assert rows[0]['customerPhone'] == customer.phone
