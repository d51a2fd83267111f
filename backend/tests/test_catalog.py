# Overview: Pytest coverage for categories and inventory channels.

from decimal import Decimal

from ibexpos import messages
from ibexpos.models import AuditLog, Category, Product
from tests.conftest import ipc


def _add_category(client, store, token, name):
    return ipc(client, 'categories:add', {'storeId': store.id, 'name': name}, token=token)


class TestCategories:

    def test_add_and_list(self, client, store, merchant_token):
        _add_category(client, store, merchant_token, 'Grains')
        _add_category(client, store, merchant_token, 'Beverages')

        response = ipc(client, 'categories:get-all', store.id, token=merchant_token)

        assert [c['name'] for c in response.get_json()] == ['Beverages', 'Grains']

    def test_duplicate_name_ignores_case(self, client, store, merchant_token):
        _add_category(client, store, merchant_token, 'Grains')

        response = _add_category(client, store, merchant_token, '  grains ')

        assert response.status_code == 409
        assert response.get_json()['error'] == messages.CATEGORY_EXISTS

    def test_same_name_allowed_in_another_store(self, client, store, other_store, other_merchant, merchant_token):
        from tests.conftest import token_for
        _add_category(client, store, merchant_token, 'Grains')

        response = _add_category(client, other_store, token_for(other_merchant), 'Grains')

        assert response.status_code == 200

    def test_blank_name(self, client, store, merchant_token):
        response = _add_category(client, store, merchant_token, '   ')

        assert response.status_code == 400
        assert response.get_json()['error'] == messages.CATEGORY_NAME_REQUIRED

    def test_rename_checks_uniqueness(self, client, store, merchant_token):
        _add_category(client, store, merchant_token, 'Grains')
        drinks = _add_category(client, store, merchant_token, 'Drinks').get_json()

        clash = ipc(client, 'categories:update', {'storeId': store.id, 'id': drinks['id'], 'name': 'GRAINS'},
                    token=merchant_token)
        renamed = ipc(client, 'categories:update', {'storeId': store.id, 'id': drinks['id'], 'name': 'Juices'},
                      token=merchant_token)

        assert clash.status_code == 409
        assert renamed.get_json()['name'] == 'Juices'

    def test_category_in_use_cannot_be_deleted(self, client, db_session, store, product, merchant_token):
        category = _add_category(client, store, merchant_token, 'Grains').get_json()
        product.category_id = category['id']
        db_session.commit()

        response = ipc(client, 'categories:delete', {'storeId': store.id, 'id': category['id']},
                       token=merchant_token)

        assert response.status_code == 409
        assert response.get_json()['error'] == messages.CATEGORY_IN_USE
        assert db_session.get(Category, category['id']).deleted_at is None

    def test_delete_unused_category(self, client, db_session, store, merchant_token):
        category = _add_category(client, store, merchant_token, 'Seasonal').get_json()

        response = ipc(client, 'categories:delete', {'storeId': store.id, 'id': category['id']},
                       token=merchant_token)

        assert response.get_json() is True
        assert db_session.get(Category, category['id']).deleted_at is not None
        # The name is free again
        assert _add_category(client, store, merchant_token, 'Seasonal').status_code == 200


class TestInventory:

    def test_add_product(self, client, store, cashier_token):
        response = ipc(client, 'inventory:add', {
            'storeId': store.id,
            'name': 'Tea 100 bags',
            'price': '12.5',
            'cost': 8,
            'stock': 40,
            'barcode': '6281000000017',
            'showInPortal': False,
        }, token=cashier_token)

        assert response.status_code == 200
        body = response.get_json()
        assert body['storeId'] == store.id
        assert body['price'] == '12.50'
        assert body['cost'] == '8.00'
        assert body['showInPortal'] is False

    def test_client_store_id_inside_product_is_ignored(
        self, client, db_session, store, other_store, cashier_token
    ):
        response = ipc(client, 'inventory:add', {
            'storeId': store.id,
            'name': 'Salt',
            'price': 1,
            'store_id': other_store.id,
        }, token=cashier_token)

        product = db_session.get(Product, response.get_json()['id'])
        assert product.store_id == store.id

    def test_missing_required_fields(self, client, store, cashier_token):
        response = ipc(client, 'inventory:add', {'storeId': store.id, 'name': 'No price'}, token=cashier_token)

        assert response.status_code == 400
        assert 'price' in response.get_json()['error']

    def test_negative_stock_rejected(self, client, store, cashier_token):
        response = ipc(client, 'inventory:add', {'storeId': store.id, 'name': 'Bad', 'price': 1, 'stock': -3},
                       token=cashier_token)

        assert response.status_code == 400

    def test_unknown_category_rejected(self, client, store, cashier_token):
        response = ipc(client, 'inventory:add', {'storeId': store.id, 'name': 'Bad', 'price': 1, 'categoryId': 999},
                       token=cashier_token)

        assert response.status_code == 404
        assert response.get_json()['error'] == messages.CATEGORY_NOT_FOUND

    def test_import_is_all_or_nothing(self, client, db_session, store, cashier_token):
        response = ipc(client, 'inventory:import', {
            'storeId': store.id,
            'items': [
                {'name': 'Lentils', 'price': 4},
                {'name': 'Beans', 'price': 3},
                {'name': 'Broken'},
            ],
        }, token=cashier_token)

        assert response.status_code == 400
        assert response.get_json()['error'].startswith('السطر 3:')
        assert db_session.query(Product).count() == 0

    def test_import_returns_count(self, client, db_session, store, cashier_token):
        response = ipc(client, 'inventory:import', {
            'storeId': store.id,
            'items': [{'name': 'Lentils', 'price': 4, 'stock': 10}, {'name': 'Beans', 'price': 3}],
        }, token=cashier_token)

        assert response.get_json() == 2
        assert {p.store_id for p in db_session.query(Product)} == {store.id}

    def test_price_change_is_audited(self, client, db_session, store, product, merchant, merchant_token):
        response = ipc(client, 'inventory:update', {'storeId': store.id, 'id': product.id, 'price': '11.25'},
                       token=merchant_token)

        assert response.get_json()['price'] == '11.25'
        audit = db_session.query(AuditLog).filter_by(action='price_update').one()
        assert audit.user_id == merchant.id
        assert audit.entity_id == product.id
        assert audit.old_value == {'price': '10.00'}
        assert audit.new_value == {'price': '11.25'}

    def test_stock_only_update_is_not_audited(self, client, db_session, store, product, merchant_token):
        ipc(client, 'inventory:update', {'storeId': store.id, 'id': product.id, 'stock': 50}, token=merchant_token)

        assert db_session.get(Product, product.id).stock == 50
        assert db_session.query(AuditLog).filter_by(action='price_update').count() == 0

    def test_delete_is_soft(self, client, db_session, store, product, merchant_token):
        response = ipc(client, 'inventory:delete', {'storeId': store.id, 'id': product.id}, token=merchant_token)

        assert response.get_json() is True
        assert db_session.get(Product, product.id).deleted_at is not None
        listing = ipc(client, 'inventory:get-all', store.id, token=merchant_token).get_json()
        assert listing == []

    def test_deleted_product_cannot_be_sold(self, client, db_session, store, product, cashier_token):
        product.soft_delete()
        db_session.commit()

        response = ipc(client, 'sales:create', {'storeId': store.id, 'items': [{'id': product.id, 'quantity': 1}]},
                       token=cashier_token)

        assert response.status_code == 404
        assert db_session.get(Product, product.id).stock == 20
        assert db_session.get(Product, product.id).price == Decimal('10.00')
