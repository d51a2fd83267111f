"""initial ibexpos schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the complete multi-tenant schema:
- currencies, users, stores: tenant roots (users <-> stores is a cycle)
- catalog: categories, products
- customers: global customers plus per-store relations, balances and orders
- sales, due payments, expenses, purchases, rents, HR
- subscriptions and the audit trail
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
MONEY = sa.Numeric(10, 2)

SOFT_DELETE_TABLES = (
    'currencies', 'users', 'stores', 'store_offers', 'requests',
    'categories', 'products', 'customers', 'customer_orders',
    'sales', 'due_payments', 'expenses', 'suppliers', 'purchases',
    'rent_items', 'rents', 'salaries', 'subscription_plans',
)


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.text('CURRENT_TIMESTAMP'))


def _deleted_at():
    return sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True)


def _store_fk(nullable=False):
    return sa.Column('store_id', sa.Integer(), sa.ForeignKey('stores.id'), nullable=nullable)


def upgrade():
    # ============================================================================
    # Tenant roots
    # ============================================================================
    op.create_table(
        'currencies',
        sa.Column('id', sa.String(length=8), nullable=False),
        sa.Column('code', sa.String(length=8), nullable=False),
        sa.Column('symbol', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('exchange_rate', sa.Numeric(10, 4), nullable=False, server_default='1'),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='cashier'),
        sa.Column('store_id', sa.Integer(), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='active'),
        _created_at(),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_store_id', 'users', ['store_id'])

    op.create_table(
        'stores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('merchant_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('subscription_plan', sa.String(length=64), nullable=True, server_default='basic'),
        sa.Column('subscription_status', sa.String(length=32), nullable=True, server_default='pending'),
        sa.Column('subscription_expiry', sa.DateTime(timezone=True), nullable=True),
        sa.Column('bank_accounts', JSON, nullable=True),
        sa.Column('contact_info', JSON, nullable=True),
        sa.Column('settings', JSON, nullable=True),
        sa.Column('currency_id', sa.String(length=8), sa.ForeignKey('currencies.id'), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_stores_merchant_id', 'stores', ['merchant_id'])
    op.create_index('ix_stores_subscription_status', 'stores', ['subscription_status'])

    # SQLite cannot add a constraint to an existing table
    if op.get_bind().dialect.name != 'sqlite':
        op.create_foreign_key('fk_users_store_id', 'users', 'stores', ['store_id'], ['id'])

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        _store_fk(nullable=True),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        _created_at(),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('(user_id IS NULL) <> (customer_id IS NULL)', name='ck_session_tokens_one_principal'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_customer_id', 'session_tokens', ['customer_id'])
    op.create_index('ix_session_tokens_store_id', 'session_tokens', ['store_id'])
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    op.create_table(
        'store_offers',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_store_offers_store_id', 'store_offers', ['store_id'])

    op.create_table(
        'requests',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_requests_store_id', 'requests', ['store_id'])

    # ============================================================================
    # Catalog
    # ============================================================================
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_categories_store_id', 'categories', ['store_id'])
    op.create_index('ix_categories_store_name', 'categories', ['store_id', 'name'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('barcode', sa.String(length=128), nullable=True),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('cost', MONEY, nullable=False, server_default='0'),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id'), nullable=True),
        sa.Column('category', sa.String(length=255), nullable=True),
        sa.Column('show_in_portal', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_products_store_id', 'products', ['store_id'])
    op.create_index('ix_products_category_id', 'products', ['category_id'])
    op.create_index('ix_products_store_barcode', 'products', ['store_id', 'barcode'])

    # ============================================================================
    # Customers
    # ============================================================================
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=16), nullable=False),
        sa.Column('whatsapp', sa.String(length=32), nullable=True),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('registration_status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('allow_credit', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('credit_limit', MONEY, nullable=False, server_default='0'),
        sa.Column('ktp', sa.String(length=64), nullable=True),
        sa.Column('dob', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_customers_phone', 'customers', ['phone'])
    op.create_index('ix_customers_registration_status', 'customers', ['registration_status'])

    if op.get_bind().dialect.name != 'sqlite':
        op.create_foreign_key(
            'fk_session_tokens_customer_id', 'session_tokens', 'customers', ['customer_id'], ['id']
        )

    op.create_table(
        'customer_store_relations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        _store_fk(),
        sa.Column('balance', MONEY, nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='active'),
        sa.Column('registered_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        _created_at(),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('customer_id', 'store_id', name='uq_customer_store_relation'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_customer_store_relations_customer_id', 'customer_store_relations', ['customer_id'])
    op.create_index('ix_customer_store_relations_store_id', 'customer_store_relations', ['store_id'])

    op.create_table(
        'customer_balance_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        _store_fk(),
        sa.Column('bank', sa.String(length=255), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('reference_number', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('approved_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('metadata', JSON, nullable=True),
        _created_at(),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_customer_balance_requests_customer_id', 'customer_balance_requests', ['customer_id'])
    op.create_index('ix_balance_requests_store_status', 'customer_balance_requests', ['store_id', 'status'])

    op.create_table(
        'customer_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        _store_fk(),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('reference', sa.String(length=255), nullable=True),
        sa.Column('metadata', JSON, nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_customer_transactions_store_id', 'customer_transactions', ['store_id'])
    op.create_index('ix_customer_transactions_customer_store', 'customer_transactions',
                    ['customer_id', 'store_id'])

    op.create_table(
        'customer_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        _store_fk(),
        sa.Column('total', MONEY, nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('merchant_notes', sa.Text(), nullable=True),
        sa.Column('approved_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        _created_at(),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_customer_orders_customer_id', 'customer_orders', ['customer_id'])
    op.create_index('ix_customer_orders_store_status', 'customer_orders', ['store_id', 'status'])

    op.create_table(
        'customer_order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('customer_orders.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('total', MONEY, nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_customer_order_items_order_id', 'customer_order_items', ['order_id'])

    # ============================================================================
    # Sales, dues and expenses
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=True),
        sa.Column('total', MONEY, nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=False, server_default='cash'),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('currency_id', sa.String(length=8), sa.ForeignKey('currencies.id'), nullable=True),
        sa.Column('exchange_rate', sa.Numeric(10, 4), nullable=True),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_sales_store_id', 'sales', ['store_id'])
    op.create_index('ix_sales_customer_id', 'sales', ['customer_id'])
    op.create_index('ix_sales_store_created', 'sales', ['store_id', 'created_at'])

    op.create_table(
        'sale_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), sa.ForeignKey('sales.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('total', MONEY, nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_sale_items_sale_id', 'sale_items', ['sale_id'])
    op.create_index('ix_sale_items_product_id', 'sale_items', ['product_id'])

    op.create_table(
        'due_payments',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('invoice', sa.String(length=255), nullable=True),
        sa.Column('item_name', sa.String(length=255), nullable=True),
        sa.Column('item_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='unpaid'),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('date_in', sa.DateTime(timezone=True), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=False),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_due_payments_store_id', 'due_payments', ['store_id'])
    op.create_index('ix_due_payments_store_status', 'due_payments', ['store_id', 'status'])

    op.create_table(
        'expenses',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('amount', MONEY, nullable=False),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_expenses_store_id', 'expenses', ['store_id'])

    # ============================================================================
    # Purchasing
    # ============================================================================
    op.create_table(
        'suppliers',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_suppliers_store_id', 'suppliers', ['store_id'])

    op.create_table(
        'purchases',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(),
        sa.Column('supplier_id', sa.Integer(), sa.ForeignKey('suppliers.id'), nullable=True),
        sa.Column('total', MONEY, nullable=False),
        sa.Column('payment_type', sa.String(length=16), nullable=False, server_default='cash'),
        sa.Column('purchase_date', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('invoice_number', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_purchases_store_id', 'purchases', ['store_id'])
    op.create_index('ix_purchases_store_date', 'purchases', ['store_id', 'purchase_date'])

    op.create_table(
        'purchase_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('purchase_id', sa.Integer(), sa.ForeignKey('purchases.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('cost', MONEY, nullable=False),
        sa.Column('total', MONEY, nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_purchase_items_purchase_id', 'purchase_items', ['purchase_id'])

    # ============================================================================
    # Rentals and HR
    # ============================================================================
    op.create_table(
        'rent_items',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('rent_3_days', MONEY, nullable=False, server_default='0'),
        sa.Column('rent_1_week', MONEY, nullable=False, server_default='0'),
        sa.Column('rent_1_month', MONEY, nullable=False, server_default='0'),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_rent_items_store_id', 'rent_items', ['store_id'])

    op.create_table(
        'rents',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('item_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('penalty', MONEY, nullable=False, server_default='0'),
        sa.Column('identity', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('picture', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('paid', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('duration_days', sa.Integer(), nullable=False),
        sa.Column('rent_date', sa.DateTime(timezone=True), nullable=False),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_rents_store_id', 'rents', ['store_id'])

    op.create_table(
        'presences',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('path', sa.Text(), nullable=True),
        sa.Column('long', sa.Numeric(10, 7), nullable=True),
        sa.Column('lat', sa.Numeric(10, 7), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_presences_user_id', 'presences', ['user_id'])
    op.create_index('ix_presences_store_created', 'presences', ['store_id', 'created_at'])

    op.create_table(
        'salaries',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('period', sa.String(length=7), nullable=False),
        sa.Column('items', JSON, nullable=True),
        sa.Column('deductions', JSON, nullable=True),
        sa.Column('total', MONEY, nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        _created_at(),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_salaries_user_id', 'salaries', ['user_id'])
    op.create_index('ix_salaries_store_period', 'salaries', ['store_id', 'period'])

    # ============================================================================
    # Subscriptions and audit
    # ============================================================================
    op.create_table(
        'subscription_plans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('duration_months', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('features', JSON, nullable=True),
        sa.Column('max_products', sa.Integer(), nullable=True),
        sa.Column('max_users', sa.Integer(), nullable=True),
        sa.Column('max_stores', sa.Integer(), nullable=True, server_default='1'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        _deleted_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )

    op.create_table(
        'subscription_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(),
        sa.Column('plan_id', sa.Integer(), sa.ForeignKey('subscription_plans.id'), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=False),
        sa.Column('payment_reference', sa.String(length=255), nullable=True),
        sa.Column('payment_receipt', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('approved_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('metadata', JSON, nullable=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_subscription_requests_store_id', 'subscription_requests', ['store_id'])
    op.create_index('ix_subscription_requests_status', 'subscription_requests', ['status'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        _store_fk(nullable=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity_type', sa.String(length=64), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('old_value', JSON, nullable=True),
        sa.Column('new_value', JSON, nullable=True),
        sa.Column('metadata', JSON, nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'])
    op.create_index('ix_audit_logs_store_created', 'audit_logs', ['store_id', 'created_at'])

    # Soft-delete filter column on every table that carries it
    for table in SOFT_DELETE_TABLES:
        op.create_index(f'ix_{table}_deleted_at', table, ['deleted_at'])


def downgrade():
    for table in (
        'audit_logs', 'subscription_requests', 'subscription_plans',
        'salaries', 'presences', 'rents', 'rent_items',
        'purchase_items', 'purchases', 'suppliers',
        'expenses', 'due_payments', 'sale_items', 'sales',
        'customer_order_items', 'customer_orders', 'customer_transactions',
        'customer_balance_requests', 'customer_store_relations',
    ):
        op.drop_table(table)

    if op.get_bind().dialect.name != 'sqlite':
        op.drop_constraint('fk_session_tokens_customer_id', 'session_tokens', type_='foreignkey')
        op.drop_constraint('fk_users_store_id', 'users', type_='foreignkey')

    for table in (
        'customers', 'products', 'categories', 'requests', 'store_offers',
        'session_tokens', 'stores', 'users', 'currencies',
    ):
        op.drop_table(table)
