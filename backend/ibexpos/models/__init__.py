from .tenancy import Currency, Store, StoreOffer, GeneralRequest
from .auth import User, SessionToken
from .catalog import Category, Product
from .customers import (
    Customer, CustomerStoreRelation, CustomerBalanceRequest, CustomerTransaction,
    CustomerOrder, CustomerOrderItem,
)
from .sales import Sale, SaleItem, DuePayment, Expense
from .purchasing import Supplier, Purchase, PurchaseItem
from .rentals import RentItem, Rent
from .hr import Presence, Salary
from .subscriptions import SubscriptionPlan, SubscriptionRequest
from .audit import AuditLog, AppliedSqlMigration

__all__ = [
    'Currency', 'Store', 'StoreOffer', 'GeneralRequest',
    'User', 'SessionToken',
    'Category', 'Product',
    'Customer', 'CustomerStoreRelation', 'CustomerBalanceRequest', 'CustomerTransaction',
    'CustomerOrder', 'CustomerOrderItem',
    'Sale', 'SaleItem', 'DuePayment', 'Expense',
    'Supplier', 'Purchase', 'PurchaseItem',
    'RentItem', 'Rent',
    'Presence', 'Salary',
    'SubscriptionPlan', 'SubscriptionRequest',
    'AuditLog', 'AppliedSqlMigration',
]
