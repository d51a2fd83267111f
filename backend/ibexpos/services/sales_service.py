"""
Sales Service: POS checkout.

create_sale() is a single unit of work: stock is validated and decremented,
the customer balance is debited, the sale and its lines are written, and the
ledger / due-payment rows are appended. Any failure rolls all of it back.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal

from .. import messages
from ..extensions import db
from ..models import CustomerStoreRelation, DuePayment, Product, Sale, SaleItem
from ..models.sales import (
    CUSTOMER_PAYMENT_METHODS,
    PAYMENT_CREDIT,
    PAYMENT_CUSTOMER_BALANCE,
    PAYMENT_METHODS,
    PAYMENT_MIXED,
)
from ..money import ZERO, as_number, quantize_money, quantize_rate, to_decimal
from ..time_utils import utcnow
from ..validation import ValidationError, optional_int, require_positive_int
from . import audit_service
from .balance_service import TX_INVOICE, record_transaction
from .concurrency import lock_for_update, run_with_retry
from .customer_service import RELATION_ACTIVE, RELATION_REMOVED
from .errors import NotFoundError, ServiceError
from .tenant_service import scoped_query

logger = logging.getLogger(__name__)

CREDIT_DUE_DAYS = 30
MIXED_DEFAULT_SHARE = Decimal("0.5")


class SaleError(ServiceError):
    """Raised for sale operation errors."""


def _parse_items(items) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise ValidationError(messages.ITEMS_REQUIRED)
    lines = []
    for raw in items:
        if not isinstance(raw, dict):
            raise ValidationError(messages.ITEMS_REQUIRED)
        price = raw.get("price")
        price = to_decimal(price, "price") if price is not None else None
        if price is not None and price < 0:
            raise ValidationError("price لا يمكن أن يكون سالباً")
        lines.append({
            "product_id": require_positive_int(raw.get("id", raw.get("productId")), "id"),
            "quantity": require_positive_int(raw.get("quantity"), "quantity"),
            "price": price,
        })
    return lines


def _balance_to_use(payment_method: str, total: Decimal, balance_amount) -> Decimal:
    if payment_method == PAYMENT_CUSTOMER_BALANCE:
        return total
    if payment_method == PAYMENT_MIXED:
        if balance_amount is None:
            return quantize_money(total * MIXED_DEFAULT_SHARE)
        requested = to_decimal(balance_amount, "balanceAmount")
        if requested < 0:
            raise ValidationError("balanceAmount لا يمكن أن يكون سالباً")
        return quantize_money(min(requested, total))
    return ZERO


def create_sale(store_id: int, data: dict, *, user_id: int) -> dict:
    """
    Ring up a sale.

    Payload: items[{id, quantity, price?}], total?, paymentMethod,
    customerId?, currencyId?, exchangeRate?, balanceAmount?

    Returns {"saleId", "success", "balanceUsed"}.
    """
    data = data or {}
    lines = _parse_items(data.get("items"))

    payment_method = data.get("paymentMethod") or "cash"
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(messages.PAYMENT_METHOD_INVALID)

    customer_id = optional_int(data.get("customerId"), "customerId")
    if payment_method in CUSTOMER_PAYMENT_METHODS and customer_id is None:
        raise SaleError(messages.CUSTOMER_NOT_ACTIVE_IN_STORE)

    client_total = data.get("total")
    client_total = quantize_money(to_decimal(client_total, "total")) if client_total is not None else None
    if client_total is not None and client_total < 0:
        raise ValidationError("total لا يمكن أن يكون سالباً")

    exchange_rate = data.get("exchangeRate")
    exchange_rate = quantize_rate(to_decimal(exchange_rate, "exchangeRate")) if exchange_rate else None

    def _op():
        # 1. Products: exist in this store, enough stock for the aggregated quantity
        requested: dict[int, int] = {}
        for line in lines:
            requested[line["product_id"]] = requested.get(line["product_id"], 0) + line["quantity"]

        products: dict[int, Product] = {}
        for product_id in sorted(requested):
            product = lock_for_update(
                scoped_query(Product, store_id).filter(Product.id == product_id)
            ).first()
            if not product:
                raise NotFoundError(messages.PRODUCT_NOT_IN_STORE.format(product_id=product_id))
            if product.stock < requested[product_id]:
                raise SaleError(messages.STOCK_INSUFFICIENT.format(
                    name=product.name,
                    available=product.stock,
                    requested=requested[product_id],
                ))
            products[product_id] = product

        for line in lines:
            if line["price"] is None:
                line["price"] = products[line["product_id"]].price
            line["total"] = quantize_money(line["price"] * line["quantity"])

        total = client_total if client_total is not None else quantize_money(sum(line["total"] for line in lines))

        # 2-3. Customer relation and balance debit
        balance_used = ZERO
        relation = None
        if payment_method in CUSTOMER_PAYMENT_METHODS:
            relation = lock_for_update(
                db.session.query(CustomerStoreRelation).filter(
                    CustomerStoreRelation.customer_id == customer_id,
                    CustomerStoreRelation.store_id == store_id,
                    CustomerStoreRelation.status == RELATION_ACTIVE,
                )
            ).first()
            if not relation:
                raise SaleError(messages.CUSTOMER_NOT_ACTIVE_IN_STORE)

            balance_used = _balance_to_use(payment_method, total, data.get("balanceAmount"))
            if balance_used > 0:
                available = quantize_money(relation.balance)
                if available < balance_used:
                    raise SaleError(messages.BALANCE_INSUFFICIENT.format(
                        available=f"{available:.2f}",
                        requested=f"{balance_used:.2f}",
                    ))
                relation.balance = available - balance_used
        elif customer_id is not None:
            # A cash sale may name a customer, but only one linked to this store
            linked = db.session.query(CustomerStoreRelation.id).filter(
                CustomerStoreRelation.customer_id == customer_id,
                CustomerStoreRelation.store_id == store_id,
                CustomerStoreRelation.status != RELATION_REMOVED,
            ).first()
            if linked is None:
                raise SaleError(messages.CUSTOMER_NOT_ACTIVE_IN_STORE)

        # 4. Sale header
        sale = Sale(
            store_id=store_id,
            customer_id=customer_id,
            total=total,
            payment_method=payment_method,
            user_id=user_id,
            currency_id=data.get("currencyId") or None,
            exchange_rate=exchange_rate,
        )
        db.session.add(sale)
        db.session.flush()

        # 5. Lines and stock
        for line in lines:
            db.session.add(SaleItem(
                sale_id=sale.id,
                product_id=line["product_id"],
                quantity=line["quantity"],
                price=line["price"],
                total=line["total"],
            ))
        for product_id, quantity in requested.items():
            products[product_id].stock -= quantity

        reference = f"SALE-{sale.id}"

        # 6. Ledger
        if balance_used > 0:
            record_transaction(
                customer_id=customer_id,
                store_id=store_id,
                type=TX_INVOICE,
                amount=balance_used,
                reference=reference,
                metadata={
                    "saleId": sale.id,
                    "paymentMethod": payment_method,
                    "totalAmount": str(total),
                    "cashAmount": str(total - balance_used),
                    "balanceAmount": str(balance_used),
                },
            )

        # 7. Credit sales become a receivable
        if payment_method == PAYMENT_CREDIT:
            now = utcnow()
            db.session.add(DuePayment(
                store_id=store_id,
                customer_id=customer_id,
                name=messages.CREDIT_SALE_DUE_NAME.format(sale_id=sale.id),
                invoice=reference,
                item_name=messages.CREDIT_SALE_ITEM_NAME,
                item_amount=len(lines),
                amount=total,
                status="unpaid",
                date_in=now,
                due_date=now + timedelta(days=CREDIT_DUE_DAYS),
                note=f"فاتورة بيع آجل للعميل {customer_id}",
            ))

        # 8. Audit
        audit_service.log_event(
            user_id=user_id,
            action="sale_create",
            entity_type="sale",
            entity_id=sale.id,
            store_id=store_id,
            new_value={
                "total": str(total),
                "paymentMethod": payment_method,
                "balanceUsed": str(balance_used),
                "customerId": customer_id,
            },
        )

        db.session.commit()
        logger.info("Sale %s posted: store=%s total=%s method=%s", sale.id, store_id, total, payment_method)
        return {"saleId": sale.id, "success": True, "balanceUsed": as_number(balance_used)}

    return run_with_retry(_op)


def list_sales(store_id: int) -> list[Sale]:
    return scoped_query(Sale, store_id).order_by(Sale.created_at.desc(), Sale.id.desc()).all()


def get_sale(store_id: int, sale_id: int) -> Sale:
    sale = scoped_query(Sale, store_id).filter(Sale.id == sale_id).first()
    if not sale:
        raise NotFoundError(messages.SALE_NOT_FOUND)
    return sale
