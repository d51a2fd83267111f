"""
Balance Service: customer deposit requests and the balance ledger.

A deposit only reaches the balance through approve_request(), which credits
the relation, settles the request and writes the ledger row in one commit.
"""

from __future__ import annotations

import logging

from sqlalchemy import func

from .. import messages
from ..extensions import db
from ..models import Customer, CustomerBalanceRequest, CustomerStoreRelation, CustomerTransaction
from ..money import money_str, quantize_money
from ..time_utils import utcnow
from . import audit_service
from .concurrency import lock_for_update, run_with_retry
from .customer_service import RELATION_REMOVED
from .errors import NotFoundError, ServiceError

logger = logging.getLogger(__name__)

TX_INVOICE = "invoice"
TX_DEPOSIT = "deposit"
TX_DUE_PAYMENT = "due_payment"
TX_REFUND = "refund"


class BalanceError(ServiceError):
    """Raised for balance request errors."""


def record_transaction(
    *,
    customer_id: int,
    store_id: int,
    type: str,
    amount,
    reference: str | None = None,
    metadata: dict | None = None,
) -> CustomerTransaction:
    """Append a ledger row to the current transaction (caller commits)."""
    tx = CustomerTransaction(
        customer_id=customer_id,
        store_id=store_id,
        type=type,
        amount=quantize_money(amount),
        reference=reference,
        metadata_json=metadata,
    )
    db.session.add(tx)
    return tx


def list_requests(store_id: int) -> list[dict]:
    rows = (
        db.session.query(CustomerBalanceRequest, Customer)
        .outerjoin(Customer, Customer.id == CustomerBalanceRequest.customer_id)
        .filter(CustomerBalanceRequest.store_id == store_id)
        .order_by(CustomerBalanceRequest.created_at.desc(), CustomerBalanceRequest.id.desc())
        .all()
    )
    result = []
    for req, customer in rows:
        data = req.to_dict()
        data["customerName"] = customer.name if customer is not None else None
        data["customerPhone"] = customer.phone if customer is not None else None
        result.append(data)
    return result


def _get_request(request_id: int, store_ids: set[int] | None, *, for_update: bool = False) -> CustomerBalanceRequest:
    query = db.session.query(CustomerBalanceRequest).filter(CustomerBalanceRequest.id == request_id)
    if store_ids is not None:
        query = query.filter(CustomerBalanceRequest.store_id.in_(store_ids or {-1}))
    if for_update:
        query = lock_for_update(query)
    req = query.first()
    if not req:
        raise NotFoundError(messages.BALANCE_REQUEST_NOT_FOUND)
    return req


def approve_request(request_id: int, *, approved_by: int, store_ids: set[int] | None) -> dict:
    """
    Credit an approved deposit to the customer's balance at that store.

    store_ids is the approver's accessible set (None for platform admins);
    requests outside it look missing.
    """
    def _op():
        req = _get_request(request_id, store_ids, for_update=True)
        if req.status != "pending":
            raise BalanceError(messages.REQUEST_ALREADY_PROCESSED)

        relation = lock_for_update(
            db.session.query(CustomerStoreRelation).filter(
                CustomerStoreRelation.customer_id == req.customer_id,
                CustomerStoreRelation.store_id == req.store_id,
                CustomerStoreRelation.status != RELATION_REMOVED,
            )
        ).first()
        if not relation:
            raise BalanceError(messages.RELATION_NOT_FOUND)

        old_balance = relation.balance
        relation.balance = quantize_money(relation.balance + req.amount)

        req.status = "approved"
        req.approved_by = approved_by
        req.approved_at = utcnow()

        record_transaction(
            customer_id=req.customer_id,
            store_id=req.store_id,
            type=TX_DEPOSIT,
            amount=req.amount,
            reference=req.reference_number,
            metadata={
                "bank": req.bank,
                "requestId": req.id,
                "referenceNumber": req.reference_number,
                "receiptImage": (req.metadata_json or {}).get("receiptImage"),
            },
        )
        audit_service.log_event(
            user_id=approved_by,
            action="balance_change",
            entity_type="customer",
            entity_id=req.customer_id,
            store_id=req.store_id,
            description=f"Deposit request {req.id} approved",
            old_value={"balance": money_str(old_balance)},
            new_value={"balance": money_str(relation.balance)},
        )

        db.session.commit()
        logger.info("Balance request %s approved: customer %s +%s", req.id, req.customer_id, req.amount)
        return {"success": True}

    return run_with_retry(_op)


def reject_request(request_id: int, *, store_ids: set[int] | None) -> bool:
    def _op():
        req = _get_request(request_id, store_ids, for_update=True)
        if req.status != "pending":
            raise BalanceError(messages.REQUEST_ALREADY_PROCESSED)
        req.status = "rejected"
        db.session.commit()
        return True

    return run_with_retry(_op)


def pending_count(store_id: int) -> int:
    return (
        db.session.query(func.count(CustomerBalanceRequest.id))
        .filter(CustomerBalanceRequest.store_id == store_id, CustomerBalanceRequest.status == "pending")
        .scalar()
        or 0
    )
