from __future__ import annotations

from .. import messages
from ..extensions import db
from ..models import Rent, RentItem
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, apply_patch, validate_payload
from .concurrency import run_with_retry
from .errors import NotFoundError
from .tenant_service import scoped_query

RENT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "item_count", "note", "amount", "penalty", "identity", "picture", "paid",
        "duration_days", "rent_date",
    },
    required_on_create={"name", "amount", "duration_days"},
    non_negative={"item_count", "amount", "penalty", "duration_days"},
)

RENT_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"name", "code", "note", "stock", "rent_3_days", "rent_1_week", "rent_1_month"},
    required_on_create={"name", "code"},
    non_negative={"stock", "rent_3_days", "rent_1_week", "rent_1_month"},
)


def list_rents(store_id: int) -> list[Rent]:
    return scoped_query(Rent, store_id).order_by(Rent.created_at.desc(), Rent.id.desc()).all()


def get_rent(store_id: int, rent_id: int) -> Rent:
    rent = scoped_query(Rent, store_id).filter(Rent.id == rent_id).first()
    if not rent:
        raise NotFoundError(messages.RENT_NOT_FOUND)
    return rent


def add_rent(store_id: int, data: dict) -> Rent:
    def _op():
        patch = validate_payload(model=Rent, payload=data, policy=RENT_POLICY, partial=False)
        rent = Rent(store_id=store_id, rent_date=utcnow())
        apply_patch(rent, patch)
        db.session.add(rent)
        db.session.commit()
        return rent

    return run_with_retry(_op)


def update_rent(store_id: int, rent_id: int, data: dict) -> Rent:
    def _op():
        rent = get_rent(store_id, rent_id)
        patch = validate_payload(model=Rent, payload=data, policy=RENT_POLICY, partial=True)
        apply_patch(rent, patch)
        db.session.commit()
        return rent

    return run_with_retry(_op)


def delete_rent(store_id: int, rent_id: int) -> bool:
    def _op():
        get_rent(store_id, rent_id).soft_delete()
        db.session.commit()
        return True

    return run_with_retry(_op)


def list_rent_items(store_id: int) -> list[RentItem]:
    return scoped_query(RentItem, store_id).order_by(RentItem.created_at.desc(), RentItem.id.desc()).all()


def add_rent_item(store_id: int, data: dict) -> RentItem:
    def _op():
        patch = validate_payload(model=RentItem, payload=data, policy=RENT_ITEM_POLICY, partial=False)
        item = RentItem(store_id=store_id)
        apply_patch(item, patch)
        db.session.add(item)
        db.session.commit()
        return item

    return run_with_retry(_op)


def delete_rent_item(store_id: int, item_id: int) -> bool:
    def _op():
        item = scoped_query(RentItem, store_id).filter(RentItem.id == item_id).first()
        if not item:
            raise NotFoundError(messages.RENT_ITEM_NOT_FOUND)
        item.soft_delete()
        db.session.commit()
        return True

    return run_with_retry(_op)
