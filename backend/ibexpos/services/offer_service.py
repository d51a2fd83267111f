from __future__ import annotations

from .. import messages
from ..extensions import db
from ..models import StoreOffer
from ..validation import ModelValidationPolicy, ValidationError, apply_patch, validate_payload
from .concurrency import run_with_retry
from .errors import NotFoundError
from .tenant_service import scoped_query

OFFER_POLICY = ModelValidationPolicy(
    writable_fields={"title", "description", "image_url", "start_date", "end_date", "active"},
    required_on_create={"title", "start_date", "end_date"},
)


def list_offers(store_id: int) -> list[StoreOffer]:
    return scoped_query(StoreOffer, store_id).order_by(StoreOffer.created_at.desc(), StoreOffer.id.desc()).all()


def add_offer(store_id: int, data: dict) -> StoreOffer:
    def _op():
        patch = validate_payload(model=StoreOffer, payload=data, policy=OFFER_POLICY, partial=False)
        if patch["end_date"] < patch["start_date"]:
            raise ValidationError("تاريخ نهاية العرض يجب أن يكون بعد تاريخ البداية")
        offer = StoreOffer(store_id=store_id, active=True)
        apply_patch(offer, patch)
        db.session.add(offer)
        db.session.commit()
        return offer

    return run_with_retry(_op)


def delete_offer(store_id: int, offer_id: int) -> bool:
    def _op():
        offer = scoped_query(StoreOffer, store_id).filter(StoreOffer.id == offer_id).first()
        if not offer:
            raise NotFoundError(messages.OFFER_NOT_FOUND)
        offer.soft_delete()
        db.session.commit()
        return True

    return run_with_retry(_op)
