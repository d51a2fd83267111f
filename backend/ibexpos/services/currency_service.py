# Overview: Currency catalog and conversion through the base currency (SAR).

from __future__ import annotations

import logging
from decimal import Decimal

from .. import messages
from ..extensions import db
from ..models import Currency, Store
from ..money import quantize_money, quantize_rate, to_decimal
from .errors import NotFoundError

logger = logging.getLogger(__name__)

BASE_CURRENCY = "SAR"

DEFAULT_CURRENCIES = (
    {"id": "SAR", "code": "SAR", "symbol": "ر.س", "name": "ريال سعودي", "exchange_rate": Decimal("1")},
    {"id": "YER", "code": "YER", "symbol": "ر.ي", "name": "ريال يمني", "exchange_rate": Decimal("140")},
    {"id": "USD", "code": "USD", "symbol": "$", "name": "دولار أمريكي", "exchange_rate": Decimal("0.2667")},
)


def list_currencies() -> list[Currency]:
    return db.session.query(Currency).filter(Currency.alive()).order_by(Currency.id).all()


def get_currency(currency_id: str) -> Currency:
    currency = (
        db.session.query(Currency)
        .filter(Currency.id == str(currency_id or "").upper(), Currency.alive())
        .first()
    )
    if not currency:
        raise NotFoundError(messages.CURRENCY_NOT_FOUND)
    return currency


def get_store_currency(store: Store) -> Currency:
    """Store column first, then settings.currencyId, then the base currency."""
    currency_id = store.currency_id or (store.settings or {}).get("currencyId") or BASE_CURRENCY
    return get_currency(currency_id)


def convert(amount, from_currency: str, to_currency: str) -> dict:
    """
    amount / from_rate gives the base amount; base * to_rate is the result.

    Result is rounded to cents, the effective rate to four places.
    """
    value = to_decimal(amount, "amount")
    source = get_currency(from_currency)
    target = get_currency(to_currency)

    from_rate = Decimal(source.exchange_rate)
    to_rate = Decimal(target.exchange_rate)
    converted = value / from_rate * to_rate

    return {
        "amount": float(quantize_money(converted)),
        "rate": float(quantize_rate(to_rate / from_rate)),
        "fromCurrency": source.id,
        "toCurrency": target.id,
    }


def seed_currencies() -> int:
    """Insert missing default currencies; existing rows keep their rates."""
    created = 0
    for row in DEFAULT_CURRENCIES:
        if db.session.get(Currency, row["id"]) is None:
            db.session.add(Currency(**row))
            created += 1
    if created:
        db.session.commit()
        logger.info("Seeded %d currencies", created)
    return created
