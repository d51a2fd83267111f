from __future__ import annotations
from datetime import datetime
from decimal import Decimal, InvalidOperation
import re

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text, DateTime, JSON
from sqlalchemy.orm import DeclarativeMeta

from . import messages
from .services.errors import ServiceError
from .time_utils import parse_iso_datetime


# Largest value a Numeric(10, 2) column holds
MAX_MONEY = Decimal("99999999.99")

PHONE_DIGITS = 9
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
INT_RE = re.compile(r"-?\d+")
TRUTHY = {"1", "true", "yes", "on"}


class ValidationError(ServiceError, ValueError):
    """Bad input from a client; answered with 400."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    What a channel may write to a model.

    writable_fields is the allowlist of column keys; everything else in the
    payload (storeId, id, merchantId...) is silently dropped so a client can
    never move a row to another tenant. required_on_create and non_negative
    name columns with the matching rule.
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    non_negative: set[str] = field(default_factory=set)


def camel_to_snake(name: str) -> str:
    s = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name)
    s = re.sub(r"(?<=[a-z])([0-9])", r"_\1", s)
    return s.lower()


def require_int(value, field_name: str) -> int:
    """Strict integer: rejects bools, fractions and exponent strings. JSON's 3.0 reads as 3."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} يجب أن يكون رقماً صحيحاً")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and INT_RE.fullmatch(value.strip()):
        return int(value.strip())
    raise ValidationError(f"{field_name} يجب أن يكون رقماً صحيحاً")


def _to_number(col, value):
    if isinstance(value, bool):
        raise ValidationError(f"{col.key} يجب أن يكون رقماً")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{col.key} يجب أن يكون رقماً")
    if not number.is_finite():
        raise ValidationError(f"{col.key} يجب أن يكون رقماً")
    if col.type.scale == 2 and abs(number) > MAX_MONEY:
        raise ValidationError(f"{col.key} يتجاوز الحد المسموح")
    return number


def _to_flag(col, value):
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY
    return bool(value)


def _to_timestamp(col, value):
    if isinstance(value, datetime):
        return value
    parsed = None
    if isinstance(value, str):
        try:
            parsed = parse_iso_datetime(value)
        except ValueError:
            parsed = None
    if parsed is None:
        raise ValidationError(f"{col.key} يجب أن يكون تاريخاً صالحاً")
    return parsed


def _to_document(col, value):
    if not isinstance(value, (dict, list)):
        raise ValidationError(f"{col.key} يجب أن يكون كائن JSON")
    return value


def _to_text(col, value):
    return str(value).strip()


# Checked in order; Text is a String subclass
_COERCERS = (
    (Integer, lambda col, value: require_int(value, col.key)),
    (Numeric, _to_number),
    (Boolean, _to_flag),
    (DateTime, _to_timestamp),
    (JSON, _to_document),
    (String, _to_text),
)


def _coerce_value(col, value: Any):
    if value is None:
        return None
    for coltype, coerce in _COERCERS:
        if isinstance(col.type, coltype):
            return coerce(col, value)
    return value


def _check_column(col, value) -> None:
    if isinstance(col.type, String) and isinstance(value, str):
        if value == "" and not col.nullable:
            raise ValidationError(f"{col.key} لا يمكن أن يكون فارغاً")
        if col.type.length and len(value) > col.type.length:
            raise ValidationError(f"{col.key} يتجاوز الطول المسموح {col.type.length}")


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Turn a camelCase client payload into a column-keyed patch for ``model``.

    Values are coerced from the column types and checked against nullability,
    String lengths and ``policy``. With partial=False the policy's required
    columns must be present (create); with partial=True only the keys sent
    are looked at (update).
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("بيانات الطلب غير صالحة")

    normalized = {camel_to_snake(k): v for k, v in payload.items()}

    if not partial:
        missing = [key for key in sorted(policy.required_on_create) if normalized.get(key) in (None, "")]
        if missing:
            raise ValidationError(f"حقول مطلوبة: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}
    patch: dict = {}

    for key, raw in normalized.items():
        col = columns.get(key)
        if col is None or key not in policy.writable_fields:
            continue

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{key} لا يمكن أن يكون فارغاً")
            patch[key] = None
            continue

        value = _coerce_value(col, raw)
        _check_column(col, value)
        if key in policy.non_negative and value < 0:
            raise ValidationError(f"{key} لا يمكن أن يكون سالباً")
        patch[key] = value

    return patch


def apply_patch(row, patch: dict) -> None:
    for key, value in patch.items():
        setattr(row, key, value)


def normalize_phone(value) -> str:
    """Strip everything but digits; a valid phone has exactly nine."""
    digits = re.sub(r"\D", "", str(value or ""))
    if len(digits) != PHONE_DIGITS:
        raise ValidationError(messages.PHONE_INVALID)
    return digits


def optional_int(value, field_name: str) -> int | None:
    if value is None or value == "":
        return None
    return require_int(value, field_name)


def require_positive_int(value, field_name: str) -> int:
    number = require_int(value, field_name)
    if number <= 0:
        raise ValidationError(f"{field_name} يجب أن يكون أكبر من صفر")
    return number


def as_payload(value) -> dict:
    """Channel arguments that carry an object; a missing one reads as {}."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError("بيانات الطلب غير صالحة")
    return value
