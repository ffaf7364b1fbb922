from __future__ import annotations
from datetime import datetime
from app.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Maximum price in whole currency units (CLP has no minor unit)
MAX_PRICE = 999_999_999
MAX_STOCK = 10_000_000


class ServiceError(Exception):
    """Base for errors raised deliberately by the service layer."""
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BadRequestError(ServiceError):
    """400-level business precondition failure (unknown product, no stock...)."""
    status_code = 400


class ValidationError(BadRequestError):
    """400-level input problem."""


class UnauthorizedError(ServiceError):
    """401: bad credentials or an invalid, expired or revoked token."""
    status_code = 401


class NotFoundError(ServiceError):
    """404: referenced row does not exist."""
    status_code = 404


class ConflictError(ServiceError):
    """409-level business rule conflict (duplicate key, allocation race)."""
    status_code = 409


class StorageFailureError(ServiceError):
    """Unclassified persistence failure."""


class MailDeliveryError(ServiceError):
    """Outgoing mail could not be delivered."""


class SigningError(ServiceError):
    """Token signing is misconfigured (no secret)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(key: str, value: Any) -> int:
    # bool is an int subclass; reject it along with floats and "1e3"/"1.0" strings
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped and not any(ch in stripped.lower() for ch in ".e"):
            try:
                return int(stripped)
            except ValueError:
                pass
    raise ValidationError(f"{key} must be an integer")


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValidationError(f"{key} must be a boolean")


def _coerce_datetime(key: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            dt = parse_iso_datetime(value)
        except ValueError:
            dt = None
        if dt is not None:
            return dt
    raise ValidationError(f"{key} must be an ISO-8601 datetime")


def _coerce_value(col, value: Any):
    if value is None:
        return None

    coltype = col.type
    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)
    if isinstance(coltype, Boolean):
        return _coerce_bool(col.key, value)
    if isinstance(coltype, DateTime):
        return _coerce_datetime(col.key, value)
    if isinstance(coltype, (String, Text)):
        return str(value).strip()
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    """
    if "price" in patch:
        price = patch["price"]
        if price is None:
            raise ValidationError("price cannot be null")
        if price < 0:
            raise ValidationError("price must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE}")

    # stock may be null (unlimited)
    if patch.get("stock") is not None:
        if patch["stock"] < 0:
            raise ValidationError("stock must be >= 0")
        if patch["stock"] > MAX_STOCK:
            raise ValidationError(f"stock cannot exceed {MAX_STOCK}")


def require_fields(payload: dict, *names: str) -> None:
    missing = [n for n in names if payload.get(n) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def parse_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        parsed = int(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be an integer")
    if parsed < 1:
        raise ValidationError(f"{field_name} must be at least 1")
    return parsed
