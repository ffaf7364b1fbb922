# Overview: Customer registry keyed by national id (RUT).

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Customer
from ..models.customers import PROFILE_COMPLETE, PROFILE_INCOMPLETE
from ..validation import ValidationError
from .transaction import atomic

CUSTOMER_PROFILE_FIELDS = ("name", "phone", "email", "address")


def _profile_from(data: dict) -> dict:
    profile = {
        "name": data.get("name"),
        "phone": data.get("phone") or data.get("phone_number"),
        "email": data.get("email"),
        "address": data.get("address"),
    }
    return {k: v for k, v in profile.items() if v not in (None, "")}


def require_rut(data: dict) -> str:
    rut = str(data.get("rut") or "").strip()
    if not rut:
        raise ValidationError("rut is required")
    if len(rut) > 20:
        raise ValidationError("rut exceeds max length 20")
    return rut


def find_customer_by_rut(rut: str) -> Customer | None:
    return db.session.get(Customer, rut)


def complete_customer(customer: Customer, data: dict) -> Customer:
    """Fill an INCOMPLETE placeholder with profile data and mark it COMPLETE."""
    profile = _profile_from(data)
    for key in CUSTOMER_PROFILE_FIELDS:
        if key in profile and not getattr(customer, key):
            setattr(customer, key, profile[key])
    if customer.name:
        customer.profile_status = PROFILE_COMPLETE
    return customer


def find_or_create_customer(data: dict, *, commit: bool = True) -> Customer:
    """
    Idempotent upsert by RUT.

    An existing COMPLETE customer is returned untouched; an INCOMPLETE
    placeholder is completed with whatever profile data is supplied. A
    new customer without a name starts INCOMPLETE.
    """
    rut = require_rut(data)
    with atomic("Find or create customer", commit=commit):
        customer = find_customer_by_rut(rut)
        if customer is None:
            profile = _profile_from(data)
            status = PROFILE_COMPLETE if profile.get("name") else PROFILE_INCOMPLETE
            customer = Customer(rut=rut, profile_status=status, **profile)
            db.session.add(customer)
            db.session.flush()
            current_app.logger.info("Customer created: %s", rut)
        elif customer.is_incomplete:
            complete_customer(customer, data)
            current_app.logger.info("Placeholder customer completed: %s", rut)

    return customer


def ensure_customer_placeholder(rut: str) -> Customer:
    """
    Return the customer for rut, adding an INCOMPLETE placeholder if absent.

    Does not commit: the caller's transaction decides whether it persists.
    """
    customer = find_customer_by_rut(rut)
    if customer is None:
        customer = Customer(rut=rut, profile_status=PROFILE_INCOMPLETE)
        db.session.add(customer)
        db.session.flush()
    return customer
