# Overview: Service-layer operations for suppliers, keyed by RUT.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product, Supplier
from ..validation import ConflictError, ModelValidationPolicy, NotFoundError, validate_payload
from .transaction import atomic


SUPPLIER_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"rut", "name", "address", "phone", "email"},
    required_on_create={"rut", "name"},
)

# The RUT is the key and cannot be changed
SUPPLIER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "address", "phone", "email"},
)


def get_supplier(rut: str) -> Supplier:
    supplier = db.session.get(Supplier, rut)
    if supplier is None:
        raise NotFoundError("Supplier not found")
    return supplier


def create_supplier(payload: dict) -> dict:
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_CREATE_POLICY, partial=False)

    with atomic("Create supplier"):
        if db.session.get(Supplier, patch["rut"]) is not None:
            raise ConflictError("A supplier with this RUT already exists")
        supplier = Supplier(**patch)
        db.session.add(supplier)
        db.session.flush()

    current_app.logger.info("Supplier created: rut=%s", supplier.rut)
    return supplier.to_dict()


def find_all_suppliers() -> list[dict]:
    suppliers = db.session.query(Supplier).order_by(Supplier.name.asc()).all()
    return [s.to_dict() for s in suppliers]


def find_supplier_by_rut(rut: str) -> dict:
    return get_supplier(rut).to_dict()


def update_supplier(rut: str, payload: dict) -> dict:
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_UPDATE_POLICY, partial=True)

    with atomic("Update supplier"):
        supplier = get_supplier(rut)
        for key, value in patch.items():
            setattr(supplier, key, value)

    current_app.logger.info("Supplier updated: rut=%s", rut)
    return supplier.to_dict()


def delete_supplier(rut: str) -> dict:
    """Raises ConflictError while any product still references the supplier."""
    with atomic("Delete supplier"):
        supplier = get_supplier(rut)
        in_use = db.session.query(Product.id).filter(Product.rut_supplier == rut).first()
        if in_use is not None:
            raise ConflictError("Cannot delete a supplier that has associated products")
        db.session.delete(supplier)

    current_app.logger.info("Supplier deleted: rut=%s", rut)
    return {"message": "Supplier deleted successfully", "rut": rut}
