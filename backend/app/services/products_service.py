# backend/app/services/products_service.py
"""
Products Service

Products reference a supplier (by RUT) and a category; both must exist.
Product names are unique.

Stock semantics:
- NULL stock means unlimited
- On update, a "stock" value is a received quantity added to the current
  stock (NULL counts as zero), not a replacement

Public catalog reads (active_only=True) only ever see products whose
status is true.
"""
from __future__ import annotations

import math

from flask import current_app

from ..extensions import db
from ..models import Category, OrderDetail, Product, Supplier
from ..validation import (
    BadRequestError,
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)
from .identifier_service import next_id
from .transaction import atomic

PRODUCT_MUTABLE_FIELDS = {"name", "price", "stock", "description", "image_url", "status", "rut_supplier", "category_id"}

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_MUTABLE_FIELDS,
    required_on_create={"name", "price", "rut_supplier", "category_id"},
)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _check_references(patch: dict) -> None:
    if "rut_supplier" in patch and db.session.get(Supplier, patch["rut_supplier"]) is None:
        raise BadRequestError("The specified supplier does not exist")
    if "category_id" in patch and db.session.get(Category, patch["category_id"]) is None:
        raise BadRequestError("The specified category does not exist")


def _name_taken(name: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(Product.id).filter(Product.name == name)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def get_product(product_id: int, *, active_only: bool = False) -> Product:
    product = db.session.get(Product, product_id)
    if product is None or (active_only and not product.status):
        raise NotFoundError("Product not found")
    return product


def list_products(
    *,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    search: str | None = None,
    category_id: int | None = None,
    rut_supplier: str | None = None,
    status: bool | None = None,
) -> dict:
    """
    Filtered, paginated product listing, newest first.

    search is a case-insensitive substring match on the name.

    Returns:
        Dict with 'products', 'total', 'page', 'limit' and 'total_pages'.
    """
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)

    query = db.session.query(Product)
    if search:
        query = query.filter(Product.name.ilike(f"%{search}%"))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if rut_supplier is not None:
        query = query.filter(Product.rut_supplier == rut_supplier)
    if status is not None:
        query = query.filter(Product.status.is_(status))

    total = query.count()
    products = (
        query.order_by(Product.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "products": [p.to_dict() for p in products],
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit),
    }


def create_product(payload: dict) -> dict:
    """
    Create product from a JSON payload.

    Raises:
        ValidationError: malformed payload
        ConflictError: name already used
        BadRequestError: unknown supplier or category
    """
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)

    with atomic("Create product"):
        if _name_taken(patch["name"]):
            raise ConflictError("A product with this name already exists")
        _check_references(patch)

        p = Product(id=next_id(Product))
        apply_product_patch(p, patch)
        if p.status is None:
            p.status = True
        db.session.add(p)
        db.session.flush()

    current_app.logger.info("Product created: id=%s name=%s", p.id, p.name)
    return p.to_dict()


def find_product_by_id(product_id: int, *, active_only: bool = False) -> dict:
    return get_product(product_id, active_only=active_only).to_dict()


def update_product(product_id: int, payload: dict) -> dict:
    """
    Patch a product. A "stock" value is added to the current stock.

    Raises NotFoundError, ConflictError (name), BadRequestError (references).
    """
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)

    with atomic("Update product"):
        p = get_product(product_id)
        if "name" in patch and _name_taken(patch["name"], exclude_id=product_id):
            raise ConflictError("A product with this name already exists")
        _check_references(patch)

        if patch.get("stock") is not None:
            received = patch.pop("stock")
            previous = p.stock
            patch["stock"] = (previous or 0) + received
            enforce_rules_product({"stock": patch["stock"]})
            current_app.logger.info(
                "Stock updated: id=%s previous=%s new=%s", product_id, previous, patch["stock"]
            )

        apply_product_patch(p, patch)

    return p.to_dict()


def delete_product(product_id: int) -> dict:
    """Raises ConflictError while order lines reference the product."""
    with atomic("Delete product"):
        p = get_product(product_id)
        ordered = db.session.query(OrderDetail.id).filter(OrderDetail.product_id == product_id).first()
        if ordered is not None:
            raise ConflictError("Cannot delete a product that appears in orders")
        db.session.delete(p)

    current_app.logger.info("Product deleted: id=%s", product_id)
    return {"message": "Product deleted successfully", "id": product_id}


def find_products_by_category(category_id: int, *, active_only: bool = True) -> list[dict]:
    query = db.session.query(Product).filter(Product.category_id == category_id)
    if active_only:
        query = query.filter(Product.status.is_(True))
    return [p.to_dict() for p in query.order_by(Product.id.asc()).all()]


def find_products_by_supplier(rut: str, *, active_only: bool = True) -> list[dict]:
    query = db.session.query(Product).filter(Product.rut_supplier == rut)
    if active_only:
        query = query.filter(Product.status.is_(True))
    return [p.to_dict() for p in query.order_by(Product.id.asc()).all()]


def parse_status_filter(raw: str | None) -> bool | None:
    """Query-string boolean ("true"/"false") or None when absent."""
    if raw is None or raw == "":
        return None
    value = raw.strip().lower()
    if value not in {"true", "false"}:
        raise ValidationError("status must be true or false")
    return value == "true"
