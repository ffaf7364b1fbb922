# Overview: Service-layer operations for product categories.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Category, Product
from ..validation import ConflictError, ModelValidationPolicy, NotFoundError, validate_payload
from .identifier_service import next_id
from .transaction import atomic


CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)


def _name_taken(name: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(Category.id).filter(Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


def get_category(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


def create_category(payload: dict) -> dict:
    """Raises ConflictError if the name is already used."""
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)

    with atomic("Create category"):
        if _name_taken(patch["name"]):
            raise ConflictError("A category with this name already exists")
        category = Category(id=next_id(Category), **patch)
        db.session.add(category)
        db.session.flush()

    current_app.logger.info("Category created: id=%s", category.id)
    return category.to_dict()


def find_all_categories() -> list[dict]:
    categories = db.session.query(Category).order_by(Category.name.asc()).all()
    return [c.to_dict() for c in categories]


def find_all_categories_for_catalog() -> list[dict]:
    """Name and description only, for the public catalog."""
    categories = db.session.query(Category).order_by(Category.name.asc()).all()
    return [c.to_dict(include_products=False) for c in categories]


def find_category_by_id(category_id: int) -> dict:
    return get_category(category_id).to_dict()


def update_category(category_id: int, payload: dict) -> dict:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)

    with atomic("Update category"):
        category = get_category(category_id)
        if "name" in patch and _name_taken(patch["name"], exclude_id=category_id):
            raise ConflictError("A category with this name already exists")
        for key, value in patch.items():
            setattr(category, key, value)

    current_app.logger.info("Category updated: id=%s", category_id)
    return category.to_dict()


def delete_category(category_id: int) -> dict:
    """Raises ConflictError while any product still references the category."""
    with atomic("Delete category"):
        category = get_category(category_id)
        in_use = db.session.query(Product.id).filter(Product.category_id == category_id).first()
        if in_use is not None:
            raise ConflictError("Cannot delete a category that has associated products")
        db.session.delete(category)

    current_app.logger.info("Category deleted: id=%s", category_id)
    return {"message": "Category deleted successfully", "id": category_id}
