# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/app/routes/products.py
"""
Product management routes and the public catalog.

SECURITY:
- /api/products routes require authentication
- /api/catalog routes are public and only show active products
"""
from flask import Blueprint, request, jsonify, current_app

from ..services import category_service, products_service
from ..validation import ServiceError
from ..decorators import require_auth


products_bp = Blueprint("products", __name__, url_prefix="/api/products")
catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/catalog")


def _list_query_args(*, force_active: bool = False) -> dict:
    args = {
        "page": request.args.get("page", 1, type=int),
        "limit": request.args.get("limit", products_service.DEFAULT_PAGE_SIZE, type=int),
        "search": request.args.get("search") or None,
        "category_id": request.args.get("category", type=int),
        "rut_supplier": request.args.get("supplier") or None,
        "status": products_service.parse_status_filter(request.args.get("status")),
    }
    if force_active:
        args["status"] = True
    return args


@products_bp.get("")
@require_auth
def list_products():
    """
    List products with filters and pagination.

    Query params:
    - page: int (default 1)
    - limit: int (default 10, max 100)
    - search: case-insensitive name substring
    - category: category id
    - supplier: supplier RUT
    - status: true/false
    """
    try:
        return jsonify(products_service.list_products(**_list_query_args())), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code


@products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}
    try:
        created = products_service.create_product(payload)
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Failed to create product"}), 500

    return jsonify(created), 201


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        return jsonify(products_service.find_product_by_id(product_id)), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    """
    Update a product.

    A "stock" value is added to the current stock.
    """
    payload = request.get_json(silent=True) or {}
    try:
        return jsonify(products_service.update_product(product_id, payload)), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Failed to update product"}), 500


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    try:
        return jsonify(products_service.delete_product(product_id)), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Failed to delete product"}), 500


@products_bp.get("/category/<int:category_id>")
@require_auth
def products_by_category_route(category_id: int):
    return jsonify(products_service.find_products_by_category(category_id)), 200


@products_bp.get("/supplier/<rut>")
@require_auth
def products_by_supplier_route(rut: str):
    return jsonify(products_service.find_products_by_supplier(rut)), 200


@catalog_bp.get("/products")
def catalog_products():
    """Active products only; same filters as /api/products."""
    try:
        return jsonify(products_service.list_products(**_list_query_args(force_active=True))), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code


@catalog_bp.get("/products/<int:product_id>")
def catalog_product_detail(product_id: int):
    try:
        return jsonify(products_service.find_product_by_id(product_id, active_only=True)), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code


@catalog_bp.get("/products/category/<int:category_id>")
def catalog_products_by_category(category_id: int):
    return jsonify(products_service.find_products_by_category(category_id)), 200


@catalog_bp.get("/categories")
def catalog_categories():
    return jsonify(category_service.find_all_categories_for_catalog()), 200
