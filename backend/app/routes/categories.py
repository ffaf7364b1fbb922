# Overview: Flask API routes for product categories.

from flask import Blueprint, request, jsonify, current_app

from ..services import category_service
from ..validation import ServiceError
from ..decorators import require_auth


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories():
    """All categories with their product summaries, by name."""
    return jsonify(category_service.find_all_categories()), 200


@categories_bp.post("")
@require_auth
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        return jsonify(category_service.create_category(payload)), 201
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Failed to create category"}), 500


@categories_bp.get("/<int:category_id>")
@require_auth
def get_category_route(category_id: int):
    try:
        return jsonify(category_service.find_category_by_id(category_id)), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code


@categories_bp.put("/<int:category_id>")
@require_auth
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        return jsonify(category_service.update_category(category_id, payload)), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update category")
        return jsonify({"error": "Failed to update category"}), 500


@categories_bp.delete("/<int:category_id>")
@require_auth
def delete_category_route(category_id: int):
    try:
        return jsonify(category_service.delete_category(category_id)), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete category")
        return jsonify({"error": "Failed to delete category"}), 500
