# Overview: Flask API routes for suppliers (keyed by RUT).

from flask import Blueprint, request, jsonify, current_app

from ..services import supplier_service
from ..validation import ServiceError
from ..decorators import require_auth


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
def list_suppliers():
    return jsonify(supplier_service.find_all_suppliers()), 200


@suppliers_bp.post("")
@require_auth
def create_supplier_route():
    payload = request.get_json(silent=True) or {}
    try:
        return jsonify(supplier_service.create_supplier(payload)), 201
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Failed to create supplier"}), 500


@suppliers_bp.get("/<rut>")
@require_auth
def get_supplier_route(rut: str):
    try:
        return jsonify(supplier_service.find_supplier_by_rut(rut)), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code


@suppliers_bp.put("/<rut>")
@require_auth
def update_supplier_route(rut: str):
    payload = request.get_json(silent=True) or {}
    try:
        return jsonify(supplier_service.update_supplier(rut, payload)), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update supplier")
        return jsonify({"error": "Failed to update supplier"}), 500


@suppliers_bp.delete("/<rut>")
@require_auth
def delete_supplier_route(rut: str):
    try:
        return jsonify(supplier_service.delete_supplier(rut)), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete supplier")
        return jsonify({"error": "Failed to delete supplier"}), 500
