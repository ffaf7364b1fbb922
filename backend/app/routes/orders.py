# Overview: Flask API routes for orders; parses input and returns JSON responses.

"""
Order routes

All routes require authentication. The authenticated user is the acting
user of the order; whether that user may place orders is decided by the
order authorization policy.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import order_service
from ..validation import ServiceError
from ..decorators import require_auth


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@require_auth
def create_order_route():
    """
    Place an order.

    Body: {rut, shipping_address, order_date?, order_details: [{product_id, quantity}]}
    """
    data = request.get_json(silent=True) or {}
    try:
        order = order_service.create_order(data, g.current_user.id)
        return jsonify(order), 201
    except ServiceError as e:
        return jsonify({"error": e.message, **e.details}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Failed to create order"}), 500


@orders_bp.post("/complete")
@require_auth
def create_complete_order_route():
    """Create customer, account, order and notification in one request."""
    data = request.get_json(silent=True) or {}
    try:
        summary = order_service.create_complete_order(data, g.current_user.id)
        return jsonify(summary), 201
    except ServiceError as e:
        return jsonify({"error": e.message, **e.details}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create complete order")
        return jsonify({"error": "Failed to create order"}), 500


@orders_bp.get("")
@require_auth
def list_orders_route():
    """
    Query params:
    - page: int (default 1)
    - limit: int (default 10, max 100)
    - rut: customer filter
    - status: status filter
    """
    page = request.args.get("page", 1, type=int)
    limit = request.args.get("limit", order_service.DEFAULT_PAGE_SIZE, type=int)
    if page < 1 or limit < 1:
        return jsonify({"error": "page and limit must be at least 1"}), 400

    return jsonify(order_service.find_all_orders(
        page=page,
        limit=limit,
        rut=request.args.get("rut"),
        status=request.args.get("status"),
    )), 200


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    try:
        return jsonify(order_service.find_order_by_id(order_id)), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code


@orders_bp.put("/<int:order_id>/status")
@require_auth
def update_order_status_route(order_id: int):
    """New status comes from the ?status= query parameter."""
    try:
        order = order_service.update_order_status(order_id, request.args.get("status"))
        return jsonify(order), 200
    except ServiceError as e:
        return jsonify({"error": e.message}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"error": "Failed to update order status"}), 500
