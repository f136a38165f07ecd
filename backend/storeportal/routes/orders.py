# Overview: Flask API routes for orders; read-only order list, detail and claim stubs.

from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import portal_route
from ..services import order_service


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@portal_route
def list_orders():
    """
    Query params:
    - search: matches customer name, order number or id (case-insensitive)
    - status: exact order status, or "all"
    """
    try:
        payload = order_service.order_screen(
            g.store.id,
            search=request.args.get("search"),
            status=request.args.get("status"),
        )
        payload["store_id"] = g.store.id
        return jsonify(payload), 200
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error", "retryable": True}), 500


@orders_bp.get("/<int:order_id>")
@portal_route
def get_order(order_id: int):
    order = order_service.get_order(g.store.id, order_id)
    if not order:
        return jsonify({"error": "Order not found"}), 404
    return jsonify(order_service.order_view(order)), 200


@orders_bp.get("/<int:order_id>/claim-stub")
@portal_route
def get_claim_stub(order_id: int):
    try:
        return jsonify(order_service.claim_stub(g.store.id, order_id)), 200
    except order_service.OrderError as exc:
        return jsonify({"error": str(exc)}), 404
    except Exception:
        current_app.logger.exception("Failed to build claim stub")
        return jsonify({"error": "Internal server error", "retryable": True}), 500
