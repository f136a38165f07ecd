# Overview: Flask API routes for inventory operations; only live when the store tracks inventory.

from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import portal_route, require_feature
from ..services import inventory_service
from ..services.access_service import check_feature
from ..models.catalog import INVENTORY_CATEGORIES, INVENTORY_UNITS
from ..validation import ValidationError


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")

FEATURE = "inventory_tracking"


@inventory_bp.get("")
@portal_route
def list_inventory():
    """
    Disabled stores get {"enabled": false, "message": ...} and no rows; the
    rows themselves are untouched.
    """
    decision = check_feature(g.store, FEATURE)
    if not decision.enabled:
        return jsonify(decision.to_dict()), 200

    try:
        items = inventory_service.list_items(g.store.id)
        return jsonify({
            "enabled": True,
            "store_id": g.store.id,
            "items": [inventory_service.serialize_item(item) for item in items],
            "summary": inventory_service.summarize(items),
            "categories": list(INVENTORY_CATEGORIES),
            "units": list(INVENTORY_UNITS),
        }), 200
    except Exception:
        current_app.logger.exception("Failed to list inventory")
        return jsonify({"error": "Internal server error", "retryable": True}), 500


@inventory_bp.post("")
@portal_route
@require_feature(FEATURE)
def create_inventory_item():
    data = request.get_json(silent=True) or {}
    try:
        item = inventory_service.create_item(g.store.id, data)
        return jsonify(inventory_service.serialize_item(item)), 201
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to create inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.put("/<int:item_id>")
@portal_route
@require_feature(FEATURE)
def update_inventory_item(item_id: int):
    item = inventory_service.get_item(g.store.id, item_id)
    if not item:
        return jsonify({"error": "Inventory item not found"}), 404

    data = request.get_json(silent=True) or {}
    try:
        item = inventory_service.update_item(item, data)
        return jsonify(inventory_service.serialize_item(item)), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to update inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/<int:item_id>/toggle")
@portal_route
@require_feature(FEATURE)
def toggle_inventory_item(item_id: int):
    item = inventory_service.get_item(g.store.id, item_id)
    if not item:
        return jsonify({"error": "Inventory item not found"}), 404

    try:
        item = inventory_service.toggle_item(item)
        return jsonify(inventory_service.serialize_item(item)), 200
    except Exception:
        current_app.logger.exception("Failed to toggle inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.delete("/<int:item_id>")
@portal_route
@require_feature(FEATURE)
def delete_inventory_item(item_id: int):
    item = inventory_service.get_item(g.store.id, item_id)
    if not item:
        return jsonify({"error": "Inventory item not found"}), 404

    try:
        inventory_service.delete_item(item)
        return jsonify({"message": "Inventory item deleted"}), 200
    except Exception:
        current_app.logger.exception("Failed to delete inventory item")
        return jsonify({"error": "Internal server error"}), 500
