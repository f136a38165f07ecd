# Overview: Flask API routes for stores operations; store switcher, profile and feature flags.

from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import require_auth, require_portal_access, portal_route
from ..services import store_service, session_service
from ..services.access_service import FEATURE_LABELS, feature_enabled
from ..services.store_context import StoreContext, StoreSelectionError
from ..validation import ValidationError


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("")
@portal_route
def list_stores():
    """Stores visible to the user plus the current selection."""
    payload = g.store_context.to_dict()
    payload["capabilities"] = g.capabilities.to_dict(g.store)
    return jsonify(payload), 200


@stores_bp.put("/selected")
@require_auth
@require_portal_access
def select_store():
    data = request.get_json(silent=True) or {}
    store_id = data.get("store_id")

    session = g.session_context.session
    context = StoreContext.load(g.current_user, session.selected_store_id)
    try:
        context.select(int(store_id) if store_id is not None else None)
    except (TypeError, ValueError):
        return jsonify({"error": "store_id must be an integer"}), 400
    except StoreSelectionError:
        return jsonify({"error": "Access denied"}), 403

    session_service.set_selected_store(session, context.selected_id)

    payload = context.to_dict()
    payload["capabilities"] = g.capabilities.to_dict(context.selected)
    return jsonify(payload), 200


@stores_bp.get("/current")
@portal_route
def get_current_store():
    return jsonify(g.store.to_dict()), 200


@stores_bp.put("/current")
@portal_route
def update_current_store():
    data = request.get_json(silent=True) or {}
    try:
        store = store_service.update_store_profile(g.store.id, data)
        return jsonify(store.to_dict()), 200
    except (store_service.StoreError, ValidationError) as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to update store profile")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.get("/current/features")
@portal_route
def list_current_features():
    features = [
        {"key": key, "label": label, "enabled": feature_enabled(g.store, key)}
        for key, label in FEATURE_LABELS.items()
    ]
    return jsonify({
        "store_id": g.store.id,
        "features": features,
        "can_manage": g.capabilities.manage_store_features,
    }), 200


@stores_bp.put("/current/features")
@portal_route
def update_current_features():
    if not g.capabilities.manage_store_features:
        return jsonify({"error": "Access denied"}), 403

    data = request.get_json(silent=True) or {}
    try:
        store = store_service.update_store_features(g.capabilities, g.store.id, data.get("features") or {})
        current_app.logger.info("Store %s features updated by user %s", store.id, g.current_user.id)
        return jsonify(store.to_dict()), 200
    except (store_service.StoreError, ValidationError) as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to update store features")
        return jsonify({"error": "Internal server error"}), 500
