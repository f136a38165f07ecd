# Overview: Flask API route for the dashboard screen.

from flask import Blueprint, jsonify, g, current_app

from ..decorators import portal_route
from ..services import dashboard_service


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
@portal_route
def get_dashboard():
    try:
        payload = dashboard_service.build_dashboard(g.store.id)
        payload["store"] = g.store.to_summary_dict()
        return jsonify(payload), 200
    except Exception:
        current_app.logger.exception("Failed to load dashboard")
        return jsonify({"error": "Internal server error", "retryable": True}), 500
