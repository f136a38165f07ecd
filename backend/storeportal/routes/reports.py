# Overview: Flask API routes for reports; one endpoint per report type over a date range.

from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import portal_route
from ..services import reporting_service
from ..time_utils import REPORT_RANGES, DEFAULT_REPORT_RANGE


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("")
@portal_route
def list_reports():
    return jsonify({
        "reports": list(reporting_service.REPORT_TYPES),
        "ranges": list(REPORT_RANGES),
        "default_range": DEFAULT_REPORT_RANGE,
    }), 200


@reports_bp.get("/<report_type>")
@portal_route
def get_report(report_type: str):
    """?range=7d|30d|90d|all (anything else falls back to 7d)."""
    try:
        report = reporting_service.build_report(g.store, report_type, request.args.get("range"))
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 404
    except Exception:
        current_app.logger.exception("Failed to build %s report", report_type)
        return jsonify({"error": "Internal server error", "retryable": True}), 500
