# Overview: Flask API routes for the services catalog; global plus store-specific laundry services.

from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import portal_route
from ..services import service_catalog_service
from ..services.service_catalog_service import ServiceCatalogError
from ..models.catalog import SERVICE_CATEGORIES
from ..validation import ValidationError


services_bp = Blueprint("services", __name__, url_prefix="/api/services")


def _serialize(service) -> dict:
    payload = service.to_dict()
    payload["can_modify"] = g.capabilities.can_modify_service(service)
    return payload


@services_bp.get("")
@portal_route
def list_services():
    try:
        services = service_catalog_service.list_services(g.store.id)
        return jsonify({
            "store_id": g.store.id,
            "services": [_serialize(service) for service in services],
            "categories": list(SERVICE_CATEGORIES),
        }), 200
    except Exception:
        current_app.logger.exception("Failed to list services")
        return jsonify({"error": "Internal server error", "retryable": True}), 500


@services_bp.post("")
@portal_route
def create_service():
    data = request.get_json(silent=True) or {}
    try:
        service = service_catalog_service.create_service(g.store.id, data)
        return jsonify(_serialize(service)), 201
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to create service")
        return jsonify({"error": "Internal server error"}), 500


@services_bp.put("/<int:service_id>")
@portal_route
def update_service(service_id: int):
    service = service_catalog_service.get_service(g.store.id, service_id)
    if not service:
        return jsonify({"error": "Service not found"}), 404

    data = request.get_json(silent=True) or {}
    try:
        service = service_catalog_service.update_service(g.capabilities, service, data)
        return jsonify(_serialize(service)), 200
    except ServiceCatalogError:
        return jsonify({"error": "Access denied"}), 403
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to update service")
        return jsonify({"error": "Internal server error"}), 500


@services_bp.post("/<int:service_id>/toggle")
@portal_route
def toggle_service(service_id: int):
    service = service_catalog_service.get_service(g.store.id, service_id)
    if not service:
        return jsonify({"error": "Service not found"}), 404

    try:
        service = service_catalog_service.toggle_service(g.capabilities, service)
        return jsonify(_serialize(service)), 200
    except ServiceCatalogError:
        return jsonify({"error": "Access denied"}), 403
    except Exception:
        current_app.logger.exception("Failed to toggle service")
        return jsonify({"error": "Internal server error"}), 500


@services_bp.delete("/<int:service_id>")
@portal_route
def delete_service(service_id: int):
    service = service_catalog_service.get_service(g.store.id, service_id)
    if not service:
        return jsonify({"error": "Service not found"}), 404

    if not g.capabilities.can_modify_service(service):
        return jsonify({"error": "Access denied"}), 403

    try:
        service_catalog_service.delete_service(g.capabilities, service)
        return jsonify({"message": "Service deleted"}), 200
    except ServiceCatalogError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to delete service")
        return jsonify({"error": "Internal server error"}), 500
