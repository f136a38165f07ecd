# backend/storeportal/services/service_catalog_service.py
"""
Services screen.

A store sees the global services (shared, store_id NULL) followed by its own
custom services. Anything created from the portal is a custom service of the
current store. Global rows are read-only unless the caller can manage global
services.
"""
from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Service, OrderItem
from ..models.catalog import SERVICE_CATEGORIES, DEFAULT_SERVICE_CATEGORY, DEFAULT_SERVICE_ICON
from ..validation import ValidationError, require_text, optional_text, parse_cents, parse_bool
from .access_service import Capabilities


SERVICE_MUTABLE_FIELDS = {"name", "description", "price_cents", "icon", "category", "is_active"}

SERVICE_IN_USE_MESSAGE = "Service is used by existing orders; deactivate it instead"


class ServiceCatalogError(Exception):
    """Raised when a service change is not allowed."""
    pass


def list_services(store_id: int) -> list[Service]:
    """Global services first, then the store's own, each by sort_order."""
    return (
        db.session.query(Service)
        .filter(or_(Service.is_global.is_(True), Service.store_id == store_id))
        .order_by(Service.is_global.desc(), Service.sort_order.asc(), Service.id.asc())
        .all()
    )


def get_service(store_id: int, service_id: int) -> Service | None:
    """A service the store can see, or None."""
    return (
        db.session.query(Service)
        .filter(
            Service.id == service_id,
            or_(Service.is_global.is_(True), Service.store_id == store_id),
        )
        .first()
    )


def validate_service_patch(data: dict, *, partial: bool = False) -> dict:
    """Turn form input into a patch of model fields."""
    patch: dict = {}

    if not partial or "name" in data:
        patch["name"] = require_text(data.get("name"), "Please fill in all required fields")

    if not partial or "price_cents" in data:
        patch["price_cents"] = parse_cents(data.get("price_cents"), "price_cents", required=True)

    if "description" in data:
        patch["description"] = optional_text(data.get("description"))

    if "icon" in data:
        patch["icon"] = optional_text(data.get("icon")) or DEFAULT_SERVICE_ICON

    if not partial or "category" in data:
        category = optional_text(data.get("category")) or DEFAULT_SERVICE_CATEGORY
        if category not in SERVICE_CATEGORIES:
            raise ValidationError(f"Unknown category: {category}")
        patch["category"] = category

    if "is_active" in data:
        patch["is_active"] = parse_bool(data.get("is_active"), default=True)

    return patch


def apply_service_patch(service: Service, patch: dict) -> None:
    for k, v in patch.items():
        if k not in SERVICE_MUTABLE_FIELDS:
            continue
        setattr(service, k, v)


def create_service(store_id: int, data: dict) -> Service:
    patch = validate_service_patch(data)
    count = (
        db.session.query(Service)
        .filter(or_(Service.is_global.is_(True), Service.store_id == store_id))
        .count()
    )

    service = Service(
        store_id=store_id,
        is_global=False,
        sort_order=count,
        icon=DEFAULT_SERVICE_ICON,
        is_active=True,
    )
    apply_service_patch(service, patch)

    db.session.add(service)
    db.session.commit()
    return service


def _require_modifiable(capabilities: Capabilities, service: Service) -> None:
    if not capabilities.can_modify_service(service):
        raise ServiceCatalogError("Global services cannot be modified")


def update_service(capabilities: Capabilities, service: Service, data: dict) -> Service:
    _require_modifiable(capabilities, service)
    apply_service_patch(service, validate_service_patch(data, partial=True))
    db.session.commit()
    return service


def toggle_service(capabilities: Capabilities, service: Service) -> Service:
    _require_modifiable(capabilities, service)
    service.is_active = not service.is_active
    db.session.commit()
    return service


def delete_service(capabilities: Capabilities, service: Service) -> None:
    """Services referenced by order items are kept; they can only be deactivated."""
    _require_modifiable(capabilities, service)

    in_use = db.session.query(OrderItem.id).filter_by(service_id=service.id).first()
    if in_use:
        raise ServiceCatalogError(SERVICE_IN_USE_MESSAGE)

    try:
        db.session.delete(service)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ServiceCatalogError(SERVICE_IN_USE_MESSAGE) from exc
