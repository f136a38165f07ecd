from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Store, User
from ..models.tenancy import STORE_FEATURES, STORE_STATUSES, STORE_STATUS_ACTIVE
from ..validation import ValidationError, require_text, optional_text, validate_email
from .access_service import Capabilities


PROFILE_FIELDS = ("name", "address", "phone", "email", "website")

DEFAULT_STORE_SETTINGS = {
    "currency": "USD",
    "currency_symbol": "$",
    "tax_rate": 0,
    "low_stock_threshold": 10,
    "loyalty_points_rate": 1,
}


class StoreError(Exception):
    """Raised when store operations fail."""
    pass


def get_store(store_id: int) -> Store | None:
    return db.session.query(Store).filter_by(id=store_id).first()


def list_stores() -> list[Store]:
    """Every store, inactive ones included."""
    return db.session.query(Store).order_by(Store.name.asc()).all()


def create_store(
    name: str,
    *,
    owner_id: int | None = None,
    address: str | None = None,
    phone: str | None = None,
    email: str | None = None,
    features: dict | None = None,
) -> Store:
    name = require_text(name, "Store name is required")

    if owner_id is not None:
        owner = db.session.query(User).filter_by(id=owner_id).first()
        if not owner:
            raise StoreError("Owner not found")

    store = Store(
        name=name,
        address=optional_text(address),
        phone=optional_text(phone),
        email=validate_email(email),
        owner_id=owner_id,
        status=STORE_STATUS_ACTIVE,
        features=_normalize_features(features or {}, {}),
        settings=dict(DEFAULT_STORE_SETTINGS),
    )
    db.session.add(store)
    db.session.commit()
    return store


def update_store_profile(store_id: int, data: dict) -> Store:
    """
    Save the profile form. Name is required; blank optional fields are
    stored as NULL. Returns the stored row.
    """
    name = require_text(data.get("name"), "Store name is required")
    email = validate_email(data.get("email"))

    store = get_store(store_id)
    if not store:
        raise StoreError("Store not found")

    store.name = name
    store.address = optional_text(data.get("address"))
    store.phone = optional_text(data.get("phone"))
    store.email = email
    store.website = optional_text(data.get("website"))

    if "settings" in data:
        store.settings = _merge_settings(store.settings, data.get("settings"))

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StoreError("Failed to update store profile") from exc

    return store


def _merge_settings(current: dict | None, incoming) -> dict:
    if not isinstance(incoming, dict):
        raise ValidationError("settings must be an object")
    merged = dict(DEFAULT_STORE_SETTINGS)
    merged.update(current or {})
    for key, value in incoming.items():
        if key not in DEFAULT_STORE_SETTINGS:
            raise ValidationError(f"Unknown setting: {key}")
        merged[key] = value
    return merged


def _normalize_features(incoming, current: dict) -> dict:
    if not isinstance(incoming, dict):
        raise ValidationError("features must be an object")

    unknown = sorted(set(incoming) - set(STORE_FEATURES))
    if unknown:
        raise ValidationError(f"Unknown feature: {', '.join(unknown)}")

    features = {flag: bool(current.get(flag)) for flag in STORE_FEATURES}
    for flag, value in incoming.items():
        if not isinstance(value, bool):
            raise ValidationError(f"Feature {flag} must be true or false")
        features[flag] = value
    return features


def update_store_features(capabilities: Capabilities, store_id: int, features: dict) -> Store:
    """
    Toggle optional modules for a store.

    Only super admins manage features. Turning a flag off never touches the
    data behind it.
    """
    if not capabilities.manage_store_features:
        raise StoreError("Only super admins can change store features")

    store = get_store(store_id)
    if not store:
        raise StoreError("Store not found")

    # Reassign so the JSON column is flagged dirty
    store.features = _normalize_features(features, store.features or {})
    db.session.commit()
    return store


def set_store_status(store_id: int, status: str) -> Store:
    if status not in STORE_STATUSES:
        raise ValidationError(f"Unknown store status: {status}")

    store = get_store(store_id)
    if not store:
        raise StoreError("Store not found")

    store.status = status
    db.session.commit()
    return store
