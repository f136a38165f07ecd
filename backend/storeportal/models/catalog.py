from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


SERVICE_CATEGORIES = ("wash", "dry-clean", "press", "alterations", "express", "other")
DEFAULT_SERVICE_CATEGORY = "wash"
DEFAULT_SERVICE_ICON = "shirt-outline"

INVENTORY_CATEGORIES = ("Detergent", "Soap", "Bleach", "Fabric Softener", "Starch", "Supplies", "Other")
INVENTORY_UNITS = ("pcs", "kg", "L", "box", "bottle", "pack")
DEFAULT_INVENTORY_UNIT = "pcs"


class Service(db.Model):
    """
    A laundry service offered at the counter.

    Global services (store_id NULL, is_global True) are shared by every store
    and are read-only from the owner portal.
    """
    __tablename__ = "services"
    __table_args__ = (
        db.Index("ix_services_store_sort", "store_id", "sort_order"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    icon = db.Column(db.String(64), nullable=False, default=DEFAULT_SERVICE_ICON)
    category = db.Column(db.String(32), nullable=True, default=DEFAULT_SERVICE_CATEGORY)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_global = db.Column(db.Boolean, nullable=False, default=False, index=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("services", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "description": self.description,
            "price_cents": self.price_cents,
            "icon": self.icon,
            "category": self.category,
            "is_active": self.is_active,
            "is_global": self.is_global,
            "sort_order": self.sort_order,
            "created_at": to_utc_z(self.created_at),
        }


class InventoryItem(db.Model):
    """Consumable stock (detergent, softener, bags) tracked per store."""
    __tablename__ = "inventory_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    sku = db.Column(db.String(64), nullable=True)
    category = db.Column(db.String(64), nullable=True)
    unit = db.Column(db.String(16), nullable=False, default=DEFAULT_INVENTORY_UNIT)

    # Quantities are fractional (kg, L)
    current_stock = db.Column(db.Float, nullable=False, default=0)
    minimum_stock = db.Column(db.Float, nullable=False, default=0)
    reorder_level = db.Column(db.Float, nullable=False, default=0)

    unit_cost_cents = db.Column(db.Integer, nullable=False, default=0)
    unit_price_cents = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    store = db.relationship("Store", backref=db.backref("inventory_items", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "sku": self.sku,
            "category": self.category,
            "unit": self.unit,
            "current_stock": self.current_stock,
            "minimum_stock": self.minimum_stock,
            "reorder_level": self.reorder_level,
            "unit_cost_cents": self.unit_cost_cents,
            "unit_price_cents": self.unit_price_cents,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
