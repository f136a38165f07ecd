# Overview: Service-layer operations for inventory; per-store consumable stock and its status.

"""
Inventory screen.

Only reachable when the store has inventory_tracking on; the routes check the
flag before calling in here. Turning the flag off leaves these rows alone.

Stock status, first match wins:
- out_of_stock: current stock at or below zero
- low_stock:    a minimum is set and stock is at or below it
- reorder:      a reorder level is set and stock is at or below it
- in_stock:     everything else
"""

from __future__ import annotations

from ..extensions import db
from ..models import InventoryItem
from ..models.catalog import INVENTORY_CATEGORIES, INVENTORY_UNITS, DEFAULT_INVENTORY_UNIT
from ..validation import ValidationError, require_text, optional_text, parse_quantity, parse_bool, parse_cents


STOCK_OUT = "out_of_stock"
STOCK_LOW = "low_stock"
STOCK_REORDER = "reorder"
STOCK_OK = "in_stock"

INVENTORY_MUTABLE_FIELDS = {
    "name",
    "sku",
    "category",
    "unit",
    "current_stock",
    "minimum_stock",
    "reorder_level",
    "unit_cost_cents",
    "unit_price_cents",
    "is_active",
}


def stock_status(item: InventoryItem) -> str:
    current = item.current_stock or 0
    minimum = item.minimum_stock or 0
    reorder = item.reorder_level or 0

    if current <= 0:
        return STOCK_OUT
    if minimum > 0 and current <= minimum:
        return STOCK_LOW
    if reorder > 0 and current <= reorder:
        return STOCK_REORDER
    return STOCK_OK


def is_below_minimum(item: InventoryItem) -> bool:
    minimum = item.minimum_stock or 0
    return minimum > 0 and (item.current_stock or 0) <= minimum


def serialize_item(item: InventoryItem) -> dict:
    payload = item.to_dict()
    payload["stock_status"] = stock_status(item)
    return payload


def list_items(store_id: int) -> list[InventoryItem]:
    return (
        db.session.query(InventoryItem)
        .filter_by(store_id=store_id)
        .order_by(InventoryItem.created_at.desc(), InventoryItem.id.desc())
        .all()
    )


def get_item(store_id: int, item_id: int) -> InventoryItem | None:
    return db.session.query(InventoryItem).filter_by(id=item_id, store_id=store_id).first()


def _lenient_cents(value) -> int:
    # Blank or malformed money fields on the inventory form fall back to 0
    try:
        return parse_cents(value, "amount")
    except ValidationError:
        return 0


def validate_item_patch(data: dict, *, partial: bool = False) -> dict:
    patch: dict = {}

    if not partial or "name" in data:
        patch["name"] = require_text(data.get("name"), "Item name is required")

    if "sku" in data:
        patch["sku"] = optional_text(data.get("sku"))

    if "category" in data:
        category = optional_text(data.get("category"))
        if category is not None and category not in INVENTORY_CATEGORIES:
            raise ValidationError(f"Unknown category: {category}")
        patch["category"] = category

    if not partial or "unit" in data:
        unit = optional_text(data.get("unit")) or DEFAULT_INVENTORY_UNIT
        if unit not in INVENTORY_UNITS:
            raise ValidationError(f"Unknown unit: {unit}")
        patch["unit"] = unit

    for key in ("current_stock", "minimum_stock", "reorder_level"):
        if not partial or key in data:
            patch[key] = parse_quantity(data.get(key))

    for key in ("unit_cost_cents", "unit_price_cents"):
        if not partial or key in data:
            patch[key] = _lenient_cents(data.get(key))

    if "is_active" in data:
        patch["is_active"] = parse_bool(data.get("is_active"), default=True)

    return patch


def apply_item_patch(item: InventoryItem, patch: dict) -> None:
    for k, v in patch.items():
        if k not in INVENTORY_MUTABLE_FIELDS:
            continue
        setattr(item, k, v)


def create_item(store_id: int, data: dict) -> InventoryItem:
    item = InventoryItem(store_id=store_id, is_active=True)
    apply_item_patch(item, validate_item_patch(data))
    db.session.add(item)
    db.session.commit()
    return item


def update_item(item: InventoryItem, data: dict) -> InventoryItem:
    apply_item_patch(item, validate_item_patch(data, partial=True))
    db.session.commit()
    return item


def toggle_item(item: InventoryItem) -> InventoryItem:
    item.is_active = not item.is_active
    db.session.commit()
    return item


def delete_item(item: InventoryItem) -> None:
    db.session.delete(item)
    db.session.commit()


def summarize(items: list[InventoryItem]) -> dict:
    """
    Totals shown above the inventory table and on the inventory report.

    Low stock here is "at or below minimum", so out-of-stock items with a
    minimum set are counted in both buckets.
    """
    low = [item for item in items if is_below_minimum(item)]
    out = [item for item in items if (item.current_stock or 0) <= 0]
    total_value = sum(
        int(round((item.current_stock or 0) * (item.unit_cost_cents or 0)))
        for item in items
    )
    return {
        "total_items": len(items),
        "active_items": sum(1 for item in items if item.is_active),
        "low_stock_count": len(low),
        "out_of_stock_count": len(out),
        "total_value_cents": total_value,
    }
