# Overview: Service-layer operations for orders; read-only order views and claim stubs.

from __future__ import annotations

import json

from sqlalchemy.orm import joinedload, selectinload

from ..extensions import db
from ..models import Order
from ..time_utils import utcnow, to_utc_z


STATUS_FILTER_ALL = "all"
DEFAULT_ITEM_NAME = "Service"
CLAIM_STUB_TYPE = "order_claim"


class OrderError(Exception):
    """Raised when an order view cannot be built."""
    pass


def format_status_label(status: str | None) -> str:
    """'in_progress' -> 'In Progress'."""
    if not status:
        return "Unknown"
    return " ".join(word[:1].upper() + word[1:] for word in status.split("_"))


def _normalize_items(order: Order) -> list[dict]:
    return [
        {
            "service_name": item.service_name or DEFAULT_ITEM_NAME,
            "quantity": item.quantity if item.quantity is not None else 1,
            "unit_price_cents": item.unit_price_cents or 0,
            "total_price_cents": (
                item.total_price_cents
                if item.total_price_cents is not None
                else (item.unit_price_cents or 0) * (item.quantity if item.quantity is not None else 1)
            ),
        }
        for item in order.items
    ]


def order_view(order: Order) -> dict:
    status = order.order_status or "pending"
    return {
        "id": order.id,
        "order_number": order.order_number or str(order.id),
        "customer_name": order.customer_name,
        "created_at": to_utc_z(order.created_at),
        "total_amount_cents": order.total_amount_cents or 0,
        "status": status,
        "status_label": format_status_label(status),
        "payment_status": order.payment_status,
        "store_id": order.store_id,
        "items": _normalize_items(order),
    }


def list_orders(store_id: int, limit: int | None = None) -> list[Order]:
    query = (
        db.session.query(Order)
        .options(joinedload(Order.customer), selectinload(Order.items))
        .filter(Order.store_id == store_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def filter_orders(views: list[dict], search: str | None = None, status: str | None = None) -> list[dict]:
    """Case-insensitive search over customer name, order number and id, plus an exact status match."""
    needle = (search or "").strip().lower()
    status = (status or STATUS_FILTER_ALL).strip()

    def _matches(view: dict) -> bool:
        if needle:
            haystacks = (view["customer_name"], view["order_number"], str(view["id"]))
            if not any(needle in (value or "").lower() for value in haystacks):
                return False
        if status != STATUS_FILTER_ALL and view["status"] != status:
            return False
        return True

    return [view for view in views if _matches(view)]


def distinct_statuses(views: list[dict]) -> list[str]:
    return sorted({view["status"] for view in views if view["status"]})


def order_screen(store_id: int, search: str | None = None, status: str | None = None) -> dict:
    views = [order_view(order) for order in list_orders(store_id)]
    filtered = filter_orders(views, search, status)
    return {
        "orders": filtered,
        "count": len(filtered),
        "total_count": len(views),
        "statuses": [
            {"value": value, "label": format_status_label(value)}
            for value in distinct_statuses(views)
        ],
    }


def get_order(store_id: int, order_id: int) -> Order | None:
    return (
        db.session.query(Order)
        .options(joinedload(Order.customer), selectinload(Order.items))
        .filter(Order.id == order_id, Order.store_id == store_id)
        .first()
    )


def claim_stub(store_id: int, order_id: int) -> dict:
    """
    Printable claim stub: order summary plus the QR payload the counter app
    scans at pickup.
    """
    order = get_order(store_id, order_id)
    if not order:
        raise OrderError("Order not found")

    view = order_view(order)
    qr_payload = {
        "orderId": order.id,
        "type": CLAIM_STUB_TYPE,
        "timestamp": to_utc_z(utcnow()),
    }
    return {
        "order_id": view["id"],
        "order_number": view["order_number"],
        "customer_name": view["customer_name"],
        "order_date": view["created_at"],
        "total_amount_cents": view["total_amount_cents"],
        "items": view["items"],
        "qr_payload": qr_payload,
        "qr_data": json.dumps(qr_payload, separators=(",", ":")),
    }
