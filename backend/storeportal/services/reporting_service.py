# Overview: Service-layer operations for reporting; per-store reports over a selectable date range.

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Order, OrderItem, InventoryItem, Store
from ..models.sales import COMPLETED_ORDER_STATUSES, WALK_IN_CUSTOMER
from ..time_utils import report_window, to_utc_z
from .access_service import check_feature
from .inventory_service import is_below_minimum, serialize_item, summarize


REPORT_TYPES = ("sales", "orders", "inventory", "customers", "services", "financial")
TOP_CUSTOMER_COUNT = 10
UNKNOWN_SERVICE = "Unknown Service"


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _orders_in_range(store_id: int, start: datetime, end: datetime, *, with_customer: bool = False) -> list[Order]:
    query = db.session.query(Order).filter(
        Order.store_id == store_id,
        Order.created_at >= start,
        Order.created_at <= end,
    )
    if with_customer:
        query = query.options(joinedload(Order.customer))
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def _total(orders: list[Order]) -> int:
    return sum(order.total_amount_cents or 0 for order in orders)


def sales_report(store: Store, start: datetime, end: datetime) -> dict:
    orders = _orders_in_range(store.id, start, end)
    total_sales = _total(orders)
    return {
        "total_sales_cents": total_sales,
        "total_orders": len(orders),
        "completed_orders": sum(1 for o in orders if o.order_status in COMPLETED_ORDER_STATUSES),
        "pending_orders": sum(1 for o in orders if o.order_status in ("pending", "in_progress")),
        "average_order_value_cents": int(round(total_sales / len(orders))) if orders else 0,
        "orders": [order.to_dict() for order in orders],
    }


def orders_report(store: Store, start: datetime, end: datetime) -> dict:
    orders = _orders_in_range(store.id, start, end)
    status_counts: dict[str, int] = {}
    for order in orders:
        key = order.order_status or "unknown"
        status_counts[key] = status_counts.get(key, 0) + 1
    return {
        "total_orders": len(orders),
        "status_counts": status_counts,
        "orders": [order.to_dict() for order in orders],
    }


def inventory_report(store: Store, start: datetime, end: datetime) -> dict:
    """Snapshot of active items; the date range does not apply."""
    decision = check_feature(store, "inventory_tracking")
    if not decision.enabled:
        return decision.to_dict()

    items = (
        db.session.query(InventoryItem)
        .filter_by(store_id=store.id, is_active=True)
        .order_by(InventoryItem.name.asc())
        .all()
    )
    summary = summarize(items)
    return {
        "enabled": True,
        "total_items": summary["total_items"],
        "total_value_cents": summary["total_value_cents"],
        "low_stock_items": [serialize_item(item) for item in items if is_below_minimum(item)],
        "out_of_stock_items": [serialize_item(item) for item in items if (item.current_stock or 0) <= 0],
        "items": [serialize_item(item) for item in items],
    }


def customers_report(store: Store, start: datetime, end: datetime) -> dict:
    """Walk-in orders (no customer) are grouped into a single row."""
    orders = _orders_in_range(store.id, start, end, with_customer=True)

    customers: dict[str, dict] = {}
    for order in orders:
        key = str(order.customer_id) if order.customer_id else "walk-in"
        entry = customers.setdefault(key, {
            "customer_id": order.customer_id,
            "name": order.customer_name if order.customer_id else WALK_IN_CUSTOMER,
            "order_count": 0,
            "total_spent_cents": 0,
        })
        entry["order_count"] += 1
        entry["total_spent_cents"] += order.total_amount_cents or 0

    top = sorted(customers.values(), key=lambda c: c["total_spent_cents"], reverse=True)
    return {
        "total_customers": len(customers),
        "top_customers": top[:TOP_CUSTOMER_COUNT],
        "total_revenue_cents": _total(orders),
    }


def services_report(store: Store, start: datetime, end: datetime) -> dict:
    orders = _orders_in_range(store.id, start, end)
    order_ids = [order.id for order in orders]
    if not order_ids:
        return {"services": [], "total_orders": 0, "total_services": 0}

    items = db.session.query(OrderItem).filter(OrderItem.order_id.in_(order_ids)).all()

    services: dict[str, dict] = {}
    for item in items:
        name = item.service_name or UNKNOWN_SERVICE
        entry = services.setdefault(name, {"name": name, "quantity": 0, "revenue_cents": 0})
        quantity = item.quantity or 0
        entry["quantity"] += quantity
        entry["revenue_cents"] += (item.unit_price_cents or 0) * quantity

    ranked = sorted(services.values(), key=lambda s: s["revenue_cents"], reverse=True)
    return {
        "services": ranked,
        "total_orders": len(orders),
        "total_services": len(ranked),
    }


def financial_report(store: Store, start: datetime, end: datetime) -> dict:
    """Orders with no payment status count as unpaid."""
    orders = _orders_in_range(store.id, start, end)
    total_revenue = _total(orders)
    paid = [order for order in orders if order.payment_status == "paid"]
    paid_amount = _total(paid)
    return {
        "total_revenue_cents": total_revenue,
        "paid_amount_cents": paid_amount,
        "unpaid_amount_cents": total_revenue - paid_amount,
        "paid_orders": len(paid),
        "unpaid_orders": sum(1 for o in orders if o.payment_status in (None, "pending")),
        "total_orders": len(orders),
    }


_BUILDERS = {
    "sales": sales_report,
    "orders": orders_report,
    "inventory": inventory_report,
    "customers": customers_report,
    "services": services_report,
    "financial": financial_report,
}


def build_report(store: Store, report_type: str, range_key: str | None = None, now: datetime | None = None) -> dict:
    builder = _BUILDERS.get(report_type)
    if builder is None:
        raise ReportError(f"Unknown report: {report_type}")

    key, start, end = report_window(range_key, now)
    data = builder(store, start, end)
    return {
        "report": report_type,
        "range": key,
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "store_id": store.id,
        "data": data,
    }
