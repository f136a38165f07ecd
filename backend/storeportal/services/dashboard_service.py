# Overview: Service-layer operations for the dashboard; headline sales figures for the selected store.

from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app

from ..models import Order
from ..models.sales import COMPLETED_ORDER_STATUSES
from ..time_utils import utcnow, start_of_day, start_of_month
from .order_service import list_orders, order_view


RECENT_ORDER_COUNT = 10
RECENT_ORDER_FIELDS = ("id", "order_number", "customer_name", "total_amount_cents", "status", "status_label", "created_at")


def _window(orders: list[Order], since: datetime) -> tuple[int, int]:
    """(sales_cents, order_count) for orders created at or after `since`."""
    matching = [order for order in orders if order.created_at and order.created_at >= since]
    return sum(order.total_amount_cents or 0 for order in matching), len(matching)


def _recent(order: Order) -> dict:
    view = order_view(order)
    return {key: view[key] for key in RECENT_ORDER_FIELDS}


def build_dashboard(store_id: int, now: datetime | None = None) -> dict:
    """
    Metrics are computed over the latest DASHBOARD_ORDER_LIMIT orders only,
    so month totals for busy stores are a floor, not an exact figure.
    """
    now = now or utcnow()
    limit = current_app.config.get("DASHBOARD_ORDER_LIMIT", 100)
    orders = list_orders(store_id, limit=limit)

    today_sales, today_orders = _window(orders, start_of_day(now))
    week_sales, week_orders = _window(orders, now - timedelta(days=7))
    month_sales, month_orders = _window(orders, start_of_month(now))

    total_sales = sum(order.total_amount_cents or 0 for order in orders)
    average = int(round(total_sales / len(orders))) if orders else 0

    return {
        "today_sales_cents": today_sales,
        "today_orders": today_orders,
        "week_sales_cents": week_sales,
        "week_orders": week_orders,
        "month_sales_cents": month_sales,
        "month_orders": month_orders,
        "completed_orders": sum(1 for o in orders if o.order_status in COMPLETED_ORDER_STATUSES),
        "pending_orders": sum(1 for o in orders if o.order_status == "pending"),
        "in_progress_orders": sum(1 for o in orders if o.order_status == "in_progress"),
        "average_order_value_cents": average,
        "orders_considered": len(orders),
        "recent_orders": [_recent(order) for order in orders[:RECENT_ORDER_COUNT]],
    }
