from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


ORDER_STATUSES = ("pending", "in_progress", "ready", "completed", "picked_up", "cancelled")
COMPLETED_ORDER_STATUSES = ("completed", "picked_up")
PAYMENT_STATUSES = ("pending", "paid")

WALK_IN_CUSTOMER = "Walk-in Customer"


class Customer(db.Model):
    __tablename__ = "customers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)

    # POS clients write either a single display name or first/last
    name = db.Column(db.String(255), nullable=True)
    first_name = db.Column(db.String(120), nullable=True)
    last_name = db.Column(db.String(120), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("customers", lazy=True))

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        if self.first_name or self.last_name:
            return f"{self.first_name or ''} {self.last_name or ''}".strip()
        return WALK_IN_CUSTOMER

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "email": self.email,
            "display_name": self.display_name,
            "created_at": to_utc_z(self.created_at),
        }


class Order(db.Model):
    """
    A laundry ticket rung up at the POS.

    The portal only reads orders; they are written by the counter app.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_store_created", "store_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    order_number = db.Column(db.String(32), nullable=True)

    order_status = db.Column(db.String(16), nullable=False, default="pending")
    payment_status = db.Column(db.String(16), nullable=True)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    store = db.relationship("Store", backref=db.backref("orders", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True))
    items = db.relationship("OrderItem", backref="order", lazy=True, order_by="OrderItem.id")

    @property
    def customer_name(self) -> str:
        return self.customer.display_name if self.customer else WALK_IN_CUSTOMER

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "customer_id": self.customer_id,
            "order_number": self.order_number,
            "order_status": self.order_status,
            "payment_status": self.payment_status,
            "total_amount_cents": self.total_amount_cents,
            "created_at": to_utc_z(self.created_at),
        }


class OrderItem(db.Model):
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    service_id = db.Column(db.Integer, db.ForeignKey("services.id"), nullable=True)
    service_name = db.Column(db.String(120), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price_cents = db.Column(db.Integer, nullable=False, default=0)
    total_price_cents = db.Column(db.Integer, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "service_id": self.service_id,
            "service_name": self.service_name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_price_cents": self.total_price_cents,
        }
