from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


STORE_STATUS_ACTIVE = "active"
STORE_STATUS_INACTIVE = "inactive"
STORE_STATUSES = (STORE_STATUS_ACTIVE, STORE_STATUS_INACTIVE)

# Per-store optional modules. Anything missing from Store.features is off.
STORE_FEATURES = (
    "email_receipts",
    "loyalty_points",
    "tax_calculation",
    "delivery_tracking",
    "sms_notifications",
    "advanced_reporting",
    "inventory_tracking",
    "multiple_currencies",
)


class Store(db.Model):
    """
    A laundry business location; the tenant unit of the portal.

    Only stores with status "active" can be selected in the portal.
    owner_id grants ownership scope; manager_id is informational and only
    widens the store's user listing.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.Index("ix_stores_status_name", "status", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    address = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    website = db.Column(db.String(255), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=STORE_STATUS_ACTIVE, index=True)

    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    manager_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    features = db.Column(db.JSON, nullable=False, default=dict)
    settings = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    owner = db.relationship("User", foreign_keys=[owner_id], backref=db.backref("owned_stores", lazy=True))
    manager = db.relationship("User", foreign_keys=[manager_id])

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "website": self.website,
            "status": self.status,
            "owner_id": self.owner_id,
            "manager_id": self.manager_id,
            "features": {flag: bool((self.features or {}).get(flag)) for flag in STORE_FEATURES},
            "settings": dict(self.settings or {}),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def to_summary_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "address": self.address}


class UserStoreAssignment(db.Model):
    """
    Grants a user access to a store.

    The set of rows for a user is replaced as a whole when the user is edited;
    the first submitted store is flagged primary.
    """
    __tablename__ = "user_store_assignments"
    __table_args__ = (
        db.UniqueConstraint("user_id", "store_id", name="uq_user_store_assignments"),
        db.Index("ix_user_store_assignments_user", "user_id"),
        db.Index("ix_user_store_assignments_store", "store_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False)
    role = db.Column(db.String(32), nullable=False, default="employee")
    is_primary = db.Column(db.Boolean, nullable=False, default=False)
    assigned_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    assigned_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", foreign_keys=[user_id], backref=db.backref("store_assignments", lazy=True))
    store = db.relationship("Store", backref=db.backref("user_assignments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "store_id": self.store_id,
            "role": self.role,
            "is_primary": self.is_primary,
            "assigned_by": self.assigned_by,
            "assigned_at": to_utc_z(self.assigned_at),
        }
