from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


ROLE_CASHIER = "cashier"
ROLE_STORE_OWNER = "store_owner"
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_SUPER_ADMIN = "super_admin"
USER_ROLES = (ROLE_CASHIER, ROLE_STORE_OWNER, ROLE_ADMIN, ROLE_MANAGER, ROLE_SUPER_ADMIN)


class User(db.Model):
    """
    Portal and POS user accounts.

    The role string decides portal access; cashiers sign in to the POS only.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    first_name = db.Column(db.String(120), nullable=False, default="")
    last_name = db.Column(db.String(120), nullable=False, default="")
    phone = db.Column(db.String(64), nullable=True)

    role = db.Column(db.String(32), nullable=False, default=ROLE_CASHIER, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name or "",
            "last_name": self.last_name or "",
            "phone": self.phone or "",
            "role": self.role,
            "is_active": self.is_active is not False,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class SessionToken(db.Model):
    """
    One signed-in portal session.

    Access and refresh tokens are stored as SHA-256 hashes only. The
    selected store id lives here so the choice survives reloads and is
    dropped on sign-out.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    access_token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)
    refresh_token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    access_expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    refresh_expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    selected_store_id = db.Column(db.Integer, db.ForeignKey("stores.id", ondelete="SET NULL"), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)  # IPv6 max length

    user = db.relationship("User", backref=db.backref("session_tokens", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "access_expires_at": to_utc_z(self.access_expires_at),
            "refresh_expires_at": to_utc_z(self.refresh_expires_at),
            "selected_store_id": self.selected_store_id,
        }
