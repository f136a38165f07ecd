# Overview: Portal access gate and per-role capabilities; the one place role and feature checks live.

"""
Portal authorization.

Every screen asks this module instead of comparing role strings itself:

- evaluate_portal_access(user) -> AccessDecision  (may this identity use the portal?)
- capabilities_for(role)       -> Capabilities    (what may it do once inside?)
- check_feature(store, flag)   -> FeatureDecision (is an optional module on for this store?)

The gate fails closed: anything it cannot positively allow is denied.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..models import Store, User, UserStoreAssignment, Service
from ..models.auth import (
    ROLE_CASHIER,
    ROLE_STORE_OWNER,
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_SUPER_ADMIN,
)
from ..models.tenancy import STORE_FEATURES


DENIED_UNKNOWN_USER = "unknown_user"
DENIED_INACTIVE = "inactive"
DENIED_CASHIER = "cashier_denied"
DENIED_NO_STORE_ACCESS = "no_store_access"

DENIAL_MESSAGES = {
    DENIED_UNKNOWN_USER: "User not found in system",
    DENIED_INACTIVE: "This account has been deactivated.",
    DENIED_CASHIER: "Access denied. Cashiers cannot access the store owner portal.",
    DENIED_NO_STORE_ACCESS: "Access denied. Store owner privileges or store assignments required.",
}

# Roles a non-super-admin may hand out from the user screen
PORTAL_ASSIGNABLE_ROLES = (ROLE_CASHIER, ROLE_STORE_OWNER, ROLE_ADMIN, ROLE_MANAGER)

FEATURE_LABELS = {
    "email_receipts": "Email Receipts",
    "loyalty_points": "Loyalty Points",
    "tax_calculation": "Tax Calculation",
    "delivery_tracking": "Delivery Tracking",
    "sms_notifications": "SMS Notifications",
    "advanced_reporting": "Advanced Reporting",
    "inventory_tracking": "Inventory Tracking",
    "multiple_currencies": "Multiple Currencies",
}

# Sidebar order; screens mapped to a feature flag only show when it is on
SCREENS = (
    ("dashboard", None),
    ("store-profile", None),
    ("users", None),
    ("services", None),
    ("orders", None),
    ("inventory", "inventory_tracking"),
    ("reports", None),
)


@dataclass(frozen=True)
class Capabilities:
    role: str
    sees_all_stores: bool = False
    manage_store_features: bool = False
    manage_global_services: bool = False
    assignable_roles: tuple[str, ...] = PORTAL_ASSIGNABLE_ROLES

    def screens(self, store: Store | None) -> list[str]:
        if store is None:
            return []
        return [
            name for name, flag in SCREENS
            if flag is None or feature_enabled(store, flag)
        ]

    def can_assign_role(self, role: str) -> bool:
        return role in self.assignable_roles

    def can_modify_service(self, service: Service) -> bool:
        return not service.is_global or self.manage_global_services

    def to_dict(self, store: Store | None = None) -> dict:
        return {
            "role": self.role,
            "sees_all_stores": self.sees_all_stores,
            "manage_store_features": self.manage_store_features,
            "manage_global_services": self.manage_global_services,
            "assignable_roles": list(self.assignable_roles),
            "screens": self.screens(store),
        }


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str | None = None
    role: str | None = None
    capabilities: Capabilities | None = None

    @property
    def message(self) -> str | None:
        if self.allowed:
            return None
        return DENIAL_MESSAGES.get(self.reason, "Access denied")


@dataclass(frozen=True)
class FeatureDecision:
    feature: str
    enabled: bool
    message: str | None = None

    def to_dict(self) -> dict:
        payload = {"feature": self.feature, "enabled": self.enabled}
        if self.message:
            payload["message"] = self.message
        return payload


def capabilities_for(role: str) -> Capabilities:
    if role == ROLE_SUPER_ADMIN:
        return Capabilities(
            role=role,
            sees_all_stores=True,
            manage_store_features=True,
            manage_global_services=True,
            assignable_roles=PORTAL_ASSIGNABLE_ROLES + (ROLE_SUPER_ADMIN,),
        )
    return Capabilities(role=role)


def owned_store_ids(user_id: int) -> set[int]:
    rows = db.session.query(Store.id).filter(Store.owner_id == user_id).all()
    return {row[0] for row in rows}


def assigned_store_ids(user_id: int) -> set[int]:
    rows = db.session.query(UserStoreAssignment.store_id).filter_by(user_id=user_id).all()
    return {row[0] for row in rows}


def evaluate_portal_access(user: User | None) -> AccessDecision:
    """
    Decide whether an authenticated identity may use the owner portal.

    Order of checks:
    1. unknown or deactivated identity -> denied
    2. cashier role -> denied, even with valid credentials
    3. neither owns a store nor has an assignment row -> denied, whatever
       the role string says
    """
    if user is None:
        return AccessDecision(allowed=False, reason=DENIED_UNKNOWN_USER)

    if not user.is_active:
        return AccessDecision(allowed=False, reason=DENIED_INACTIVE, role=user.role)

    if user.role == ROLE_CASHIER:
        return AccessDecision(allowed=False, reason=DENIED_CASHIER, role=user.role)

    if not owned_store_ids(user.id) and not assigned_store_ids(user.id):
        return AccessDecision(allowed=False, reason=DENIED_NO_STORE_ACCESS, role=user.role)

    return AccessDecision(
        allowed=True,
        role=user.role,
        capabilities=capabilities_for(user.role),
    )


def feature_enabled(store: Store | None, flag: str) -> bool:
    if store is None or flag not in STORE_FEATURES:
        return False
    return (store.features or {}).get(flag) is True


def check_feature(store: Store, flag: str) -> FeatureDecision:
    if feature_enabled(store, flag):
        return FeatureDecision(feature=flag, enabled=True)

    label = FEATURE_LABELS.get(flag, flag)
    return FeatureDecision(
        feature=flag,
        enabled=False,
        message=(
            f"{label} is not enabled for {store.name}. "
            f"Please contact your administrator to enable {label}."
        ),
    )
