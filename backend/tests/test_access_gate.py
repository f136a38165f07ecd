# Overview: Pytest coverage for the portal access gate, capabilities and feature flags.

import pytest

from storeportal.services.access_service import (
    evaluate_portal_access,
    capabilities_for,
    check_feature,
    feature_enabled,
    DENIED_CASHIER,
    DENIED_NO_STORE_ACCESS,
    DENIED_INACTIVE,
    DENIED_UNKNOWN_USER,
)


# =============================================================================
# PORTAL GATE
# =============================================================================


class TestPortalGate:

    def test_cashier_denied_even_with_assignment(self, make_user, assign, main_store):
        cashier = make_user("cashier@laundry.test", role="cashier")
        assign(cashier, main_store)

        decision = evaluate_portal_access(cashier)

        assert decision.allowed is False
        assert decision.reason == DENIED_CASHIER
        assert "Cashiers cannot access" in decision.message

    def test_cashier_denied_even_as_owner(self, make_user, make_store):
        cashier = make_user("cashier@laundry.test", role="cashier")
        make_store("Odd Setup", owner=cashier)

        assert evaluate_portal_access(cashier).reason == DENIED_CASHIER

    @pytest.mark.parametrize("role", ["store_owner", "admin", "manager", "super_admin"])
    def test_no_ownership_and_no_assignment_denied(self, make_user, role):
        user = make_user(f"{role}@laundry.test", role=role)

        decision = evaluate_portal_access(user)

        assert decision.allowed is False
        assert decision.reason == DENIED_NO_STORE_ACCESS

    def test_owner_allowed_without_assignment_rows(self, owner, main_store):
        decision = evaluate_portal_access(owner)

        assert decision.allowed is True
        assert decision.role == "store_owner"
        assert decision.capabilities.sees_all_stores is False

    def test_assigned_manager_allowed(self, make_user, assign, main_store):
        manager = make_user("manager@laundry.test", role="manager")
        assign(manager, main_store)

        assert evaluate_portal_access(manager).allowed is True

    def test_inactive_user_denied(self, make_user, assign, main_store):
        user = make_user("gone@laundry.test", role="admin", is_active=False)
        assign(user, main_store)

        assert evaluate_portal_access(user).reason == DENIED_INACTIVE

    def test_missing_user_denied(self, db_session):
        assert evaluate_portal_access(None).reason == DENIED_UNKNOWN_USER


# =============================================================================
# CAPABILITIES
# =============================================================================


class TestCapabilities:

    def test_super_admin_capabilities(self):
        caps = capabilities_for("super_admin")

        assert caps.sees_all_stores
        assert caps.manage_store_features
        assert caps.manage_global_services
        assert caps.can_assign_role("super_admin")

    def test_owner_cannot_assign_super_admin(self):
        caps = capabilities_for("store_owner")

        assert not caps.can_assign_role("super_admin")
        assert caps.can_assign_role("cashier")
        assert not caps.manage_store_features

    def test_inventory_screen_follows_flag(self, main_store, branch_store):
        caps = capabilities_for("store_owner")

        assert "inventory" in caps.screens(main_store)
        assert "inventory" not in caps.screens(branch_store)
        assert caps.screens(None) == []


# =============================================================================
# FEATURE FLAGS
# =============================================================================


class TestFeatureFlags:

    def test_missing_flag_is_off(self, branch_store):
        assert feature_enabled(branch_store, "inventory_tracking") is False

    def test_unknown_flag_is_off(self, main_store):
        assert feature_enabled(main_store, "time_travel") is False

    def test_disabled_message_names_store(self, branch_store):
        decision = check_feature(branch_store, "inventory_tracking")

        assert decision.enabled is False
        assert "Bayview Laundry" in decision.message
        assert decision.to_dict()["enabled"] is False

    def test_enabled_flag(self, main_store):
        assert check_feature(main_store, "inventory_tracking").enabled is True
