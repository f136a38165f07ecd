# Overview: Pytest coverage for visible stores and current-store selection.

import pytest

from storeportal.services.store_context import (
    StoreContext,
    StoreSelectionError,
    visible_stores,
    resolve_selection,
)


class TestVisibleStores:

    def test_super_admin_sees_every_active_store(self, super_admin, main_store, branch_store, foreign_store, make_store):
        make_store("Closed Branch", status="inactive")

        names = [store.name for store in visible_stores(super_admin)]

        assert names == ["Bayview Laundry", "Main Street Laundry", "Zeta Wash"]

    def test_owner_sees_owned_and_assigned(self, owner, main_store, foreign_store, assign):
        assign(owner, foreign_store)

        names = [store.name for store in visible_stores(owner)]

        assert names == ["Main Street Laundry", "Zeta Wash"]

    def test_inactive_excluded_for_owner(self, owner, main_store, make_store):
        make_store("Closed Branch", owner=owner, status="inactive")

        assert [store.name for store in visible_stores(owner)] == ["Main Street Laundry"]

    def test_assigned_only_user(self, make_user, assign, branch_store, foreign_store):
        manager = make_user("manager@laundry.test", role="manager")
        assign(manager, foreign_store)

        assert [store.id for store in visible_stores(manager)] == [foreign_store.id]


class TestSelection:

    def test_stored_id_kept_when_visible(self, owner, main_store, branch_store):
        context = StoreContext.load(owner, main_store.id)

        assert context.selected_id == main_store.id

    def test_falls_back_to_first_by_name(self, owner, main_store, branch_store, foreign_store):
        context = StoreContext.load(owner, foreign_store.id)

        assert context.selected_id == branch_store.id

    def test_none_when_nothing_visible(self, make_user):
        user = make_user("lonely@laundry.test", role="admin")

        context = StoreContext.load(user, None)

        assert context.selected is None
        assert context.stores == []

    def test_resolve_selection_empty(self):
        assert resolve_selection([], 42) is None

    def test_select_invisible_store_rejected(self, owner, main_store, foreign_store):
        context = StoreContext.load(owner)

        with pytest.raises(StoreSelectionError):
            context.select(foreign_store.id)

        assert context.selected_id == main_store.id

    def test_refresh_falls_back_after_access_lost(self, db_session, owner, main_store, branch_store):
        context = StoreContext.load(owner, main_store.id)

        main_store.owner_id = None
        db_session.commit()
        context.refresh()

        assert context.selected_id == branch_store.id
        assert context.store_ids == [branch_store.id]

    def test_clear(self, owner, main_store):
        context = StoreContext.load(owner)
        context.clear()

        assert context.selected is None
        assert context.to_dict()["selected_store_id"] is None
