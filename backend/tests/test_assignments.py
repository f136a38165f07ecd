# Overview: Pytest coverage for store assignment replacement and the dual-list editor.

import pytest
from sqlalchemy.exc import SQLAlchemyError

from storeportal.extensions import db
from storeportal.models import UserStoreAssignment
from storeportal.services import assignment_service
from storeportal.services.assignment_service import (
    AssignmentError,
    build_editor,
    get_assigned_store_ids,
    move_to_assigned,
    move_to_available,
    replace_user_assignments,
    validate_assignment_scope,
)


@pytest.fixture
def employee(make_user, assign, main_store):
    user = make_user("employee@laundry.test", role="manager")
    assign(user, main_store, primary=True)
    return user


class TestReplaceAssignments:

    def test_result_is_exactly_submitted_ids(self, db_session, employee, main_store, branch_store):
        replace_user_assignments(employee.id, [branch_store.id, main_store.id], assigned_by=employee.id)

        rows = (
            db_session.query(UserStoreAssignment)
            .filter_by(user_id=employee.id)
            .order_by(UserStoreAssignment.id.asc())
            .all()
        )
        assert [row.store_id for row in rows] == [branch_store.id, main_store.id]
        assert [row.is_primary for row in rows] == [True, False]
        assert all(row.role == "employee" for row in rows)

    def test_primary_first_in_readback(self, employee, main_store, branch_store):
        replace_user_assignments(employee.id, [branch_store.id, main_store.id])

        assert get_assigned_store_ids(employee.id) == [branch_store.id, main_store.id]

    def test_shrinking_removes_rows(self, employee, main_store, branch_store):
        replace_user_assignments(employee.id, [main_store.id, branch_store.id])
        replace_user_assignments(employee.id, [branch_store.id])

        assert get_assigned_store_ids(employee.id) == [branch_store.id]

    def test_empty_list_rejected(self, employee, main_store):
        with pytest.raises(AssignmentError):
            replace_user_assignments(employee.id, [])

        assert get_assigned_store_ids(employee.id) == [main_store.id]

    def test_unknown_store_leaves_previous_rows(self, employee, main_store):
        with pytest.raises(AssignmentError):
            replace_user_assignments(employee.id, [main_store.id, 99999])

        assert get_assigned_store_ids(employee.id) == [main_store.id]

    def test_insert_failure_rolls_back_delete(self, monkeypatch, employee, main_store, branch_store):
        def _fail():
            raise SQLAlchemyError("insert failed")

        monkeypatch.setattr(assignment_service.db.session, "commit", _fail)

        with pytest.raises(AssignmentError):
            replace_user_assignments(employee.id, [branch_store.id])

        monkeypatch.undo()
        assert get_assigned_store_ids(employee.id) == [main_store.id]


class TestAssignmentScope:

    def test_editor_visible_stores_allowed(self, owner, employee, main_store, branch_store):
        validate_assignment_scope(owner, employee.id, [main_store.id, branch_store.id])

    def test_foreign_store_rejected(self, owner, employee, main_store, foreign_store):
        with pytest.raises(AssignmentError):
            validate_assignment_scope(owner, employee.id, [main_store.id, foreign_store.id])

    def test_target_existing_outside_store_kept(self, owner, employee, assign, main_store, foreign_store):
        assign(employee, foreign_store)

        validate_assignment_scope(owner, employee.id, [main_store.id, foreign_store.id])


class TestEditor:

    def test_panes(self, owner, main_store, branch_store):
        editor = build_editor(owner, [main_store.id])

        assert [store.id for store in editor.available] == [branch_store.id]
        assert [store.id for store in editor.assigned] == [main_store.id]

    def test_outside_store_only_in_assigned(self, owner, employee, assign, main_store, branch_store, foreign_store):
        assign(employee, foreign_store)

        editor = build_editor(owner, [main_store.id, foreign_store.id], target_user_id=employee.id)

        assert foreign_store.id in [store.id for store in editor.assigned]
        assert foreign_store.id not in [store.id for store in editor.available]
        assert {store.id for store in editor.available} == {branch_store.id}

    def test_unrelated_outside_store_dropped(self, owner, employee, main_store, foreign_store):
        editor = build_editor(owner, [main_store.id, foreign_store.id], target_user_id=employee.id)

        assert [store.id for store in editor.assigned] == [main_store.id]
        assert editor.selected_store_ids == [main_store.id]

    def test_new_user_gets_no_outside_stores(self, owner, main_store, foreign_store):
        editor = build_editor(owner, [foreign_store.id])

        assert editor.assigned == []
        assert editor.selected_store_ids == []

    def test_filters_are_case_insensitive(self, owner, main_store, branch_store):
        editor = build_editor(owner, [main_store.id], available_filter="BAY", assigned_filter="zzz")

        assert [store.name for store in editor.available] == ["Bayview Laundry"]
        assert editor.assigned == []

    def test_moves_preserve_order_and_dedupe(self):
        selected = move_to_assigned([3, 1], [5, 1, 7])
        assert selected == [3, 1, 5, 7]

        assert move_to_available(selected, [1, 7]) == [3, 5]

    def test_to_dict_counts(self, owner, main_store, branch_store):
        payload = build_editor(owner, [main_store.id]).to_dict()

        assert payload["available_count"] == 1
        assert payload["assigned_count"] == 1
        assert payload["selected_store_ids"] == [main_store.id]
