# Overview: Pytest coverage for the store-scoped user management endpoints.

from storeportal.models import User, UserStoreAssignment, SessionToken
from storeportal.services.assignment_service import get_assigned_store_ids
from conftest import auth_headers, get_auth_token


def _select(client, headers, store_id):
    resp = client.put("/api/stores/selected", json={"store_id": store_id}, headers=headers)
    assert resp.status_code == 200


# =============================================================================
# LISTING
# =============================================================================


class TestListUsers:

    def test_lists_assigned_owner_and_manager(self, client, owner_headers, make_user, make_store, assign, owner, main_store):
        staff = make_user("staff@laundry.test", role="admin")
        assign(staff, main_store)
        managed = make_user("mgr@laundry.test", role="manager")
        main_store.manager_id = managed.id
        root = make_user("root2@laundry.test", role="super_admin")
        assign(root, main_store)
        _select(client, owner_headers, main_store.id)

        resp = client.get("/api/users", headers=owner_headers)

        assert resp.status_code == 200
        emails = [u["email"] for u in resp.json["users"]]
        assert set(emails) == {owner.email, staff.email, managed.email}
        # Newest first
        assert emails[0] == managed.email
        assert "super_admin" not in resp.json["assignable_roles"]

    def test_other_store_users_hidden(self, client, owner_headers, make_user, assign, foreign_store):
        outsider = make_user("outsider@other.test", role="admin")
        assign(outsider, foreign_store)

        resp = client.get("/api/users", headers=owner_headers)

        assert outsider.email not in [u["email"] for u in resp.json["users"]]
        assert client.get(f"/api/users/{outsider.id}", headers=owner_headers).status_code == 404


# =============================================================================
# CREATE
# =============================================================================


class TestCreateUser:

    def test_defaults_to_current_store_and_cashier(self, client, db_session, owner_headers, branch_store):
        resp = client.post("/api/users", json={
            "email": "new@laundry.test",
            "password": "secret99",
            "first_name": "New",
            "last_name": "Hire",
        }, headers=owner_headers)

        assert resp.status_code == 201
        assert resp.json["role"] == "cashier"
        assert resp.json["store_ids"] == [branch_store.id]

    def test_selection_missing_current_store_collapses(self, client, owner_headers, main_store, branch_store):
        resp = client.post("/api/users", json={
            "email": "new@laundry.test",
            "password": "secret99",
            "first_name": "New",
            "last_name": "Hire",
            "role": "manager",
            "store_ids": [main_store.id],
        }, headers=owner_headers)

        assert resp.status_code == 201
        assert resp.json["store_ids"] == [branch_store.id]

    def test_selection_with_current_store_kept(self, client, owner_headers, main_store, branch_store):
        resp = client.post("/api/users", json={
            "email": "new@laundry.test",
            "password": "secret99",
            "first_name": "New",
            "last_name": "Hire",
            "store_ids": [main_store.id, branch_store.id, main_store.id],
        }, headers=owner_headers)

        assert resp.status_code == 201
        assert resp.json["store_ids"] == [main_store.id, branch_store.id]

    def test_duplicate_email_conflict(self, client, owner_headers, owner):
        resp = client.post("/api/users", json={
            "email": owner.email,
            "password": "secret99",
            "first_name": "Dup",
            "last_name": "Licate",
        }, headers=owner_headers)

        assert resp.status_code == 409

    def test_required_fields(self, client, owner_headers):
        resp = client.post("/api/users", json={"email": "x@laundry.test"}, headers=owner_headers)

        assert resp.status_code == 400
        assert resp.json["error"] == "Please fill in all required fields"

    def test_short_password(self, client, owner_headers):
        resp = client.post("/api/users", json={
            "email": "short@laundry.test",
            "password": "abc",
            "first_name": "Short",
            "last_name": "Pass",
        }, headers=owner_headers)

        assert resp.status_code == 400

    def test_owner_cannot_create_super_admin(self, client, db_session, owner_headers):
        resp = client.post("/api/users", json={
            "email": "boss@laundry.test",
            "password": "secret99",
            "first_name": "Big",
            "last_name": "Boss",
            "role": "super_admin",
        }, headers=owner_headers)

        assert resp.status_code == 400
        assert db_session.query(User).filter_by(email="boss@laundry.test").count() == 0


# =============================================================================
# UPDATE / DELETE
# =============================================================================


class TestUpdateUser:

    def test_profile_and_assignments_saved_together(self, client, make_user, assign, owner_headers, main_store, branch_store):
        staff = make_user("staff@laundry.test", role="admin")
        assign(staff, branch_store, primary=True)

        resp = client.put(f"/api/users/{staff.id}", json={
            "first_name": "Renamed",
            "last_name": "Staff",
            "role": "manager",
            "store_ids": [main_store.id, branch_store.id],
        }, headers=owner_headers)

        assert resp.status_code == 200
        assert resp.json["first_name"] == "Renamed"
        assert resp.json["role"] == "manager"
        assert get_assigned_store_ids(staff.id) == [main_store.id, branch_store.id]

    def test_foreign_store_rejected_without_changes(self, client, make_user, assign, owner_headers, branch_store, foreign_store):
        staff = make_user("staff@laundry.test", role="admin", first_name="Kept")
        assign(staff, branch_store, primary=True)

        resp = client.put(f"/api/users/{staff.id}", json={
            "first_name": "Changed",
            "last_name": "Staff",
            "store_ids": [foreign_store.id],
        }, headers=owner_headers)

        assert resp.status_code == 400
        assert get_assigned_store_ids(staff.id) == [branch_store.id]
        assert client.get(f"/api/users/{staff.id}", headers=owner_headers).json["first_name"] == "Kept"

    def test_password_reset(self, client, make_user, assign, owner_headers, branch_store):
        staff = make_user("staff@laundry.test", role="admin")
        assign(staff, branch_store)

        resp = client.put(f"/api/users/{staff.id}", json={
            "first_name": "Staff",
            "last_name": "Member",
            "password": "brandnew1",
            "store_ids": [branch_store.id],
        }, headers=owner_headers)

        assert resp.status_code == 200
        assert get_auth_token(client, staff.email, "brandnew1") is not None

    def test_empty_store_list_rejected(self, client, make_user, assign, owner_headers, branch_store):
        staff = make_user("staff@laundry.test", role="admin")
        assign(staff, branch_store)

        resp = client.put(f"/api/users/{staff.id}", json={
            "first_name": "Staff",
            "last_name": "Member",
            "store_ids": [],
        }, headers=owner_headers)

        assert resp.status_code == 400
        assert get_assigned_store_ids(staff.id) == [branch_store.id]


class TestDeleteUser:

    def test_delete_removes_assignments_and_sessions(self, client, db_session, make_user, assign, owner_headers, branch_store):
        staff = make_user("staff@laundry.test", role="admin")
        assign(staff, branch_store)
        get_auth_token(client, staff.email)
        staff_id = staff.id

        resp = client.delete(f"/api/users/{staff_id}", headers=owner_headers)

        assert resp.status_code == 200
        assert db_session.query(User).filter_by(id=staff_id).count() == 0
        assert db_session.query(UserStoreAssignment).filter_by(user_id=staff_id).count() == 0
        assert db_session.query(SessionToken).filter_by(user_id=staff_id).count() == 0

    def test_cannot_delete_self(self, client, owner_headers, owner):
        resp = client.delete(f"/api/users/{owner.id}", headers=owner_headers)
        assert resp.status_code == 400


class TestAssignmentEndpoints:

    def test_replace_assignments(self, client, make_user, assign, owner_headers, main_store, branch_store):
        staff = make_user("staff@laundry.test", role="admin")
        assign(staff, branch_store)

        resp = client.put(
            f"/api/users/{staff.id}/assignments",
            json={"store_ids": [main_store.id, branch_store.id]},
            headers=owner_headers,
        )

        assert resp.status_code == 200
        assert resp.json["store_ids"] == [main_store.id, branch_store.id]

    def test_editor_move(self, client, owner_headers, main_store, branch_store):
        resp = client.post("/api/users/assignment-editor", json={
            "selected_store_ids": [branch_store.id],
            "move": {"to": "assigned", "store_ids": [main_store.id]},
        }, headers=owner_headers)

        assert resp.status_code == 200
        assert resp.json["selected_store_ids"] == [branch_store.id, main_store.id]
        assert resp.json["available"] == []

    def test_editor_seeded_from_current_store(self, client, owner_headers, main_store, branch_store):
        resp = client.post("/api/users/assignment-editor", json={}, headers=owner_headers)

        assert resp.json["selected_store_ids"] == [branch_store.id]
        assert [s["id"] for s in resp.json["available"]] == [main_store.id]

    def test_editor_hides_unrelated_store(self, client, owner_headers, branch_store, foreign_store):
        resp = client.post("/api/users/assignment-editor", json={
            "selected_store_ids": [branch_store.id, foreign_store.id],
        }, headers=owner_headers)

        assert resp.status_code == 200
        assert [s["id"] for s in resp.json["assigned"]] == [branch_store.id]
        assert foreign_store.id not in resp.json["selected_store_ids"]

    def test_editor_keeps_store_the_user_holds(self, client, make_user, assign, owner_headers, branch_store, foreign_store):
        staff = make_user("staff@laundry.test", role="admin")
        assign(staff, branch_store, primary=True)
        assign(staff, foreign_store)

        resp = client.post("/api/users/assignment-editor", json={"user_id": staff.id}, headers=owner_headers)

        assert resp.status_code == 200
        assert {s["id"] for s in resp.json["assigned"]} == {branch_store.id, foreign_store.id}
        assert foreign_store.id not in [s["id"] for s in resp.json["available"]]
