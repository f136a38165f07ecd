# Overview: Pytest coverage for health/version endpoints and the flask CLI commands.

from datetime import timedelta

from storeportal.models import SessionToken, Store, User
from storeportal.services.assignment_service import get_assigned_store_ids
from storeportal.time_utils import utcnow


class TestSystemRoutes:

    def test_health(self, client, db_session):
        resp = client.get("/health")

        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert set(resp.json["checks"]) == {"database", "sessions"}

    def test_version(self, client):
        resp = client.get("/version")

        assert resp.status_code == 200
        assert resp.json["api_version"] == "1.0.0"


class TestCli:

    def test_system_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        first = runner.invoke(args=["system", "init", "--store-name", "Demo Laundry"])
        assert first.exit_code == 0, first.output
        second = runner.invoke(args=["system", "init"])
        assert second.exit_code == 0, second.output
        assert "already exists" in second.output

        assert db_session.query(User).count() == 2
        store = db_session.query(Store).one()
        assert store.name == "Demo Laundry"

        admin = db_session.query(User).filter_by(role="super_admin").one()
        assert get_assigned_store_ids(admin.id) == [store.id]

    def test_stores_feature_and_status(self, app, db_session, branch_store):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["stores", "feature", "--store-id", str(branch_store.id), "inventory_tracking", "on"])
        assert result.exit_code == 0, result.output
        result = runner.invoke(args=["stores", "status", "--store-id", str(branch_store.id), "inactive"])
        assert result.exit_code == 0, result.output

        db_session.refresh(branch_store)
        assert branch_store.features["inventory_tracking"] is True
        assert branch_store.status == "inactive"

    def test_stores_assign(self, app, make_user, main_store, branch_store):
        staff = make_user("staff@laundry.test", role="admin")

        result = app.test_cli_runner().invoke(args=[
            "stores", "assign", "--user-id", str(staff.id),
            "--store-id", str(branch_store.id), "--store-id", str(main_store.id),
        ])

        assert result.exit_code == 0, result.output
        assert get_assigned_store_ids(staff.id) == [branch_store.id, main_store.id]

    def test_cleanup_sessions(self, app, db_session, owner):
        old = utcnow() - timedelta(days=90)
        db_session.add(SessionToken(
            user_id=owner.id,
            access_token_hash="a" * 64,
            refresh_token_hash="b" * 64,
            created_at=old,
            last_used_at=old,
            access_expires_at=old,
            refresh_expires_at=old + timedelta(days=1),
        ))
        db_session.commit()

        result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-sessions"])

        assert result.exit_code == 0, result.output
        assert "Deleted 1" in result.output
        assert db_session.query(SessionToken).count() == 0

    def test_users_create_with_stores(self, app, db_session, main_store, branch_store):
        result = app.test_cli_runner().invoke(args=[
            "users", "create", "--email", "clerk@laundry.test", "--password", "secret99",
            "--first-name", "Cal", "--last-name", "Clerk", "--role", "manager",
            "--store-id", str(branch_store.id), "--store-id", str(main_store.id),
        ])

        assert result.exit_code == 0, result.output
        user = db_session.query(User).filter_by(email="clerk@laundry.test").one()
        assert get_assigned_store_ids(user.id) == [branch_store.id, main_store.id]

    def test_users_create_duplicate_email(self, app, owner):
        result = app.test_cli_runner().invoke(args=[
            "users", "create", "--email", owner.email, "--password", "secret99",
            "--first-name", "Dup", "--last-name", "Licate", "--role", "manager",
        ])

        assert result.exit_code == 0
        assert result.exception is None
        assert "FAIL" in result.output

    def test_users_create_unknown_store_saves_nothing(self, app, db_session):
        result = app.test_cli_runner().invoke(args=[
            "users", "create", "--email", "ghost@laundry.test", "--password", "secret99",
            "--first-name", "Gus", "--last-name", "Ghost", "--role", "manager",
            "--store-id", "99999",
        ])

        assert result.exit_code == 0
        assert "FAIL" in result.output
        assert db_session.query(User).filter_by(email="ghost@laundry.test").count() == 0
