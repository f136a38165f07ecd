# Overview: Pytest coverage for inventory stock status and the feature-gated inventory screen.

import pytest

from storeportal.models import InventoryItem
from storeportal.services.inventory_service import stock_status, summarize, validate_item_patch


def _item(current, minimum=0, reorder=0, cost=0, active=True):
    return InventoryItem(
        name="Detergent",
        current_stock=current,
        minimum_stock=minimum,
        reorder_level=reorder,
        unit_cost_cents=cost,
        is_active=active,
    )


class TestStockStatus:

    @pytest.mark.parametrize("current,minimum,reorder,expected", [
        (0, 5, 10, "out_of_stock"),
        (-1, 0, 0, "out_of_stock"),
        (5, 5, 10, "low_stock"),
        (8, 5, 10, "reorder"),
        (8, 0, 0, "in_stock"),
        (11, 5, 10, "in_stock"),
    ])
    def test_status(self, current, minimum, reorder, expected):
        assert stock_status(_item(current, minimum, reorder)) == expected

    def test_summary(self):
        summary = summarize([_item(0, 2, cost=100), _item(3, 5, cost=250), _item(10, 2, cost=100)])

        assert summary["out_of_stock_count"] == 1
        assert summary["low_stock_count"] == 2
        assert summary["total_value_cents"] == 3 * 250 + 10 * 100

    def test_blank_numbers_default_to_zero(self):
        patch = validate_item_patch({"name": "Bleach", "current_stock": "", "unit_cost_cents": "abc"})

        assert patch["current_stock"] == 0
        assert patch["unit_cost_cents"] == 0
        assert patch["unit"] == "pcs"


@pytest.fixture
def inventory_headers(client, owner_headers, main_store):
    client.put("/api/stores/selected", json={"store_id": main_store.id}, headers=owner_headers)
    return owner_headers


class TestInventoryRoutes:

    def test_crud(self, client, inventory_headers):
        created = client.post("/api/inventory", json={
            "name": "Fabric Softener",
            "category": "Fabric Softener",
            "unit": "L",
            "current_stock": 2,
            "minimum_stock": 5,
            "unit_cost_cents": 450,
        }, headers=inventory_headers)
        assert created.status_code == 201
        assert created.json["stock_status"] == "low_stock"
        item_id = created.json["id"]

        listed = client.get("/api/inventory", headers=inventory_headers)
        assert listed.json["enabled"] is True
        assert [i["id"] for i in listed.json["items"]] == [item_id]

        updated = client.put(f"/api/inventory/{item_id}", json={"current_stock": 20}, headers=inventory_headers)
        assert updated.json["stock_status"] == "in_stock"

        toggled = client.post(f"/api/inventory/{item_id}/toggle", headers=inventory_headers)
        assert toggled.json["is_active"] is False

        assert client.delete(f"/api/inventory/{item_id}", headers=inventory_headers).status_code == 200

    def test_name_required(self, client, inventory_headers):
        resp = client.post("/api/inventory", json={"name": " "}, headers=inventory_headers)
        assert resp.status_code == 400

    def test_disabled_store_renders_disabled(self, client, owner_headers, branch_store):
        resp = client.get("/api/inventory", headers=owner_headers)

        assert resp.status_code == 200
        assert resp.json["enabled"] is False
        assert "Bayview Laundry" in resp.json["message"]
        assert "items" not in resp.json

    def test_disabled_store_blocks_mutations(self, client, owner_headers):
        resp = client.post("/api/inventory", json={"name": "Soap"}, headers=owner_headers)
        assert resp.status_code == 403

    def test_turning_flag_off_keeps_rows(self, client, db_session, inventory_headers, main_store):
        client.post("/api/inventory", json={"name": "Starch"}, headers=inventory_headers)

        main_store.features = {**main_store.features, "inventory_tracking": False}
        db_session.commit()

        resp = client.get("/api/inventory", headers=inventory_headers)
        assert resp.json["enabled"] is False
        assert db_session.query(InventoryItem).filter_by(store_id=main_store.id).count() == 1

        main_store.features = {**main_store.features, "inventory_tracking": True}
        db_session.commit()
        assert len(client.get("/api/inventory", headers=inventory_headers).json["items"]) == 1
