# tests/api/test_items.py

def test_create_item(create_item):
    item = create_item(lp="  LP-1000 ", sku="SKU123", model="Carry-on")
    assert item["id"].startswith("itm_")
    assert item["lp"] == "LP-1000"
    assert item["status"] == "AWAITING_REPAIR"
    assert item["current_workflow_version_id"] is None


def test_duplicate_lp_conflicts(client, auth_headers, create_item):
    create_item(lp="LP-1")
    r = client.post("/api/v0/items", json={"lp": "LP-1"}, headers=auth_headers)
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "CONFLICT"


def test_blank_lp_is_rejected(client, auth_headers):
    assert client.post("/api/v0/items", json={"lp": "   "}, headers=auth_headers).status_code == 422


def test_scan_exact_then_case_insensitive(client, auth_headers, create_item, create_repair):
    item = create_item(lp="LP-ABC")
    create_repair(item["id"], priority=3)

    r = client.get("/api/v0/items/scan", params={"lp": "LP-ABC"}, headers=auth_headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["item"]["id"] == item["id"]
    assert body["workflow"] is None
    assert [p["priority"] for p in body["pending_repairs"]] == [3]
    assert body["completed_repairs"] == []

    r = client.get("/api/v0/items/scan", params={"lp": " lp-abc "}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["item"]["id"] == item["id"]


def test_scan_unknown_lp(client, auth_headers):
    r = client.get("/api/v0/items/scan", params={"lp": "NOPE"}, headers=auth_headers)
    assert r.status_code == 404
    assert "NOPE" in r.json()["detail"]


def test_outstanding_repair_requires_existing_item(client, auth_headers):
    r = client.post(
        "/api/v0/outstanding-repairs",
        json={"item_id": "itm_missing", "repair_type": "WHEEL_REPLACEMENT"},
        headers=auth_headers,
    )
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "NOT_FOUND"


def test_outstanding_repair_validation(client, auth_headers, create_item):
    item = create_item()
    base = {"item_id": item["id"], "repair_type": "WHEEL_REPLACEMENT"}
    assert client.post("/api/v0/outstanding-repairs", json={**base, "priority": 5}, headers=auth_headers).status_code == 422
    assert client.post("/api/v0/outstanding-repairs", json={**base, "estimated_cost": 0}, headers=auth_headers).status_code == 422


def test_get_and_list_outstanding_repairs(client, auth_headers, create_item, create_repair):
    item = create_item()
    low = create_repair(item["id"], repair_type="WHEEL_REPLACEMENT", priority=1)
    high = create_repair(item["id"], repair_type="LOCK_REPLACEMENT", priority=4, estimated_cost=2500)
    other = create_item(lp="LP-0002")
    create_repair(other["id"])

    r = client.get(f"/api/v0/outstanding-repairs/{high['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["estimated_cost"] == 2500
    assert client.get("/api/v0/outstanding-repairs/rep_missing", headers=auth_headers).status_code == 404

    r = client.get("/api/v0/outstanding-repairs", params={"item_id": item["id"]}, headers=auth_headers)
    assert [x["id"] for x in r.json()] == [high["id"], low["id"]]

    r = client.get("/api/v0/outstanding-repairs", params={"repair_type": "WHEEL_REPLACEMENT"}, headers=auth_headers)
    assert [x["id"] for x in r.json()] == [low["id"]]

    r = client.get("/api/v0/outstanding-repairs", params={"status": "PENDING"}, headers=auth_headers)
    assert len(r.json()) == 3


def test_completed_repairs_hidden_by_default(client, auth_headers, create_workflow, create_item, create_repair):
    create_workflow()
    item = create_item()
    repair = create_repair(item["id"])
    r = client.post(
        f"/api/v0/outstanding-repairs/{repair['id']}:complete",
        json={"was_successful": True},
        headers=auth_headers,
    )
    assert r.status_code == 200, r.text

    assert client.get("/api/v0/outstanding-repairs", headers=auth_headers).json() == []
    r = client.get("/api/v0/outstanding-repairs", params={"include_completed": "true"}, headers=auth_headers)
    assert [x["id"] for x in r.json()] == [repair["id"]]

    scan = client.get("/api/v0/items/scan", params={"lp": item["lp"]}, headers=auth_headers).json()
    assert scan["pending_repairs"] == []
    assert [x["id"] for x in scan["completed_repairs"]] == [repair["id"]]


def test_database_errors_render_as_store_unavailable(client, auth_headers, monkeypatch):
    from sqlalchemy.exc import OperationalError

    from repairtrack.services.items import ItemRepository

    def locked(self, lp):
        raise OperationalError("SELECT items", {}, Exception("database is locked"))

    monkeypatch.setattr(ItemRepository, "scan_item", locked)
    r = client.get("/api/v0/items/scan", params={"lp": "LP-1"}, headers=auth_headers)
    assert r.status_code == 503
    assert r.json()["error"]["code"] == "STORE_UNAVAILABLE"
