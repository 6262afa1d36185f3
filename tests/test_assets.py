"""Tests for asset CRUD, tenant isolation and the checkout state machine."""

import pytest

from app.api.deps import RequestContext
from app.core.exceptions import InvalidStateTransition
from app.database import SessionLocal
from app.models import Asset, AssetHistory, AssetState
from app.schemas.asset import AssetCheckout
from app.services.assets import AssetService


def test_insert_then_find_returns_the_record(client, headers):
    payload = {
        "name": "MacBook Pro",
        "serialNumber": "C02XL0001",
        "purchasePrice": "2499.00",
        "purchaseDate": "2024-03-01",
        "notes": "Design team",
    }
    created = client.post("/api/assets", json=payload, headers=headers)

    assert created.status_code == 201
    body = created.json()
    assert body["success"] is True
    asset = body["data"]
    assert asset["id"]
    assert asset["createdAt"] and asset["updatedAt"]
    assert asset["state"] == "available"

    found = client.get(f"/api/assets/{asset['id']}", headers=headers).json()["data"]
    assert found["name"] == "MacBook Pro"
    assert found["serialNumber"] == "C02XL0001"
    assert found["purchasePrice"] == 2499.0
    assert found["purchaseDate"] == "2024-03-01"
    assert found["notes"] == "Design team"


def test_missing_required_field_is_a_validation_error(client, headers):
    response = client.post("/api/assets", json={"name": "No serial"}, headers=headers)

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "serialNumber" in response.json()["error"]


def test_remove_then_find_is_not_found(client, headers, make_asset):
    asset = make_asset()

    removed = client.delete(f"/api/assets/{asset['id']}", headers=headers)
    assert removed.status_code == 200
    assert removed.json()["data"]["id"] == asset["id"]

    response = client.get(f"/api/assets/{asset['id']}", headers=headers)
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": f"Asset not found: {asset['id']}"}


def test_serial_number_is_unique_per_company(client, headers, other_headers, make_asset):
    make_asset(serialNumber="DUP-1")

    duplicate = client.post("/api/assets", json={"name": "Other", "serialNumber": "DUP-1"}, headers=headers)
    assert duplicate.status_code == 400
    assert "already exists" in duplicate.json()["error"]

    elsewhere = client.post("/api/assets", json={"name": "Other", "serialNumber": "DUP-1"}, headers=other_headers)
    assert elsewhere.status_code == 201


def test_update_rechecks_uniqueness_excluding_itself(client, headers, make_asset):
    first = make_asset(serialNumber="A-1")
    make_asset(serialNumber="A-2")

    same = client.put(f"/api/assets/{first['id']}", json={"serialNumber": "A-1", "notes": "x"}, headers=headers)
    assert same.status_code == 200

    clash = client.put(f"/api/assets/{first['id']}", json={"serialNumber": "A-2"}, headers=headers)
    assert clash.status_code == 400


def test_update_merges_only_sent_fields(client, headers, make_asset):
    asset = make_asset(name="Old name", notes="keep me")

    response = client.put(f"/api/assets/{asset['id']}", json={"name": "New name"}, headers=headers)

    data = response.json()["data"]
    assert data["name"] == "New name"
    assert data["notes"] == "keep me"
    assert data["serialNumber"] == asset["serialNumber"]


def test_update_cannot_blank_a_required_field(client, headers, make_asset):
    asset = make_asset()

    response = client.put(f"/api/assets/{asset['id']}", json={"name": None}, headers=headers)

    assert response.status_code == 400


def test_foreign_company_cannot_see_or_touch_a_record(client, headers, other_headers, make_asset):
    asset = make_asset()
    url = f"/api/assets/{asset['id']}"

    assert client.get(url, headers=other_headers).status_code == 404
    assert client.put(url, json={"name": "Hijacked"}, headers=other_headers).status_code == 404
    assert client.delete(url, headers=other_headers).status_code == 404
    assert client.get("/api/assets", headers=other_headers).json()["data"] == []

    assert client.get(url, headers=headers).json()["data"]["name"] == asset["name"]


def test_references_must_belong_to_the_same_company(client, headers, other_headers):
    foreign_category = client.post("/api/categories", json={"name": "Laptops"}, headers=other_headers).json()["data"]

    response = client.post(
        "/api/assets",
        json={"name": "Laptop", "serialNumber": "X-1", "categoryId": foreign_category["id"]},
        headers=headers
    )

    assert response.status_code == 400
    assert response.json()["error"] == f"Category not found: {foreign_category['id']}"


def test_deleting_a_referenced_lookup_is_a_conflict(client, headers, make_asset):
    category = client.post("/api/categories", json={"name": "Laptops"}, headers=headers).json()["data"]
    make_asset(categoryId=category["id"])

    response = client.delete(f"/api/categories/{category['id']}", headers=headers)

    assert response.status_code == 409
    assert response.json()["success"] is False
    assert client.get(f"/api/categories/{category['id']}", headers=headers).status_code == 200


def test_list_search_and_order(client, headers, make_asset):
    make_asset(name="Zebra scanner", serialNumber="Z-1")
    make_asset(name="Apple keyboard", serialNumber="A-1")
    make_asset(name="Dell monitor", serialNumber="D-1")

    names = [a["name"] for a in client.get("/api/assets?orderBy=name&order=desc", headers=headers).json()["data"]]
    assert names == ["Zebra scanner", "Dell monitor", "Apple keyboard"]

    found = client.get("/api/assets?search=KEYB", headers=headers).json()["data"]
    assert [a["serialNumber"] for a in found] == ["A-1"]

    bad = client.get("/api/assets?orderBy=secret", headers=headers)
    assert bad.status_code == 400


class TestStateMachine:

    def test_checkout_checkin_loop(self, client, headers, make_asset, make_user):
        asset = make_asset()
        user = make_user()
        base = f"/api/assets/{asset['id']}"

        for _ in range(2):
            out = client.post(f"{base}/checkout", json={"userId": user["id"]}, headers=headers)
            assert out.status_code == 200, out.text
            assert out.json()["data"]["state"] == "checked_out"
            assert out.json()["data"]["userId"] == user["id"]
            assert out.json()["data"]["assignedTo"] == user["name"]

            back = client.post(f"{base}/checkin", headers=headers)
            assert back.status_code == 200
            assert back.json()["data"]["state"] == "available"
            assert back.json()["data"]["userId"] is None

    def test_checkout_of_checked_out_asset_fails(self, client, headers, make_asset, make_user):
        asset = make_asset()
        first, second = make_user(), make_user()
        url = f"/api/assets/{asset['id']}/checkout"

        assert client.post(url, json={"userId": first["id"]}, headers=headers).status_code == 200
        response = client.post(url, json={"userId": second["id"]}, headers=headers)

        assert response.status_code == 400
        assert "not available" in response.json()["error"]
        current = client.get(f"/api/assets/{asset['id']}", headers=headers).json()["data"]
        assert current["userId"] == first["id"]

    def test_checkin_of_available_asset_fails(self, client, headers, make_asset):
        asset = make_asset()

        response = client.post(f"/api/assets/{asset['id']}/checkin", headers=headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Asset is not checked out"

    def test_archived_is_terminal(self, client, headers, make_asset, make_user):
        asset = make_asset()
        user = make_user()
        base = f"/api/assets/{asset['id']}"
        client.post(f"{base}/checkout", json={"userId": user["id"]}, headers=headers)

        archived = client.post(f"{base}/archive", headers=headers)
        assert archived.json()["data"]["state"] == "archived"
        assert archived.json()["data"]["userId"] is None

        assert client.post(f"{base}/checkout", json={"userId": user["id"]}, headers=headers).status_code == 400
        assert client.post(f"{base}/checkin", headers=headers).status_code == 400
        assert client.post(f"{base}/archive", headers=headers).status_code == 400

    def test_checkout_to_user_of_another_company_fails(self, client, headers, other_headers, make_asset, make_user):
        asset = make_asset()
        outsider = make_user(request_headers=other_headers)

        response = client.post(
            f"/api/assets/{asset['id']}/checkout", json={"userId": outsider["id"]}, headers=headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == f"User not found: {outsider['id']}"

    def test_checkout_to_inactive_user_fails(self, client, headers, make_asset, make_user):
        asset = make_asset()
        user = make_user(status="inactive")

        response = client.post(f"/api/assets/{asset['id']}/checkout", json={"userId": user["id"]}, headers=headers)

        assert response.status_code == 400

    def test_checked_out_asset_cannot_be_removed(self, client, headers, make_asset, make_user):
        asset = make_asset()
        user = make_user()
        client.post(f"/api/assets/{asset['id']}/checkout", json={"userId": user["id"]}, headers=headers)

        response = client.delete(f"/api/assets/{asset['id']}", headers=headers)

        assert response.status_code == 409

    def test_transitions_write_history(self, client, db, headers, make_asset, make_user):
        asset = make_asset()
        user = make_user()
        base = f"/api/assets/{asset['id']}"
        client.post(f"{base}/checkout", json={"userId": user["id"]}, headers=headers)
        client.post(f"{base}/checkin", headers=headers)
        client.post(f"{base}/archive", headers=headers)

        events = db.query(AssetHistory).filter(AssetHistory.asset_id == asset["id"]).order_by(AssetHistory.created_at).all()
        assert [event.type for event in events] == ["assignment", "return", "archive"]
        assert events[0].user_id == user["id"]
        assert events[1].user_id == user["id"]


def test_stale_transition_loses_to_the_first_commit(db, context, make_asset, make_user):
    """A request that read the asset before another checkout committed matches zero rows."""
    asset = make_asset()
    first, second = make_user(), make_user()
    racer = SessionLocal()
    try:
        stale = racer.query(Asset).filter(Asset.id == asset["id"]).one()

        AssetService(db, context).checkout(asset["id"], AssetCheckout(user_id=first["id"]))
        assert stale.state == AssetState.AVAILABLE

        with pytest.raises(InvalidStateTransition):
            AssetService(racer, context)._transition(
                stale, (AssetState.AVAILABLE,), AssetState.CHECKED_OUT, second["id"], "lost the race"
            )
    finally:
        racer.close()

    db.expire_all()
    assert db.query(Asset).filter(Asset.id == asset["id"]).one().user_id == first["id"]


def test_stats(client, headers, make_asset, make_user):
    user = make_user()
    assets = [make_asset() for _ in range(4)]
    client.post(f"/api/assets/{assets[0]['id']}/checkout", json={"userId": user["id"]}, headers=headers)
    client.post(f"/api/assets/{assets[1]['id']}/archive", headers=headers)

    stats = client.get("/api/assets/stats", headers=headers).json()["data"]

    assert stats == {
        "total": 4,
        "available": 2,
        "checkedOut": 1,
        "archived": 1,
        "utilizationRate": round(1 / 3, 4),
    }


def test_find_by_id_is_none_for_removed_or_foreign_records(db, context, other_company, make_asset):
    asset = make_asset()
    mine = AssetService(db, context)
    theirs = AssetService(db, RequestContext(user_id="idp|bob", company_id=other_company.id))

    assert mine.find_by_id(asset["id"]).serial_number == asset["serialNumber"]
    assert theirs.find_by_id(asset["id"]) is None

    mine.remove(asset["id"])
    assert mine.find_by_id(asset["id"]) is None
