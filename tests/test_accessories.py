"""Tests for accessory stock checkouts."""

import pytest


@pytest.fixture
def make_accessory(client, headers):
    def _make(**overrides):
        payload = {"name": "USB-C Dock", "serialNumber": "DOCK-1", "totalQuantity": 5, "reorderPoint": 1}
        payload.update(overrides)
        response = client.post("/api/accessories", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


def test_reorder_point_above_total_is_rejected(client, headers):
    response = client.post(
        "/api/accessories",
        json={"name": "Mouse", "serialNumber": "M-1", "totalQuantity": 2, "reorderPoint": 3},
        headers=headers
    )

    assert response.status_code == 400
    assert "Reorder point" in response.json()["error"]


def test_checkout_moves_units_out_of_stock(client, headers, make_accessory, make_user):
    accessory = make_accessory(totalQuantity=5)
    user = make_user()

    response = client.post(
        f"/api/accessories/{accessory['id']}/checkout",
        json={"userId": user["id"], "quantity": 3},
        headers=headers
    )

    assert response.status_code == 201
    assert response.json()["data"]["quantity"] == 3
    current = client.get(f"/api/accessories/{accessory['id']}", headers=headers).json()["data"]
    assert current["quantityAssigned"] == 3
    assert current["availableQuantity"] == 2


def test_checkout_beyond_stock_fails(client, headers, make_accessory, make_user):
    accessory = make_accessory(totalQuantity=2, reorderPoint=0)
    user = make_user()
    url = f"/api/accessories/{accessory['id']}/checkout"

    assert client.post(url, json={"userId": user["id"], "quantity": 2}, headers=headers).status_code == 201
    response = client.post(url, json={"userId": user["id"]}, headers=headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Only 0 units of USB-C Dock are available"


def test_quantity_must_be_positive(client, headers, make_accessory, make_user):
    accessory = make_accessory()
    user = make_user()

    response = client.post(
        f"/api/accessories/{accessory['id']}/checkout",
        json={"userId": user["id"], "quantity": 0},
        headers=headers
    )

    assert response.status_code == 400


def test_checkin_returns_the_units(client, headers, make_accessory, make_user):
    accessory = make_accessory(totalQuantity=4)
    user = make_user()
    assignment = client.post(
        f"/api/accessories/{accessory['id']}/checkout",
        json={"userId": user["id"], "quantity": 2, "notes": "New hire kit"},
        headers=headers
    ).json()["data"]

    listed = client.get(f"/api/accessories/{accessory['id']}/assignments", headers=headers).json()["data"]
    assert [row["id"] for row in listed] == [assignment["id"]]
    assert listed[0]["notes"] == "New hire kit"

    response = client.post(f"/api/accessories/assignments/{assignment['id']}/checkin", headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["quantityAssigned"] == 0
    assert response.json()["data"]["availableQuantity"] == 4

    again = client.post(f"/api/accessories/assignments/{assignment['id']}/checkin", headers=headers)
    assert again.status_code == 404


def test_foreign_assignment_is_not_found(client, headers, other_headers, make_accessory, make_user):
    accessory = make_accessory()
    user = make_user()
    assignment = client.post(
        f"/api/accessories/{accessory['id']}/checkout", json={"userId": user["id"]}, headers=headers
    ).json()["data"]

    response = client.post(f"/api/accessories/assignments/{assignment['id']}/checkin", headers=other_headers)

    assert response.status_code == 404


def test_total_cannot_shrink_below_assigned(client, headers, make_accessory, make_user):
    accessory = make_accessory(totalQuantity=5, reorderPoint=0)
    user = make_user()
    client.post(
        f"/api/accessories/{accessory['id']}/checkout", json={"userId": user["id"], "quantity": 4}, headers=headers
    )

    response = client.put(f"/api/accessories/{accessory['id']}", json={"totalQuantity": 3}, headers=headers)

    assert response.status_code == 400
    assert "4 units are assigned" in response.json()["error"]


def test_accessory_in_use_cannot_be_removed(client, headers, make_accessory, make_user):
    accessory = make_accessory()
    user = make_user()
    client.post(f"/api/accessories/{accessory['id']}/checkout", json={"userId": user["id"]}, headers=headers)

    assert client.delete(f"/api/accessories/{accessory['id']}", headers=headers).status_code == 409


def test_stock_flags_reorder(client, headers, make_accessory, make_user):
    dock = make_accessory(totalQuantity=3, reorderPoint=2)
    make_accessory(name="Keyboard", serialNumber="KB-1", totalQuantity=10, reorderPoint=2)
    user = make_user()
    client.post(f"/api/accessories/{dock['id']}/checkout", json={"userId": user["id"]}, headers=headers)

    stock = {row["name"]: row for row in client.get("/api/accessories/stock", headers=headers).json()["data"]}

    assert stock["USB-C Dock"]["availableQuantity"] == 2
    assert stock["USB-C Dock"]["needsReorder"] is True
    assert stock["Keyboard"]["needsReorder"] is False
