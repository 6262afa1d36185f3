"""Tests for the reference entities and users."""

import pytest

from app.api.endpoints.lookups import LOOKUP_SERVICES
from tests.conftest import auth_headers


@pytest.mark.parametrize("plural", [service.plural for service in LOOKUP_SERVICES])
def test_lookup_crud(client, headers, plural):
    url = f"/api/{plural}"

    created = client.post(url, json={"name": "Main"}, headers=headers)
    assert created.status_code == 201, created.text
    record = created.json()["data"]

    assert client.get(url, headers=headers).json()["data"][0]["id"] == record["id"]

    duplicate = client.post(url, json={"name": "Main"}, headers=headers)
    assert duplicate.status_code == 400

    renamed = client.put(f"{url}/{record['id']}", json={"name": "Renamed"}, headers=headers)
    assert renamed.json()["data"]["name"] == "Renamed"

    assert client.delete(f"{url}/{record['id']}", headers=headers).status_code == 200
    assert client.get(f"{url}/{record['id']}", headers=headers).status_code == 404


def test_lookup_names_are_unique_per_company_only(client, headers, other_headers):
    assert client.post("/api/departments", json={"name": "IT"}, headers=headers).status_code == 201
    assert client.post("/api/departments", json={"name": "IT"}, headers=other_headers).status_code == 201


def test_model_shows_its_manufacturer(client, headers):
    dell = client.post("/api/manufacturers", json={"name": "Dell"}, headers=headers).json()["data"]

    model = client.post(
        "/api/models", json={"name": "Latitude 7420", "manufacturerId": dell["id"]}, headers=headers
    ).json()["data"]

    assert model["manufacturerName"] == "Dell"


def test_supplier_active_accepts_loose_booleans(client, headers):
    response = client.post("/api/suppliers", json={"name": "CDW", "active": "no"}, headers=headers)

    assert response.status_code == 201
    assert response.json()["data"]["active"] is False


class TestUsers:

    def test_create_user(self, client, headers):
        response = client.post(
            "/api/users",
            json={"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com", "employeeId": "E1"},
            headers=headers
        )

        assert response.status_code == 201
        user = response.json()["data"]
        assert user["name"] == "Ada Lovelace"
        assert user["status"] == "active"

    def test_invalid_email_is_rejected(self, client, headers):
        response = client.post(
            "/api/users",
            json={"firstName": "Ada", "lastName": "Lovelace", "email": "not-an-email", "employeeId": "E1"},
            headers=headers
        )

        assert response.status_code == 400

    def test_email_and_employee_id_are_unique_per_company(self, client, headers, other_headers, make_user):
        make_user(email="ada@example.com", employeeId="E1")

        same_email = client.post(
            "/api/users",
            json={"firstName": "A", "lastName": "B", "email": "ada@example.com", "employeeId": "E2"},
            headers=headers
        )
        same_employee = client.post(
            "/api/users",
            json={"firstName": "A", "lastName": "B", "email": "other@example.com", "employeeId": "E1"},
            headers=headers
        )
        assert same_email.status_code == 400
        assert same_employee.status_code == 400

        make_user(request_headers=other_headers, email="ada@example.com", employeeId="E1")

    def test_user_holding_an_asset_cannot_be_removed(self, client, headers, make_user, make_asset):
        user = make_user()
        asset = make_asset()
        client.post(f"/api/assets/{asset['id']}/checkout", json={"userId": user["id"]}, headers=headers)

        response = client.delete(f"/api/users/{user['id']}", headers=headers)

        assert response.status_code == 409

    def test_renaming_a_user_refreshes_the_assignee_name(self, client, headers, make_user, make_asset):
        user = make_user(firstName="Grace", lastName="Hopper")
        asset = make_asset()
        client.post(f"/api/assets/{asset['id']}/checkout", json={"userId": user["id"]}, headers=headers)
        client.get("/api/assets", headers=headers)

        client.put(f"/api/users/{user['id']}", json={"lastName": "Brewster"}, headers=headers)

        listed = client.get("/api/assets", headers=headers).json()["data"]
        assert listed[0]["assignedTo"] == "Grace Brewster"

    def test_me_returns_the_linked_user(self, client, company, make_user):
        make_user(oauthId="idp|carol", email="carol@example.com")

        response = client.get("/api/users/me", headers=auth_headers(company.id, "idp|carol"))

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "carol@example.com"

    def test_me_without_linked_user_is_not_found(self, client, headers):
        response = client.get("/api/users/me", headers=headers)

        assert response.status_code == 404
