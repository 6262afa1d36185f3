"""Tests for CO2 normalization, caching and the estimator providers."""

import inspect
from unittest.mock import MagicMock

import pytest
import requests

from app.core.exceptions import InternalError
from app.models import Co2eRecord
from app.schemas.co2 import Co2Estimate, NormalizedAsset
from app.services import co2
from app.services.co2 import (
    CO2ConsistencyService,
    Co2Cache,
    HttpProvider,
    StaticFactorProvider,
    fingerprint,
    normalize_asset,
    normalize_model,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class CountingProvider(StaticFactorProvider):
    name = "counting"

    def __init__(self):
        self.calls = 0

    def estimate(self, asset):
        self.calls += 1
        return super().estimate(asset)


@pytest.fixture
def make_hardware(client, headers):
    """An asset with a model, manufacturer and category, created through the API."""
    def _make(manufacturer, model, category="Laptops", serial="HW-1"):
        maker = client.post("/api/manufacturers", json={"name": manufacturer}, headers=headers).json()["data"]
        cat = client.get(f"/api/categories?search={category}", headers=headers).json()["data"]
        if not cat:
            cat = [client.post("/api/categories", json={"name": category}, headers=headers).json()["data"]]
        asset_model = client.post(
            "/api/models", json={"name": model, "manufacturerId": maker["id"]}, headers=headers
        ).json()["data"]
        response = client.post(
            "/api/assets",
            json={
                "name": "Engineering laptop",
                "serialNumber": serial,
                "modelId": asset_model["id"],
                "categoryId": cat[0]["id"],
            },
            headers=headers
        )
        return response.json()["data"]

    return _make


class TestNormalization:

    def test_spellings_of_the_same_hardware_share_a_fingerprint(self):
        first = normalize_asset("Dell Inc.", "Latitude 7420 Laptop", "Laptops", "laptop")
        second = normalize_asset("dell", "latitude 7420", "laptop", "Laptop")

        assert first == second
        assert first.manufacturer == "dell"
        assert first.model == "latitude 7420"
        assert first.category == "laptop"
        assert fingerprint(first) == fingerprint(second)

    def test_different_hardware_differs(self):
        laptop = normalize_asset("Apple Inc.", "MacBook Pro 14", "Laptops", "laptop")
        monitor = normalize_asset("Apple Inc.", "Studio Display", "Monitors", "display")

        assert laptop.model == "macbook pro 14-inch"
        assert monitor.type == "monitor"
        assert fingerprint(laptop) != fingerprint(monitor)

    @pytest.mark.parametrize("raw, expected", [
        ("OptiPlex 7090 Desktop", "optiplex 7090"),
        ("ThinkPad X1 Carbon Black", "thinkpad x1 carbon"),
        ("iPad Air 256GB", "ipad air"),
        ("UltraSharp 27\"", "ultrasharp"),
    ])
    def test_model_noise_is_stripped(self, raw, expected):
        assert normalize_model(raw) == expected

    def test_workstations_get_their_own_type(self):
        tower = normalize_asset("HP", "Z4 G5 Workstation", "Workstations", "workstation")

        assert tower.type == "workstation"
        assert tower.category == "workstation"
        assert StaticFactorProvider().estimate(tower).total_co2e == 1187.0

    def test_fingerprint_is_sha256_hex(self):
        value = fingerprint(NormalizedAsset(manufacturer="hp", model="elitebook 840", category="laptop", type="laptop"))

        assert len(value) == 64
        int(value, 16)


class TestCo2Cache:

    def test_entries_expire_after_the_ttl(self):
        clock = FakeClock()
        cache = Co2Cache(60, clock=clock)
        cache.set("c1", "fp", "result")

        clock.now += 59
        assert cache.get("c1", "fp") == "result"
        clock.now += 2
        assert cache.get("c1", "fp") is None
        assert len(cache) == 0

    def test_writes_purge_expired_entries(self):
        clock = FakeClock()
        cache = Co2Cache(10, clock=clock)
        cache.set("c1", "old", "a")
        clock.now += 11

        cache.set("c1", "new", "b")

        assert len(cache) == 1

    def test_entries_are_per_company(self):
        cache = Co2Cache(60)
        cache.set("c1", "fp", "one")
        cache.set("c2", "fp", "two")

        assert cache.get("c2", "fp") == "two"
        assert cache.clear("c1") == 1
        assert cache.get("c1", "fp") is None
        assert cache.get("c2", "fp") == "two"


class TestConsistencyService:

    def test_lookup_order(self, db, context, make_hardware):
        asset = make_hardware("Dell Inc.", "Latitude 7420 Laptop")
        provider = CountingProvider()
        cache = Co2Cache(3600)
        service = CO2ConsistencyService(db, context, provider=provider, cache=cache)

        first = service.calculate(asset["id"])
        assert first.source == "calculation"
        assert first.estimate.total_co2e == 325.0
        assert provider.calls == 1

        assert service.calculate(asset["id"]).source == "memory"

        cache.clear()
        from_db = service.calculate(asset["id"])
        assert from_db.source == "database"
        assert from_db.record_id == first.record_id
        assert from_db.estimate == first.estimate

        forced = service.calculate(asset["id"], force_recalculate=True)
        assert forced.source == "calculation"
        assert forced.record_id != first.record_id
        assert provider.calls == 2

    def test_identical_hardware_reuses_the_estimate(self, db, context, make_hardware):
        first = make_hardware("Dell Inc.", "Latitude 7420 Laptop", serial="HW-1")
        second = make_hardware("dell", "latitude 7420", serial="HW-2")
        provider = CountingProvider()
        service = CO2ConsistencyService(db, context, provider=provider, cache=Co2Cache(3600))

        one = service.calculate(first["id"])
        two = service.calculate(second["id"])

        assert provider.calls == 1
        assert two.fingerprint == one.fingerprint
        assert two.estimate.total_co2e == one.estimate.total_co2e
        assert two.asset_id == second["id"]

    def test_stored_record_holds_the_details(self, db, context, make_hardware):
        asset = make_hardware("HP Inc", "EliteBook 840")
        result = CO2ConsistencyService(db, context, provider=StaticFactorProvider(), cache=Co2Cache(60)).calculate(asset["id"])

        record = db.query(Co2eRecord).filter(Co2eRecord.id == result.record_id).one()
        assert record.asset_id == asset["id"]
        assert record.source == "static-factors"
        assert record.details["fingerprint"] == result.fingerprint
        assert record.details["normalized"]["manufacturer"] == "hp"
        assert "calculatedAt" in record.details

    def test_invalid_provider_result_is_an_internal_error(self, db, context, make_hardware):
        asset = make_hardware("Dell", "Latitude 5440")
        provider = MagicMock()
        provider.name = "broken"
        provider.estimate.side_effect = InternalError("CO2 estimator returned an invalid result")
        service = CO2ConsistencyService(db, context, provider=provider, cache=Co2Cache(60))

        with pytest.raises(InternalError):
            service.calculate(asset["id"])
        assert db.query(Co2eRecord).count() == 0


class TestHttpProvider:

    def _asset(self):
        return NormalizedAsset(manufacturer="dell", model="latitude 7420", category="laptop", type="laptop")

    def test_posts_the_normalized_asset(self, monkeypatch):
        response = MagicMock()
        response.json.return_value = {
            "totalCo2e": 310.5,
            "units": "kgCO2e",
            "confidenceScore": 0.8,
            "lifecycleBreakdown": {"manufacturing": 250.0},
            "methodology": "LCA",
        }
        post = MagicMock(return_value=response)
        monkeypatch.setattr(co2.requests, "post", post)

        estimate = HttpProvider("https://estimator.test/co2", token="secret", timeout=5).estimate(self._asset())

        assert estimate.total_co2e == 310.5
        args, kwargs = post.call_args
        assert args == ("https://estimator.test/co2",)
        assert kwargs["json"] == {"asset": {"manufacturer": "dell", "model": "latitude 7420", "category": "laptop", "type": "laptop"}}
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["timeout"] == 5

    @pytest.mark.parametrize("body", [
        {"totalCo2e": 0, "confidenceScore": 0.5},
        {"totalCo2e": 100, "confidenceScore": 1.5},
        {"units": "kgCO2e"},
    ])
    def test_invalid_estimates_are_rejected(self, monkeypatch, body):
        response = MagicMock()
        response.json.return_value = body
        monkeypatch.setattr(co2.requests, "post", MagicMock(return_value=response))

        with pytest.raises(InternalError):
            HttpProvider("https://estimator.test/co2").estimate(self._asset())

    def test_network_failure(self, monkeypatch):
        monkeypatch.setattr(co2.requests, "post", MagicMock(side_effect=requests.ConnectionError("down")))

        with pytest.raises(InternalError, match="unavailable"):
            HttpProvider("https://estimator.test/co2").estimate(self._asset())

    def test_estimate_wire_keys(self):
        dumped = Co2Estimate(total_co2e=10, confidence_score=0.5).model_dump(by_alias=True)

        assert "totalCo2e" in dumped
        assert "confidenceScore" in dumped
        assert Co2Estimate.model_validate({"totalCo2e": 10, "confidenceScore": 0.5}).total_co2e == 10

    def test_estimate_schema_bounds(self):
        with pytest.raises(ValueError):
            Co2Estimate(total_co2e=-1, confidence_score=0.5)


class TestEndpoints:

    def test_calculate_then_read(self, client, headers, make_hardware):
        asset = make_hardware("Lenovo Group", "ThinkPad T14")
        url = f"/api/assets/{asset['id']}/co2"

        assert client.get(url, headers=headers).json() == {"success": True, "data": None}

        created = client.post(url, headers=headers).json()["data"]
        assert created["source"] == "calculation"
        assert created["normalized"]["manufacturer"] == "lenovo"

        assert client.post(url, headers=headers).json()["data"]["source"] == "memory"
        assert client.post(f"{url}?force=true", headers=headers).json()["data"]["source"] == "calculation"

        stored = client.get(url, headers=headers).json()["data"]
        assert stored["source"] == "database"
        assert stored["estimate"]["totalCo2e"] == 325.0

    def test_clear_cache(self, client, headers, make_hardware):
        asset = make_hardware("Dell", "Latitude 7420")
        client.post(f"/api/assets/{asset['id']}/co2", headers=headers)

        cleared = client.delete("/api/co2/cache", headers=headers).json()["data"]
        assert cleared == {"cleared": 1}
        assert client.post(f"/api/assets/{asset['id']}/co2", headers=headers).json()["data"]["source"] == "database"

    def test_foreign_asset_is_not_found(self, client, other_headers, make_hardware):
        asset = make_hardware("Dell", "Latitude 7420")

        response = client.post(f"/api/assets/{asset['id']}/co2", headers=other_headers)

        assert response.status_code == 404

    def test_calculation_is_audited(self, client, headers, make_hardware):
        asset = make_hardware("Dell", "Latitude 7420")
        client.post(f"/api/assets/{asset['id']}/co2", headers=headers)

        page = client.get("/api/audit-logs?action=ASSET_CO2_CALCULATED", headers=headers).json()["data"]

        assert page["total"] == 1
        assert page["items"][0]["entityId"] == asset["id"]

    def test_routes_run_in_the_threadpool(self):
        """The HTTP estimator blocks, so these handlers must not be coroutines."""
        from app.api.endpoints import co2 as co2_routes

        for handler in (co2_routes.calculate_asset_co2, co2_routes.get_asset_co2, co2_routes.clear_co2_cache):
            assert not inspect.iscoroutinefunction(handler)
