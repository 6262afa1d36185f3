"""Pytest configuration and shared fixtures.

The app reads its settings at import time, so the environment is set
before anything from app is imported: in-memory SQLite, no Redis, the
static CO2 estimator.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["REDIS_URL"] = ""
os.environ["CO2_ESTIMATOR_URL"] = ""
os.environ["AUTH_ISSUER"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.api.deps import RequestContext  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.database import Base, SessionLocal, engine, init_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Company  # noqa: E402
from app.services.co2 import co2_cache  # noqa: E402


def auth_headers(company_id: str, subject: str = "idp|alice") -> dict:
    """Bearer header for a session the identity provider would issue."""
    token = create_access_token({"sub": subject, "company_id": company_id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def database():
    """Fresh schema for every test."""
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)
    co2_cache.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def company(db) -> Company:
    company = Company(name="Acme Corp")
    db.add(company)
    db.commit()
    return company


@pytest.fixture
def other_company(db) -> Company:
    company = Company(name="Globex")
    db.add(company)
    db.commit()
    return company


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def headers(company) -> dict:
    return auth_headers(company.id)


@pytest.fixture
def other_headers(other_company) -> dict:
    return auth_headers(other_company.id, "idp|bob")


@pytest.fixture
def context(company) -> RequestContext:
    return RequestContext(user_id="idp|alice", company_id=company.id, ip_address="127.0.0.1")


@pytest.fixture
def make_user(client, headers):
    """Create a user through the API and return its JSON."""
    counter = {"n": 0}

    def _make(request_headers=None, **overrides):
        counter["n"] += 1
        n = counter["n"]
        payload = {
            "firstName": "Test",
            "lastName": f"User{n}",
            "email": f"user{n}@example.com",
            "employeeId": f"E{n:04d}",
        }
        payload.update(overrides)
        response = client.post("/api/users", json=payload, headers=request_headers or headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def make_asset(client, headers):
    counter = {"n": 0}

    def _make(request_headers=None, **overrides):
        counter["n"] += 1
        payload = {"name": f"Laptop {counter['n']}", "serialNumber": f"SN-{counter['n']:05d}"}
        payload.update(overrides)
        response = client.post("/api/assets", json=payload, headers=request_headers or headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make
