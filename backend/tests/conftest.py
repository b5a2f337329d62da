import os
import tempfile

# Configure before bidboard.database creates its engine.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="bidboard-uploads-")

import pytest
from fastapi.testclient import TestClient

from bidboard.database import engine, SessionLocal
from bidboard.models.base import Base
import bidboard.models  # noqa: F401
from bidboard.main import app

USER_ID = "auth0|estimator"


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app, headers={"X-User-Id": USER_ID}) as c:
        yield c


@pytest.fixture(autouse=True)
def no_email_env(monkeypatch):
    for name in ("SMTP2GO_API_KEY", "SMTP2GO_SENDER_EMAIL", "SMTP2GO_API_URL", "REPORT_RECIPIENTS", "HR_EMAIL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_user(client):
    def _make(user_id=USER_ID, email="estimator@example.com", name="Dana Estimator", **extra):
        resp = client.put("/users", json={"id": user_id, "email": email, "name": name, **extra})
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _make


@pytest.fixture
def make_project(client):
    def _make(**fields):
        payload = {"project_name": "Riverside Medical Office", **fields}
        resp = client.post("/projects", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make


@pytest.fixture
def make_vendor(client):
    def _make(company_name="Northwind Mechanical", **fields):
        resp = client.post("/vendors", json={"company_name": company_name, **fields})
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make


@pytest.fixture
def attach_vendor(client):
    def _attach(project_id, vendor_id, **fields):
        resp = client.post(f"/projects/{project_id}/vendors", json={"vendor_id": vendor_id, **fields})
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _attach
