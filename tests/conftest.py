"""
conftest.py
===========
Shared fixtures: a throw-away SQLite database, a test client and
ready-made admin / patient auth headers.
"""

import os
import tempfile

# Point the app at a temporary database before it is imported
_tmp_dir = tempfile.mkdtemp(prefix="clinic-intake-tests-")
os.environ["CLINIC_DB"] = os.path.join(_tmp_dir, "test.db")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from clinic_intake import config
from clinic_intake.db import engine
from clinic_intake.main import app
from clinic_intake.models import Base


@pytest.fixture
def client():
    """
    Test client on a clean database.
    Tables are dropped before each test; startup recreates and seeds them.
    """
    Base.metadata.drop_all(bind=engine)
    with TestClient(app) as c:
        yield c


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client):
    res = client.post("/api/auth/login", json={
        "email": config.ADMIN_EMAIL,
        "password": config.ADMIN_PASSWORD,
    })
    assert res.status_code == 200
    return _bearer(res.json()["token"])


@pytest.fixture
def patient_headers(client):
    res = client.post("/api/auth/register", json={
        "email": "maria@example.com",
        "password": "secreto123",
        "name": "María López",
    })
    assert res.status_code == 201
    return _bearer(res.json()["token"])


@pytest.fixture
def wizard_id(client, patient_headers):
    """Id of the seeded clinical wizard template."""
    res = client.get("/api/forms/templates", headers=patient_headers)
    return next(t["id"] for t in res.json() if t["formType"] == "clinical_wizard")


@pytest.fixture
def generic_id(client, admin_headers):
    """Id of a freshly created generic template."""
    res = client.post("/api/forms/templates", headers=admin_headers, json={
        "title": "Encuesta de satisfacción",
        "description": "Opinión tras la consulta",
        "structure": [
            {"id": "q1", "type": "radio", "label": "¿Volvería?", "options": ["Sí", "No"], "required": True},
        ],
    })
    assert res.status_code == 201
    return res.json()["id"]
