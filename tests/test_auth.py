"""
test_auth.py
============
Registration, login and bearer token checks.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import WebSocketDisconnect

from clinic_intake import config
from clinic_intake.auth import decode_token, hash_password, verify_password


def test_password_hashing():
    hashed = hash_password("secreto123")
    assert hashed != "secreto123"
    assert verify_password("secreto123", hashed)
    assert not verify_password("otra", hashed)
    assert not verify_password("secreto123", "not-a-bcrypt-hash")


def test_register_returns_patient_token(client):
    res = client.post("/api/auth/register", json={
        "email": "juan@example.com", "password": "pw123456", "name": "Juan Pérez",
    })
    assert res.status_code == 201
    claims = decode_token(res.json()["token"])
    assert claims["role"] == "patient"
    assert claims["email"] == "juan@example.com"
    assert claims["name"] == "Juan Pérez"
    assert isinstance(claims["id"], int)


@pytest.mark.parametrize("payload", [
    {"email": "a@example.com", "password": "x"},
    {"email": "a@example.com", "name": "A"},
    {"password": "x", "name": "A"},
])
def test_register_missing_fields(client, payload):
    res = client.post("/api/auth/register", json=payload)
    assert res.status_code == 400
    assert res.json()["detail"] == "All fields are required"


def test_register_duplicate_email(client, patient_headers):
    res = client.post("/api/auth/register", json={
        "email": "maria@example.com", "password": "otra", "name": "Otra María",
    })
    assert res.status_code == 400
    assert res.json()["detail"] == "User with this email already exists"


def test_login(client, patient_headers):
    ok = client.post("/api/auth/login", json={"email": "maria@example.com", "password": "secreto123"})
    assert ok.status_code == 200
    assert decode_token(ok.json()["token"])["role"] == "patient"

    bad = client.post("/api/auth/login", json={"email": "maria@example.com", "password": "mal"})
    assert bad.status_code == 401
    assert bad.json()["detail"] == "Invalid credentials"

    unknown = client.post("/api/auth/login", json={"email": "nadie@example.com", "password": "x"})
    assert unknown.status_code == 401


def test_login_missing_fields(client):
    res = client.post("/api/auth/login", json={"email": "maria@example.com"})
    assert res.status_code == 400


def test_seeded_admin(client, admin_headers):
    token = admin_headers["Authorization"].split(" ")[1]
    assert decode_token(token)["role"] == "admin"


def test_invalid_token_forbidden(client):
    res = client.get("/api/forms/templates", headers={"Authorization": "Bearer not-a-token"})
    assert res.status_code == 403
    assert res.json()["detail"] == "Invalid token"


def test_expired_token_forbidden(client):
    expired = jwt.encode(
        {"id": 1, "role": "admin", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        config.JWT_SECRET,
        algorithm=config.JWT_ALGORITHM,
    )
    res = client.get("/api/forms/templates", headers={"Authorization": f"Bearer {expired}"})
    assert res.status_code == 403


def test_missing_token_unauthorized(client):
    res = client.get("/api/forms/templates")
    assert res.status_code == 401
    assert res.json()["detail"] == "Access denied, no token provided"


# --------------------------------------------------------------------------
# WEBSOCKET
# --------------------------------------------------------------------------

def test_admin_websocket_echo(client, admin_headers):
    token = admin_headers["Authorization"].split(" ")[1]
    with client.websocket_connect(f"/ws/admin?token={token}") as ws:
        ws.send_text("hola")
        assert ws.receive_text() == "Echo: hola"


def test_patient_websocket_rejected(client, patient_headers):
    token = patient_headers["Authorization"].split(" ")[1]
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/ws/admin?token={token}"):
            pass


def test_websocket_without_token_rejected(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws/admin"):
            pass
