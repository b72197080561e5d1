"""Tests for authentication: password hashing, tokens, registration, login and RBAC."""

import pytest
from datetime import timedelta

from tableside.core.rbac import UserRole
from tableside.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)
from tableside.models.user import User


# ============== Password hashing ==============

class TestPasswordHashing:
    def test_hash_and_verify(self):
        h = get_password_hash("secret123")
        assert verify_password("secret123", h)

    def test_wrong_password_rejected(self):
        h = get_password_hash("secret123")
        assert not verify_password("wrong", h)

    def test_hash_is_unique(self):
        assert get_password_hash("same") != get_password_hash("same")  # different salts

    def test_invalid_hash_returns_false(self):
        assert not verify_password("test", "not-a-hash")


# ============== JWT tokens ==============

class TestJWTTokens:
    def test_create_and_decode(self):
        token = create_access_token(data={"sub": "1", "email": "a@b.com", "role": "owner", "tenant_id": 1})
        payload = decode_access_token(token)
        assert payload["sub"] == "1"
        assert payload["tenant_id"] == 1
        assert "jti" in payload

    def test_expired_token(self):
        token = create_access_token(data={"sub": "1"}, expires_delta=timedelta(seconds=-1))
        assert decode_access_token(token) is None

    def test_garbage_token(self):
        assert decode_access_token("not.a.token") is None


# ============== Registration and login ==============

class TestRegister:
    def test_register_creates_own_tenant(self, client, db_session):
        res = client.post("/api/v1/auth/register", json={
            "email": "new@example.com",
            "password": "longenough",
            "business_name": "Corner Cafe",
        })
        assert res.status_code == 201
        data = res.json()
        assert data["role"] == "owner"
        assert data["tenant_id"] == data["id"]
        user = db_session.query(User).filter(User.email == "new@example.com").one()
        assert user.password_hash != "longenough"

    def test_duplicate_email(self, client, merchant):
        res = client.post("/api/v1/auth/register", json={
            "email": merchant.email,
            "password": "longenough",
            "business_name": "Copycat",
        })
        assert res.status_code == 409

    def test_short_password(self, client):
        res = client.post("/api/v1/auth/register", json={
            "email": "x@example.com", "password": "short", "business_name": "X",
        })
        assert res.status_code == 422


class TestLogin:
    def test_login_success(self, client, merchant):
        res = client.post("/api/v1/auth/login", json={"email": "owner@example.com", "password": "testpass123"})
        assert res.status_code == 200
        token = res.json()["access_token"]
        payload = decode_access_token(token)
        assert payload["tenant_id"] == merchant.id
        assert payload["role"] == "owner"

    def test_wrong_password(self, client, merchant):
        res = client.post("/api/v1/auth/login", json={"email": "owner@example.com", "password": "nope"})
        assert res.status_code == 401

    def test_unknown_user(self, client):
        res = client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": "whatever"})
        assert res.status_code == 401

    def test_inactive_user(self, client, merchant, db_session):
        merchant.is_active = False
        db_session.commit()
        res = client.post("/api/v1/auth/login", json={"email": "owner@example.com", "password": "testpass123"})
        assert res.status_code == 401

    def test_me(self, client, merchant, auth_headers):
        res = client.get("/api/v1/auth/me", headers=auth_headers)
        assert res.status_code == 200
        assert res.json()["email"] == "owner@example.com"
        assert res.json()["business_name"] == "Test Bistro"

    def test_me_requires_token(self, client):
        assert client.get("/api/v1/auth/me").status_code == 401


# ============== RBAC ==============

class TestRBAC:
    def test_token_without_tenant_rejected(self, client, merchant):
        token = create_access_token(data={"sub": str(merchant.id), "email": merchant.email, "role": "owner"})
        res = client.get("/api/v1/dashboard/stats", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401

    def test_invalid_role_rejected(self, client, merchant):
        token = create_access_token(data={
            "sub": str(merchant.id), "email": merchant.email, "role": "emperor", "tenant_id": merchant.id,
        })
        res = client.get("/api/v1/dashboard/stats", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401

    def test_cookie_token_accepted(self, client, merchant, auth_token):
        client.cookies.set("access_token", auth_token)
        res = client.get("/api/v1/dashboard/stats")
        assert res.status_code == 200

    @pytest.mark.parametrize("role", [UserRole.OWNER, UserRole.MANAGER])
    def test_manager_and_above_edit_menu(self, client, merchant, role):
        token = create_access_token(data={
            "sub": str(merchant.id), "email": merchant.email, "role": role.value, "tenant_id": merchant.id,
        })
        res = client.post("/api/v1/dashboard/menu/items", json={
            "name": "Tea", "price": 1, "category": "Drinks",
        }, headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 201
