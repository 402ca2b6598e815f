"""
Authentication tests.

Verifies:
- Every API route rejects requests without a valid bearer token
- Login by username or email, logout revokes the token
- Deactivated operators lose access immediately
- Operator account rules (password strength, uniqueness)
"""

import pytest

from hazel.services.auth_service import PasswordValidationError, create_user

OPERATOR_PASSWORD = "hazel1234"


def _login(client, identifier, password):
    resp = client.post("/api/auth/login", json={"username": identifier, "password": password})
    return resp.json.get("token") if resp.status_code == 200 else None


PROTECTED_ROUTES = [
    ("GET", "/api/auth/me"),
    ("GET", "/api/sales"),
    ("POST", "/api/sales"),
    ("GET", "/api/sales/export"),
    ("GET", "/api/customers"),
    ("GET", "/api/expenses"),
    ("GET", "/api/reservations"),
    ("POST", "/api/reservations/1/convert"),
    ("GET", "/api/deposits/summary"),
    ("GET", "/api/settings/card-companies"),
    ("GET", "/api/statistics/categories"),
    ("GET", "/api/dashboard/today"),
    ("GET", "/api/photo-cards"),
    ("GET", "/api/photo-tags"),
    ("POST", "/api/push/send"),
]


class TestAuthentication:

    @pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
    def test_requires_token(self, client, method, path):
        resp = client.open(path, method=method, json={})
        assert resp.status_code == 401

    @pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
    def test_rejects_unknown_token(self, client, method, path):
        resp = client.open(path, method=method, json={}, headers={"Authorization": "Bearer not-a-real-token"})
        assert resp.status_code == 401

    def test_login_by_username_and_email(self, client, operator):
        assert _login(client, "florist", OPERATOR_PASSWORD)
        assert _login(client, "FLORIST@hazel.local", OPERATOR_PASSWORD)

    def test_login_response(self, client, operator):
        resp = client.post("/api/auth/login", json={"username": "florist", "password": OPERATOR_PASSWORD})
        assert resp.status_code == 200
        assert resp.json["user"]["username"] == "florist"
        assert "password_hash" not in resp.json["user"]
        assert len(resp.json["token"]) == 64

    @pytest.mark.parametrize("body", [{}, {"username": "florist"}, {"password": "x"}])
    def test_missing_credentials(self, client, body):
        assert client.post("/api/auth/login", json=body).status_code == 400

    def test_wrong_password(self, client, operator):
        resp = client.post("/api/auth/login", json={"username": "florist", "password": "wrong-pass1"})
        assert resp.status_code == 401

    def test_me(self, client, headers):
        resp = client.get("/api/auth/me", headers=headers)
        assert resp.status_code == 200
        assert resp.json["user"]["username"] == "florist"

    def test_logout_revokes_token(self, client, headers):
        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_deactivated_operator_is_locked_out(self, client, db_session, operator, headers):
        operator.is_active = False
        db_session.commit()

        assert client.get("/api/sales", headers=headers).status_code == 401
        assert _login(client, "florist", OPERATOR_PASSWORD) is None


class TestOperatorAccounts:

    @pytest.mark.parametrize("password", ["short1", "onlyletters", "12345678"])
    def test_weak_passwords(self, db_session, password):
        with pytest.raises(PasswordValidationError):
            create_user("owner", "owner@hazel.local", password)

    def test_duplicate_username(self, db_session, operator):
        with pytest.raises(ValueError):
            create_user("florist", "other@hazel.local", "another123")

    def test_password_is_hashed(self, db_session, operator):
        assert operator.password_hash != OPERATOR_PASSWORD
        assert operator.password_hash.startswith("$2")
