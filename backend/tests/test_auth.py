# Overview: Pytest coverage for login, session tokens and route protection.

import pytest

from apple_rewards.models import SessionToken, User
from apple_rewards.services import session_service
from apple_rewards.services.auth_service import (
    PasswordValidationError,
    authenticate,
    create_student,
    create_user,
    validate_password_strength,
)

from conftest import PASSWORD, auth_headers, get_auth_token, reload


class TestLogin:

    def test_login_valid_credentials(self, client, admin):
        resp = client.post("/api/auth/login", json={"email": admin.email, "password": PASSWORD})

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["id"] == admin.id
        assert data["name"] == "Alice Admin"
        assert data["role"] == "admin"
        assert data["token"]
        assert "password_hash" not in data

        cookie = resp.headers.get("Set-Cookie", "")
        assert "auth_session=" in cookie
        assert "HttpOnly" in cookie

    def test_login_records_last_login(self, client, admin):
        client.post("/api/auth/login", json={"email": admin.email, "password": PASSWORD})
        assert reload(User, admin.id).last_login_at is not None

    @pytest.mark.parametrize("body", [{}, {"email": "alice@example.com"}, {"password": PASSWORD}])
    def test_login_missing_fields(self, client, admin, body):
        resp = client.post("/api/auth/login", json=body)
        assert resp.status_code == 400

    def test_login_wrong_password(self, client, admin):
        resp = client.post("/api/auth/login", json={"email": admin.email, "password": "Wrong123!"})
        assert resp.status_code == 401

    def test_login_unknown_email(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
        assert resp.status_code == 401

    def test_inactive_user_cannot_login(self, client, db_session, admin):
        admin.is_active = False
        db_session.commit()
        assert get_auth_token(client, "alice@example.com") is None


class TestSessions:

    def test_validate_with_bearer_token(self, client, admin):
        token = get_auth_token(client, admin.email)
        resp = client.post("/api/auth/validate", headers=auth_headers(token))
        assert resp.status_code == 200
        assert resp.get_json()["id"] == admin.id

    def test_cookie_is_accepted(self, client, admin):
        get_auth_token(client, admin.email)
        # The test client replays the login cookie
        resp = client.post("/api/auth/validate")
        assert resp.status_code == 200

    def test_missing_token(self, app, db_session):
        fresh = app.test_client()
        resp = fresh.post("/api/auth/validate")
        assert resp.status_code == 401

    def test_garbage_token(self, app, db_session):
        fresh = app.test_client()
        resp = fresh.post("/api/auth/validate", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401

    def test_logout_revokes_token(self, client, admin):
        token = get_auth_token(client, admin.email)

        resp = client.post("/api/auth/logout", headers=auth_headers(token))
        assert resp.status_code == 200

        resp = client.post("/api/auth/validate", headers=auth_headers(token))
        assert resp.status_code == 401

    def test_token_is_stored_hashed(self, client, db_session, admin):
        token = get_auth_token(client, admin.email)
        stored = db_session.query(SessionToken).filter_by(user_id=admin.id).one()
        assert stored.token_hash != token
        assert stored.token_hash == session_service.hash_token(token)

    def test_deactivated_user_session_rejected(self, client, db_session, admin):
        token = get_auth_token(client, admin.email)
        admin.is_active = False
        db_session.commit()

        resp = client.post("/api/auth/validate", headers=auth_headers(token))
        assert resp.status_code == 401

    def test_expired_session_rejected(self, client, db_session, admin):
        from datetime import timedelta
        from apple_rewards.time_utils import utcnow

        token = get_auth_token(client, admin.email)
        stored = db_session.query(SessionToken).filter_by(user_id=admin.id).one()
        stored.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        resp = client.post("/api/auth/validate", headers=auth_headers(token))
        assert resp.status_code == 401

    def test_timezone_aware_expiry_is_compared_in_utc(self, client, db_session, admin):
        from datetime import datetime, timedelta, timezone

        token = get_auth_token(client, admin.email)
        stored = db_session.query(SessionToken).filter_by(user_id=admin.id).one()

        # Postgres hands back aware datetimes for timestamptz columns
        stored.expires_at = datetime.now(timezone.utc) + timedelta(hours=1)
        assert session_service.validate_session(token) is not None

        stored.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        assert session_service.validate_session(token) is None


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/scan"),
            ("POST", "/api/students/1/add-apples"),
            ("POST", "/api/assistants/1/add-apples"),
            ("POST", "/api/assistants/pay-rewards"),
            ("GET", "/api/dashboard/Alice%20Admin"),
        ],
    )
    def test_requires_auth(self, app, db_session, method, path):
        fresh = app.test_client()
        resp = getattr(fresh, method.lower())(path, json={})
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"


class TestAuthService:

    def test_password_strength(self):
        for weak in ("short1!", "alllowercase1!", "ALLUPPERCASE1!", "NoDigitsHere!", "NoSpecial123"):
            with pytest.raises(PasswordValidationError):
                validate_password_strength(weak)
        validate_password_strength(PASSWORD)

    def test_create_user_hashes_password(self, db_session):
        user = create_user("Dan", "dan@example.com", PASSWORD, "assistant", "300099")
        assert user.password_hash != PASSWORD
        assert user.apples == 0
        assert user.sessions_attended == 0
        assert authenticate("dan@example.com", PASSWORD).id == user.id

    def test_create_user_rejects_duplicates_and_bad_role(self, db_session, admin):
        with pytest.raises(ValueError):
            create_user("Dup", admin.email, PASSWORD, "assistant", "300098")
        with pytest.raises(ValueError):
            create_user("Dup", "dup@example.com", PASSWORD, "assistant", admin.barcode)
        with pytest.raises(ValueError):
            create_user("Dup", "dup2@example.com", PASSWORD, "student", "300097")

    def test_barcodes_unique_across_students_and_staff(self, db_session, admin):
        with pytest.raises(ValueError):
            create_student("Clash", admin.barcode)
