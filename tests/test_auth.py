"""
Регистрация, логин, Google, ротация refresh-токенов, logout и обновление профиля.
"""
from datetime import timedelta

import pytest

from car_market.models import RefreshToken
from car_market.services import auth_service
from car_market.utils.security import create_access_token, create_refresh_token
from conftest import bearer


# ── Регистрация ──────────────────────────────────────────────────────────────

class TestRegister:

    def test_register_returns_user_and_tokens(self, client):
        response = client.post(
            "/auth/register",
            json={"name": "Testy", "email": "t@test.com", "password": "x"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["user"]["email"] == "t@test.com"
        assert body["user"]["name"] == "Testy"
        assert "password" not in body["user"]
        assert "hashed_password" not in body["user"]
        assert "refresh_tokens" not in body["user"]
        assert body["tokens"]["accessToken"]
        assert body["tokens"]["refreshToken"]

    def test_duplicate_email_conflict(self, client, user):
        response = client.post(
            "/auth/register",
            json={"name": "Again", "email": "t@test.com", "password": "z"},
        )
        assert response.status_code == 409
        assert response.json()["code"] == "conflict"

    def test_missing_password(self, client):
        response = client.post("/auth/register", json={"name": "Testy", "email": "t@test.com"})
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_input"

    def test_email_is_case_insensitive(self, client, user):
        response = client.post(
            "/auth/register",
            json={"name": "Shouty", "email": "T@Test.com", "password": "z"},
        )
        assert response.status_code == 409

    def test_email_stored_lowercase(self, client):
        response = client.post(
            "/auth/register",
            json={"name": "Testy", "email": "Mixed@Test.com", "password": "x"},
        )
        assert response.json()["user"]["email"] == "mixed@test.com"

    def test_refresh_token_added_to_set(self, user, db):
        assert db.query(RefreshToken).filter(RefreshToken.user_id == user["user"]["id"]).count() == 1


# ── Логин ────────────────────────────────────────────────────────────────────

class TestLogin:

    def test_login(self, client, user):
        response = client.post("/auth/login", json={"email": "t@test.com", "password": "x"})
        assert response.status_code == 200
        assert response.json()["user"]["id"] == user["user"]["id"]

    def test_login_ignores_email_case(self, client, user):
        response = client.post("/auth/login", json={"email": "T@TEST.com", "password": "x"})
        assert response.status_code == 200
        assert response.json()["user"]["id"] == user["user"]["id"]

    def test_wrong_password(self, client, user):
        response = client.post("/auth/login", json={"email": "t@test.com", "password": "wrong"})
        assert response.status_code == 401

    def test_unknown_email(self, client):
        response = client.post("/auth/login", json={"email": "invalid@test.com", "password": "x"})
        assert response.status_code == 401

    def test_each_login_adds_a_session(self, client, user, db):
        client.post("/auth/login", json={"email": "t@test.com", "password": "x"})
        assert db.query(RefreshToken).count() == 2


# ── Доступ по access-токену ─────────────────────────────────────────────────

class TestAccessToken:

    def test_missing_header(self, client):
        assert client.get("/car").status_code == 401

    def test_header_without_scheme(self, client):
        response = client.get("/car", headers={"Authorization": "InvalidTokenFormat"})
        assert response.status_code == 401

    def test_garbage_token(self, client):
        assert client.get("/car", headers=bearer("INVALID_TOKEN")).status_code == 401

    def test_refresh_token_is_not_an_access_token(self, client, user):
        response = client.get("/car", headers=bearer(user["tokens"]["refreshToken"]))
        assert response.status_code == 401

    def test_expired_access_token(self, client, user):
        token = create_access_token(
            {"sub": str(user["user"]["id"])}, expires_delta=timedelta(seconds=-5)
        )
        response = client.get("/car", headers=bearer(token))
        assert response.status_code == 401
        assert response.json()["code"] == "token_expired"

    def test_valid_access_token(self, client, headers):
        assert client.get("/car", headers=headers).status_code == 200


# ── Refresh и logout ────────────────────────────────────────────────────────

class TestRefresh:

    def test_rotation(self, client, user):
        old_refresh = user["tokens"]["refreshToken"]
        response = client.get("/auth/refresh", headers=bearer(old_refresh))
        assert response.status_code == 200
        tokens = response.json()
        assert tokens["refreshToken"] != old_refresh
        assert client.get("/car", headers=bearer(tokens["accessToken"])).status_code == 200

    def test_reuse_revokes_all_sessions(self, client, user):
        old_refresh = user["tokens"]["refreshToken"]
        new_refresh = client.get("/auth/refresh", headers=bearer(old_refresh)).json()["refreshToken"]

        # Повторное использование уже обменянного токена
        assert client.get("/auth/refresh", headers=bearer(old_refresh)).status_code == 401
        # ...гасит и свежий токен того же пользователя
        assert client.get("/auth/refresh", headers=bearer(new_refresh)).status_code == 401

    def test_reuse_does_not_touch_other_users(self, client, user, other_user):
        old_refresh = user["tokens"]["refreshToken"]
        client.get("/auth/refresh", headers=bearer(old_refresh))
        client.get("/auth/refresh", headers=bearer(old_refresh))

        response = client.get("/auth/refresh", headers=bearer(other_user["tokens"]["refreshToken"]))
        assert response.status_code == 200

    def test_invalid_refresh_token(self, client):
        assert client.get("/auth/refresh", headers=bearer("invalidRefreshToken")).status_code == 401

    def test_missing_refresh_token(self, client):
        assert client.get("/auth/refresh").status_code == 401

    def test_access_token_is_not_a_refresh_token(self, client, user):
        response = client.get("/auth/refresh", headers=bearer(user["tokens"]["accessToken"]))
        assert response.status_code == 401

    def test_expired_refresh_token_revokes_sessions(self, client, user):
        expired = create_refresh_token(
            {"sub": str(user["user"]["id"])}, expires_delta=timedelta(seconds=-5)
        )
        assert client.get("/auth/refresh", headers=bearer(expired)).status_code == 401

        response = client.get("/auth/refresh", headers=bearer(user["tokens"]["refreshToken"]))
        assert response.status_code == 401


class TestLogout:

    def test_logout(self, client, user, db):
        refresh = user["tokens"]["refreshToken"]
        assert client.get("/auth/logout", headers=bearer(refresh)).status_code == 200
        assert db.query(RefreshToken).count() == 0
        assert client.get("/auth/refresh", headers=bearer(refresh)).status_code == 401

    def test_logout_keeps_other_sessions(self, client, user):
        second = client.post(
            "/auth/login", json={"email": "t@test.com", "password": "x"}
        ).json()["tokens"]["refreshToken"]

        client.get("/auth/logout", headers=bearer(user["tokens"]["refreshToken"]))

        assert client.get("/auth/refresh", headers=bearer(second)).status_code == 200

    def test_logout_twice(self, client, user):
        refresh = user["tokens"]["refreshToken"]
        client.get("/auth/logout", headers=bearer(refresh))
        assert client.get("/auth/logout", headers=bearer(refresh)).status_code == 401


# ── Google Sign-In ───────────────────────────────────────────────────────────

class TestGoogleSignIn:

    @pytest.fixture
    def google_user(self, monkeypatch):
        id_info = {"email": "g@test.com", "name": "Goo Gle", "picture": "http://img/g.png"}
        monkeypatch.setattr(auth_service, "verify_google_credential", lambda credential: id_info)
        return id_info

    def test_first_sign_in_creates_user(self, client, google_user):
        response = client.post("/auth/google", json={"credential": "google-id-token"})
        assert response.status_code == 200
        body = response.json()
        assert body["user"]["email"] == "g@test.com"
        assert body["user"]["img_url"] == "http://img/g.png"
        assert body["tokens"]["accessToken"]

    def test_second_sign_in_reuses_user(self, client, google_user):
        first = client.post("/auth/google", json={"credential": "a"}).json()
        second = client.post("/auth/google", json={"credential": "b"}).json()
        assert first["user"]["id"] == second["user"]["id"]

    def test_existing_email_signs_in(self, client, user, monkeypatch):
        monkeypatch.setattr(
            auth_service, "verify_google_credential", lambda credential: {"email": "t@test.com"}
        )
        response = client.post("/auth/google", json={"credential": "a"})
        assert response.json()["user"]["id"] == user["user"]["id"]

    def test_google_email_case(self, client, user, monkeypatch):
        monkeypatch.setattr(
            auth_service, "verify_google_credential", lambda credential: {"email": "T@Test.com"}
        )
        response = client.post("/auth/google", json={"credential": "a"})
        assert response.json()["user"]["id"] == user["user"]["id"]

    def test_invalid_credential(self, client, monkeypatch):
        def reject(credential):
            raise ValueError("Token expired")
        monkeypatch.setattr(auth_service, "verify_google_credential", reject)
        assert client.post("/auth/google", json={"credential": "a"}).status_code == 401

    def test_missing_credential(self, client):
        assert client.post("/auth/google", json={}).status_code == 400


# ── Обновление профиля ──────────────────────────────────────────────────────

class TestUpdateProfile:

    def test_update(self, client, user, headers):
        user_id = user["user"]["id"]
        response = client.put(
            f"/auth/{user_id}",
            json={"name": "New", "email": "new@test.com", "password": "newPassword", "phone_number": "050"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["email"] == "new@test.com"
        assert response.json()["phone_number"] == "050"

        login = client.post("/auth/login", json={"email": "new@test.com", "password": "newPassword"})
        assert login.status_code == 200

    def test_without_token(self, client):
        response = client.put("/auth/1", json={"email": "test@test.com", "password": "newPassword"})
        assert response.status_code == 401

    def test_missing_fields(self, client, user, headers):
        response = client.put(f"/auth/{user['user']['id']}", json={"name": "Updated Name"}, headers=headers)
        assert response.status_code == 400

    def test_email_taken(self, client, user, headers, other_user):
        response = client.put(
            f"/auth/{user['user']['id']}",
            json={"name": "Testy", "email": "other@test.com", "password": "newPassword"},
            headers=headers,
        )
        assert response.status_code == 409

    def test_keep_own_email(self, client, user, headers):
        response = client.put(
            f"/auth/{user['user']['id']}",
            json={"name": "Renamed", "email": "t@test.com", "password": "x"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

    def test_unknown_user(self, client, headers):
        response = client.put(
            "/auth/9999",
            json={"name": "Testy", "email": "t@test.com", "password": "newPassword"},
            headers=headers,
        )
        assert response.status_code == 404

    def test_someone_else(self, client, headers, other_user):
        response = client.put(
            f"/auth/{other_user['user']['id']}",
            json={"name": "Hacked", "email": "h@test.com", "password": "newPassword"},
            headers=headers,
        )
        assert response.status_code == 401
