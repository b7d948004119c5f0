"""
Tests for the authentication routes: register, login, current user, logout.
"""

from fastapi import status

from jobtracker.core.auth import decode_token
from tests.conftest import TEST_PASSWORD


class TestRegister:

    def test_register_returns_user_and_token(self, client, settings):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "a@x.com", "password": TEST_PASSWORD, "name": "Ada"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["user"]["email"] == "a@x.com"
        assert data["user"]["name"] == "Ada"
        assert "password" not in data["user"]
        assert decode_token(data["token"], settings)["sub"] == data["user"]["id"]

    def test_register_sets_token_cookie(self, client):
        response = client.post("/api/v1/auth/register", json={"email": "a@x.com", "password": TEST_PASSWORD})

        assert response.cookies.get("token") == response.json()["token"]
        assert "httponly" in response.headers["set-cookie"].lower()

    def test_password_is_stored_hashed(self, client, mongo_db):
        client.post("/api/v1/auth/register", json={"email": "a@x.com", "password": TEST_PASSWORD})

        stored = mongo_db["users"].find_one({"email": "a@x.com"})
        assert stored["password"] != TEST_PASSWORD
        assert stored["password"].startswith("$2")

    def test_duplicate_email_conflicts_and_keeps_original(self, client, register_user, mongo_db):
        original = register_user(email="a@x.com", name="First")
        before = mongo_db["users"].find_one({"email": "a@x.com"})

        response = client.post(
            "/api/v1/auth/register",
            json={"email": "a@x.com", "password": "another-password", "name": "Second"},
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json() == {"status": "error", "message": "Email already in use"}
        assert mongo_db["users"].count_documents({}) == 1
        assert mongo_db["users"].find_one({"email": "a@x.com"}) == before

        login = client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": TEST_PASSWORD})
        assert login.status_code == status.HTTP_200_OK
        assert login.json()["user"]["id"] == original["user"]["id"]

    def test_duplicate_email_is_case_insensitive(self, client, register_user):
        register_user(email="a@x.com")

        response = client.post("/api/v1/auth/register", json={"email": "A@X.com", "password": TEST_PASSWORD})

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_invalid_email_is_rejected(self, client, mongo_db):
        response = client.post("/api/v1/auth/register", json={"email": "not-an-email", "password": TEST_PASSWORD})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["status"] == "error"
        assert "email" in response.json()["message"]
        assert mongo_db["users"].count_documents({}) == 0

    def test_short_password_is_rejected(self, client):
        response = client.post("/api/v1/auth/register", json={"email": "a@x.com", "password": "123"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "password" in response.json()["message"]

    def test_missing_body_is_rejected(self, client):
        response = client.post("/api/v1/auth/register")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_profile_text_is_trimmed(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": " a@x.com ", "password": TEST_PASSWORD, "name": "  Ada ", "location": " Berlin"},
        )

        user = response.json()["user"]
        assert (user["email"], user["name"], user["location"]) == ("a@x.com", "Ada", "Berlin")

    def test_password_whitespace_counts_toward_length(self, client):
        response = client.post("/api/v1/auth/register", json={"email": "a@x.com", "password": "     a"})

        assert response.status_code == status.HTTP_201_CREATED


class TestLogin:

    def test_login_after_register(self, client, register_user, settings):
        registered = register_user(email="a@x.com")

        response = client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": TEST_PASSWORD})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["user"]["id"] == registered["user"]["id"]
        assert decode_token(data["token"], settings)["sub"] == registered["user"]["id"]
        assert response.cookies.get("token") == data["token"]

    def test_password_with_surrounding_spaces(self, client):
        credentials = {"email": "ws@x.com", "password": " secret123 "}
        client.post("/api/v1/auth/register", json=credentials)

        response = client.post("/api/v1/auth/login", json=credentials)
        trimmed = client.post("/api/v1/auth/login", json={**credentials, "password": "secret123"})

        assert response.status_code == status.HTTP_200_OK
        assert trimmed.status_code == status.HTTP_401_UNAUTHORIZED

    def test_wrong_password(self, client, register_user):
        register_user(email="a@x.com")

        response = client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": "wrong-password"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"status": "error", "message": "Invalid email or password"}

    def test_unknown_email_gets_same_message(self, client):
        response = client.post("/api/v1/auth/login", json={"email": "nobody@x.com", "password": TEST_PASSWORD})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"] == "Invalid email or password"

    def test_unknown_email_still_verifies_a_hash(self, client, app, monkeypatch):
        calls = []
        pwd_context = app.state.context.pwd_context
        monkeypatch.setattr(pwd_context, "dummy_verify", lambda *args, **kwargs: calls.append(True))

        client.post("/api/v1/auth/login", json={"email": "nobody@x.com", "password": TEST_PASSWORD})

        assert calls == [True]


class TestCurrentUser:

    def test_me_with_bearer_token(self, client, register_user):
        registered = register_user(email="a@x.com", location="Berlin")

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {registered['token']}"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["user"]["location"] == "Berlin"

    def test_me_with_cookie(self, client):
        client.post("/api/v1/auth/register", json={"email": "a@x.com", "password": TEST_PASSWORD})

        response = client.get("/api/v1/auth/me")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["user"]["email"] == "a@x.com"

    def test_me_without_token(self, client):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["status"] == "error"

    def test_me_for_deleted_user(self, client, register_user, mongo_db):
        registered = register_user(email="a@x.com")
        mongo_db["users"].delete_many({})

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {registered['token']}"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_update_profile(self, client, auth_headers, settings):
        response = client.patch(
            "/api/v1/auth/me",
            json={"name": "Grace", "last_name": "Hopper", "location": "Arlington"},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        user = response.json()["user"]
        assert (user["name"], user["last_name"], user["location"]) == ("Grace", "Hopper", "Arlington")
        assert decode_token(response.json()["token"], settings)["sub"] == user["id"]

    def test_update_email_to_taken_address_conflicts(self, client, register_user):
        register_user(email="taken@x.com")
        token = register_user(email="b@x.com")["token"]

        response = client.patch(
            "/api/v1/auth/me",
            json={"email": "taken@x.com"},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == status.HTTP_409_CONFLICT


class TestLogout:

    def test_logout_clears_cookie(self, client):
        client.post("/api/v1/auth/register", json={"email": "a@x.com", "password": TEST_PASSWORD})
        assert client.get("/api/v1/auth/me").status_code == status.HTTP_200_OK

        response = client.post("/api/v1/auth/logout")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"message": "User logged out"}
        assert client.get("/api/v1/auth/me").status_code == status.HTTP_401_UNAUTHORIZED
