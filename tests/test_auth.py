import datetime
import json

import jwt
import pytest

from main import create_app


@pytest.mark.auth
class TestAuthRegister:
    """Test suite for user registration."""

    def test_register_success(self, client):
        response = client.post(
            "/api/auth/register",
            data=json.dumps({"email": "a@x.com", "password": "secret1"}),
            content_type="application/json",
        )

        assert response.status_code == 201
        data = json.loads(response.data)
        assert data["user"]["email"] == "a@x.com"
        assert data["token"]

    def test_register_missing_email(self, client):
        response = client.post("/api/auth/register", json={"password": "secret1"})

        assert response.status_code == 400
        assert json.loads(response.data)["status"] == "error"

    def test_register_short_password(self, client):
        response = client.post("/api/auth/register", json={"email": "a@x.com", "password": "123"})

        assert response.status_code == 400

    def test_register_invalid_email(self, client):
        response = client.post("/api/auth/register", json={"email": "not-an-email", "password": "secret1"})

        assert response.status_code == 400

    def test_register_duplicate_email(self, client):
        client.post("/api/auth/register", json={"email": "a@x.com", "password": "secret1"})
        response = client.post("/api/auth/register", json={"email": "A@x.com", "password": "secret1"})

        assert response.status_code == 400
        assert "already" in json.loads(response.data)["message"]


@pytest.mark.auth
class TestAuthLogin:
    """Test suite for login and the current-user endpoint."""

    def test_login_success(self, client):
        client.post("/api/auth/register", json={"email": "a@x.com", "password": "secret1"})

        response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})

        assert response.status_code == 200
        data = json.loads(response.data)
        assert "token" in data
        assert data["user"]["email"] == "a@x.com"

    def test_login_wrong_password(self, client):
        client.post("/api/auth/register", json={"email": "a@x.com", "password": "secret1"})

        response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "wrong!!"})

        assert response.status_code == 401

    def test_login_unknown_email(self, client):
        response = client.post("/api/auth/login", json={"email": "nobody@x.com", "password": "secret1"})

        assert response.status_code == 401

    def test_login_missing_fields(self, client):
        response = client.post("/api/auth/login", json={"email": "a@x.com"})

        assert response.status_code == 400

    def test_me_returns_current_user(self, client, auth_headers):
        response = client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert json.loads(response.data)["user"]["email"] == "a@x.com"


@pytest.mark.auth
class TestBearerToken:
    """Every protected route answers 401 with a message naming the cause."""

    def test_missing_token(self, client):
        response = client.get("/api/clientes")

        assert response.status_code == 401
        assert json.loads(response.data)["message"] == "Token not provided"

    def test_malformed_token(self, client):
        response = client.get("/api/clientes", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert json.loads(response.data)["message"] == "Invalid token"

    def test_token_signed_with_other_key(self, client):
        token = jwt.encode({"user_id": 1}, "some-other-key", algorithm="HS256")

        response = client.get("/api/clientes", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert json.loads(response.data)["message"] == "Invalid token"

    def test_expired_token(self, app, client):
        token = jwt.encode(
            {
                "user_id": 1,
                "exp": datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(seconds=5),
            },
            app.config["SECRET_KEY"],
            algorithm="HS256",
        )

        response = client.get("/api/clientes", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert json.loads(response.data)["message"] == "Token expired"

    def test_token_valid_for_thirty_days(self, app, client, auth_headers):
        token = auth_headers["Authorization"][7:]
        payload = jwt.decode(token, app.config["SECRET_KEY"], algorithms=["HS256"])

        lifetime = payload["exp"] - datetime.datetime.now(datetime.timezone.utc).timestamp()
        assert 29 * 86400 < lifetime <= 30 * 86400


@pytest.mark.auth
def test_production_requires_secret_key(tmp_path):
    with pytest.raises(RuntimeError):
        create_app(
            "production",
            overrides={
                "SECRET_KEY": None,
                "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'prod.sqlite'}",
                "SCHEDULER_ENABLED": False,
            },
        )
