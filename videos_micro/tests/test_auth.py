from datetime import datetime, timedelta

from jose import jwt

from Endpoints.auth import bcrypt_context
from models.users_models import User, Role
from utils.permissions import Capability, has_capability
from utils.settings import get_settings
from conftest import TEST_PASSWORD, auth_headers, make_user


def signup(client, **overrides):
    body = {"name": "Ada", "email": "ada@example.com", "password": "pa55word"}
    body.update(overrides)
    return client.post("/api/auth/signup", json=body)


class TestSignup:

    def test_creates_consumer_and_returns_token(self, client, db):
        response = signup(client)

        assert response.status_code == 201
        body = response.json()
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["role"] == "consumer"
        assert "password" not in body["user"]
        assert "passwordHash" not in body["user"]
        assert body["token"]

        stored = db.query(User).filter(User.email == "ada@example.com").one()
        assert stored.password_hash != "pa55word"
        assert bcrypt_context.verify("pa55word", stored.password_hash)

    def test_role_in_request_is_ignored(self, client):
        response = signup(client, role="admin")

        assert response.status_code == 201
        assert response.json()["user"]["role"] == "consumer"

    def test_missing_fields(self, client):
        response = client.post("/api/auth/signup", json={"email": "x@example.com"})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"

    def test_invalid_email(self, client):
        response = signup(client, email="not-an-email")

        assert response.status_code == 400

    def test_duplicate_email_conflicts(self, client):
        assert signup(client).status_code == 201

        response = signup(client, name="Someone Else", password="another")

        assert response.status_code == 409
        assert response.json()["error"] == "User already exists"

    def test_duplicate_email_ignores_case(self, client):
        assert signup(client).status_code == 201

        response = signup(client, email="ADA@Example.com")

        assert response.status_code == 409

    def test_mixed_case_email_can_log_in(self, client, db):
        assert signup(client, email="Fan@Example.COM").status_code == 201

        response = client.post("/api/auth/login", json={"email": "Fan@Example.COM", "password": "pa55word"})

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "fan@example.com"
        assert db.query(User).filter(User.email == "fan@example.com").count() == 1

    def test_blank_name_is_missing(self, client, db):
        response = signup(client, name="   ")

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"
        assert db.query(User).count() == 0


class TestLogin:

    def test_returns_signed_token(self, client, consumer):
        response = client.post("/api/auth/login", json={"email": consumer.email, "password": TEST_PASSWORD})

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == consumer.id

        settings = get_settings()
        claims = jwt.decode(body["token"], settings.secret_key, algorithms=[settings.algorithm])
        assert claims["id"] == consumer.id
        assert claims["name"] == consumer.name
        assert claims["email"] == consumer.email
        assert claims["role"] == "consumer"

        lifetime = datetime.utcfromtimestamp(claims["exp"]) - datetime.utcnow()
        assert timedelta(days=29) < lifetime <= timedelta(days=30)

    def test_wrong_password_and_unknown_email_look_the_same(self, client, consumer):
        wrong_password = client.post("/api/auth/login", json={"email": consumer.email, "password": "nope"})
        unknown_email = client.post("/api/auth/login", json={"email": "ghost@beatly.test", "password": "nope"})

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()
        assert wrong_password.json() == {"error": "Authentication failed", "details": "Invalid email or password"}

    def test_email_lookup_ignores_case_and_whitespace(self, client, consumer):
        response = client.post("/api/auth/login", json={"email": " FAN@Beatly.Test ", "password": TEST_PASSWORD})

        assert response.status_code == 200
        assert response.json()["user"]["id"] == consumer.id

    def test_missing_credentials(self, client):
        response = client.post("/api/auth/login", json={"email": "a@beatly.test"})

        assert response.status_code == 400


class TestAuthenticate:

    def test_me_returns_public_projection(self, client, consumer, consumer_headers):
        response = client.get("/api/auth/me", headers=consumer_headers)

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["id"] == consumer.id
        assert user["name"] == "Fan"
        assert set(user) == {"id", "name", "email", "role", "createdAt"}

    def test_me_reflects_token_user(self, client, admin, admin_headers):
        response = client.get("/api/auth/me", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["user"]["email"] == admin.email
        assert response.json()["user"]["role"] == "admin"

    def test_missing_token(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "Access denied. No token provided."

    def test_garbage_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.token"})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired token."

    def test_expired_token(self, client, consumer):
        settings = get_settings()
        token = jwt.encode(
            {"id": consumer.id, "exp": datetime.utcnow() - timedelta(minutes=1)},
            settings.secret_key,
            algorithm=settings.algorithm,
        )

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_token_for_deleted_user(self, client, db):
        user = make_user(db, "gone@beatly.test")
        headers = auth_headers(user)
        db.delete(user)
        db.commit()

        response = client.get("/api/auth/me", headers=headers)

        assert response.status_code == 401


class TestAuthorizeRoles:

    def test_consumer_cannot_reach_admin_routes(self, client, consumer_headers):
        response = client.get("/api/videos/all-analytics", headers=consumer_headers)

        assert response.status_code == 403
        assert response.json()["error"] == "Access denied. Unauthorized role."

    def test_admin_cannot_like(self, client, admin_headers):
        response = client.post(
            "/api/videos/00000000-0000-4000-8000-000000000000/like", headers=admin_headers
        )

        assert response.status_code == 403

    def test_capabilities_follow_role(self, admin, consumer):
        assert has_capability(admin, Capability.auto_approve)
        assert has_capability(Role.admin, Capability.view_unapproved)
        assert has_capability(admin, Capability.moderate_comments)

        assert not has_capability(consumer, Capability.auto_approve)
        assert not has_capability(consumer, Capability.moderate_comments)
        assert not has_capability(None, Capability.view_unapproved)
