"""Integration tests for signup, login and account recovery."""
import pytest
from httpx import AsyncClient

from mealplan_api.config import Settings, get_settings
from mealplan_api.dependencies import get_token_service
from mealplan_api.main import app
from mealplan_api.tokens import Identity, TokenService


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_signup_then_login_returns_verifiable_token(client: AsyncClient, api) -> None:
    """A new account can log in and the token names that account."""

    created = await api.signup("alice", "alice@example.com", "pw1", calories_goal=2000)
    assert created["username"] == "alice"
    assert "password" not in created and "password_hash" not in created

    response = await client.post("/login", json={"username": "alice", "password": "pw1"})
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "User logged in successfully"

    identity = TokenService(get_settings()).verify(body["token"])
    assert isinstance(identity, Identity)
    assert identity.id == created["id"]
    assert identity.username == "alice"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "username, email",
    [("alice", "other@example.com"), ("bob", "alice@example.com")],
)
async def test_signup_rejects_duplicate_username_or_email(
    client: AsyncClient, api, username: str, email: str
) -> None:
    await api.signup("alice", "alice@example.com", "pw1")

    response = await client.post(
        "/signup", json={"username": username, "email": email, "password": "pw2"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Username or email already exists"


@pytest.mark.asyncio
async def test_signup_with_missing_fields_is_bad_request(client: AsyncClient) -> None:
    response = await client.post("/signup", json={"username": "alice"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["errors"]


@pytest.mark.asyncio
async def test_login_unknown_user_is_404(client: AsyncClient) -> None:
    response = await client.post("/login", json={"username": "ghost", "password": "pw"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_login_wrong_password_is_400(client: AsyncClient, api) -> None:
    await api.signup("alice", "alice@example.com", "pw1")
    response = await client.post("/login", json={"username": "alice", "password": "wrong"})
    assert response.status_code == 400
    assert "token" not in response.json()


@pytest.mark.asyncio
async def test_login_without_signing_key_fails_closed(client: AsyncClient, api) -> None:
    await api.signup("alice", "alice@example.com", "pw1")
    app.dependency_overrides[get_token_service] = lambda: TokenService(Settings(secret_key=None))

    response = await client.post("/login", json={"username": "alice", "password": "pw1"})

    assert response.status_code == 500
    assert "token" not in response.json()


@pytest.mark.asyncio
async def test_forgot_password_mails_the_username(client: AsyncClient, api, mailer) -> None:
    await api.signup("alice", "alice@example.com", "pw1")

    response = await client.post("/forgot-password", json={"email": "alice@example.com"})

    assert response.status_code == 200
    assert mailer.sent == [("alice@example.com", "alice")]


@pytest.mark.asyncio
async def test_forgot_password_unknown_email_is_404(client: AsyncClient, mailer) -> None:
    response = await client.post("/forgot-password", json={"email": "nobody@example.com"})
    assert response.status_code == 404
    assert mailer.sent == []


@pytest.mark.asyncio
async def test_signup_login_and_failures_scenario(client: AsyncClient, api) -> None:
    """Signup, successful login, repeated failures, then an unauthenticated profile read."""

    await api.signup("alice", "a@example.com", "pw1")
    assert await api.login("alice", "pw1")

    for _ in range(5):
        response = await client.post("/login", json={"username": "alice", "password": "wrong"})
        assert response.status_code == 400

    response = await client.get("/user")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_signup_and_login_refuse_overlong_passwords(client: AsyncClient, api) -> None:
    overlong = "x" * 72 + "secret-A"

    signup = await client.post(
        "/signup", json={"username": "alice", "email": "alice@example.com", "password": overlong}
    )
    assert signup.status_code == 400
    assert signup.json()["errors"]

    await api.signup("alice", "alice@example.com", "x" * 72)
    login = await client.post(
        "/login", json={"username": "alice", "password": "x" * 72 + "different-B"}
    )
    assert login.status_code == 400
    assert "token" not in login.json()
