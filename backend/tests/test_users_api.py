"""Integration tests for the authenticated account endpoints."""
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from mealplan_api.config import get_settings
from mealplan_api.models import User
from mealplan_api.security import verify_password

SECRET = get_settings().secret_key


async def _stored_user(session_factory, username: str) -> User | None:
    async with session_factory() as session:
        result = await session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()


@pytest.mark.asyncio
async def test_profile_requires_token(client: AsyncClient) -> None:
    response = await client.get("/user")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "header",
    ["Basic YWxpY2U6cHcx", "Bearer", "Token abc", "Bearer not-a-jwt"],
)
async def test_profile_rejects_bad_authorization_header(client: AsyncClient, header: str) -> None:
    response = await client.get("/user", headers={"Authorization": header})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_profile_rejects_expired_token(client: AsyncClient, api) -> None:
    created = await api.signup("alice", "alice@example.com", "pw1")
    issued = int((datetime.now(timezone.utc) - timedelta(hours=2)).timestamp())
    expired = jwt.encode(
        {"id": created["id"], "username": "alice", "iat": issued, "exp": issued + 3600},
        SECRET,
        algorithm="HS256",
    )

    response = await client.get("/user", headers=api.bearer(expired))

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_profile_returns_own_account(client: AsyncClient, api) -> None:
    await api.signup(
        "alice", "alice@example.com", "pw1", calories_goal=1800, dietary_restrictions="vegan"
    )
    token = await api.login("alice", "pw1")

    response = await client.get("/user", headers=api.bearer(token))

    assert response.status_code == 200
    assert response.json() == {
        "username": "alice",
        "email": "alice@example.com",
        "calories_goal": 1800,
        "dietary_restrictions": "vegan",
        "profile_picture": None,
    }


@pytest.mark.asyncio
async def test_update_other_user_is_forbidden(client: AsyncClient, api, session_factory) -> None:
    await api.signup("alice", "alice@example.com", "pw1")
    await api.signup("bob", "bob@example.com", "pw2")
    token = await api.login("alice", "pw1")

    response = await client.put(
        "/user/bob", json={"email": "taken@example.com"}, headers=api.bearer(token)
    )

    assert response.status_code == 403
    bob = await _stored_user(session_factory, "bob")
    assert bob.email == "bob@example.com"


@pytest.mark.asyncio
async def test_update_password_stores_a_hash(client: AsyncClient, api, session_factory) -> None:
    await api.signup("alice", "alice@example.com", "pw1", calories_goal=2000)
    token = await api.login("alice", "pw1")

    response = await client.put(
        "/user/alice", json={"password": "newpw"}, headers=api.bearer(token)
    )

    assert response.status_code == 200
    alice = await _stored_user(session_factory, "alice")
    assert alice.password_hash != "newpw"
    assert verify_password("newpw", alice.password_hash)
    assert alice.calories_goal == 2000
    assert await api.login("alice", "newpw")


@pytest.mark.asyncio
async def test_update_touches_only_supplied_fields(client: AsyncClient, api, session_factory) -> None:
    await api.signup(
        "alice", "alice@example.com", "pw1", calories_goal=2000, dietary_restrictions="none"
    )
    token = await api.login("alice", "pw1")

    response = await client.put(
        "/user/alice",
        json={"calories_goal": 2500, "username": "mallory", "is_admin": True},
        headers=api.bearer(token),
    )

    assert response.status_code == 200
    alice = await _stored_user(session_factory, "alice")
    assert alice.calories_goal == 2500
    assert alice.dietary_restrictions == "none"
    assert alice.email == "alice@example.com"
    assert await _stored_user(session_factory, "mallory") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"email": None}, {"unknown": "x"}])
async def test_update_without_fields_is_bad_request(client: AsyncClient, api, payload: dict) -> None:
    await api.signup("alice", "alice@example.com", "pw1")
    token = await api.login("alice", "pw1")

    response = await client.put("/user/alice", json=payload, headers=api.bearer(token))

    assert response.status_code == 400
    assert response.json()["message"] == "No fields to update"


@pytest.mark.asyncio
async def test_update_to_taken_email_conflicts(client: AsyncClient, api) -> None:
    await api.signup("alice", "alice@example.com", "pw1")
    await api.signup("bob", "bob@example.com", "pw2")
    token = await api.login("alice", "pw1")

    response = await client.put(
        "/user/alice", json={"email": "bob@example.com"}, headers=api.bearer(token)
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_change_password_checks_current_password(client: AsyncClient, api) -> None:
    await api.signup("alice", "alice@example.com", "pw1")
    token = await api.login("alice", "pw1")

    wrong = await client.put(
        "/user/change-password",
        json={"currentPassword": "nope", "newPassword": "pw2"},
        headers=api.bearer(token),
    )
    assert wrong.status_code == 400

    ok = await client.put(
        "/user/change-password",
        json={"currentPassword": "pw1", "newPassword": "pw2"},
        headers=api.bearer(token),
    )
    assert ok.status_code == 200
    assert await api.login("alice", "pw2")


@pytest.mark.asyncio
async def test_delete_removes_only_the_caller(client: AsyncClient, api, session_factory) -> None:
    await api.signup("alice", "alice@example.com", "pw1")
    await api.signup("bob", "bob@example.com", "pw2")
    token = await api.login("alice", "pw1")

    response = await client.delete("/userdelete", headers=api.bearer(token))

    assert response.status_code == 200
    assert await _stored_user(session_factory, "alice") is None
    assert await _stored_user(session_factory, "bob") is not None

    # The token is still cryptographically valid but its account is gone.
    again = await client.delete("/userdelete", headers=api.bearer(token))
    assert again.status_code == 404
    profile = await client.get("/user", headers=api.bearer(token))
    assert profile.status_code == 404


@pytest.mark.asyncio
async def test_password_updates_refuse_overlong_passwords(client: AsyncClient, api) -> None:
    await api.signup("alice", "alice@example.com", "pw1")
    token = await api.login("alice", "pw1")
    overlong = "x" * 73

    update = await client.put(
        "/user/alice", json={"password": overlong}, headers=api.bearer(token)
    )
    change = await client.put(
        "/user/change-password",
        json={"currentPassword": "pw1", "newPassword": overlong},
        headers=api.bearer(token),
    )

    assert update.status_code == 400
    assert change.status_code == 400
    assert await api.login("alice", "pw1")
