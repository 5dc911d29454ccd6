"""
HTTP API client for talking to the Meal Planner backend.

Usage pattern:

    from mealplan_client.services.api_client import get_api_client

    client = get_api_client()

    # login
    await client.login(username="alice", password="yourpass")

    # read the caller's profile
    profile = await client.get_profile()
"""

from __future__ import annotations

import asyncio
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
from loguru import logger

# Concrete bound for every request, including login.
REQUEST_TIMEOUT_SECONDS = 10.0


# -----------------------------
# Configuration helpers
# -----------------------------


def _load_base_url() -> str:
    """
    Determine the backend base URL.

    Priority:
    1. Environment variable MEALPLAN_API_BASE_URL
    2. mealplan_client/config.json -> {"api_base_url": "..."}
    3. Default: http://127.0.0.1:8000
    """
    env_url = os.getenv("MEALPLAN_API_BASE_URL")
    if env_url:
        return env_url.rstrip("/")

    config_path = Path(__file__).resolve().parent.parent / "config.json"
    if config_path.exists():
        try:
            with config_path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(f"Ignoring unreadable {config_path}: {exc}")
        else:
            cfg_url = data.get("api_base_url")
            if cfg_url:
                return cfg_url.rstrip("/")

    return "http://127.0.0.1:8000"


# -----------------------------
# Error types
# -----------------------------


class APIError(Exception):
    """Generic API error (server fault, timeout, unexpected response)."""


class AuthError(APIError):
    """Authentication / authorization error."""


class InvalidCredentialsError(AuthError):
    """Unknown username or wrong password; deliberately not told apart."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class InvalidInputError(APIError):
    """The request was refused for its shape, not for the credentials in it."""


def _is_validation_error(resp: httpx.Response) -> bool:
    try:
        data = resp.json()
    except ValueError:
        return False
    return isinstance(data, dict) and bool(data.get("errors"))


def _detail(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text
    if isinstance(data, dict):
        return str(data.get("message") or data.get("detail") or data)
    return str(data)


@dataclass
class TokenInfo:
    access_token: str


# -----------------------------
# Main API client
# -----------------------------


class APIClient:
    """
    Reusable HTTP client for the Meal Planner backend.

    Use APIClient.get() to obtain a singleton instance.
    """

    _instance: Optional["APIClient"] = None

    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url: str = (base_url or _load_base_url()).rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._token: Optional[TokenInfo] = None

    # ---------- Singleton helper ----------

    @classmethod
    def get(cls) -> "APIClient":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    # ---------- Internal helpers ----------

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = await self._ensure_client()
        try:
            return await client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise APIError(f"{method} {path} timed out after {self.timeout}s") from exc
        except httpx.TransportError as exc:
            raise APIError(f"{method} {path} failed: {exc}") from exc

    def _get_auth_header(self) -> Dict[str, str]:
        """
        Return Authorization header; raise if not logged in.
        """
        if not self._token or not self._token.access_token:
            raise AuthError("Not logged in - call login() first")

        return {"Authorization": f"Bearer {self._token.access_token}"}

    def _raise_for_status(self, resp: httpx.Response, what: str) -> None:
        if resp.status_code == 401:
            raise AuthError(f"{what}: not authenticated (token missing or expired)")
        if resp.status_code == 403:
            raise AuthError(f"{what}: {_detail(resp)}")
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise APIError(f"{what} failed: {_detail(resp)}") from exc

    def has_token(self) -> bool:
        return bool(self._token and self._token.access_token)

    def set_token(self, access_token: str) -> None:
        """
        Manually set a token (e.g. one restored from local storage).
        """

        if not access_token:
            raise ValueError("access_token cannot be empty")

        self._token = TokenInfo(access_token=access_token)

    def clear_token(self) -> None:
        self._token = None

    # ---------- Public methods ----------

    async def close(self) -> None:
        """
        Close underlying HTTP connection pool.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def health(self) -> Dict[str, Any]:
        resp = await self._request("GET", "/health")
        self._raise_for_status(resp, "/health")
        return resp.json()

    # ---- Authentication ----

    async def login(self, username: str, password: str) -> TokenInfo:
        """
        Call /login and store the token for subsequent requests.

        404 (unknown user) and 400 (wrong password) both become
        InvalidCredentialsError. Blank fields, and 400s the server reports as
        request validation errors, raise InvalidInputError instead.
        """
        if not username or not password:
            raise InvalidInputError("Username and password are required")

        resp = await self._request(
            "POST", "/login", json={"username": username, "password": password}
        )
        if resp.status_code == 400 and _is_validation_error(resp):
            raise InvalidInputError(f"/login: {_detail(resp)}")
        if resp.status_code in (400, 404):
            raise InvalidCredentialsError()
        self._raise_for_status(resp, "/login")

        token = TokenInfo(access_token=resp.json().get("token", ""))
        if not token.access_token:
            raise APIError("Login did not return a token")

        self._token = token
        return token

    async def signup(
        self,
        username: str,
        email: str,
        password: str,
        calories_goal: Optional[int] = None,
        dietary_restrictions: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"username": username, "email": email, "password": password}
        if calories_goal is not None:
            payload["calories_goal"] = calories_goal
        if dietary_restrictions is not None:
            payload["dietary_restrictions"] = dietary_restrictions

        resp = await self._request("POST", "/signup", json=payload)
        self._raise_for_status(resp, "/signup")
        return resp.json()

    async def forgot_password(self, email: str) -> None:
        resp = await self._request("POST", "/forgot-password", json={"email": email})
        self._raise_for_status(resp, "/forgot-password")

    # ---- Own account ----

    async def get_profile(self) -> Dict[str, Any]:
        resp = await self._request("GET", "/user", headers=self._get_auth_header())
        self._raise_for_status(resp, "GET /user")
        return resp.json()

    async def update_account(self, username: str, **fields: Any) -> None:
        """PUT /user/{username} with only the fields given."""
        payload = {k: v for k, v in fields.items() if v is not None}
        resp = await self._request(
            "PUT", f"/user/{username}", json=payload, headers=self._get_auth_header()
        )
        self._raise_for_status(resp, f"PUT /user/{username}")

    async def change_password(self, current_password: str, new_password: str) -> None:
        resp = await self._request(
            "PUT",
            "/user/change-password",
            json={"currentPassword": current_password, "newPassword": new_password},
            headers=self._get_auth_header(),
        )
        self._raise_for_status(resp, "/user/change-password")

    async def delete_account(self) -> None:
        resp = await self._request("DELETE", "/userdelete", headers=self._get_auth_header())
        self._raise_for_status(resp, "/userdelete")
        self.clear_token()


def get_api_client() -> APIClient:
    """
    Returns the process-wide singleton APIClient.
    """
    return APIClient.get()


async def _demo() -> None:
    """
    Quick manual check against a running backend:

        python -m mealplan_client.services.api_client
    """
    client = APIClient.get()
    logger.info(f"Base URL: {client.base_url}")
    logger.info(f"/health -> {await client.health()}")
    await client.close()


if __name__ == "__main__":
    asyncio.run(_demo())
