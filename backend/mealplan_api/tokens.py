"""Signed identity tokens.

Tokens are HS256 JWTs carrying ``{id, username, iat, exp}``. The server keeps
no session record: a token is valid when its signature matches the configured
key and the current time lies in ``[iat, exp)``.

``iat`` and ``exp`` are whole-second NumericDates: the issue time is rounded
down, so a token minted part-way through a second expires up to one second
before a full hour has elapsed.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict

import jwt
from loguru import logger

from .config import Settings
from .errors import ConfigurationError

ALGORITHM = "HS256"
TOKEN_TTL = timedelta(hours=1)
REQUIRED_CLAIMS = ("id", "username", "iat", "exp")

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Identity:
    """The verified subject of a token."""

    id: int
    username: str
    issued_at: datetime
    expires_at: datetime


class TokenFailure(str, enum.Enum):
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class TokenRejected:
    """Typed verification failure; callers treat every reason as 401."""

    reason: TokenFailure
    detail: str = ""


class TokenService:
    """Issues and verifies identity tokens with a key fixed at construction."""

    def __init__(self, settings: Settings, clock: Clock | None = None) -> None:
        self._secret_key = settings.secret_key
        self._clock = clock or utcnow

    def _require_key(self) -> str:
        if not self._secret_key:
            raise ConfigurationError("JWT secret is not defined")
        return self._secret_key

    def issue(self, account_id: int, username: str) -> str:
        """Sign a token for the account, valid for one hour from now."""

        key = self._require_key()
        issued_at = int(self._clock().timestamp())
        payload = {
            "id": account_id,
            "username": username,
            "iat": issued_at,
            "exp": issued_at + int(TOKEN_TTL.total_seconds()),
        }
        return jwt.encode(payload, key, algorithm=ALGORITHM)

    def verify(self, token: str) -> Identity | TokenRejected:
        """Return the token's identity, or the reason it was rejected."""

        key = self._require_key()
        try:
            # Time checks are done below against the injected clock.
            payload: Dict[str, Any] = jwt.decode(
                token,
                key,
                algorithms=[ALGORITHM],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": list(REQUIRED_CLAIMS),
                },
            )
        except jwt.InvalidSignatureError:
            return TokenRejected(TokenFailure.INVALID_SIGNATURE)
        except jwt.PyJWTError as exc:
            return TokenRejected(TokenFailure.MALFORMED, str(exc))

        try:
            account_id = payload["id"]
            username = payload["username"]
            iat = int(payload["iat"])
            exp = int(payload["exp"])
        except (TypeError, ValueError) as exc:
            return TokenRejected(TokenFailure.MALFORMED, str(exc))
        if (
            not isinstance(account_id, int)
            or isinstance(account_id, bool)
            or not isinstance(username, str)
        ):
            return TokenRejected(TokenFailure.MALFORMED, "unexpected claim types")

        now = self._clock().timestamp()
        if now < iat:
            return TokenRejected(TokenFailure.MALFORMED, "issued in the future")
        if now >= exp:
            return TokenRejected(TokenFailure.EXPIRED)

        return Identity(
            id=account_id,
            username=username,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )


def log_rejection(rejection: TokenRejected) -> None:
    logger.info(f"Rejected bearer token: {rejection.reason.value} {rejection.detail}".rstrip())
