"""Reusable FastAPI dependencies."""
from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from .accounts import AccountService
from .config import get_settings
from .database import get_session
from .errors import AuthorizationError, MissingCredentialError
from .mailer import Mailer
from .tokens import Identity, TokenService, log_rejection

# Use simple Bearer auth instead of OAuth2 password flow
bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields an AsyncSession."""
    async for session in get_session():
        yield session


def get_token_service() -> TokenService:
    return TokenService(get_settings())


def get_mailer() -> Mailer:
    return Mailer.from_settings(get_settings())


def get_account_service(
    session: AsyncSession = Depends(get_db_session),
) -> AccountService:
    return AccountService(session)


async def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """
    Gate for protected routes: verify the ``Authorization: Bearer <token>``
    header and expose the token's identity on ``request.state.identity``.

    No database access happens here; the token alone decides.
    """

    if credentials is None or credentials.scheme.lower() != "bearer":
        logger.info(f"Missing bearer credential - {request.url.path}")
        raise MissingCredentialError()

    result = tokens.verify(credentials.credentials)
    if not isinstance(result, Identity):
        log_rejection(result)
        raise AuthorizationError()

    request.state.identity = result
    return result
