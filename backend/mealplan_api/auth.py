"""Authentication routes: signup, login and account recovery."""
from fastapi import APIRouter, Depends, status
from loguru import logger
from starlette.concurrency import run_in_threadpool

from .accounts import AccountService
from .dependencies import get_account_service, get_mailer, get_token_service
from .errors import NotFoundError
from .mailer import Mailer, redact_email
from .models import User
from .schemas import ForgotPassword, Message, Token, UserCreate, UserLogin, UserRead
from .tokens import TokenService

router = APIRouter(tags=["auth"])


@router.post("/signup", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: UserCreate, accounts: AccountService = Depends(get_account_service)
) -> User:
    """Create an account with a unique username and email."""

    return await accounts.create_account(payload)


@router.post("/login", response_model=Token)
async def login(
    payload: UserLogin,
    accounts: AccountService = Depends(get_account_service),
    tokens: TokenService = Depends(get_token_service),
) -> Token:
    """Check the password and return a one-hour identity token."""

    user = await accounts.authenticate(payload.username, payload.password)
    token = tokens.issue(user.id, user.username)
    logger.info(f"Login succeeded: id={user.id}")
    return Token(token=token)


@router.post("/forgot-password", response_model=Message)
async def forgot_password(
    payload: ForgotPassword,
    accounts: AccountService = Depends(get_account_service),
    mailer: Mailer = Depends(get_mailer),
) -> Message:
    """Mail the username registered for ``email``.

    NOTE: answers 404 for unknown addresses, which reveals whether an email
    is registered.
    """

    user = await accounts.get_by_email(payload.email)
    if user is None:
        logger.info(f"Recovery requested for unknown email {redact_email(payload.email)}")
        raise NotFoundError("No account with that email")

    await run_in_threadpool(mailer.send_account_recovery, user.email, user.username)
    return Message(message="Recovery information sent")
