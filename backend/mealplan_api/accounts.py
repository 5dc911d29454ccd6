"""Account lifecycle: signup, credential checks and self-service mutation."""
from __future__ import annotations

import base64

from loguru import logger
from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from .errors import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    NoFieldsError,
    NotFoundError,
    UnknownUserError,
)
from .models import User
from .schemas import AccountFieldUpdate, Profile, UserCreate
from .security import hash_password, verify_password
from .tokens import Identity


class AccountService:
    """Account operations bound to one request's database session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_username(self, username: str) -> User | None:
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create_account(self, payload: UserCreate) -> User:
        """Create an account; username and email must both be unused."""

        existing = await self.session.execute(
            select(User.id).where(
                or_(User.username == payload.username, User.email == payload.email)
            )
        )
        if existing.first() is not None:
            raise ConflictError()

        user = User(
            username=payload.username,
            email=payload.email,
            password_hash=await run_in_threadpool(hash_password, payload.password),
            calories_goal=payload.calories_goal,
            dietary_restrictions=payload.dietary_restrictions,
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent signup for the same name/email.
            await self.session.rollback()
            raise ConflictError() from exc
        await self.session.refresh(user)

        logger.info(f"Account created: username={user.username}, id={user.id}")
        return user

    async def authenticate(self, username: str, password: str) -> User:
        """Return the account when the password matches.

        Raises ``UnknownUserError`` or ``AuthenticationError``; the client
        shows both as the same generic message.
        """

        user = await self.get_by_username(username)
        if user is None:
            raise UnknownUserError()
        if not await run_in_threadpool(verify_password, password, user.password_hash):
            raise AuthenticationError()
        return user

    async def get_profile(self, identity: Identity) -> Profile:
        user = await self.session.get(User, identity.id)
        if user is None:
            raise NotFoundError("User not found")

        picture = None
        if user.profile_picture:
            encoded = base64.b64encode(user.profile_picture).decode("ascii")
            picture = f"data:image/jpeg;base64,{encoded}"
        return Profile(
            username=user.username,
            email=user.email,
            calories_goal=user.calories_goal,
            dietary_restrictions=user.dietary_restrictions,
            profile_picture=picture,
        )

    async def update_fields(
        self,
        identity: Identity,
        target_username: str,
        fields: AccountFieldUpdate,
    ) -> None:
        """Apply a partial update to the caller's own account.

        Only fields present in ``fields`` are written; a password is hashed
        first. The write is a single UPDATE keyed by the token's account id.
        """

        if identity.username != target_username:
            logger.warning(
                f"Forbidden update: user id={identity.id} targeted username={target_username}"
            )
            raise ForbiddenError()

        values = fields.present_fields()
        if not values:
            raise NoFieldsError()

        if "password" in values:
            values["password_hash"] = await run_in_threadpool(
                hash_password, values.pop("password")
            )

        stmt = (
            update(User)
            .where(User.id == identity.id, User.username == target_username)
            .values(**values)
        )
        try:
            result = await self.session.execute(stmt)
            if result.rowcount == 0:
                await self.session.rollback()
                raise NotFoundError("User not found")
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError("Email already exists") from exc

        logger.info(f"Account updated: id={identity.id}, fields={sorted(values)}")

    async def change_password(
        self, identity: Identity, current_password: str, new_password: str
    ) -> None:
        """Replace the password after re-checking the current one."""

        user = await self.session.get(User, identity.id)
        if user is None:
            raise NotFoundError("User not found")
        if not await run_in_threadpool(verify_password, current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        await self.session.execute(
            update(User)
            .where(User.id == identity.id)
            .values(password_hash=await run_in_threadpool(hash_password, new_password))
        )
        await self.session.commit()
        logger.info(f"Password changed: id={identity.id}")

    async def delete_account(self, identity: Identity) -> None:
        """Delete the caller's account. The target is always the token's id."""

        result = await self.session.execute(delete(User).where(User.id == identity.id))
        if result.rowcount == 0:
            await self.session.rollback()
            raise NotFoundError("User not found")
        await self.session.commit()
        logger.info(f"Account deleted: id={identity.id}")
