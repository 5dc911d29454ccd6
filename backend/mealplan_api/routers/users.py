"""Self-service account endpoints for the authenticated caller."""
from fastapi import APIRouter, Depends

from ..accounts import AccountService
from ..dependencies import get_account_service, get_current_identity
from ..schemas import AccountFieldUpdate, Message, PasswordChange, Profile
from ..tokens import Identity

router = APIRouter(tags=["users"])


@router.get("/user", response_model=Profile)
async def read_profile(
    identity: Identity = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service),
) -> Profile:
    """Return the caller's own profile."""

    return await accounts.get_profile(identity)


# Declared before /user/{username} so "change-password" is not taken as a username.
@router.put("/user/change-password", response_model=Message)
async def change_password(
    payload: PasswordChange,
    identity: Identity = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service),
) -> Message:
    await accounts.change_password(identity, payload.current_password, payload.new_password)
    return Message(message="Password changed successfully")


@router.put("/user/{username}", response_model=Message)
async def update_user(
    username: str,
    fields: AccountFieldUpdate,
    identity: Identity = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service),
) -> Message:
    """Partially update the caller's account; other users' accounts are off limits."""

    await accounts.update_fields(identity, username, fields)
    return Message(message="User updated successfully")


@router.delete("/userdelete", response_model=Message)
async def delete_user(
    identity: Identity = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service),
) -> Message:
    await accounts.delete_account(identity)
    return Message(message="User deleted successfully")
