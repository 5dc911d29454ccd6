"""Pydantic schemas used across the backend API."""
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .security import MAX_PASSWORD_BYTES, password_too_long


def _check_password_length(value: str | None) -> str | None:
    if value is not None and password_too_long(value):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class Token(BaseModel):
    """Login response payload."""

    message: str = "User logged in successfully"
    token: str


class UserLogin(BaseModel):
    """Credentials supplied during login."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value):
        return _check_password_length(value)


class UserCreate(UserLogin):
    """Payload for account signup."""

    email: EmailStr
    calories_goal: int | None = Field(default=None, ge=0)
    dietary_restrictions: str | None = None


class UserRead(BaseModel):
    """Public representation of an account."""

    id: int
    username: str
    email: EmailStr

    model_config = ConfigDict(from_attributes=True)


class Profile(BaseModel):
    """The authenticated caller's own profile."""

    username: str
    email: EmailStr
    calories_goal: int | None = None
    dietary_restrictions: str | None = None
    profile_picture: str | None = None


class AccountFieldUpdate(BaseModel):
    """The only account fields a self-service update may touch.

    Unknown keys in the request body are dropped rather than written.
    """

    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=1)
    calories_goal: int | None = Field(default=None, ge=0)
    dietary_restrictions: str | None = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value):
        return _check_password_length(value)

    def present_fields(self) -> dict:
        """Fields explicitly supplied with a non-null value."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class PasswordChange(BaseModel):
    current_password: str = Field(min_length=1, alias="currentPassword")
    new_password: str = Field(min_length=1, alias="newPassword")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("current_password", "new_password")
    @classmethod
    def password_fits_bcrypt(cls, value):
        return _check_password_length(value)


class ForgotPassword(BaseModel):
    email: EmailStr


class Message(BaseModel):
    message: str
