"""Auth request and response models with validation."""

from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from vidtube.models.base import ApiModel
from vidtube.models.user import NAME_MAX_LENGTH, User


class LoginRequest(ApiModel):
    """Login credentials. Either username or email identifies the account.

    Attributes:
        username: Account username (case-insensitive)
        email: Account email
        password: Account password
    """

    username: Optional[str] = None
    email: Optional[str] = None
    password: str = ""


class RefreshRequest(ApiModel):
    """Body form of a refresh request (the cookie takes precedence).

    Attributes:
        refresh_token: The refresh token to exchange
    """

    refresh_token: Optional[str] = None


class ChangePasswordRequest(ApiModel):
    """Request to replace the current password.

    Attributes:
        old_password: Current password, verified before the change
        new_password: Replacement password
    """

    old_password: str
    new_password: str = Field(..., min_length=1)

    @field_validator("new_password")
    @classmethod
    def password_not_empty(cls, v: str) -> str:
        """Ensure password is not empty or whitespace only."""
        if not v.strip():
            raise ValueError("Password cannot be empty or whitespace only")
        return v


class UpdateAccountRequest(ApiModel):
    """Account details update; both fields are required."""

    full_name: str = Field("", max_length=NAME_MAX_LENGTH)
    email: str = Field("", max_length=NAME_MAX_LENGTH)


class TokenPair(ApiModel):
    """Freshly issued access and refresh tokens."""

    access_token: str
    refresh_token: str


class LoginResult(ApiModel):
    """Successful login payload: the public user plus both tokens."""

    user: User
    access_token: str
    refresh_token: str


class AccessClaims(ApiModel):
    """Verified contents of an access token."""

    user_id: UUID
    username: str = ""
    email: str = ""
    full_name: str = ""


class RefreshClaims(ApiModel):
    """Verified contents of a refresh token."""

    user_id: UUID
