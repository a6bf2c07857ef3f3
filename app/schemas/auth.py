"""Request/response schemas for auth and user endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Credentials for a JSON login check."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=1, max_length=72, description="Password")


class RegisterRequest(BaseModel):
    """Credentials for a JSON registration."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=1, max_length=72, description="Password")


class IdentityResponse(BaseModel):
    """Authenticated username and its authorities (sorted for stable output)."""

    username: str
    authorities: list[str]


class UserListItem(BaseModel):
    """User entry for the listing (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    enabled: bool
    account_non_expired: bool
    credentials_non_expired: bool
    account_non_locked: bool
    roles: list[str]


class UsersListResponse(BaseModel):
    """Response for GET /users."""

    users: list[UserListItem]
