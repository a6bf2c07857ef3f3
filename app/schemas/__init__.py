"""Pydantic request/response schemas."""

from app.schemas.auth import (
    IdentityResponse,
    LoginRequest,
    RegisterRequest,
    UserListItem,
    UsersListResponse,
)
from app.schemas.health import HealthResponse
from app.schemas.user import AuthenticatedIdentity, RoleRecord, UserRecord

__all__ = [
    "AuthenticatedIdentity",
    "HealthResponse",
    "IdentityResponse",
    "LoginRequest",
    "RegisterRequest",
    "RoleRecord",
    "UserListItem",
    "UserRecord",
    "UsersListResponse",
]
