"""JSON registration and the authenticated user listing."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.auth import get_auth_service, get_current_identity, store_unavailable
from app.core.config import settings
from app.core.exceptions import StoreUnavailableError, UsernameTakenError
from app.core.security import password_byte_length
from app.schemas.auth import RegisterRequest, UserListItem, UsersListResponse
from app.schemas.user import AuthenticatedIdentity, UserRecord
from app.services.auth_service import AuthService

router = APIRouter()


def validate_credentials(username: str, password: str) -> str | None:
    """Return an error message for out-of-range lengths, else None."""
    if not username.strip() or len(username) > settings.USERNAME_MAX_LEN:
        return "Invalid username length."
    if not (settings.PASSWORD_MIN_LEN <= password_byte_length(password) <= settings.PASSWORD_MAX_LEN):
        return (
            f"Password must be {settings.PASSWORD_MIN_LEN}-"
            f"{settings.PASSWORD_MAX_LEN} bytes (UTF-8)."
        )
    return None


def to_list_item(record: UserRecord) -> UserListItem:
    return UserListItem(
        id=record.id,
        username=record.username,
        enabled=record.enabled,
        account_non_expired=record.account_non_expired,
        credentials_non_expired=record.credentials_non_expired,
        account_non_locked=record.account_non_locked,
        roles=sorted(r.role for r in record.roles),
    )


@router.post("", response_model=UserListItem, status_code=status.HTTP_201_CREATED)
def register_user(
    body: RegisterRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> UserListItem:
    """Register a user. Returns 409 if the username is taken (when uniqueness is enforced)."""
    error = validate_credentials(body.username, body.password)
    if error:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=error)
    try:
        stored = service.register(body.username, body.password)
    except UsernameTakenError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except StoreUnavailableError:
        raise store_unavailable()
    return to_list_item(stored)


@router.get("", response_model=UsersListResponse)
def list_users(
    _identity: Annotated[AuthenticatedIdentity, Depends(get_current_identity)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> UsersListResponse:
    """List all users (any authenticated user)."""
    try:
        users = service.all_users()
    except StoreUnavailableError:
        raise store_unavailable()
    return UsersListResponse(users=[to_list_item(u) for u in users])
