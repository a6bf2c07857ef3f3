"""Login check, HTTP Basic dependencies (get_auth_service, get_current_identity)."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import AuthenticationFailed, AuthFailure, StoreUnavailableError
from app.schemas.auth import IdentityResponse, LoginRequest
from app.schemas.user import AuthenticatedIdentity
from app.services.auth_service import AuthService
from app.services.user_store import UserStore

router = APIRouter()
security = HTTPBasic(auto_error=False)

# Unknown user and wrong password share one message so usernames cannot be probed.
FAILURE_MESSAGES = {
    AuthFailure.UNKNOWN_USER: "Invalid username or password.",
    AuthFailure.BAD_CREDENTIALS: "Invalid username or password.",
    AuthFailure.DISABLED: "Account is disabled.",
    AuthFailure.ACCOUNT_EXPIRED: "Account has expired.",
    AuthFailure.CREDENTIALS_EXPIRED: "Password has expired.",
    AuthFailure.ACCOUNT_LOCKED: "Account is locked.",
}


def get_auth_service(db: Annotated[Session, Depends(get_db)]) -> AuthService:
    """Dependency: AuthService over a per-request UserStore."""
    store = UserStore(db, enforce_unique_usernames=settings.ENFORCE_UNIQUE_USERNAMES)
    return AuthService(
        store,
        default_roles=settings.REGISTRATION_DEFAULT_ROLES,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )


def failure_message(reason: AuthFailure) -> str:
    return FAILURE_MESSAGES[reason]


def store_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="User store unavailable. Try again later.",
    )


def get_current_identity(
    credentials: Annotated[HTTPBasicCredentials | None, Depends(security)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthenticatedIdentity:
    """Dependency: require valid HTTP Basic credentials. Raises 401 if missing or rejected."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )
    try:
        return service.authenticate(credentials.username, credentials.password)
    except AuthenticationFailed as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=failure_message(e.reason),
            headers={"WWW-Authenticate": "Basic"},
        )
    except StoreUnavailableError:
        raise store_unavailable()


def _identity_response(identity: AuthenticatedIdentity) -> IdentityResponse:
    return IdentityResponse(
        username=identity.username,
        authorities=sorted(identity.authorities),
    )


@router.post("", response_model=IdentityResponse)
def login(
    body: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> IdentityResponse:
    """
    Check username and password; returns the identity and its authorities.
    No token is issued: protected routes take HTTP Basic credentials on every call.
    """
    try:
        identity = service.authenticate(body.username, body.password)
    except AuthenticationFailed as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=failure_message(e.reason),
        )
    except StoreUnavailableError:
        raise store_unavailable()
    return _identity_response(identity)


@router.get("/me", response_model=IdentityResponse)
def me(
    identity: Annotated[AuthenticatedIdentity, Depends(get_current_identity)],
) -> IdentityResponse:
    """Return the identity behind the supplied HTTP Basic credentials."""
    return _identity_response(identity)
