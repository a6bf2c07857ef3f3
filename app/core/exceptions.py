"""Errors raised by the credential store and the authentication service."""

from enum import Enum


class AuthFailure(str, Enum):
    """Why an authentication attempt was rejected."""

    UNKNOWN_USER = "unknown_user"
    BAD_CREDENTIALS = "bad_credentials"
    DISABLED = "disabled"
    ACCOUNT_EXPIRED = "account_expired"
    CREDENTIALS_EXPIRED = "credentials_expired"
    ACCOUNT_LOCKED = "account_locked"


class AuthenticationFailed(Exception):
    """
    Raised when a login is rejected. Not fatal: the caller may re-prompt.

    The reason is always the specific one; collapsing UNKNOWN_USER and
    BAD_CREDENTIALS for display is left to the web layer.
    """

    def __init__(self, reason: AuthFailure, username: str) -> None:
        self.reason = reason
        self.username = username
        self.message = f"Authentication failed: {reason.value}"
        super().__init__(self.message)


class StoreUnavailableError(Exception):
    """Raised when the credential store cannot complete a read or write."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UserNotFoundError(Exception):
    """Raised by find_by_username when no user matches."""

    def __init__(self, username: str) -> None:
        self.username = username
        self.message = f"No user named '{username}'"
        super().__init__(self.message)


class UsernameTakenError(Exception):
    """Raised on insert when ENFORCE_UNIQUE_USERNAMES is on and the name is in use."""

    def __init__(self, username: str) -> None:
        self.username = username
        self.message = f"Username '{username}' is already taken"
        super().__init__(self.message)
