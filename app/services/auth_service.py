"""Registration and login: bcrypt hashing policy and stored user -> identity mapping."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from app.core.exceptions import AuthenticationFailed, AuthFailure, UserNotFoundError
from app.core.security import dummy_verify, hash_password, verify_password
from app.schemas.user import AuthenticatedIdentity, RoleRecord, UserRecord
from app.services.user_store import CredentialStore

logger = logging.getLogger(__name__)

# Account-state gates, checked in this order after the password matches.
ACCOUNT_STATE_CHECKS = (
    ("enabled", AuthFailure.DISABLED),
    ("account_non_expired", AuthFailure.ACCOUNT_EXPIRED),
    ("credentials_non_expired", AuthFailure.CREDENTIALS_EXPIRED),
    ("account_non_locked", AuthFailure.ACCOUNT_LOCKED),
)


def to_identity(record: UserRecord) -> AuthenticatedIdentity:
    """Map a stored user to an identity; role names become authorities unchanged."""
    return AuthenticatedIdentity(
        username=record.username,
        authorities=frozenset(r.role for r in record.roles),
    )


def check_account_state(record: UserRecord) -> None:
    """Raise AuthenticationFailed for the first account flag that is False."""
    for flag, reason in ACCOUNT_STATE_CHECKS:
        if not getattr(record, flag):
            raise AuthenticationFailed(reason, record.username)


class AuthService:
    """Registers users and authenticates logins against a CredentialStore."""

    def __init__(
        self,
        store: CredentialStore,
        default_roles: Sequence[str] = (),
        bcrypt_rounds: int | None = None,
    ) -> None:
        self._store = store
        self._default_roles = tuple(default_roles)
        self._bcrypt_rounds = bcrypt_rounds

    def register(
        self,
        username: str,
        plaintext_password: str,
        roles: Sequence[str] | None = None,
    ) -> UserRecord:
        """
        Hash the password with a fresh salt and store a new enabled user.
        roles overrides the configured default roles (admin CLI).

        Store errors (StoreUnavailableError, UsernameTakenError) propagate;
        there is no retry.
        """
        record = UserRecord(
            username=username,
            password_hash=hash_password(plaintext_password, rounds=self._bcrypt_rounds),
            roles=[RoleRecord(role=r) for r in (self._default_roles if roles is None else roles)],
        )
        stored = self._store.upsert(record)
        logger.info("Registered user id=%s username=%s", stored.id, stored.username)
        return stored

    def authenticate(self, username: str, supplied_plaintext: str) -> AuthenticatedIdentity:
        """
        Verify username/password and account state.

        Raises AuthenticationFailed with the specific AuthFailure reason.
        StoreUnavailableError propagates.
        """
        try:
            record = self._store.find_by_username(username)
        except UserNotFoundError:
            dummy_verify(supplied_plaintext, rounds=self._bcrypt_rounds)
            logger.info("Login rejected: reason=%s username=%s", AuthFailure.UNKNOWN_USER.value, username)
            raise AuthenticationFailed(AuthFailure.UNKNOWN_USER, username) from None

        if not verify_password(supplied_plaintext, record.password_hash):
            logger.info("Login rejected: reason=%s username=%s", AuthFailure.BAD_CREDENTIALS.value, username)
            raise AuthenticationFailed(AuthFailure.BAD_CREDENTIALS, username)

        try:
            check_account_state(record)
        except AuthenticationFailed as e:
            logger.info("Login rejected: reason=%s username=%s", e.reason.value, username)
            raise

        return to_identity(record)

    def all_users(self) -> list[UserRecord]:
        """Every stored user, for display. Order is not guaranteed."""
        return self._store.list_all()
