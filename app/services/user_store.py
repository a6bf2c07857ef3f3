"""Credential store: SQLAlchemy persistence for site users and their roles."""

import logging
from typing import Protocol

from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import StoreUnavailableError, UsernameTakenError, UserNotFoundError
from app.models import Role, SiteUser
from app.schemas.user import UserRecord

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """What the authentication service needs from a user store."""

    def find_by_username(self, username: str) -> UserRecord: ...

    def upsert(self, record: UserRecord) -> UserRecord: ...

    def list_all(self) -> list[UserRecord]: ...


class UserStore:
    """
    CredentialStore backed by a SQLAlchemy session.

    Roles are always loaded with an explicit selectinload; the ORM
    relationship refuses lazy loads. Each upsert is one transaction that is
    rolled back on any failure.
    """

    def __init__(self, session: Session, enforce_unique_usernames: bool = True) -> None:
        self._session = session
        self._enforce_unique_usernames = enforce_unique_usernames

    def find_by_username(self, username: str) -> UserRecord:
        """Exact-match lookup. Raises UserNotFoundError when nothing matches."""
        stmt = (
            select(SiteUser)
            .options(selectinload(SiteUser.roles))
            .where(SiteUser.username == username)
        )
        try:
            row = self._session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("User lookup failed for username=%s: %s", username, e)
            raise StoreUnavailableError(f"User lookup failed: {e}") from e
        if row is None:
            raise UserNotFoundError(username)
        return UserRecord.model_validate(row)

    def upsert(self, record: UserRecord) -> UserRecord:
        """
        Insert record, or overwrite the row with the same id (roles included).
        Returns the stored image with ids assigned.

        With uniqueness enforced, the name is checked before the write and
        recounted after the flush inside the same transaction, so a
        concurrent registration of the same name is rolled back here rather
        than leaving two rows behind.
        """
        try:
            if self._enforce_unique_usernames:
                self._lock_username(record.username)
                self._ensure_username_free(record)
            row = None
            if record.id is not None:
                row = self._session.get(
                    SiteUser,
                    record.id,
                    options=[selectinload(SiteUser.roles)],
                    populate_existing=True,
                )
            if row is None:
                row = SiteUser(id=record.id)
                self._session.add(row)
            row.username = record.username
            row.password_hash = record.password_hash
            row.enabled = record.enabled
            row.account_non_expired = record.account_non_expired
            row.credentials_non_expired = record.credentials_non_expired
            row.account_non_locked = record.account_non_locked
            row.roles = [Role(role=r.role) for r in record.roles]
            self._session.flush()
            if self._enforce_unique_usernames and self._count_username(record.username) > 1:
                logger.warning("Concurrent registration of username=%s rolled back", record.username)
                raise UsernameTakenError(record.username)
            stored = UserRecord.model_validate(row)
            self._session.commit()
        except UsernameTakenError:
            self._session.rollback()
            raise
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error("User upsert failed for username=%s: %s", record.username, e)
            raise StoreUnavailableError(f"User upsert failed: {e}") from e
        except Exception:
            self._session.rollback()
            raise
        return stored

    def list_all(self) -> list[UserRecord]:
        """All users with roles. Order is not guaranteed."""
        stmt = select(SiteUser).options(selectinload(SiteUser.roles))
        try:
            rows = self._session.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            logger.error("User listing failed: %s", e)
            raise StoreUnavailableError(f"User listing failed: {e}") from e
        return [UserRecord.model_validate(row) for row in rows]

    def _lock_username(self, username: str) -> None:
        # PostgreSQL: serialize writers of the same name until this transaction ends.
        # SQLite already serializes writers at the first INSERT.
        if self._session.get_bind().dialect.name == "postgresql":
            self._session.execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:username))"),
                {"username": username},
            )

    def _count_username(self, username: str) -> int:
        stmt = select(func.count()).select_from(SiteUser).where(SiteUser.username == username)
        return self._session.execute(stmt).scalar_one()

    def _ensure_username_free(self, record: UserRecord) -> None:
        stmt = select(SiteUser.id).where(SiteUser.username == record.username)
        if record.id is not None:
            stmt = stmt.where(SiteUser.id != record.id)
        if self._session.execute(stmt.limit(1)).first() is not None:
            raise UsernameTakenError(record.username)
