"""Tests for app.services.user_store against an in-memory SQLite database."""

import tempfile
import unittest
from unittest.mock import MagicMock, patch

from sqlalchemy import create_engine, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import init_db
from app.core.exceptions import StoreUnavailableError, UsernameTakenError, UserNotFoundError
from app.models import Role, SiteUser
from app.schemas.user import RoleRecord, UserRecord
from app.services.user_store import UserStore


def _session_factory() -> sessionmaker:
    """Fresh in-memory database with the site_users and roles tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def _record(username: str = "alice", roles: tuple[str, ...] = (), **kwargs: object) -> UserRecord:
    return UserRecord(
        username=username,
        password_hash="$2b$04$not-checked-by-the-store",
        roles=[RoleRecord(role=r) for r in roles],
        **kwargs,
    )


class StoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.Session = _session_factory()
        self.session = self.Session()
        self.store = UserStore(self.session)

    def tearDown(self) -> None:
        self.session.close()


class TestFindByUsername(StoreTestCase):
    """find_by_username is an exact, case-sensitive lookup that loads roles."""

    def test_missing_user_raises(self) -> None:
        with self.assertRaises(UserNotFoundError) as ctx:
            self.store.find_by_username("nobody")
        self.assertEqual(ctx.exception.username, "nobody")

    def test_returns_roles(self) -> None:
        self.store.upsert(_record("alice", roles=("ADMIN", "USER")))
        found = self.store.find_by_username("alice")
        self.assertEqual(found.username, "alice")
        self.assertEqual({r.role for r in found.roles}, {"ADMIN", "USER"})
        self.assertTrue(all(r.user_id == found.id for r in found.roles))

    def test_case_sensitive(self) -> None:
        self.store.upsert(_record("alice"))
        with self.assertRaises(UserNotFoundError):
            self.store.find_by_username("Alice")

    def test_roles_loaded_from_a_fresh_session(self) -> None:
        self.store.upsert(_record("alice", roles=("USER",)))
        other = self.Session()
        try:
            found = UserStore(other).find_by_username("alice")
        finally:
            other.close()
        self.assertEqual([r.role for r in found.roles], ["USER"])

    def test_database_error_becomes_store_unavailable(self) -> None:
        session = MagicMock()
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        with self.assertRaises(StoreUnavailableError):
            UserStore(session).find_by_username("alice")


class TestUpsert(StoreTestCase):
    """upsert inserts new records and fully overwrites existing ones."""

    def test_insert_assigns_ids_and_default_flags(self) -> None:
        stored = self.store.upsert(_record("alice"))
        self.assertIsNotNone(stored.id)
        self.assertTrue(stored.enabled)
        self.assertTrue(stored.account_non_expired)
        self.assertTrue(stored.credentials_non_expired)
        self.assertTrue(stored.account_non_locked)
        self.assertEqual(stored.roles, [])

    def test_overwrite_replaces_fields_and_roles(self) -> None:
        stored = self.store.upsert(_record("alice", roles=("USER",)))
        updated = stored.model_copy(
            update={
                "enabled": False,
                "password_hash": "$2b$04$another",
                "roles": [RoleRecord(role="ADMIN"), RoleRecord(role="AUDITOR")],
            }
        )
        result = self.store.upsert(updated)
        self.assertEqual(result.id, stored.id)

        found = self.store.find_by_username("alice")
        self.assertFalse(found.enabled)
        self.assertEqual(found.password_hash, "$2b$04$another")
        self.assertEqual({r.role for r in found.roles}, {"ADMIN", "AUDITOR"})
        # Replaced roles are removed, not left dangling.
        self.assertEqual(len(self.session.execute(select(Role)).scalars().all()), 2)

    def test_upsert_with_unknown_id_inserts(self) -> None:
        stored = self.store.upsert(_record("alice", id=42))
        self.assertEqual(stored.id, 42)
        self.assertEqual(self.store.find_by_username("alice").id, 42)

    def test_duplicate_username_rejected_by_default(self) -> None:
        self.store.upsert(_record("alice"))
        with self.assertRaises(UsernameTakenError):
            self.store.upsert(_record("alice"))
        self.assertEqual(len(self.store.list_all()), 1)

    def test_overwrite_keeps_own_username(self) -> None:
        stored = self.store.upsert(_record("alice"))
        self.store.upsert(stored.model_copy(update={"account_non_locked": False}))
        self.assertFalse(self.store.find_by_username("alice").account_non_locked)

    def test_duplicates_allowed_when_policy_off(self) -> None:
        store = UserStore(self.session, enforce_unique_usernames=False)
        store.upsert(_record("alice"))
        store.upsert(_record("alice"))
        self.assertEqual(len(store.list_all()), 2)
        # Ambiguous lookup surfaces as a store error, not an arbitrary pick.
        with self.assertRaises(StoreUnavailableError):
            store.find_by_username("alice")

    def test_failed_write_rolls_back(self) -> None:
        session = MagicMock()
        session.execute.return_value.first.return_value = None
        session.flush.side_effect = OperationalError("INSERT", {}, Exception("disk full"))
        with self.assertRaises(StoreUnavailableError):
            UserStore(session).upsert(_record("alice"))
        session.rollback.assert_called_once()
        session.commit.assert_not_called()

    def test_failed_commit_leaves_no_row(self) -> None:
        error = OperationalError("COMMIT", {}, Exception("connection lost"))
        with patch.object(self.session, "commit", side_effect=error):
            with self.assertRaises(StoreUnavailableError):
                self.store.upsert(_record("alice", roles=("USER",)))
        self.assertEqual(self.session.execute(select(SiteUser)).scalars().all(), [])
        self.assertEqual(self.session.execute(select(Role)).scalars().all(), [])

    def test_non_database_error_also_rolls_back(self) -> None:
        session = MagicMock()
        with patch.object(UserRecord, "model_validate", side_effect=RuntimeError("mapping failed")):
            with self.assertRaises(RuntimeError):
                UserStore(session, enforce_unique_usernames=False).upsert(_record("alice"))
        session.rollback.assert_called_once()
        session.commit.assert_not_called()


class TestConcurrentRegistration(unittest.TestCase):
    """Two sessions registering the same name leave exactly one row."""

    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.engine = create_engine(f"sqlite:///{self.tmpdir.name}/users.db")
        init_db(self.engine)
        self.Session = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    def tearDown(self) -> None:
        self.engine.dispose()
        self.tmpdir.cleanup()

    def test_writer_that_loses_the_race_is_rolled_back(self) -> None:
        first, second = self.Session(), self.Session()
        try:
            store_a = UserStore(first)
            store_b = UserStore(second)
            check = store_a._ensure_username_free

            def check_then_let_other_writer_commit(record: UserRecord) -> None:
                check(record)
                store_b.upsert(_record("alice", roles=("WINNER",)))

            with patch.object(
                store_a, "_ensure_username_free", side_effect=check_then_let_other_writer_commit
            ):
                with self.assertRaises(UsernameTakenError):
                    store_a.upsert(_record("alice", roles=("LOSER",)))

            users = store_a.list_all()
            self.assertEqual(len(users), 1)
            found = store_a.find_by_username("alice")
            self.assertEqual([r.role for r in found.roles], ["WINNER"])
        finally:
            first.close()
            second.close()


class TestListAll(StoreTestCase):
    """list_all returns every user with roles."""

    def test_empty(self) -> None:
        self.assertEqual(self.store.list_all(), [])

    def test_lists_every_user(self) -> None:
        for name in ("alice", "bob", "carol"):
            self.store.upsert(_record(name, roles=("USER",)))
        users = self.store.list_all()
        self.assertEqual({u.username for u in users}, {"alice", "bob", "carol"})
        self.assertTrue(all([r.role for r in u.roles] == ["USER"] for u in users))


if __name__ == "__main__":
    unittest.main()
