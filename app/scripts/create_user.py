"""
Create a user with roles (registration never assigns any). Run from project root:
  python -m app.scripts.create_user USERNAME PASSWORD [ROLE ...]
Example:
  python -m app.scripts.create_user admin your-secure-password ADMIN USER
"""
import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal, init_db
from app.core.exceptions import StoreUnavailableError, UsernameTakenError
from app.core.security import password_byte_length
from app.services.auth_service import AuthService
from app.services.user_store import UserStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Create a site user with roles.")
    parser.add_argument("username", help=f"Username (1-{settings.USERNAME_MAX_LEN} chars)")
    parser.add_argument(
        "password",
        help=f"Password ({settings.PASSWORD_MIN_LEN}-{settings.PASSWORD_MAX_LEN} UTF-8 bytes)",
    )
    parser.add_argument("roles", nargs="*", default=[], help="Role names granted verbatim")
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not username or len(username) > settings.USERNAME_MAX_LEN:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not (settings.PASSWORD_MIN_LEN <= password_byte_length(args.password) <= settings.PASSWORD_MAX_LEN):
        print(
            f"Password must be {settings.PASSWORD_MIN_LEN}-{settings.PASSWORD_MAX_LEN} bytes (UTF-8).",
            file=sys.stderr,
        )
        return 1

    if settings.CREATE_TABLES_ON_STARTUP:
        init_db()
    db = SessionLocal()
    try:
        store = UserStore(db, enforce_unique_usernames=settings.ENFORCE_UNIQUE_USERNAMES)
        service = AuthService(
            store,
            default_roles=settings.REGISTRATION_DEFAULT_ROLES,
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
        )
        stored = service.register(username, args.password, roles=args.roles or None)
        roles = sorted({r.role for r in stored.roles})
        print(f"Created user '{username}' with roles {roles}.")
        return 0
    except UsernameTakenError as e:
        print(e.message, file=sys.stderr)
        return 1
    except StoreUnavailableError as e:
        logger.error("Could not create user: %s", e.message)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
