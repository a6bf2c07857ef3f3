"""
Test environment: set before any app import so cached settings pick it up.

Low bcrypt cost keeps hashing fast; the module-level engine points at a
throwaway in-memory SQLite database and tests bind their own engines.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")
