"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Service and route code never touches SQL directly.

UserRepository is the capability interface AuthService and the auth dependency
depend on. UserStore satisfies it structurally, and so does the in-memory
fake in tests/conftest.py -- there is no base class to inherit from.

Security:
  All queries use bound parameters. No f-strings in SQL.

Errors:
  SQLAlchemyError never leaves this module. A duplicate login becomes
  ValidationError("login already exists"); anything else becomes StorageError
  carrying the driver message.

Transactions:
  create_tx() runs on a caller-owned Connection and does not commit, so it can
  be combined with other writes inside `with store.begin() as conn:`.

Layer rule: no imports from api/, documents/, or cache/.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol

from sqlalchemy import Column, MetaData, String, Table, Text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import User
from core.errors import StorageError, ValidationError

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_users = Table(
    "users",
    metadata,
    Column("id", String(36), primary_key=True),  # uuid4
    Column("login", String(255), nullable=False, unique=True),
    Column("password", Text, nullable=False),  # bcrypt hash
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Capability interface
# ---------------------------------------------------------------------------


class UserRepository(Protocol):
    def create(self, user: User) -> None: ...

    def create_tx(self, conn: Connection, user: User) -> None: ...

    def get_by_login(self, login: str) -> User | None: ...

    def get_by_id(self, user_id: str) -> User | None: ...


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore(engine)
        store.migrate()
        store.create(User(id=..., login="TestUser01", hashed_password=hash_password("Qwerty123!")))
        user = store.get_by_login("TestUser01")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def migrate(self) -> None:
        """Create the users table if it does not exist. Idempotent."""
        metadata.create_all(self.engine)

    def begin(self) -> AbstractContextManager[Connection]:
        """Open a transaction. Commits on clean exit, rolls back on error."""
        return self.engine.begin()

    def create(self, user: User) -> None:
        """Insert a new user. id and created_at must already be set."""
        try:
            with self.engine.begin() as conn:
                self._insert(conn, user)
        except IntegrityError as exc:
            raise ValidationError("login already exists") from exc
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    def create_tx(self, conn: Connection, user: User) -> None:
        """Insert on a caller-managed connection. The caller commits."""
        try:
            self._insert(conn, user)
        except IntegrityError as exc:
            raise ValidationError("login already exists") from exc
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    def get_by_login(self, login: str) -> User | None:
        """Look up a user by exact login (case-sensitive). Returns None if not found."""
        return self._fetch_one(_users.c.login == login)

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        return self._fetch_one(_users.c.id == user_id)

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _insert(self, conn: Connection, user: User) -> None:
        conn.execute(
            _users.insert().values(
                id=user.id,
                login=user.login,
                password=user.hashed_password,
                created_at=user.created_at,
            )
        )

    def _fetch_one(self, where) -> User | None:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(where)).fetchone()
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc
        return _row_to_user(row) if row is not None else None


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        login=row.login,
        hashed_password=row.password,
        created_at=row.created_at,
    )
