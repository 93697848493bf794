from __future__ import annotations

import logging
import threading
import uuid
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from sqlalchemy import String, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class User:
    id: uuid.UUID
    user_name: str
    email: str


class StoreError(Exception):
    """Base class for storage-level failures."""


class DuplicateUserName(StoreError):
    def __init__(self, user_name: str):
        super().__init__(f"User name already exists: {user_name}")
        self.user_name = user_name


class DuplicateUserId(StoreError):
    def __init__(self, user_id: uuid.UUID):
        super().__init__(f"User id already exists: {user_id}")
        self.user_id = user_id


class StoreUnavailable(StoreError):
    """The underlying storage could not be reached or failed mid-operation."""


class UserStore(Protocol):
    def find_by_user_name(self, name: str) -> Optional[User]:
        ...

    def insert(self, user: User) -> User:
        ...


class InMemoryUserStore:
    """Thread-safe in-memory user store.

    Names are matched exactly (case-sensitive, no trimming); callers are
    responsible for rejecting empty names. Contents live only as long as the
    process.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[str, User] = {}
        self._ids: set[uuid.UUID] = set()

    def find_by_user_name(self, name: str) -> Optional[User]:
        with self._lock:
            return self._users.get(name)

    def insert(self, user: User) -> User:
        with self._lock:
            if user.user_name in self._users:
                raise DuplicateUserName(user.user_name)
            if user.id in self._ids:
                raise DuplicateUserId(user.id)
            self._users[user.user_name] = user
            self._ids.add(user.id)
            return user

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)


class Base(DeclarativeBase):
    pass


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<UserRow(id={self.id}, user_name={self.user_name})>"


def _row_to_user(row: UserRow) -> User:
    return User(id=uuid.UUID(row.id), user_name=row.user_name, email=row.email)


def create_sql_engine(database_url: str) -> Engine:
    # A bare "sqlite://" URL is a per-connection in-memory database; pin it to
    # a single shared connection so every session sees the same tables.
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True)


class SqlUserStore:
    """User store backed by a relational database through the SQLAlchemy ORM.

    Uniqueness of ``user_name`` is delegated to the ``UNIQUE`` constraint on
    the ``users`` table, so concurrent inserts of one name are serialized by
    the database: the losing transaction gets an ``IntegrityError`` which is
    reported as ``DuplicateUserName``.

    SQLite connections can't be shared between concurrent transactions (and
    ``sqlite://`` runs everything on one pinned connection), so on SQLite all
    session use goes through a single lock.
    """

    def __init__(self, engine: Engine):
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)
        self._lock = threading.RLock() if engine.dialect.name == "sqlite" else nullcontext()

    @classmethod
    def from_url(cls, database_url: str) -> "SqlUserStore":
        return cls(create_sql_engine(database_url))

    def create_schema(self) -> None:
        try:
            with self._lock:
                Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Failed to create schema: {type(e).__name__}") from e

    def dispose(self) -> None:
        self._engine.dispose()

    def find_by_user_name(self, name: str) -> Optional[User]:
        with self._lock:
            try:
                with self._sessions() as session:
                    row = session.scalar(select(UserRow).where(UserRow.user_name == name))
                    return _row_to_user(row) if row is not None else None
            except SQLAlchemyError as e:
                raise StoreUnavailable(f"Lookup failed: {type(e).__name__}") from e
            except Exception as e:
                # Drivers can raise outside the DBAPI hierarchy (sqlite3 raises SystemError).
                logger.exception("Unexpected driver error during lookup")
                raise StoreUnavailable(f"Lookup failed: {type(e).__name__}") from e

    def insert(self, user: User) -> User:
        row = UserRow(id=str(user.id), user_name=user.user_name, email=user.email)
        with self._lock:
            try:
                with self._sessions() as session:
                    session.add(row)
                    session.commit()
                    return _row_to_user(row)
            except IntegrityError as e:
                raise self._classify_conflict(user) from e
            except SQLAlchemyError as e:
                raise StoreUnavailable(f"Insert failed: {type(e).__name__}") from e
            except Exception as e:
                logger.exception("Unexpected driver error during insert")
                raise StoreUnavailable(f"Insert failed: {type(e).__name__}") from e

    def _classify_conflict(self, user: User) -> StoreError:
        # The driver's constraint message differs per backend; look at what
        # actually collided instead of parsing it.
        if self.find_by_user_name(user.user_name) is not None:
            return DuplicateUserName(user.user_name)
        try:
            with self._sessions() as session:
                if session.get(UserRow, str(user.id)) is not None:
                    return DuplicateUserId(user.id)
        except SQLAlchemyError as e:
            return StoreUnavailable(f"Lookup failed: {type(e).__name__}")
        logger.warning("Integrity error on insert with no matching row for %s", user.user_name)
        return DuplicateUserName(user.user_name)
