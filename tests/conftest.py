"""Test configuration and fixtures for the library lending engine.

Fixtures provide:
1. Isolated configuration - each test gets its own settings and database path
2. Seeded stores - four members and three books, as in the lending scenarios
3. A fixed clock - loans are granted on a known date
4. A SQLite in-memory database for the SQL adapters
"""

import os
from collections.abc import Generator
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

from library_lending.config import LendingConfig, reset_config
from library_lending.database import (
    DatabaseManager,
    InMemoryBookStore,
    InMemoryMemberStore,
    SqlBookStore,
    SqlMemberStore,
)
from library_lending.lending import FixedClock, LendingService
from library_lending.models import Book, Member

from helpers import BOOKS, LOAN_DAYS, MAX_LOANS, MEMBERS, TODAY


# === Configuration Fixtures ===


@pytest.fixture
def test_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path for each test."""
    return tmp_path / "test_library.db"


@pytest.fixture
def test_config(test_db_path: Path) -> Generator[LendingConfig, None, None]:
    """Provide an isolated lending configuration with default policy."""
    reset_config()

    config = LendingConfig(
        database_path=test_db_path,
        loan_days=LOAN_DAYS,
        max_loans=MAX_LOANS,
        log_level="DEBUG",
    )

    yield config

    reset_config()


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Provide an environment without LIBRARY_LENDING_* variables."""
    original_env = os.environ.copy()

    for key in list(os.environ.keys()):
        if key.startswith("LIBRARY_LENDING_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(original_env)


# === Clock ===


@pytest.fixture
def clock() -> FixedClock:
    """A clock pinned to a known day."""
    return FixedClock(TODAY)


# === In-memory Stores ===


@pytest.fixture
def member_store() -> InMemoryMemberStore:
    return InMemoryMemberStore([Member(id=id, name=name) for id, name in MEMBERS])


@pytest.fixture
def book_store() -> InMemoryBookStore:
    return InMemoryBookStore([Book(id=id, title=title) for id, title in BOOKS])


@pytest.fixture
def service(book_store, member_store, clock, test_config) -> LendingService:
    """Lending engine over the seeded in-memory stores."""
    return LendingService(book_store, member_store, clock=clock, config=test_config)


# === SQL Stores ===


@pytest.fixture
def db_manager() -> Generator[DatabaseManager, None, None]:
    """A database manager over a private in-memory SQLite database."""
    manager = DatabaseManager("sqlite:///:memory:")
    manager.init_database()
    yield manager
    manager.close()


@pytest.fixture
def db_session(db_manager) -> Generator[Session, None, None]:
    """Provide a database session for tests."""
    with db_manager.session_scope() as session:
        yield session


@pytest.fixture
def sql_member_store(db_session) -> SqlMemberStore:
    store = SqlMemberStore(db_session)
    for id, name in MEMBERS:
        store.save(Member(id=id, name=name))
    return store


@pytest.fixture
def sql_book_store(db_session) -> SqlBookStore:
    store = SqlBookStore(db_session)
    for id, title in BOOKS:
        store.save(Book(id=id, title=title))
    return store


@pytest.fixture
def file_db_manager(tmp_path: Path) -> Generator[DatabaseManager, None, None]:
    """A database manager over a SQLite file; each session gets its own connection."""
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'shared.db'}")
    manager.init_database()
    yield manager
    manager.close()


@pytest.fixture
def two_sessions(file_db_manager) -> Generator[tuple[Session, Session], None, None]:
    """Two independent sessions over one seeded database."""
    first = file_db_manager.create_session()
    second = file_db_manager.create_session()

    members = SqlMemberStore(first)
    books = SqlBookStore(first)
    for id, name in MEMBERS:
        members.save(Member(id=id, name=name))
    for id, title in BOOKS:
        books.save(Book(id=id, title=title))

    yield first, second

    first.close()
    second.close()
