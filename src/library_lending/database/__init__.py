"""
Database package for the library lending engine.

This package provides:
- Storage ports the engine depends on (repository.py)
- In-memory adapters (memory.py)
- SQLAlchemy schema, session management and SQL adapters
"""

from .book_repository import SqlBookStore
from .member_repository import SqlMemberStore
from .memory import InMemoryBookStore, InMemoryMemberStore
from .repository import (
    BookStore,
    ConcurrentUpdateError,
    DuplicateError,
    MemberStore,
    NotFoundError,
    RepositoryException,
    Store,
)
from .schema import Base, ReservationEntry
from .session import DatabaseManager, safe_commit, safe_query, write_guard

__all__ = [
    "Base",
    "BookStore",
    "ConcurrentUpdateError",
    "DatabaseManager",
    "DuplicateError",
    "InMemoryBookStore",
    "InMemoryMemberStore",
    "MemberStore",
    "NotFoundError",
    "RepositoryException",
    "ReservationEntry",
    "SqlBookStore",
    "SqlMemberStore",
    "Store",
    "safe_commit",
    "safe_query",
    "write_guard",
]
