"""
Storage ports for the library lending engine.

The engine never talks to a database directly. It reads and writes books
and members through the two narrow ports defined here, which keeps the
lending rules independent of how state is persisted:

1. **BookStore**: key-value access to books plus one aggregate query,
   the number of books currently loaned to a member
2. **MemberStore**: key-value access to members

Writes from other sessions that a store can detect raise
``ConcurrentUpdateError``; the engine retries the operation from a fresh read.

Implementations must return detached copies: mutating a returned model
must not change stored state until it is passed back to ``save``.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Generic, TypeVar

from pydantic import BaseModel

from ..locks import KeyedLock
from ..models.book import Book
from ..models.member import Member

ModelType = TypeVar("ModelType", bound=BaseModel)


class RepositoryException(Exception):
    """Base exception for storage operations."""


class NotFoundError(RepositoryException):
    """Raised when an entity is not found."""


class DuplicateError(RepositoryException):
    """Raised when attempting to create a duplicate entity."""


class ConcurrentUpdateError(RepositoryException):
    """Raised when a write loses a race with a write from another session."""


class Store(ABC, Generic[ModelType]):
    """
    Abstract key-value store shared by the book and member ports.

    ``save`` is an upsert and returns the stored value; ``delete`` of an
    entity that is not stored is a no-op.
    """

    @abstractmethod
    def find_by_id(self, id: str) -> ModelType | None:
        """Return the entity with this ID, or None."""

    @abstractmethod
    def find_all(self) -> list[ModelType]:
        """Return every stored entity."""

    @abstractmethod
    def save(self, entity: ModelType) -> ModelType:
        """Insert or replace an entity and return the stored value."""

    @abstractmethod
    def delete(self, entity: ModelType) -> None:
        """Remove an entity."""

    @abstractmethod
    def exists_by_id(self, id: str) -> bool:
        """Check if an entity with this ID is stored."""

    def get_by_id(self, id: str) -> ModelType:
        """
        Get entity by ID.

        Raises:
            NotFoundError: If nothing is stored under the ID
        """
        entity = self.find_by_id(id)
        if entity is None:
            raise NotFoundError(f"{self.__class__.__name__}: {id} not found")
        return entity


class BookStore(Store[Book]):
    """
    Port for book persistence.

    Each store owns the per-book lock registry, so every engine working
    on the same store serializes on the same locks.
    """

    def __init__(self):
        self.locks = KeyedLock()

    def locked(self, book_id: str) -> AbstractContextManager[None]:
        """Hold this store's lock on one book for a whole read-modify-write."""
        return self.locks.hold(book_id)

    @abstractmethod
    def count_by_loaned_to(self, member_id: str) -> int:
        """Number of books whose current borrower is ``member_id``."""


class MemberStore(Store[Member]):
    """Port for member persistence."""
