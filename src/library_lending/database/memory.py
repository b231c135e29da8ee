"""
In-memory storage adapters.

Dict-backed implementations of the storage ports, used by tests and by
callers that keep library state in process. Every value is deep-copied on
the way in and on the way out so callers can never mutate stored state
behind the store's back.
"""

import threading

from ..models.book import Book
from ..models.member import Member
from .repository import BookStore, MemberStore


class InMemoryBookStore(BookStore):
    """Book store held in a dictionary keyed by book ID."""

    def __init__(self, books: list[Book] | None = None):
        super().__init__()
        self._books: dict[str, Book] = {}
        self._lock = threading.Lock()
        for book in books or []:
            self.save(book)

    def find_by_id(self, id: str) -> Book | None:
        with self._lock:
            book = self._books.get(id)
            return book.model_copy(deep=True) if book is not None else None

    def find_all(self) -> list[Book]:
        with self._lock:
            return [book.model_copy(deep=True) for book in self._books.values()]

    def save(self, entity: Book) -> Book:
        # Re-validate so an invalid in-place edit is never stored
        stored = Book.model_validate(entity.model_dump())
        with self._lock:
            self._books[stored.id] = stored
        return stored.model_copy(deep=True)

    def delete(self, entity: Book) -> None:
        with self._lock:
            self._books.pop(entity.id, None)

    def exists_by_id(self, id: str) -> bool:
        with self._lock:
            return id in self._books

    def count_by_loaned_to(self, member_id: str) -> int:
        with self._lock:
            return sum(1 for book in self._books.values() if book.loaned_to == member_id)


class InMemoryMemberStore(MemberStore):
    """Member store held in a dictionary keyed by member ID."""

    def __init__(self, members: list[Member] | None = None):
        self._members: dict[str, Member] = {}
        self._lock = threading.Lock()
        for member in members or []:
            self.save(member)

    def find_by_id(self, id: str) -> Member | None:
        with self._lock:
            member = self._members.get(id)
            return member.model_copy(deep=True) if member is not None else None

    def find_all(self) -> list[Member]:
        with self._lock:
            return [member.model_copy(deep=True) for member in self._members.values()]

    def save(self, entity: Member) -> Member:
        stored = entity.model_copy(deep=True)
        with self._lock:
            self._members[stored.id] = stored
        return stored.model_copy(deep=True)

    def delete(self, entity: Member) -> None:
        with self._lock:
            self._members.pop(entity.id, None)

    def exists_by_id(self, id: str) -> bool:
        with self._lock:
            return id in self._members
