"""Shared constants and state-building helpers for lending tests."""

from datetime import date, timedelta

from library_lending.models import Book

LOAN_DAYS = 14
MAX_LOANS = 5
TODAY = date(2024, 3, 1)

MEMBERS = [("m1", "Kertu"), ("m2", "Rasmus"), ("m3", "Liis"), ("m4", "Markus")]
BOOKS = [("b1", "Clean Code"), ("b2", "Domain-Driven Design"), ("b3", "Refactoring")]


def loan_book(store, book_id: str, member_id: str, queue: list[str] | None = None) -> Book:
    """Put a stored book on loan to a member, optionally with a waiting queue."""
    book = store.find_by_id(book_id)
    book.loaned_to = member_id
    book.due_date = TODAY + timedelta(days=LOAN_DAYS)
    if queue is not None:
        book.reservation_queue = list(queue)
    return store.save(book)


def set_queue(store, book_id: str, queue: list[str]) -> Book:
    """Replace a stored book's reservation queue."""
    book = store.find_by_id(book_id)
    book.reservation_queue = list(queue)
    return store.save(book)


def make_member_reach_borrow_limit(store, member_id: str) -> None:
    """Give a member MAX_LOANS extra books on loan."""
    for i in range(MAX_LOANS):
        store.save(
            Book(
                id=f"x{member_id}{i}",
                title=f"Loan {i}",
                loaned_to=member_id,
                due_date=TODAY + timedelta(days=1),
            )
        )
