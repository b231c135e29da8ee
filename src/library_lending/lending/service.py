"""
Lending policy engine.

This module owns every rule about how a book moves between being on the
shelf, on loan, and waited for:

1. **Borrow**: direct loans, blocked while someone else is first in line
2. **Reserve**: join the FIFO queue, or take the book at once if it is free
3. **Return**: hand the book to the earliest eligible member in the queue
4. **Extensions and cancellations**: adjust a running loan or leave the queue

Rule violations come back as result values with a ``ReasonCode``; only
storage faults raise. Each operation holds the book store's lock on its
book ID for the whole read-modify-write cycle and mutates a private copy,
so a rejected operation never leaves a trace in the store. A write that
loses a race with another database session is retried from a fresh read.
"""

import functools
import logging
from datetime import timedelta

from ..config import LendingConfig, get_config
from ..database.repository import BookStore, ConcurrentUpdateError, MemberStore
from ..models.book import Book
from ..models.results import (
    BorrowResult,
    LoanEntry,
    MemberSummary,
    ReasonCode,
    ReservationEntry,
    ReserveResult,
    ReturnResult,
)
from .clock import Clock, system_clock

logger = logging.getLogger(__name__)


def book_operation(method):
    """
    Run an engine method under the book store's lock on its ``book_id``.

    A ``ConcurrentUpdateError`` from the store means another session wrote
    the book between our read and our save. The whole method then runs
    again from a fresh read, up to ``conflict_retries`` more times.
    """

    @functools.wraps(method)
    def wrapper(self, book_id: str, *args, **kwargs):
        attempt = 0
        while True:
            with self.books.locked(book_id):
                try:
                    return method(self, book_id, *args, **kwargs)
                except ConcurrentUpdateError:
                    if attempt >= self.conflict_retries:
                        raise
            attempt += 1
            logger.warning(
                "Write conflict on %s in %s, retrying (%d/%d)",
                book_id,
                method.__name__,
                attempt,
                self.conflict_retries,
            )

    return wrapper


class LendingService:
    """
    Applies the lending policy to books held in a ``BookStore``.

    Args:
        books: Book storage port
        members: Member storage port
        clock: Zero-argument callable returning today's date
        config: Policy settings; defaults to the global configuration
    """

    def __init__(
        self,
        books: BookStore,
        members: MemberStore,
        clock: Clock | None = None,
        config: LendingConfig | None = None,
    ):
        config = config or get_config()
        self.books = books
        self.members = members
        self.clock = clock or system_clock
        self.loan_days = config.loan_days
        self.max_loans = config.max_loans
        self.enforce_limit_on_borrow = config.enforce_limit_on_borrow
        self.conflict_retries = config.conflict_retries

    # -------------------------------------------------------------------------
    # Core lending operations
    # -------------------------------------------------------------------------

    @book_operation
    def borrow_book(self, book_id: str, member_id: str) -> BorrowResult:
        """
        Lend a book directly to a member.

        The loan is refused while the book is out, and while anyone other
        than the caller heads the reservation queue. When the caller is the
        queue head, borrowing claims their turn and removes them from the
        queue.
        """
        book = self.books.find_by_id(book_id)
        if book is None or not self.members.exists_by_id(member_id):
            return self._reject(BorrowResult, ReasonCode.NOT_FOUND, book_id, member_id)

        if book.loaned_to is not None:
            return self._reject(BorrowResult, ReasonCode.BOOK_LOANED, book_id, member_id)

        if book.reservation_queue and book.queue_head != member_id:
            return self._reject(BorrowResult, ReasonCode.QUEUE_EXISTS, book_id, member_id)

        if self.enforce_limit_on_borrow and self._at_loan_limit(member_id):
            return self._reject(BorrowResult, ReasonCode.LIMIT_REACHED, book_id, member_id)

        if book.queue_head == member_id:
            book.reservation_queue.pop(0)
        self._grant(book, member_id)
        self.books.save(book)

        logger.info("Book %s loaned to %s until %s", book_id, member_id, book.due_date)
        return BorrowResult.succeeded()

    @book_operation
    def reserve_book(self, book_id: str, member_id: str) -> ReserveResult:
        """
        Reserve a book for a member.

        A book nobody holds or waits for is loaned immediately instead of
        being queued (``loaned=True`` in the result). Otherwise the member
        joins the tail of the queue, once.
        """
        book = self.books.find_by_id(book_id)
        if book is None or not self.members.exists_by_id(member_id):
            return self._reject(ReserveResult, ReasonCode.NOT_FOUND, book_id, member_id)

        if book.is_available and book.queue_head in (None, member_id):
            if self.enforce_limit_on_borrow and self._at_loan_limit(member_id):
                return self._reject(ReserveResult, ReasonCode.LIMIT_REACHED, book_id, member_id)
            if book.queue_head == member_id:
                book.reservation_queue.pop(0)
            self._grant(book, member_id)
            self.books.save(book)

            logger.info(
                "Reservation of %s by %s fulfilled immediately, due %s",
                book_id,
                member_id,
                book.due_date,
            )
            return ReserveResult.succeeded(loaned=True)

        if member_id == book.loaned_to or member_id in book.reservation_queue:
            return self._reject(ReserveResult, ReasonCode.ALREADY_RESERVED, book_id, member_id)

        book.reservation_queue.append(member_id)
        self.books.save(book)

        logger.info(
            "Member %s queued for %s at position %d",
            member_id,
            book_id,
            len(book.reservation_queue),
        )
        return ReserveResult.succeeded()

    @book_operation
    def return_book(self, book_id: str, member_id: str) -> ReturnResult:
        """
        Take a book back from its borrower and hand it to the next in line.

        The queue is scanned from the head. Every entry visited is removed:
        members that no longer exist and members already at the loan limit
        are skipped, and the first remaining member receives a fresh loan.
        Entries after the new borrower keep their order. If nobody is
        eligible the book returns to the shelf with an empty queue.
        """
        book = self.books.find_by_id(book_id)
        if book is None:
            return self._reject(ReturnResult, ReasonCode.NOT_FOUND, book_id, member_id)

        if book.loaned_to is None or book.loaned_to != member_id:
            return self._reject(ReturnResult, ReasonCode.NOT_BORROWER, book_id, member_id)

        book.clear_loan()
        next_member_id = None

        while book.reservation_queue:
            candidate = book.reservation_queue.pop(0)
            if not self.members.exists_by_id(candidate):
                logger.debug("Skipping unknown member %s in queue for %s", candidate, book_id)
                continue
            if self._at_loan_limit(candidate):
                logger.debug(
                    "Skipping member %s for %s: loan limit of %d reached",
                    candidate,
                    book_id,
                    self.max_loans,
                )
                continue
            self._grant(book, candidate)
            next_member_id = candidate
            break

        self.books.save(book)

        if next_member_id is None:
            logger.info("Book %s returned by %s and is now available", book_id, member_id)
        else:
            logger.info(
                "Book %s returned by %s and handed to %s", book_id, member_id, next_member_id
            )
        return ReturnResult.succeeded(next_member_id)

    # -------------------------------------------------------------------------
    # Loan and queue maintenance
    # -------------------------------------------------------------------------

    @book_operation
    def cancel_reservation(self, book_id: str, member_id: str) -> ReserveResult:
        """Remove a member from a book's reservation queue."""
        book = self.books.find_by_id(book_id)
        if book is None:
            return self._reject(ReserveResult, ReasonCode.NOT_FOUND, book_id, member_id)

        if member_id not in book.reservation_queue:
            return self._reject(ReserveResult, ReasonCode.NOT_RESERVED, book_id, member_id)

        book.reservation_queue.remove(member_id)
        self.books.save(book)

        logger.info("Member %s left the queue for %s", member_id, book_id)
        return ReserveResult.succeeded()

    @book_operation
    def extend_loan(self, book_id: str, member_id: str, days: int | None = None) -> BorrowResult:
        """
        Push the due date of a running loan further out.

        Only the borrower may extend, and only while nobody is waiting.

        Args:
            book_id: Book on loan
            member_id: Member asking for the extension
            days: Days to add to the current due date (default: one loan period)
        """
        days = self.loan_days if days is None else days

        book = self.books.find_by_id(book_id)
        if book is None:
            return self._reject(BorrowResult, ReasonCode.NOT_FOUND, book_id, member_id)

        if days <= 0:
            return self._reject(BorrowResult, ReasonCode.INVALID_DAYS, book_id, member_id)

        if book.loaned_to is None or book.loaned_to != member_id:
            return self._reject(BorrowResult, ReasonCode.NOT_BORROWER, book_id, member_id)

        if book.reservation_queue:
            return self._reject(BorrowResult, ReasonCode.QUEUE_EXISTS, book_id, member_id)

        book.due_date = book.due_date + timedelta(days=days)
        self.books.save(book)

        logger.info("Loan of %s to %s extended to %s", book_id, member_id, book.due_date)
        return BorrowResult.succeeded()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def can_member_borrow(self, member_id: str) -> bool:
        """Check if a member exists and is below the loan limit."""
        return self.members.exists_by_id(member_id) and not self._at_loan_limit(member_id)

    def member_summary(self, member_id: str) -> MemberSummary | None:
        """Loans and reservations of one member, or None if the member is unknown."""
        member = self.members.find_by_id(member_id)
        if member is None:
            return None

        summary = MemberSummary(member_id=member.id, name=member.name)
        for book in sorted(self.books.find_all(), key=lambda b: b.id):
            if book.loaned_to == member_id:
                summary.loans.append(
                    LoanEntry(book_id=book.id, title=book.title, due_date=book.due_date)
                )
            position = book.queue_position(member_id)
            if position is not None:
                summary.reservations.append(
                    ReservationEntry(book_id=book.id, title=book.title, position=position)
                )
        return summary

    def overdue_books(self) -> list[Book]:
        """Books whose loan ended before today, earliest due date first."""
        today = self.clock()
        overdue = [book for book in self.books.find_all() if book.is_overdue(today)]
        return sorted(overdue, key=lambda b: (b.due_date, b.id))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _at_loan_limit(self, member_id: str) -> bool:
        return self.books.count_by_loaned_to(member_id) >= self.max_loans

    def _grant(self, book: Book, member_id: str) -> None:
        book.assign_loan(member_id, self.clock() + timedelta(days=self.loan_days))

    @staticmethod
    def _reject(result_type, reason: ReasonCode, book_id: str, member_id: str):
        logger.debug(
            "Rejected %s on %s for %s: %s", result_type.__name__, book_id, member_id, reason.value
        )
        return result_type.failed(reason)
