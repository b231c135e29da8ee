"""
Result models returned by the lending engine.

Business-rule rejections are reported as values, not exceptions: every
lending operation returns a result with ``ok`` and, on failure, a
``ReasonCode`` that callers can branch on. Only infrastructure faults
(storage errors) are raised.
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ReasonCode(str, Enum):
    """Why a lending operation was rejected."""

    NOT_FOUND = "NOT_FOUND"
    BOOK_LOANED = "BOOK_LOANED"
    QUEUE_EXISTS = "QUEUE_EXISTS"
    ALREADY_RESERVED = "ALREADY_RESERVED"
    NOT_BORROWER = "NOT_BORROWER"
    LIMIT_REACHED = "LIMIT_REACHED"
    NOT_RESERVED = "NOT_RESERVED"
    INVALID_DAYS = "INVALID_DAYS"


class BorrowResult(BaseModel):
    """Outcome of a borrow (or loan extension) request."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    reason: ReasonCode | None = None

    @classmethod
    def succeeded(cls) -> "BorrowResult":
        return cls(ok=True)

    @classmethod
    def failed(cls, reason: ReasonCode) -> "BorrowResult":
        return cls(ok=False, reason=reason)


class ReserveResult(BaseModel):
    """Outcome of a reservation request.

    ``loaned`` is True when the book was free and the reservation turned
    into an immediate loan instead of a queue entry.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    reason: ReasonCode | None = None
    loaned: bool = False

    @classmethod
    def succeeded(cls, loaned: bool = False) -> "ReserveResult":
        return cls(ok=True, loaned=loaned)

    @classmethod
    def failed(cls, reason: ReasonCode) -> "ReserveResult":
        return cls(ok=False, reason=reason)


class ReturnResult(BaseModel):
    """Outcome of a return, including who received the book next."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    reason: ReasonCode | None = None
    next_member_id: str | None = None

    @classmethod
    def succeeded(cls, next_member_id: str | None = None) -> "ReturnResult":
        return cls(ok=True, next_member_id=next_member_id)

    @classmethod
    def failed(cls, reason: ReasonCode) -> "ReturnResult":
        return cls(ok=False, reason=reason)


class LoanEntry(BaseModel):
    """A book currently held by a member."""

    book_id: str
    title: str
    due_date: date


class ReservationEntry(BaseModel):
    """A member's place in one book's reservation queue."""

    book_id: str
    title: str
    position: int = Field(..., ge=1, description="1-based position in the queue")


class MemberSummary(BaseModel):
    """Loans and reservations held by one member."""

    member_id: str
    name: str
    loans: list[LoanEntry] = Field(default_factory=list)
    reservations: list[ReservationEntry] = Field(default_factory=list)

    @property
    def active_loans(self) -> int:
        return len(self.loans)
