"""
Library lending models.

Pydantic models for the entities the lending engine works with:
- Book: a lendable item with its borrower, due date and reservation queue
- Member: a library member (no stored lending state)
- Results: structured outcomes of the lending operations
"""

from .book import Book
from .member import Member
from .results import (
    BorrowResult,
    LoanEntry,
    MemberSummary,
    ReasonCode,
    ReservationEntry,
    ReserveResult,
    ReturnResult,
)

__all__ = [
    "Book",
    "BorrowResult",
    "LoanEntry",
    "Member",
    "MemberSummary",
    "ReasonCode",
    "ReservationEntry",
    "ReserveResult",
    "ReturnResult",
]
