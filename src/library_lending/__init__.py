"""
Library Lending Package.

This package implements the lending policy of a library: how a book moves
between available, loaned and reserved states for a set of members.

Key Components:
- models: Pydantic models for books, members and operation results
- database: Storage ports plus in-memory and SQLAlchemy adapters
- lending: The policy engine (LendingService)
- config: Configuration management with pydantic-settings
"""

__version__ = "0.1.0"

from .lending import LendingService
from .models import BorrowResult, ReasonCode, ReserveResult, ReturnResult

__all__ = [
    "BorrowResult",
    "LendingService",
    "ReasonCode",
    "ReserveResult",
    "ReturnResult",
    "__version__",
]
