"""
Book model for the library lending engine.

A book carries its own lending state: the current borrower, the due date of
the running loan, and the FIFO queue of members waiting for it. The model
enforces the lending invariants on construction so that no store can hand
the engine a book in an impossible state:

1. A borrower and a due date are either both present or both absent
2. The reservation queue holds each member at most once
3. The current borrower never waits in their own queue
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Book(BaseModel):
    """
    Represents a lendable book and its circulation state.

    Books are created by catalog management and mutated only through the
    lending operations; ``assign_loan`` and ``clear_loan`` keep the
    borrower and due date in step.
    """

    id: str = Field(
        ...,
        description="Unique identifier for the book",
        min_length=1,
        examples=["b1", "book-clean-code"],
    )

    title: str = Field(
        ...,
        description="The title of the book",
        min_length=1,
        max_length=500,
        examples=["Clean Code", "Refactoring"],
    )

    loaned_to: str | None = Field(
        None,
        description="ID of the member currently holding the book",
        examples=["m1"],
    )

    due_date: date | None = Field(
        None,
        description="Date the running loan ends; present only while loaned",
    )

    reservation_queue: list[str] = Field(
        default_factory=list,
        description="Members waiting for the book, earliest first",
    )

    @model_validator(mode="after")
    def validate_lending_state(self) -> "Book":
        """Ensure borrower, due date and queue are mutually consistent."""
        if (self.loaned_to is None) != (self.due_date is None):
            raise ValueError("loaned_to and due_date must be set together")

        if len(set(self.reservation_queue)) != len(self.reservation_queue):
            raise ValueError("Reservation queue cannot contain the same member twice")

        if self.loaned_to is not None and self.loaned_to in self.reservation_queue:
            raise ValueError("Current borrower cannot be in the reservation queue")

        return self

    @property
    def is_available(self) -> bool:
        """Check if nobody currently holds the book."""
        return self.loaned_to is None

    @property
    def queue_head(self) -> str | None:
        """Member at the front of the reservation queue, if any."""
        return self.reservation_queue[0] if self.reservation_queue else None

    def queue_position(self, member_id: str) -> int | None:
        """1-based position of a member in the queue, or None if not queued."""
        try:
            return self.reservation_queue.index(member_id) + 1
        except ValueError:
            return None

    def is_overdue(self, today: date) -> bool:
        """Check if the running loan ended before ``today``."""
        return self.due_date is not None and self.due_date < today

    def assign_loan(self, member_id: str, due_date: date) -> None:
        """
        Hand the book to a member.

        Raises:
            ValueError: If the book is already loaned or the member is still queued
        """
        if self.loaned_to is not None:
            raise ValueError(f"Book '{self.title}' is already loaned to {self.loaned_to}")
        if member_id in self.reservation_queue:
            raise ValueError(f"Member {member_id} must leave the queue before borrowing")
        self.loaned_to = member_id
        self.due_date = due_date

    def clear_loan(self) -> None:
        """Mark the book as back on the shelf."""
        self.loaned_to = None
        self.due_date = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "b1",
                "title": "Clean Code",
                "loaned_to": "m1",
                "due_date": "2024-03-15",
                "reservation_queue": ["m2", "m3"],
            }
        }
    )
