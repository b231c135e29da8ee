"""
SQLAlchemy database schema for the library lending engine.

These tables back the SQL storage adapters. They mirror the pydantic
models, with the reservation queue normalised into its own table:

1. ``books`` holds the borrower and due date of the running loan
2. ``members`` holds member identity and display name
3. ``reservation_entries`` holds one row per queued member, ordered by
   ``position`` within a book
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

# Base class for all SQLAlchemy models
Base = declarative_base()


class Book(Base):
    """
    Books table - lending state of each catalog item.

    ``loaned_to`` is not a foreign key; member existence is checked by the
    lending engine, not the store. ``version`` gives optimistic concurrency
    control between sessions that write the same book.
    """

    __tablename__ = "books"

    id = Column(String(50), primary_key=True)
    title = Column(String(500), nullable=False)
    loaned_to = Column(String(50), nullable=True)
    due_date = Column(Date, nullable=True)

    # Bumped on every write; an UPDATE against an older version matches no row
    version = Column(Integer, nullable=False)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=True, default=func.now(), onupdate=func.now())

    # Relationships
    reservations = relationship(
        "ReservationEntry",
        back_populates="book",
        order_by="ReservationEntry.position",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_book_loaned_to", "loaned_to"),
        CheckConstraint(
            "(loaned_to IS NULL AND due_date IS NULL) "
            "OR (loaned_to IS NOT NULL AND due_date IS NOT NULL)",
            name="check_loan_has_due_date",
        ),
    )


class Member(Base):
    """Members table - library members who can borrow and reserve."""

    __tablename__ = "members"

    id = Column(String(50), primary_key=True)
    name = Column(String(200), nullable=False)

    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())


class ReservationEntry(Base):
    """
    Reservation entries table - one queued member per row.

    Queue order is ``position`` ascending. A member can wait for a given
    book only once. ``member_id`` is not a foreign key because the queue
    may reference members that have since been removed; the hand-off scan
    skips them.
    """

    __tablename__ = "reservation_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    book_id = Column(String(50), ForeignKey("books.id", ondelete="CASCADE"), nullable=False)
    member_id = Column(String(50), nullable=False)
    position = Column(Integer, nullable=False)

    created_at = Column(DateTime, nullable=False, default=func.now())

    book = relationship("Book", back_populates="reservations")

    __table_args__ = (
        Index("idx_reservation_member", "member_id"),
        UniqueConstraint("book_id", "position", name="unique_queue_position"),
        UniqueConstraint("book_id", "member_id", name="unique_queue_member"),
        CheckConstraint("position > 0", name="check_queue_position_positive"),
    )
