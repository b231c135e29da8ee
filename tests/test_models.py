"""
Tests for the lending models.

These tests verify that the models:
1. Reject books whose borrower and due date disagree
2. Reject malformed reservation queues
3. Keep borrower and due date in step through assign_loan / clear_loan
"""

from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from library_lending.models import (
    Book,
    BorrowResult,
    Member,
    ReasonCode,
    ReserveResult,
    ReturnResult,
)

DUE = date(2024, 3, 15)


class TestBook:
    """Test suite for Book model."""

    def test_create_available_book(self):
        book = Book(id="b1", title="Clean Code")

        assert book.is_available is True
        assert book.loaned_to is None
        assert book.due_date is None
        assert book.reservation_queue == []
        assert book.queue_head is None

    def test_loaned_book_requires_due_date(self):
        with pytest.raises(ValidationError) as exc_info:
            Book(id="b1", title="Clean Code", loaned_to="m1")
        assert "set together" in str(exc_info.value)

        with pytest.raises(ValidationError):
            Book(id="b1", title="Clean Code", due_date=DUE)

    def test_queue_rejects_duplicates(self):
        with pytest.raises(ValidationError) as exc_info:
            Book(id="b1", title="Clean Code", reservation_queue=["m1", "m2", "m1"])
        assert "twice" in str(exc_info.value)

    def test_borrower_cannot_be_queued(self):
        with pytest.raises(ValidationError):
            Book(
                id="b1",
                title="Clean Code",
                loaned_to="m1",
                due_date=DUE,
                reservation_queue=["m2", "m1"],
            )

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            Book(id="", title="Clean Code")

    def test_queue_helpers(self):
        book = Book(id="b1", title="Clean Code", reservation_queue=["m2", "m3"])

        assert book.queue_head == "m2"
        assert book.queue_position("m2") == 1
        assert book.queue_position("m3") == 2
        assert book.queue_position("m4") is None

    def test_assign_and_clear_loan(self):
        book = Book(id="b1", title="Clean Code")

        book.assign_loan("m1", DUE)
        assert book.loaned_to == "m1"
        assert book.due_date == DUE
        assert book.is_available is False

        book.clear_loan()
        assert book.loaned_to is None
        assert book.due_date is None

    def test_assign_loan_to_loaned_book_fails(self):
        book = Book(id="b1", title="Clean Code", loaned_to="m1", due_date=DUE)

        with pytest.raises(ValueError, match="already loaned"):
            book.assign_loan("m2", DUE)

    def test_assign_loan_to_queued_member_fails(self):
        book = Book(id="b1", title="Clean Code", reservation_queue=["m2"])

        with pytest.raises(ValueError, match="leave the queue"):
            book.assign_loan("m2", DUE)

    def test_overdue(self):
        book = Book(id="b1", title="Clean Code", loaned_to="m1", due_date=DUE)

        assert book.is_overdue(DUE) is False
        assert book.is_overdue(DUE + timedelta(days=1)) is True
        assert Book(id="b2", title="Refactoring").is_overdue(DUE) is False

    def test_json_round_trip_keeps_queue_order(self):
        book = Book(
            id="b1",
            title="Clean Code",
            loaned_to="m1",
            due_date=DUE,
            reservation_queue=["m4", "m2", "m3"],
        )

        restored = Book.model_validate_json(book.model_dump_json())

        assert restored == book
        assert restored.reservation_queue == ["m4", "m2", "m3"]


class TestMember:
    """Test suite for Member model."""

    def test_create_member(self):
        member = Member(id="m1", name="  Kertu ")
        assert member.name == "Kertu"

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            Member(id="m1", name="   ")


class TestResults:
    """Test suite for result models."""

    def test_factories(self):
        assert BorrowResult.succeeded() == BorrowResult(ok=True, reason=None)
        assert BorrowResult.failed(ReasonCode.BOOK_LOANED).reason == "BOOK_LOANED"
        assert ReserveResult.succeeded(loaned=True).loaned is True
        assert ReturnResult.succeeded("m3").next_member_id == "m3"

        failed = ReturnResult.failed(ReasonCode.NOT_BORROWER)
        assert failed.ok is False
        assert failed.next_member_id is None

    def test_results_are_immutable(self):
        result = BorrowResult.succeeded()

        with pytest.raises(ValidationError):
            result.ok = False

    def test_reason_serializes_as_code(self):
        result = ReserveResult.failed(ReasonCode.ALREADY_RESERVED)

        assert result.model_dump(mode="json") == {
            "ok": False,
            "reason": "ALREADY_RESERVED",
            "loaned": False,
        }
