"""
SQLAlchemy book store.

Implements the ``BookStore`` port over a SQLAlchemy session. Rows are
converted into fresh pydantic ``Book`` models on every read, so the
engine can mutate what it loads without touching the session's state.
"""

from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..models.book import Book as BookModel
from .repository import BookStore
from .schema import Book as BookDB
from .schema import ReservationEntry as ReservationDB
from .session import safe_commit, safe_query, write_guard


class SqlBookStore(BookStore):
    """
    Book store backed by the ``books`` and ``reservation_entries`` tables.

    Every write commits immediately. Books are read ``FOR UPDATE`` and
    always refreshed from the database, and each row carries a version,
    so a save based on a read that another session has since overwritten
    raises ``ConcurrentUpdateError`` instead of clobbering that write.
    """

    def __init__(self, session: Session):
        """Initialize store with database session."""
        super().__init__()
        self.session = session

    @contextmanager
    def locked(self, book_id: str) -> Generator[None, None, None]:
        """
        Hold the book lock and end the open transaction on the way out.

        Rejected operations read without saving; rolling back releases the
        row locks taken by their ``FOR UPDATE`` read.
        """
        with self.locks.hold(book_id):
            try:
                yield
            finally:
                if self.session.in_transaction():
                    self.session.rollback()

    def _get_row(self, id: str, fresh: bool = False) -> BookDB | None:
        query = select(BookDB).where(BookDB.id == id).options(selectinload(BookDB.reservations))
        if fresh:
            # Overwrite whatever this session cached; the row version read
            # here is the one the next save is checked against
            query = query.with_for_update().execution_options(populate_existing=True)
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            f"Failed to get book {id}",
        )

    @staticmethod
    def _to_model(row: BookDB) -> BookModel:
        return BookModel(
            id=row.id,
            title=row.title,
            loaned_to=row.loaned_to,
            due_date=row.due_date,
            reservation_queue=[entry.member_id for entry in row.reservations],
        )

    def find_by_id(self, id: str) -> BookModel | None:
        row = self._get_row(id, fresh=True)
        return self._to_model(row) if row is not None else None

    def find_all(self) -> list[BookModel]:
        query = (
            select(BookDB)
            .options(selectinload(BookDB.reservations))
            .order_by(BookDB.id)
            .execution_options(populate_existing=True)
        )
        rows = safe_query(
            self.session, lambda s: s.execute(query).scalars().all(), "Failed to list books"
        )
        return [self._to_model(row) for row in rows]

    def save(self, entity: BookModel) -> BookModel:
        """
        Insert or update a book together with its reservation queue.

        The queue is rewritten in full: existing entries are flushed out
        before the new ones are added so positions never collide.

        Raises:
            ConcurrentUpdateError: If another session wrote the book after
                this session last read it
        """
        row = self._get_row(entity.id)
        if row is None:
            row = BookDB(id=entity.id)
            self.session.add(row)

        row.title = entity.title
        row.loaned_to = entity.loaned_to
        row.due_date = entity.due_date
        # Always UPDATE the book row so queue-only changes bump the version too
        row.updated_at = datetime.now()

        with write_guard(self.session, f"save book {entity.id}"):
            current = [entry.member_id for entry in row.reservations]
            if current != entity.reservation_queue:
                row.reservations.clear()
                self.session.flush()
                row.reservations.extend(
                    ReservationDB(member_id=member_id, position=position)
                    for position, member_id in enumerate(entity.reservation_queue, start=1)
                )
            self.session.commit()
        self.session.refresh(row)
        return self._to_model(row)

    def delete(self, entity: BookModel) -> None:
        row = self._get_row(entity.id)
        if row is None:
            return
        self.session.delete(row)
        safe_commit(self.session, f"delete book {entity.id}")

    def exists_by_id(self, id: str) -> bool:
        query = select(func.count()).select_from(BookDB).where(BookDB.id == id)
        count = safe_query(
            self.session, lambda s: s.execute(query).scalar(), "Failed to check existence"
        )
        return bool(count)

    def count_by_loaned_to(self, member_id: str) -> int:
        query = select(func.count()).select_from(BookDB).where(BookDB.loaned_to == member_id)
        return (
            safe_query(
                self.session,
                lambda s: s.execute(query).scalar(),
                f"Failed to count loans for member {member_id}",
            )
            or 0
        )
