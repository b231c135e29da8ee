"""
Engine and session handling for the SQL storage adapters.

A ``DatabaseManager`` owns one engine per database URL and hands out
sessions. Store writes go through ``write_guard``, which rolls the session
back on any database fault and re-raises it as a repository exception, so
callers of the stores never see SQLAlchemy errors.
"""

import logging
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from ..config import get_config
from .repository import ConcurrentUpdateError, DuplicateError, RepositoryException
from .schema import Base

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


class DatabaseManager:
    """
    Engine and session factory for one database.

    Args:
        database_url: SQLAlchemy URL. If None, the configured SQLite file is
            used and its directory is created.
    """

    def __init__(self, database_url: str | None = None):
        if database_url is None:
            db_path = get_config().database_path
            db_path.parent.mkdir(parents=True, exist_ok=True)
            database_url = f"sqlite:///{db_path}"
            logger.info("Using SQLite database at %s", db_path)

        self.database_url = database_url
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = self._create_engine()
            logger.info("Database engine created: %s", self._engine.url)
        return self._engine

    def _create_engine(self) -> Engine:
        if not self.database_url.startswith("sqlite"):
            return create_engine(self.database_url, pool_pre_ping=True)

        options: dict = {"connect_args": {"check_same_thread": False}}
        if _is_memory_sqlite(self.database_url):
            # One connection keeps the in-memory database alive across sessions
            options["poolclass"] = StaticPool
        engine = create_engine(self.database_url, **options)

        @event.listens_for(engine, "connect")
        def enable_foreign_keys(dbapi_connection, connection_record):  # noqa: ARG001
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine, autoflush=False, expire_on_commit=False
            )
        return self._session_factory

    def create_session(self) -> Session:
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Yield a session that is committed on success and rolled back on error.

        ```python
        with db_manager.session_scope() as session:
            service = LendingService(SqlBookStore(session), SqlMemberStore(session))
            service.borrow_book("b1", "m1")
        ```
        """
        session = self.create_session()
        try:
            yield session
            session.commit()
        except Exception:
            logger.exception("Session failed, rolling back")
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self, drop_existing: bool = False) -> None:
        """Create the lending tables, optionally dropping existing ones first."""
        if drop_existing:
            logger.warning("Dropping lending tables")
            Base.metadata.drop_all(bind=self.engine)
        Base.metadata.create_all(bind=self.engine)
        logger.info("Lending tables ready")

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None


@contextmanager
def write_guard(session: Session, operation: str) -> Generator[None, None, None]:
    """
    Run flushes and commits, translating database errors.

    Raises:
        ConcurrentUpdateError: If a versioned row was changed by another session
        DuplicateError: If a uniqueness constraint is violated
        RepositoryException: For any other database fault
    """
    try:
        yield
    except StaleDataError as e:
        session.rollback()
        logger.warning("Concurrent update detected during %s", operation)
        raise ConcurrentUpdateError(f"{operation}: row changed by another session") from e
    except IntegrityError as e:
        session.rollback()
        raise DuplicateError(f"{operation} failed: {e!s}") from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("%s failed", operation)
        raise RepositoryException(f"{operation} failed: {e!s}") from e


def safe_commit(session: Session, operation: str) -> None:
    """Commit the session under ``write_guard``."""
    with write_guard(session, operation):
        session.commit()


def safe_query(session: Session, query_func: Callable[[Session], T], error_msg: str) -> T:
    """
    Execute a read, translating database errors.

    Raises:
        RepositoryException: If the query fails
    """
    try:
        return query_func(session)
    except SQLAlchemyError as e:
        logger.exception("Query failed")
        raise RepositoryException(f"{error_msg}: Database query failed") from e
