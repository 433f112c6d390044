import logging
from typing import Iterable, Optional

from sqlalchemy import Table, func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, DisconnectionError, InterfaceError, SQLAlchemyError
from sqlalchemy.orm import Session

from student_loader.core.config import Settings
from student_loader.core.database import build_engine, check_database_connection, make_session_factory
from student_loader.core.exceptions import DatabaseConnectionError, RecordInsertError, TableCreationError
from student_loader.models.student import Student, student_table
from student_loader.schemas.student import StudentRecord

logger = logging.getLogger(__name__)


def insert_student(session: Session, record: StudentRecord, table: Table = Student.__table__) -> int:
    """Insert one record and return the affected-row count (not committed)."""
    result = session.execute(
        insert(table).values(
            name=record.name,
            age=record.age,
            grade=record.grade,
            gender=record.gender,
        )
    )
    return result.rowcount


def _is_connection_error(error: SQLAlchemyError) -> bool:
    if isinstance(error, (InterfaceError, DisconnectionError)):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated


class StudentStore:
    """
    Writes student records into the configured table.

    One engine and one session per run: both are created when the store is
    opened and released when it is closed, whatever happened in between.

    Usage:
        with StudentStore(settings) as store:
            store.create_table()
            inserted = store.insert_all(records)
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.table = student_table(settings.STUDENT_TABLE)
        self._engine: Optional[Engine] = None
        self._session: Optional[Session] = None

    def __enter__(self) -> "StudentStore":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("StudentStore is not open")
        return self._session

    def open(self) -> None:
        engine = build_engine(self.settings)
        try:
            check_database_connection(engine)
        except DatabaseConnectionError:
            engine.dispose()
            raise
        self._engine = engine
        self._session = make_session_factory(engine)()
        logger.debug("Store opened on table '%s'", self.table.name)

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.debug("Store closed")

    def create_table(self) -> None:
        """Create the target table if it does not exist yet."""
        try:
            self.table.create(bind=self.session.get_bind(), checkfirst=True)
        except SQLAlchemyError as e:
            if _is_connection_error(e):
                raise DatabaseConnectionError(str(e)) from e
            raise TableCreationError(self.table.name, str(getattr(e, "orig", None) or e)) from e

    def count(self) -> int:
        return self.session.scalar(select(func.count()).select_from(self.table))

    def insert_all(self, records: Iterable[StudentRecord]) -> int:
        """
        Insert ``records`` in order, committing after each one.

        The first failure rolls back that record only and stops the run:
        rows committed before it stay in the table.

        Raises:
            DatabaseConnectionError: the connection was lost
            RecordInsertError: the database rejected a record
        """
        session = self.session
        inserted = 0
        for index, record in enumerate(records):
            try:
                inserted += insert_student(session, record, self.table)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                if _is_connection_error(e):
                    raise DatabaseConnectionError(str(e)) from e
                raise RecordInsertError(index, record, str(getattr(e, "orig", None) or e)) from e
            logger.debug("Inserted record #%d (%s)", index, record.name)
        return inserted
