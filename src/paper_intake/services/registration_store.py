"""Registration store - durable, append-only access to registration records"""

import logging
import time
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from paper_intake.errors import DuplicateKey, StorageUnavailable
from paper_intake.models.registration import RegistrationRecord

logger = logging.getLogger(__name__)


class RegistrationStore:
    """Async facade over the registrations table.

    Each operation opens its own session and runs on a worker thread, so
    concurrent requests only share the engine. Conflicting writes are
    serialised by the database through the primary key and the unique index
    on the reference number.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    async def insert(self, record: RegistrationRecord) -> RegistrationRecord:
        """
        Persist a new registration.

        Raises:
            DuplicateKey: If the id or reference number is already stored
            StorageUnavailable: On any other database failure
        """
        return await run_in_threadpool(self._insert, record)

    async def find_by_id(self, registration_id: str) -> Optional[RegistrationRecord]:
        """Get a registration by ID, or None if there is none"""
        return await run_in_threadpool(self._find_by_id, registration_id)

    async def exists_by_reference(self, reference_number: str) -> bool:
        return await run_in_threadpool(self._exists_by_reference, reference_number)

    async def ping(self) -> float:
        """Run a trivial query and return the round-trip time in milliseconds"""
        return await run_in_threadpool(self._ping)

    def _insert(self, record: RegistrationRecord) -> RegistrationRecord:
        try:
            with Session(self.engine, expire_on_commit=False) as session:
                session.add(record)
                session.commit()
        except IntegrityError as e:
            conflict = self._conflicting_field(record)
            if conflict is None:
                logger.error(f"Integrity error inserting registration {record.id}: {e}")
                raise StorageUnavailable(f"Insert rejected by database: {e}") from e
            field, value = conflict
            logger.warning(f"Duplicate {field} on insert of registration {record.id}")
            raise DuplicateKey(field, value) from e
        except SQLAlchemyError as e:
            logger.error(f"Database error inserting registration {record.id}: {e}")
            raise StorageUnavailable(f"Insert failed: {e}") from e

        logger.info(
            f"Created registration {record.id} with reference {record.reference_number}"
        )
        return record

    def _conflicting_field(self, record: RegistrationRecord) -> Optional[tuple[str, str]]:
        """Work out which unique value an IntegrityError was about"""
        if self._exists_by_reference(record.reference_number):
            return "reference_number", record.reference_number
        if self._find_by_id(record.id) is not None:
            return "id", record.id
        return None

    def _find_by_id(self, registration_id: str) -> Optional[RegistrationRecord]:
        try:
            with Session(self.engine) as session:
                return session.get(RegistrationRecord, registration_id)
        except SQLAlchemyError as e:
            logger.error(f"Database error loading registration {registration_id}: {e}")
            raise StorageUnavailable(f"Lookup failed: {e}") from e

    def _exists_by_reference(self, reference_number: str) -> bool:
        stmt = (
            select(RegistrationRecord.id)
            .where(RegistrationRecord.reference_number == reference_number)
            .limit(1)
        )
        try:
            with Session(self.engine) as session:
                return session.exec(stmt).first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Database error checking reference {reference_number}: {e}")
            raise StorageUnavailable(f"Reference check failed: {e}") from e

    def _ping(self) -> float:
        start = time.perf_counter()
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StorageUnavailable(str(e)) from e
        return round((time.perf_counter() - start) * 1000, 2)
