import logging
from datetime import date
from typing import List, Optional, Sequence
from uuid import UUID, uuid4

from ..db.db_client import AsyncPostgresClient
from ..models.db_models import AttendanceDetail, AttendanceEntry
from .errors import BatchWriteError, InvalidInputError, StoreError

logger = logging.getLogger(__name__)


class AttendanceService:
    """
    Records per-(student, class, date) attendance.

    Marking is an idempotent batch upsert: resubmitting the same roster leaves
    the same rows behind, and a roster is written in full or not at all.
    """
    def __init__(self, db_client: AsyncPostgresClient):
        self.db_client = db_client

    async def mark_batch(self, class_id: UUID, day: date, entries: Sequence[AttendanceEntry]) -> int:
        """
        Upserts every entry for ``class_id`` on ``day`` in one transaction and
        returns the number of rows written.

        Raises InvalidInputError before touching the store when the batch is
        empty or names a student twice, and BatchWriteError when the store rolled the batch back.
        """
        if class_id is None or day is None:
            raise InvalidInputError("Class ID, date, and records array are required")
        if not entries:
            raise InvalidInputError("Class ID, date, and records array are required")

        # One row per (student, class, date), so the count always equals the rows stored.
        student_ids = [entry.student_id for entry in entries]
        if len(set(student_ids)) != len(student_ids):
            raise InvalidInputError("Each student may appear only once per attendance batch")

        new_ids = [uuid4() for _ in entries]
        try:
            written = await self.db_client.upsert_attendance_batch(class_id, day, list(entries), new_ids)
        except Exception as e:
            logger.error(
                f"Attendance batch for class {class_id} on {day.isoformat()} "
                f"({len(entries)} records) was rolled back.",
                exc_info=True
            )
            raise BatchWriteError("Attendance could not be recorded; no records were saved.") from e

        logger.info(f"Recorded {len(written)} attendance records for class {class_id} on {day.isoformat()}.")
        return len(written)

    async def query(
        self,
        class_id: Optional[UUID] = None,
        student_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[AttendanceDetail]:
        """Returns matching records, newest date first. Date bounds are inclusive."""
        try:
            return await self.db_client.query_attendance(
                class_id=class_id, student_id=student_id, start_date=start_date, end_date=end_date
            )
        except Exception as e:
            logger.error("Database error while fetching attendance.", exc_info=True)
            raise StoreError("A database error occurred while fetching attendance.") from e
