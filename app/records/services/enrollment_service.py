import logging
from typing import List
from uuid import UUID, uuid4

import asyncpg

from ..db.db_client import AsyncPostgresClient
from ..models.db_models import Enrollment, EnrollmentDetail, EnrollmentStatus
from .errors import ConflictError, NotFoundError, StoreError

logger = logging.getLogger(__name__)


class EnrollmentService:
    """
    Owns the student-to-class membership relation.

    At most one enrollment exists per (student, class). The existence check in
    ``enroll`` only saves a round trip; the store's unique constraint decides
    which of two racing inserts wins.
    """
    def __init__(self, db_client: AsyncPostgresClient):
        self.db_client = db_client

    async def enroll(self, class_id: UUID, student_id: UUID) -> Enrollment:
        if not await self.db_client.get_class(class_id):
            raise NotFoundError("Class not found")
        if not await self.db_client.get_student(student_id):
            raise NotFoundError("Student not found")

        if await self.db_client.get_enrollment(class_id, student_id):
            raise ConflictError("Student is already enrolled in this class")

        enrollment = Enrollment(
            id=uuid4(),
            student_id=student_id,
            class_id=class_id,
            status=EnrollmentStatus.ACTIVE
        )
        try:
            created = await self.db_client.add_enrollment(enrollment)
        except asyncpg.ForeignKeyViolationError as e:
            # Class or student deleted between the check and the insert.
            logger.warning(f"Enrollment of student {student_id} in class {class_id} lost its reference: {e}")
            raise NotFoundError("Class or student not found") from e
        except Exception as e:
            logger.error(f"Error enrolling student {student_id} in class {class_id}.", exc_info=True)
            raise StoreError("Could not create the enrollment.") from e

        if created is None:
            logger.info(f"Concurrent enrollment detected for student {student_id} in class {class_id}.")
            raise ConflictError("Student is already enrolled in this class")

        logger.info(f"Student {student_id} enrolled in class {class_id}.")
        return created

    async def unenroll(self, class_id: UUID, student_id: UUID):
        """Removes the enrollment row. Attendance and performance history is left in place."""
        deleted_id = await self.db_client.delete_enrollment(class_id, student_id)
        if deleted_id is None:
            raise NotFoundError("Enrollment not found")
        logger.info(f"Student {student_id} unenrolled from class {class_id}.")

    async def list_by_class(self, class_id: UUID) -> List[EnrollmentDetail]:
        if not await self.db_client.get_class(class_id):
            raise NotFoundError("Class not found")
        return await self.db_client.list_enrollments(class_id=class_id)

    async def list_by_student(self, student_id: UUID) -> List[EnrollmentDetail]:
        if not await self.db_client.get_student(student_id):
            raise NotFoundError("Student not found")
        return await self.db_client.list_enrollments(student_id=student_id)
