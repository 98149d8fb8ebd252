import logging
import secrets
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

import asyncpg
from werkzeug.security import generate_password_hash

from ..config.config import settings
from ..db.db_client import AsyncPostgresClient
from ..models.db_models import (
    AttendanceDetail, EnrollmentDetail, Performance, Role, Student, StudentProfile, User
)
from .errors import ConflictError, InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)

RECENT_HISTORY_LIMIT = 10


class StudentOverview(StudentProfile):
    """Student profile with its enrollments and most recent history."""
    enrollments: List[EnrollmentDetail] = []
    recent_attendance: List[AttendanceDetail] = []
    recent_performance: List[Performance] = []


class StudentService:
    def __init__(self, db_client: AsyncPostgresClient):
        self.db_client = db_client

    async def list_students(self) -> List[StudentProfile]:
        return await self.db_client.list_student_profiles()

    async def get_student(self, student_id: UUID) -> StudentOverview:
        profile = await self.db_client.get_student_profile(student_id)
        if not profile:
            raise NotFoundError("Student not found")

        enrollments = await self.db_client.list_enrollments(student_id=student_id)
        attendance = await self.db_client.query_attendance(student_id=student_id, limit=RECENT_HISTORY_LIMIT)
        performance = await self.db_client.list_performance(student_id, limit=RECENT_HISTORY_LIMIT)
        return StudentOverview(
            **profile.model_dump(),
            enrollments=enrollments,
            recent_attendance=attendance,
            recent_performance=performance,
        )

    async def create_student(
        self,
        first_name: str,
        last_name: str,
        email: str,
        grade: str,
        password: Optional[str] = None,
        student_number: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> StudentProfile:
        """Creates the student's user account and student record together."""
        if not first_name or not last_name or not email or not grade:
            raise InvalidInputError("First name, last name, email, and grade are required")

        if await self.db_client.email_exists(email):
            raise ConflictError("User with this email already exists")

        user = User(
            id=uuid4(), email=email, role=Role.STUDENT, first_name=first_name, last_name=last_name,
            phone=phone, address=address
        )
        student = Student(
            id=uuid4(),
            user_id=user.id,
            student_number=student_number or f"STU{secrets.randbelow(10**6):06d}",
            grade=grade,
        )
        password_hash = generate_password_hash(password or settings.DEFAULT_STUDENT_PASSWORD)

        try:
            await self.db_client.add_student(user, password_hash, student)
        except asyncpg.UniqueViolationError as e:
            raise ConflictError("A user with this email or student number already exists") from e

        logger.info(f"Student {student.student_number} ({student.id}) created.")
        return StudentProfile(
            **student.model_dump(),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            phone=user.phone,
            address=user.address,
            is_active=user.is_active,
        )

    async def update_student(self, student_id: UUID, changes: Dict[str, Any]) -> StudentProfile:
        """Updates grade, names, contact details and active flag; None values are left unchanged."""
        profile = await self.db_client.get_student_profile(student_id)
        if not profile:
            raise NotFoundError("Student not found")

        allowed = {"grade", "first_name", "last_name", "phone", "address", "is_active"}
        changes = {k: v for k, v in changes.items() if k in allowed and v is not None}
        updated = profile.model_copy(update=changes)
        await self.db_client.update_student_profile(updated)
        logger.info(f"Student {student_id} updated: {sorted(changes)}")
        return updated

    async def delete_student(self, student_id: UUID):
        deleted_user_id = await self.db_client.delete_student(student_id)
        if deleted_user_id is None:
            raise NotFoundError("Student not found")
        logger.info(f"Student {student_id} (user {deleted_user_id}) deleted.")
