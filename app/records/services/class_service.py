import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

import asyncpg

from ..db.db_client import AsyncPostgresClient
from ..models.db_models import ClassSummary, EnrollmentDetail, Role, SchoolClass
from .errors import ConflictError, InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


class ClassService:
    """Class catalogue management. Mutations are admin-only at the API edge."""

    def __init__(self, db_client: AsyncPostgresClient):
        self.db_client = db_client

    async def _verify_teacher(self, teacher_id: UUID):
        teacher = await self.db_client.get_user(teacher_id)
        if not teacher or teacher.role != Role.TEACHER:
            raise InvalidInputError("Invalid teacher ID")

    async def list_classes(self) -> List[ClassSummary]:
        return await self.db_client.list_class_summaries()

    async def get_class(self, class_id: UUID) -> Tuple[ClassSummary, List[EnrollmentDetail]]:
        summary = await self.db_client.get_class_summary(class_id)
        if not summary:
            raise NotFoundError("Class not found")
        enrollments = await self.db_client.list_enrollments(class_id=class_id)
        return summary, enrollments

    async def create_class(
        self,
        name: str,
        code: str,
        grade: str,
        teacher_id: UUID,
        academic_year: Optional[str] = None,
        semester: Optional[str] = None,
        description: Optional[str] = None,
    ) -> SchoolClass:
        if not name or not code or not grade or not teacher_id:
            raise InvalidInputError("Name, code, grade, and teacherId are required")

        if await self.db_client.get_class_by_code(code):
            raise ConflictError("Class with this code already exists")
        await self._verify_teacher(teacher_id)

        new_class = SchoolClass(
            id=uuid4(),
            name=name,
            code=code,
            grade=grade,
            teacher_id=teacher_id,
            academic_year=academic_year,
            semester=semester,
            description=description,
        )
        try:
            created = await self.db_client.add_class(new_class)
        except asyncpg.UniqueViolationError as e:
            raise ConflictError("Class with this code already exists") from e

        logger.info(f"Class {created.code} ({created.id}) created.")
        return created

    async def update_class(self, class_id: UUID, changes: Dict[str, Any]) -> SchoolClass:
        """Applies the non-None values of ``changes``. The class code is immutable."""
        existing = await self.db_client.get_class(class_id)
        if not existing:
            raise NotFoundError("Class not found")

        changes = {k: v for k, v in changes.items() if v is not None and k != "code"}
        if "teacher_id" in changes:
            await self._verify_teacher(changes["teacher_id"])

        updated = await self.db_client.update_class(existing.model_copy(update=changes))
        if updated is None:
            raise NotFoundError("Class not found")
        logger.info(f"Class {class_id} updated: {sorted(changes)}")
        return updated

    async def delete_class(self, class_id: UUID):
        deleted_id = await self.db_client.delete_class(class_id)
        if deleted_id is None:
            raise NotFoundError("Class not found")
        logger.info(f"Class {class_id} deleted.")
