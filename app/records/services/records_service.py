"""
Services for the simple owned records: performance results, lessons, events
and personal notes. None of them carries a rule beyond the existence of
the rows it references and, for notes, ownership by the calling user.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

import asyncpg

from ..db.db_client import AsyncPostgresClient
from ..models.db_models import Event, Lesson, Note, Performance
from .errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


class PerformanceService:
    def __init__(self, db_client: AsyncPostgresClient):
        self.db_client = db_client

    async def add_result(
        self,
        student_id: UUID,
        class_id: UUID,
        subject: str,
        mastery_level: str,
        grade: Optional[str] = None,
        assessment_type: Optional[str] = None,
        max_score: Optional[float] = None,
        achieved_score: Optional[float] = None,
    ) -> Performance:
        if not student_id or not class_id or not subject or not mastery_level:
            raise InvalidInputError("Student ID, Class ID, Subject, and Mastery Level are required")

        result = Performance(
            id=uuid4(),
            student_id=student_id,
            class_id=class_id,
            subject=subject,
            mastery_level=mastery_level,
            grade=grade,
            assessment_type=assessment_type,
            max_score=max_score,
            achieved_score=achieved_score,
        )
        try:
            return await self.db_client.add_performance(result)
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError("Student or class not found") from e

    async def list_for_student(self, student_id: UUID) -> List[Performance]:
        return await self.db_client.list_performance(student_id)


class LessonService:
    def __init__(self, db_client: AsyncPostgresClient):
        self.db_client = db_client

    async def list_lessons(self, class_id: Optional[UUID] = None) -> List[Lesson]:
        return await self.db_client.list_lessons(class_id)

    async def create_lesson(
        self,
        class_id: UUID,
        teacher_id: UUID,
        title: str,
        subject: str,
        start_time: datetime,
        duration_minutes: int,
        lesson_type: str,
        **optional: Any,
    ) -> Lesson:
        if not all([class_id, teacher_id, title, subject, start_time, duration_minutes, lesson_type]):
            raise InvalidInputError(
                "classId, teacherId, title, subject, startTime, durationMinutes, and lessonType are required"
            )
        if not await self.db_client.get_class(class_id):
            raise NotFoundError("Class not found")
        if not await self.db_client.get_user(teacher_id):
            raise NotFoundError("Teacher not found")

        lesson = Lesson(
            id=uuid4(),
            class_id=class_id,
            teacher_id=teacher_id,
            title=title,
            subject=subject,
            start_time=start_time,
            duration_minutes=duration_minutes,
            lesson_type=lesson_type,
            **{k: v for k, v in optional.items() if v is not None},
        )
        created = await self.db_client.add_lesson(lesson)
        logger.info(f"Lesson {created.id} created for class {class_id}.")
        return created

    async def update_lesson(self, lesson_id: UUID, changes: Dict[str, Any]) -> Lesson:
        existing = await self.db_client.get_lesson(lesson_id)
        if not existing:
            raise NotFoundError("Lesson not found")

        immutable = {"id", "class_id", "teacher_id"}
        changes = {k: v for k, v in changes.items() if v is not None and k not in immutable}
        updated = await self.db_client.update_lesson(existing.model_copy(update=changes))
        if updated is None:
            raise NotFoundError("Lesson not found")
        return updated

    async def delete_lesson(self, lesson_id: UUID):
        if await self.db_client.delete_lesson(lesson_id) is None:
            raise NotFoundError("Lesson not found")


class EventService:
    def __init__(self, db_client: AsyncPostgresClient):
        self.db_client = db_client

    async def list_events(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> List[Event]:
        return await self.db_client.list_events(start_date, end_date)

    async def create_event(self, creator_id: UUID, title: str, event_date: date, **optional: Any) -> Event:
        if not title or not event_date:
            raise InvalidInputError("Title and date are required")

        event = Event(
            id=uuid4(),
            title=title,
            event_date=event_date,
            created_by=creator_id,
            **{k: v for k, v in optional.items() if v is not None},
        )
        return await self.db_client.add_event(event)

    async def delete_event(self, event_id: UUID):
        if await self.db_client.delete_event(event_id) is None:
            raise NotFoundError("Event not found")


class NoteService:
    """Personal notes. Every operation is scoped to the calling user."""

    def __init__(self, db_client: AsyncPostgresClient):
        self.db_client = db_client

    async def _get_own_note(self, note_id: UUID, user_id: UUID) -> Note:
        note = await self.db_client.get_note(note_id)
        # Someone else's note is reported exactly like a missing one.
        if not note or note.user_id != user_id:
            raise NotFoundError("Note not found")
        return note

    async def list_notes(self, user_id: UUID) -> List[Note]:
        return await self.db_client.list_notes(user_id)

    async def create_note(self, user_id: UUID, title: str, content: str, **optional: Any) -> Note:
        if not title or not content:
            raise InvalidInputError("Title and content are required")

        note = Note(
            id=uuid4(),
            user_id=user_id,
            title=title,
            content=content,
            **{k: v for k, v in optional.items() if v is not None},
        )
        return await self.db_client.add_note(note)

    async def update_note(self, note_id: UUID, user_id: UUID, changes: Dict[str, Any]) -> Note:
        existing = await self._get_own_note(note_id, user_id)
        changes = {k: v for k, v in changes.items() if v is not None and k not in {"id", "user_id"}}
        updated = await self.db_client.update_note(existing.model_copy(update=changes))
        if updated is None:
            raise NotFoundError("Note not found")
        return updated

    async def delete_note(self, note_id: UUID, user_id: UUID):
        await self._get_own_note(note_id, user_id)
        if await self.db_client.delete_note(note_id) is None:
            raise NotFoundError("Note not found")
