import uuid
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

import asyncpg
import pytest
import pytest_asyncio

from app.records.models.db_models import Lesson, Note, SchoolClass
from app.records.services.errors import InvalidInputError, NotFoundError
from app.records.services.records_service import EventService, LessonService, NoteService, PerformanceService


@pytest_asyncio.fixture
async def mock_db_client():
    """A bare AsyncMock client; each test sets the return values it needs."""
    return AsyncMock()


@pytest.mark.asyncio
class TestPerformanceService:

    async def test_add_result(self, mock_db_client):
        mock_db_client.add_performance.side_effect = lambda result: result
        service = PerformanceService(db_client=mock_db_client)

        result = await service.add_result(
            student_id=uuid.uuid4(), class_id=uuid.uuid4(), subject="Math", mastery_level="PROFICIENT", achieved_score=87
        )

        assert result.subject == "Math"
        mock_db_client.add_performance.assert_called_once()

    async def test_missing_subject(self, mock_db_client):
        with pytest.raises(InvalidInputError):
            await PerformanceService(db_client=mock_db_client).add_result(uuid.uuid4(), uuid.uuid4(), "", "BASIC")
        mock_db_client.add_performance.assert_not_called()

    async def test_unknown_reference(self, mock_db_client):
        mock_db_client.add_performance.side_effect = asyncpg.ForeignKeyViolationError("missing")
        with pytest.raises(NotFoundError, match="Student or class not found"):
            await PerformanceService(db_client=mock_db_client).add_result(uuid.uuid4(), uuid.uuid4(), "Math", "BASIC")


@pytest.mark.asyncio
class TestLessonService:

    async def test_create_lesson_checks_class_and_teacher(self, mock_db_client, teacher_user):
        mock_db_client.get_class.return_value = None
        service = LessonService(db_client=mock_db_client)

        with pytest.raises(NotFoundError, match="Class not found"):
            await service.create_lesson(
                class_id=uuid.uuid4(), teacher_id=teacher_user.id, title="Fractions", subject="Math",
                start_time=datetime.now(timezone.utc), duration_minutes=45, lesson_type="LECTURE"
            )

    async def test_create_lesson(self, mock_db_client, teacher_user):
        class_id = uuid.uuid4()
        mock_db_client.get_class.return_value = SchoolClass(id=class_id, name="M", code="M-1", grade="9", teacher_id=teacher_user.id)
        mock_db_client.get_user.return_value = teacher_user
        mock_db_client.add_lesson.side_effect = lambda lesson: lesson

        lesson = await LessonService(db_client=mock_db_client).create_lesson(
            class_id=class_id, teacher_id=teacher_user.id, title="Fractions", subject="Math",
            start_time=datetime.now(timezone.utc), duration_minutes=45, lesson_type="LECTURE", location=None, homework="p. 12"
        )

        assert lesson.homework == "p. 12"
        assert lesson.location is None
        assert not lesson.is_completed

    async def test_update_keeps_owner_fields(self, mock_db_client, teacher_user):
        existing = Lesson(
            id=uuid.uuid4(), class_id=uuid.uuid4(), teacher_id=teacher_user.id, title="Old", subject="Math",
            start_time=datetime.now(timezone.utc), duration_minutes=45, lesson_type="LECTURE"
        )
        mock_db_client.get_lesson.return_value = existing
        mock_db_client.update_lesson.side_effect = lambda lesson: lesson

        updated = await LessonService(db_client=mock_db_client).update_lesson(
            existing.id, {"title": "New", "teacher_id": uuid.uuid4(), "is_completed": True}
        )

        assert updated.title == "New"
        assert updated.is_completed
        assert updated.teacher_id == teacher_user.id

    async def test_delete_unknown_lesson(self, mock_db_client):
        mock_db_client.delete_lesson.return_value = None
        with pytest.raises(NotFoundError, match="Lesson not found"):
            await LessonService(db_client=mock_db_client).delete_lesson(uuid.uuid4())


@pytest.mark.asyncio
class TestEventService:

    async def test_create_event_records_creator(self, mock_db_client, admin_user):
        mock_db_client.add_event.side_effect = lambda event: event

        event = await EventService(db_client=mock_db_client).create_event(
            creator_id=admin_user.id, title="Sports day", event_date=date(2024, 5, 10), is_all_day=True
        )

        assert event.created_by == admin_user.id
        assert event.is_all_day

    async def test_title_required(self, mock_db_client, admin_user):
        with pytest.raises(InvalidInputError, match="Title and date are required"):
            await EventService(db_client=mock_db_client).create_event(admin_user.id, "", date(2024, 5, 10))


@pytest.mark.asyncio
class TestNoteService:

    async def test_notes_are_private(self, fake_db, teacher_user, admin_user):
        service = NoteService(db_client=fake_db)
        note = await service.create_note(teacher_user.id, "Lesson plan", "Chapter 3")

        assert [n.id for n in await service.list_notes(teacher_user.id)] == [note.id]
        assert await service.list_notes(admin_user.id) == []
        with pytest.raises(NotFoundError, match="Note not found"):
            await service.update_note(note.id, admin_user.id, {"title": "mine now"})
        with pytest.raises(NotFoundError):
            await service.delete_note(note.id, admin_user.id)
        assert note.id in fake_db.notes

    async def test_owner_updates_and_deletes(self, fake_db, teacher_user):
        service = NoteService(db_client=fake_db)
        note = await service.create_note(teacher_user.id, "Todo", "grade essays", is_pinned=True)

        updated = await service.update_note(note.id, teacher_user.id, {"content": "done", "user_id": uuid.uuid4()})
        assert updated.content == "done"
        assert updated.user_id == teacher_user.id
        assert isinstance(updated, Note)

        await service.delete_note(note.id, teacher_user.id)
        assert fake_db.notes == {}
