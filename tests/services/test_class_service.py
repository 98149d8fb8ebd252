import uuid

import pytest

from app.records.services.class_service import ClassService
from app.records.services.enrollment_service import EnrollmentService
from app.records.services.errors import ConflictError, InvalidInputError, NotFoundError


@pytest.fixture
def service(fake_db) -> ClassService:
    return ClassService(db_client=fake_db)


@pytest.mark.asyncio
class TestClassService:

    async def test_create_class(self, service, fake_db, teacher_user):
        created = await service.create_class(name="Biology", code="BIO-1", grade="10", teacher_id=teacher_user.id)

        assert created.code == "BIO-1"
        assert created.is_active
        assert created.id in fake_db.classes

    async def test_duplicate_code_is_a_conflict(self, service, school_class, teacher_user):
        with pytest.raises(ConflictError, match="Class with this code already exists"):
            await service.create_class(name="Maths again", code=school_class.code, grade="9", teacher_id=teacher_user.id)

    async def test_teacher_must_exist_and_be_a_teacher(self, service, admin_user):
        with pytest.raises(InvalidInputError, match="Invalid teacher ID"):
            await service.create_class(name="Art", code="ART-1", grade="9", teacher_id=uuid.uuid4())
        with pytest.raises(InvalidInputError, match="Invalid teacher ID"):
            await service.create_class(name="Art", code="ART-1", grade="9", teacher_id=admin_user.id)

    async def test_missing_fields(self, service, teacher_user):
        with pytest.raises(InvalidInputError):
            await service.create_class(name="", code="X", grade="9", teacher_id=teacher_user.id)

    async def test_get_class_returns_summary_and_enrollments(self, service, fake_db, school_class, student):
        await EnrollmentService(db_client=fake_db).enroll(school_class.id, student.id)

        summary, enrollments = await service.get_class(school_class.id)

        assert summary.teacher_name == "Grace Hopper"
        assert summary.student_count == 1
        assert [e.student_id for e in enrollments] == [student.id]

    async def test_get_unknown_class(self, service):
        with pytest.raises(NotFoundError, match="Class not found"):
            await service.get_class(uuid.uuid4())

    async def test_update_ignores_code_and_none_values(self, service, school_class):
        updated = await service.update_class(school_class.id, {"name": "Algebra", "code": "NEW-CODE", "grade": None})

        assert updated.name == "Algebra"
        assert updated.code == "MATH-101"
        assert updated.grade == "9"

    async def test_update_rejects_non_teacher(self, service, school_class, student_user, fake_db):
        fake_db.seed_user(student_user)
        with pytest.raises(InvalidInputError):
            await service.update_class(school_class.id, {"teacher_id": student_user.id})

    async def test_delete_class_cascades_enrollments(self, service, fake_db, school_class, student):
        await EnrollmentService(db_client=fake_db).enroll(school_class.id, student.id)

        await service.delete_class(school_class.id)

        assert school_class.id not in fake_db.classes
        assert fake_db.enrollments == {}
        with pytest.raises(NotFoundError):
            await service.delete_class(school_class.id)
