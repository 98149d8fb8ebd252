# tests/conftest.py
import asyncio
import sys
import uuid

import pytest

from app.records.models.db_models import Role, SchoolClass, Student, User
from tests.fakes import FakeQueryLayer

# This is the crucial fix for Windows asyncio issues with pytest.
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


# --- Shared users and records ---

@pytest.fixture
def admin_user() -> User:
    return User(id=uuid.uuid4(), email="admin@school.test", role=Role.ADMIN, first_name="Ada", last_name="Admin")

@pytest.fixture
def teacher_user() -> User:
    return User(id=uuid.uuid4(), email="teacher@school.test", role=Role.TEACHER, first_name="Grace", last_name="Hopper")

@pytest.fixture
def student_user() -> User:
    return User(id=uuid.uuid4(), email="student@school.test", role=Role.STUDENT, first_name="Alan", last_name="Turing")

@pytest.fixture
def fake_db(admin_user, teacher_user) -> FakeQueryLayer:
    """An empty in-memory store that already knows the admin and the teacher."""
    db = FakeQueryLayer()
    db.seed_user(admin_user)
    db.seed_user(teacher_user)
    return db

@pytest.fixture
def school_class(fake_db, teacher_user) -> SchoolClass:
    return fake_db.seed_class(SchoolClass(
        id=uuid.uuid4(), name="Mathematics", code="MATH-101", grade="9", teacher_id=teacher_user.id
    ))

@pytest.fixture
def student(fake_db, student_user) -> Student:
    return fake_db.seed_student(student_user, Student(
        id=uuid.uuid4(), user_id=student_user.id, student_number="STU000001", grade="9"
    ))

@pytest.fixture
def make_student(fake_db):
    """Factory for additional enrolled-or-not students."""
    counter = iter(range(2, 1000))

    def _make(first_name: str = "Extra") -> Student:
        n = next(counter)
        user = User(id=uuid.uuid4(), email=f"student{n}@school.test", role=Role.STUDENT, first_name=first_name, last_name=f"#{n}")
        return fake_db.seed_student(user, Student(id=uuid.uuid4(), user_id=user.id, student_number=f"STU{n:06d}", grade="9"))

    return _make
