import logging
from datetime import date
from pathlib import Path
from typing import List, Optional
from uuid import UUID
import asyncpg
from ..models.db_models import (
    User, UserCredentials, Student, StudentProfile, SchoolClass, ClassSummary,
    Enrollment, EnrollmentDetail, AttendanceRecord, AttendanceDetail, AttendanceEntry,
    Performance, Lesson, Event, Note
)

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")

_CLASS_SUMMARY_SELECT = """
    SELECT c.*,
           NULLIF(CONCAT_WS(' ', u.first_name, u.last_name), '') AS teacher_name,
           u.email AS teacher_email,
           (SELECT COUNT(*) FROM Enrollments e WHERE e.class_id = c.id) AS student_count
    FROM Classes c
    JOIN Users u ON u.id = c.teacher_id
"""

_ENROLLMENT_DETAIL_SELECT = """
    SELECT e.*,
           s.student_number,
           NULLIF(CONCAT_WS(' ', u.first_name, u.last_name), '') AS student_name,
           c.name AS class_name,
           c.code AS class_code
    FROM Enrollments e
    JOIN Students s ON s.id = e.student_id
    JOIN Users u ON u.id = s.user_id
    JOIN Classes c ON c.id = e.class_id
"""

_STUDENT_PROFILE_SELECT = """
    SELECT s.*, u.email, u.first_name, u.last_name, u.phone, u.address, u.is_active
    FROM Students s
    JOIN Users u ON u.id = s.user_id
"""


class AsyncPostgresClient:
    """
    PostgreSQL client that owns every query the application runs.

    This is the transactional store behind the services: uniqueness and
    foreign-key constraints live in the schema, and multi-row writes run
    inside explicit transactions. Errors from asyncpg are propagated to the
    service layer untouched.
    """
    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def create_schema(self):
        """Creates all tables and constraints if they do not exist yet."""
        async with self._pool.acquire() as connection:
            await connection.execute(SCHEMA_PATH.read_text())

    # ===== Users =====

    async def get_user(self, user_id: UUID) -> Optional[User]:
        query = "SELECT * FROM Users WHERE id = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, user_id)
            return User(**record) if record else None

    async def get_user_credentials(self, email: str) -> Optional[UserCredentials]:
        """Returns the user with its password hash, for login only."""
        query = "SELECT * FROM Users WHERE lower(email) = lower($1);"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, email)
            return UserCredentials(**record) if record else None

    async def email_exists(self, email: str) -> bool:
        query = "SELECT EXISTS(SELECT 1 FROM Users WHERE lower(email) = lower($1));"
        async with self._pool.acquire() as connection:
            return await connection.fetchval(query, email)

    async def add_user(self, user: User, password_hash: str):
        query = """
            INSERT INTO Users (id, email, password_hash, role, first_name, last_name, phone, address, is_active)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9);
        """
        async with self._pool.acquire() as connection:
            await connection.execute(
                query, user.id, user.email, password_hash, user.role.value,
                user.first_name, user.last_name, user.phone, user.address, user.is_active
            )

    # ===== Students =====

    async def get_student(self, student_id: UUID) -> Optional[Student]:
        query = "SELECT * FROM Students WHERE id = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, student_id)
            return Student(**record) if record else None

    async def get_student_profile(self, student_id: UUID) -> Optional[StudentProfile]:
        query = _STUDENT_PROFILE_SELECT + " WHERE s.id = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, student_id)
            return StudentProfile(**record) if record else None

    async def list_student_profiles(self) -> List[StudentProfile]:
        query = _STUDENT_PROFILE_SELECT + " ORDER BY s.created_at DESC;"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query)
            return [StudentProfile(**record) for record in records]

    async def add_student(self, user: User, password_hash: str, student: Student):
        """Creates the user row and its student row in a single transaction."""
        user_query = """
            INSERT INTO Users (id, email, password_hash, role, first_name, last_name, phone, address, is_active)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9);
        """
        student_query = """
            INSERT INTO Students (id, user_id, student_number, grade, enrollment_date)
            VALUES ($1, $2, $3, $4, COALESCE($5, now()));
        """
        async with self._pool.acquire() as connection:
            async with connection.transaction():
                await connection.execute(
                    user_query, user.id, user.email, password_hash, user.role.value,
                    user.first_name, user.last_name, user.phone, user.address, user.is_active
                )
                await connection.execute(
                    student_query, student.id, student.user_id, student.student_number,
                    student.grade, student.enrollment_date
                )

    async def update_student_profile(self, profile: StudentProfile):
        """Writes the student's grade and the owning user's profile fields atomically."""
        async with self._pool.acquire() as connection:
            async with connection.transaction():
                await connection.execute(
                    "UPDATE Students SET grade = $2 WHERE id = $1;",
                    profile.id, profile.grade
                )
                await connection.execute(
                    "UPDATE Users SET first_name = $2, last_name = $3, phone = $4, address = $5, is_active = $6 WHERE id = $1;",
                    profile.user_id, profile.first_name, profile.last_name, profile.phone, profile.address, profile.is_active
                )

    async def delete_student(self, student_id: UUID) -> Optional[UUID]:
        """Deletes the student's user; the student row and its dependents cascade."""
        query = """
            DELETE FROM Users WHERE id = (SELECT user_id FROM Students WHERE id = $1)
            RETURNING id;
        """
        async with self._pool.acquire() as connection:
            return await connection.fetchval(query, student_id)

    # ===== Classes =====

    async def get_class(self, class_id: UUID) -> Optional[SchoolClass]:
        query = "SELECT * FROM Classes WHERE id = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, class_id)
            return SchoolClass(**record) if record else None

    async def get_class_by_code(self, code: str) -> Optional[SchoolClass]:
        query = "SELECT * FROM Classes WHERE code = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, code)
            return SchoolClass(**record) if record else None

    async def get_class_summary(self, class_id: UUID) -> Optional[ClassSummary]:
        query = _CLASS_SUMMARY_SELECT + " WHERE c.id = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, class_id)
            return ClassSummary(**record) if record else None

    async def list_class_summaries(self) -> List[ClassSummary]:
        query = _CLASS_SUMMARY_SELECT + " ORDER BY c.created_at DESC;"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query)
            return [ClassSummary(**record) for record in records]

    async def add_class(self, school_class: SchoolClass) -> SchoolClass:
        query = """
            INSERT INTO Classes (id, name, code, grade, teacher_id, academic_year, semester, description, is_active)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING *;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(
                query, school_class.id, school_class.name, school_class.code, school_class.grade,
                school_class.teacher_id, school_class.academic_year, school_class.semester,
                school_class.description, school_class.is_active
            )
            return SchoolClass(**record)

    async def update_class(self, school_class: SchoolClass) -> Optional[SchoolClass]:
        query = """
            UPDATE Classes
            SET name = $2, grade = $3, teacher_id = $4, academic_year = $5,
                semester = $6, description = $7, is_active = $8
            WHERE id = $1
            RETURNING *;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(
                query, school_class.id, school_class.name, school_class.grade, school_class.teacher_id,
                school_class.academic_year, school_class.semester, school_class.description,
                school_class.is_active
            )
            return SchoolClass(**record) if record else None

    async def delete_class(self, class_id: UUID) -> Optional[UUID]:
        query = "DELETE FROM Classes WHERE id = $1 RETURNING id;"
        async with self._pool.acquire() as connection:
            return await connection.fetchval(query, class_id)

    # ===== Enrollments =====

    async def get_enrollment(self, class_id: UUID, student_id: UUID) -> Optional[Enrollment]:
        query = "SELECT * FROM Enrollments WHERE class_id = $1 AND student_id = $2;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, class_id, student_id)
            return Enrollment(**record) if record else None

    async def add_enrollment(self, enrollment: Enrollment) -> Optional[Enrollment]:
        """
        Inserts the enrollment unless one already exists for the (student, class) pair.
        Returns None when the unique constraint rejected the row.
        """
        query = """
            INSERT INTO Enrollments (id, student_id, class_id, status)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT ON CONSTRAINT enrollments_student_class_key DO NOTHING
            RETURNING *;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(
                query, enrollment.id, enrollment.student_id, enrollment.class_id, enrollment.status.value
            )
            return Enrollment(**record) if record else None

    async def delete_enrollment(self, class_id: UUID, student_id: UUID) -> Optional[UUID]:
        query = "DELETE FROM Enrollments WHERE class_id = $1 AND student_id = $2 RETURNING id;"
        async with self._pool.acquire() as connection:
            return await connection.fetchval(query, class_id, student_id)

    async def list_enrollments(self, class_id: Optional[UUID] = None, student_id: Optional[UUID] = None) -> List[EnrollmentDetail]:
        conditions, params = [], []
        if class_id is not None:
            params.append(class_id)
            conditions.append(f"e.class_id = ${len(params)}")
        if student_id is not None:
            params.append(student_id)
            conditions.append(f"e.student_id = ${len(params)}")
        where = f" WHERE {' AND '.join(conditions)}" if conditions else ""
        query = _ENROLLMENT_DETAIL_SELECT + where + " ORDER BY e.enrolled_at;"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query, *params)
            return [EnrollmentDetail(**record) for record in records]

    # ===== Attendance =====

    async def upsert_attendance_batch(self, class_id: UUID, day: date, entries: List[AttendanceEntry], new_ids: List[UUID]) -> List[AttendanceRecord]:
        """
        Creates or overwrites one attendance row per entry, keyed by
        (student_id, class_id, date), inside a single transaction.

        Any failing statement aborts the transaction, so either every entry is
        written or none is. ``new_ids`` supplies the primary key used when a
        row does not exist yet.
        """
        query = """
            INSERT INTO Attendance (id, student_id, class_id, date, status, notes)
            VALUES ($1, $2, $3, $4, $5, $6)
            ON CONFLICT ON CONSTRAINT attendance_student_class_date_key DO UPDATE SET
                status = EXCLUDED.status,
                notes = EXCLUDED.notes,
                updated_at = now()
            RETURNING *;
        """
        written = []
        async with self._pool.acquire() as connection:
            async with connection.transaction():
                for new_id, entry in zip(new_ids, entries):
                    record = await connection.fetchrow(
                        query, new_id, entry.student_id, class_id, day, entry.status.value, entry.notes
                    )
                    written.append(AttendanceRecord(**record))
        return written

    async def query_attendance(
        self,
        class_id: Optional[UUID] = None,
        student_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> List[AttendanceDetail]:
        """Filtered attendance scan; every filter is optional and they combine with AND."""
        conditions, params = [], []
        if class_id is not None:
            params.append(class_id)
            conditions.append(f"a.class_id = ${len(params)}")
        if student_id is not None:
            params.append(student_id)
            conditions.append(f"a.student_id = ${len(params)}")
        if start_date is not None:
            params.append(start_date)
            conditions.append(f"a.date >= ${len(params)}")
        if end_date is not None:
            params.append(end_date)
            conditions.append(f"a.date <= ${len(params)}")

        query = """
            SELECT a.*,
                   NULLIF(CONCAT_WS(' ', u.first_name, u.last_name), '') AS student_name,
                   c.name AS class_name,
                   c.code AS class_code
            FROM Attendance a
            JOIN Students s ON s.id = a.student_id
            JOIN Users u ON u.id = s.user_id
            JOIN Classes c ON c.id = a.class_id
        """
        if conditions:
            query += f" WHERE {' AND '.join(conditions)}"
        query += " ORDER BY a.date DESC, a.created_at DESC"
        if limit is not None:
            params.append(limit)
            query += f" LIMIT ${len(params)}"

        async with self._pool.acquire() as connection:
            records = await connection.fetch(query + ";", *params)
            return [AttendanceDetail(**record) for record in records]

    # ===== Performance =====

    async def add_performance(self, result: Performance) -> Performance:
        query = """
            INSERT INTO Performance (id, student_id, class_id, subject, mastery_level, grade,
                                     assessment_type, max_score, achieved_score, assessment_date)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, COALESCE($10, now()))
            RETURNING *;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(
                query, result.id, result.student_id, result.class_id, result.subject,
                result.mastery_level, result.grade, result.assessment_type, result.max_score,
                result.achieved_score, result.assessment_date
            )
            return Performance(**record)

    async def list_performance(self, student_id: UUID, limit: Optional[int] = None) -> List[Performance]:
        query = "SELECT * FROM Performance WHERE student_id = $1 ORDER BY assessment_date DESC"
        params = [student_id]
        if limit is not None:
            query += " LIMIT $2"
            params.append(limit)
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query + ";", *params)
            return [Performance(**record) for record in records]

    # ===== Lessons =====

    async def get_lesson(self, lesson_id: UUID) -> Optional[Lesson]:
        query = "SELECT * FROM Lessons WHERE id = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, lesson_id)
            return Lesson(**record) if record else None

    async def list_lessons(self, class_id: Optional[UUID] = None) -> List[Lesson]:
        async with self._pool.acquire() as connection:
            if class_id is not None:
                records = await connection.fetch(
                    "SELECT * FROM Lessons WHERE class_id = $1 ORDER BY start_time DESC;", class_id
                )
            else:
                records = await connection.fetch("SELECT * FROM Lessons ORDER BY start_time DESC;")
            return [Lesson(**record) for record in records]

    async def add_lesson(self, lesson: Lesson) -> Lesson:
        query = """
            INSERT INTO Lessons (id, class_id, teacher_id, title, subject, start_time, duration_minutes,
                                 lesson_type, description, location, materials, homework, is_completed)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13)
            RETURNING *;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(
                query, lesson.id, lesson.class_id, lesson.teacher_id, lesson.title, lesson.subject,
                lesson.start_time, lesson.duration_minutes, lesson.lesson_type, lesson.description,
                lesson.location, lesson.materials, lesson.homework, lesson.is_completed
            )
            return Lesson(**record)

    async def update_lesson(self, lesson: Lesson) -> Optional[Lesson]:
        query = """
            UPDATE Lessons
            SET title = $2, subject = $3, start_time = $4, duration_minutes = $5, lesson_type = $6,
                description = $7, location = $8, materials = $9, homework = $10, is_completed = $11
            WHERE id = $1
            RETURNING *;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(
                query, lesson.id, lesson.title, lesson.subject, lesson.start_time, lesson.duration_minutes,
                lesson.lesson_type, lesson.description, lesson.location, lesson.materials,
                lesson.homework, lesson.is_completed
            )
            return Lesson(**record) if record else None

    async def delete_lesson(self, lesson_id: UUID) -> Optional[UUID]:
        query = "DELETE FROM Lessons WHERE id = $1 RETURNING id;"
        async with self._pool.acquire() as connection:
            return await connection.fetchval(query, lesson_id)

    # ===== Events =====

    async def list_events(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> List[Event]:
        conditions, params = [], []
        if start_date is not None:
            params.append(start_date)
            conditions.append(f"event_date >= ${len(params)}")
        if end_date is not None:
            params.append(end_date)
            conditions.append(f"event_date <= ${len(params)}")
        query = "SELECT * FROM Events"
        if conditions:
            query += f" WHERE {' AND '.join(conditions)}"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query + " ORDER BY event_date ASC;", *params)
            return [Event(**record) for record in records]

    async def add_event(self, event: Event) -> Event:
        query = """
            INSERT INTO Events (id, title, description, event_date, event_time, duration_minutes,
                                location, is_all_day, created_by)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING *;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(
                query, event.id, event.title, event.description, event.event_date, event.event_time,
                event.duration_minutes, event.location, event.is_all_day, event.created_by
            )
            return Event(**record)

    async def delete_event(self, event_id: UUID) -> Optional[UUID]:
        query = "DELETE FROM Events WHERE id = $1 RETURNING id;"
        async with self._pool.acquire() as connection:
            return await connection.fetchval(query, event_id)

    # ===== Notes =====

    async def get_note(self, note_id: UUID) -> Optional[Note]:
        query = "SELECT * FROM Notes WHERE id = $1;"
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(query, note_id)
            return Note(**record) if record else None

    async def list_notes(self, user_id: UUID) -> List[Note]:
        query = "SELECT * FROM Notes WHERE user_id = $1 ORDER BY is_pinned DESC, updated_at DESC;"
        async with self._pool.acquire() as connection:
            records = await connection.fetch(query, user_id)
            return [Note(**record) for record in records]

    async def add_note(self, note: Note) -> Note:
        query = """
            INSERT INTO Notes (id, user_id, title, content, color, priority, is_pinned)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            RETURNING *;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(
                query, note.id, note.user_id, note.title, note.content, note.color,
                note.priority, note.is_pinned
            )
            return Note(**record)

    async def update_note(self, note: Note) -> Optional[Note]:
        query = """
            UPDATE Notes
            SET title = $2, content = $3, color = $4, priority = $5, is_pinned = $6, updated_at = now()
            WHERE id = $1
            RETURNING *;
        """
        async with self._pool.acquire() as connection:
            record = await connection.fetchrow(
                query, note.id, note.title, note.content, note.color, note.priority, note.is_pinned
            )
            return Note(**record) if record else None

    async def delete_note(self, note_id: UUID) -> Optional[UUID]:
        query = "DELETE FROM Notes WHERE id = $1 RETURNING id;"
        async with self._pool.acquire() as connection:
            return await connection.fetchval(query, note_id)
