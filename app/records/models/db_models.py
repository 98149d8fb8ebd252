# app/records/models/db_models.py

from pydantic import BaseModel, Field
from datetime import datetime, date
from enum import Enum
from typing import Optional
from uuid import UUID


class Role(str, Enum):
    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"


class EnrollmentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DROPPED = "DROPPED"
    COMPLETED = "COMPLETED"


class User(BaseModel):
    """
    Represents a user in the system, mapping to the 'Users' table.
    A resolved User is the subject every authorization check runs against.
    """
    id: UUID = Field(..., description="Primary key")
    email: str
    role: Role = Field(..., description="One of ADMIN, TEACHER, STUDENT")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True

    @property
    def full_name(self) -> str:
        names = [n for n in (self.first_name, self.last_name) if n]
        return " ".join(names) if names else self.email


class UserCredentials(User):
    """User row including the password hash. Never leaves the auth layer."""
    password_hash: str


class Student(BaseModel):
    """
    Represents a student, mapping to the 'Students' table.
    Each student belongs to exactly one user.
    """
    id: UUID
    user_id: UUID = Field(..., description="FK linking to the owning user")
    student_number: str
    grade: str
    enrollment_date: Optional[datetime] = None


class SchoolClass(BaseModel):
    """
    Represents a class, mapping to the 'Classes' table.
    """
    id: UUID
    name: str
    code: str = Field(..., description="Unique human-readable class code, e.g. 'MATH-101'")
    grade: str
    teacher_id: UUID = Field(..., description="FK linking to the teaching user")
    academic_year: Optional[str] = None
    semester: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class Enrollment(BaseModel):
    """
    Links one student to one class, mapping to the 'Enrollments' table.
    At most one row exists per (student_id, class_id).
    """
    id: UUID
    student_id: UUID
    class_id: UUID
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    enrolled_at: Optional[datetime] = None


class AttendanceRecord(BaseModel):
    """
    A student's attendance for one class on one calendar day, mapping to the
    'Attendance' table. (student_id, class_id, date) is the natural key.
    """
    id: UUID
    student_id: UUID
    class_id: UUID
    date: date
    status: AttendanceStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Performance(BaseModel):
    """A single assessment result, mapping to the 'Performance' table."""
    id: UUID
    student_id: UUID
    class_id: UUID
    subject: str
    mastery_level: str
    grade: Optional[str] = None
    assessment_type: Optional[str] = None
    max_score: Optional[float] = None
    achieved_score: Optional[float] = None
    assessment_date: Optional[datetime] = None


class Lesson(BaseModel):
    """A scheduled lesson of a class, mapping to the 'Lessons' table."""
    id: UUID
    class_id: UUID
    teacher_id: UUID
    title: str
    subject: str
    start_time: datetime
    duration_minutes: int
    lesson_type: str
    description: Optional[str] = None
    location: Optional[str] = None
    materials: Optional[str] = None
    homework: Optional[str] = None
    is_completed: bool = False


class Event(BaseModel):
    """A school calendar event, mapping to the 'Events' table."""
    id: UUID
    title: str
    description: Optional[str] = None
    event_date: date
    event_time: Optional[str] = None
    duration_minutes: Optional[int] = None
    location: Optional[str] = None
    is_all_day: bool = False
    created_by: UUID


class Note(BaseModel):
    """A personal note, mapping to the 'Notes' table. Visible only to its owner."""
    id: UUID
    user_id: UUID
    title: str
    content: str
    color: Optional[str] = None
    priority: Optional[str] = None
    is_pinned: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- Read models joined with related rows ---

class StudentProfile(Student):
    """Student row joined with its user's profile fields."""
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True


class ClassSummary(SchoolClass):
    """Class row enriched with the teacher's name and the number of enrollments."""
    teacher_name: Optional[str] = None
    teacher_email: Optional[str] = None
    student_count: int = 0


class EnrollmentDetail(Enrollment):
    """Enrollment enriched with the student's and class's display fields."""
    student_number: Optional[str] = None
    student_name: Optional[str] = None
    class_name: Optional[str] = None
    class_code: Optional[str] = None


class AttendanceDetail(AttendanceRecord):
    """Attendance record enriched with the student's name and the class name/code."""
    student_name: Optional[str] = None
    class_name: Optional[str] = None
    class_code: Optional[str] = None


# --- Write models ---

class AttendanceEntry(BaseModel):
    """One roster line of a batch attendance submission."""
    student_id: UUID
    status: AttendanceStatus
    notes: Optional[str] = None
