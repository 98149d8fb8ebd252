from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from .common import CamelModel, to_day
from .attendance import AttendanceRecordResponse
from .classes import EnrollmentResponse


# --- Students ---

class StudentCreateRequest(CamelModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    grade: str = Field(..., min_length=1)
    password: Optional[str] = Field(None, min_length=6, description="Defaults to the configured initial password.")
    student_number: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class StudentUpdateRequest(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    grade: Optional[str] = None
    is_active: Optional[bool] = None


class StudentResponse(CamelModel):
    id: UUID
    user_id: UUID
    student_number: str
    grade: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool
    enrollment_date: Optional[datetime] = None


class PerformanceResponse(CamelModel):
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


class StudentDetailResponse(StudentResponse):
    enrollments: List[EnrollmentResponse] = []
    recent_attendance: List[AttendanceRecordResponse] = []
    recent_performance: List[PerformanceResponse] = []


# --- Performance ---

class PerformanceCreateRequest(CamelModel):
    student_id: UUID
    class_id: UUID
    subject: str = Field(..., min_length=1)
    mastery_level: str = Field(..., min_length=1)
    grade: Optional[str] = None
    assessment_type: Optional[str] = None
    max_score: Optional[float] = Field(None, ge=0)
    achieved_score: Optional[float] = Field(None, ge=0)


# --- Lessons ---

class LessonCreateRequest(CamelModel):
    class_id: UUID
    teacher_id: UUID
    title: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    start_time: datetime
    duration_minutes: int = Field(..., gt=0)
    lesson_type: str = Field(..., min_length=1)
    description: Optional[str] = None
    location: Optional[str] = None
    materials: Optional[str] = None
    homework: Optional[str] = None


class LessonUpdateRequest(CamelModel):
    title: Optional[str] = None
    subject: Optional[str] = None
    start_time: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(None, gt=0)
    lesson_type: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    materials: Optional[str] = None
    homework: Optional[str] = None
    is_completed: Optional[bool] = None


class LessonResponse(CamelModel):
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
    is_completed: bool


# --- Events ---

class EventCreateRequest(CamelModel):
    title: str = Field(..., min_length=1)
    event_date: date
    description: Optional[str] = None
    event_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}(:\d{2})?$", description="HH:MM local time.")
    duration_minutes: Optional[int] = Field(None, gt=0)
    location: Optional[str] = None
    is_all_day: bool = False

    @field_validator("event_date", mode="before")
    def truncate_to_day(cls, v):
        return to_day(v)


class EventResponse(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    event_date: date
    event_time: Optional[str] = None
    duration_minutes: Optional[int] = None
    location: Optional[str] = None
    is_all_day: bool
    created_by: UUID


# --- Notes ---

class NoteCreateRequest(CamelModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    color: Optional[str] = None
    priority: Optional[str] = None
    is_pinned: bool = False


class NoteUpdateRequest(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    color: Optional[str] = None
    priority: Optional[str] = None
    is_pinned: Optional[bool] = None


class NoteResponse(CamelModel):
    id: UUID
    user_id: UUID
    title: str
    content: str
    color: Optional[str] = None
    priority: Optional[str] = None
    is_pinned: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
