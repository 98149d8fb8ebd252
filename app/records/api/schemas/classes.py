from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from ...models.db_models import EnrollmentStatus
from .common import CamelModel


class ClassCreateRequest(CamelModel):
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, description="Unique class code, e.g. 'MATH-101'.")
    grade: str = Field(..., min_length=1)
    teacher_id: UUID
    academic_year: Optional[str] = None
    semester: Optional[str] = None
    description: Optional[str] = None


class ClassUpdateRequest(CamelModel):
    """Every field is optional; omitted fields keep their current value."""
    name: Optional[str] = None
    grade: Optional[str] = None
    teacher_id: Optional[UUID] = None
    academic_year: Optional[str] = None
    semester: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ClassResponse(CamelModel):
    id: UUID
    name: str
    code: str
    grade: str
    teacher_id: UUID
    academic_year: Optional[str] = None
    semester: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class ClassSummaryResponse(ClassResponse):
    teacher_name: Optional[str] = None
    teacher_email: Optional[str] = None
    student_count: int = 0


class EnrollRequest(CamelModel):
    student_id: UUID = Field(..., description="The student to enroll.")


class EnrollmentResponse(CamelModel):
    id: UUID
    student_id: UUID
    class_id: UUID
    status: EnrollmentStatus
    enrolled_at: Optional[datetime] = None
    student_number: Optional[str] = None
    student_name: Optional[str] = None
    class_name: Optional[str] = None
    class_code: Optional[str] = None


class ClassDetailResponse(ClassSummaryResponse):
    enrollments: List[EnrollmentResponse] = []
