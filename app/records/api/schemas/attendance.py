from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from ...models.db_models import AttendanceStatus
from .common import CamelModel, to_day


class AttendanceRecordInput(CamelModel):
    """One roster line: a student's status for the day."""
    student_id: UUID = Field(..., description="The student being marked.")
    status: AttendanceStatus = Field(..., description="PRESENT, ABSENT, LATE or EXCUSED.")
    notes: Optional[str] = Field(None, description="Optional free-text remark.")


class MarkAttendanceRequest(CamelModel):
    """Request model for recording a whole class roster for one day."""
    class_id: UUID = Field(..., description="The class the roster belongs to.")
    date: date
    records: List[AttendanceRecordInput] = Field(..., min_length=1, description="At least one roster line.")

    @field_validator("date", mode="before")
    def truncate_to_day(cls, v):
        """Time of day is not part of the attendance key; keep only the calendar day."""
        return to_day(v)


class MarkAttendanceResponse(CamelModel):
    message: str
    count: int = Field(description="Number of attendance rows written.")


class AttendanceRecordResponse(CamelModel):
    """Response model for an attendance row, enriched with display names."""
    id: UUID
    student_id: UUID
    class_id: UUID
    date: date
    status: AttendanceStatus
    notes: Optional[str] = None
    student_name: Optional[str] = None
    class_name: Optional[str] = None
    class_code: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
