from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from typing import List, Optional
from uuid import UUID

from ..services.attendance_service import AttendanceService
from ..services.errors import ServiceError
from ..models.db_models import AttendanceEntry, User
from .schemas.attendance import MarkAttendanceRequest, MarkAttendanceResponse, AttendanceRecordResponse
from .schemas.common import parse_day
from .auth import gated_body, get_current_user, require
from .dependencies import get_attendance_service
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

router = APIRouter(prefix="/attendance", tags=["Attendance"])


def _parse_optional_day(value: Optional[str], name: str):
    if value is None or value == "":
        return None
    try:
        return parse_day(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{name} must be an ISO-8601 date")


@router.get("", response_model=List[AttendanceRecordResponse], summary="Query attendance records")
@limiter.limit("120/minute")
async def get_attendance(
    request: Request,
    class_id: Optional[UUID] = Query(None, alias="classId"),
    student_id: Optional[UUID] = Query(None, alias="studentId"),
    start_date: Optional[str] = Query(None, alias="startDate", description="Inclusive lower bound (YYYY-MM-DD)."),
    end_date: Optional[str] = Query(None, alias="endDate", description="Inclusive upper bound (YYYY-MM-DD)."),
    user: User = Depends(get_current_user),
    service: AttendanceService = Depends(get_attendance_service)
):
    """All filters are optional and combine with AND. Newest dates first."""
    try:
        return await service.query(
            class_id=class_id,
            student_id=student_id,
            start_date=_parse_optional_day(start_date, "startDate"),
            end_date=_parse_optional_day(end_date, "endDate"),
        )
    except ServiceError as e:
        raise to_http_exception(e)


@router.post("", response_model=MarkAttendanceResponse, summary="Record attendance for a class roster")
@limiter.limit("60/minute")
async def mark_attendance(
    request: Request,
    mark_request: MarkAttendanceRequest = Depends(gated_body("attendance:mark", MarkAttendanceRequest)),
    user: User = Depends(require("attendance:mark")),
    service: AttendanceService = Depends(get_attendance_service)
):
    """
    Creates or overwrites one record per roster line for (student, class, date).
    The whole roster is saved in a single transaction: on any failure nothing is saved.
    """
    entries = [AttendanceEntry(**record.model_dump()) for record in mark_request.records]
    try:
        count = await service.mark_batch(mark_request.class_id, mark_request.date, entries)
    except ServiceError as e:
        raise to_http_exception(e)
    return MarkAttendanceResponse(message="Attendance recorded successfully", count=count)
