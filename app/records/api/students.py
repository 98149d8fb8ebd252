from fastapi import APIRouter, Depends, Request, status
from typing import List
from uuid import UUID

from ..services.student_service import StudentService
from ..services.enrollment_service import EnrollmentService
from ..services.errors import ServiceError
from ..models.db_models import User
from .schemas.records import StudentCreateRequest, StudentUpdateRequest, StudentResponse, StudentDetailResponse
from .schemas.classes import EnrollmentResponse
from .schemas.common import MessageResponse
from .auth import get_current_user, require
from .dependencies import get_student_service, get_enrollment_service
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

router = APIRouter(prefix="/students", tags=["Students"])


@router.get("", response_model=List[StudentResponse], summary="List all students")
async def list_students(user: User = Depends(get_current_user), service: StudentService = Depends(get_student_service)):
    return await service.list_students()


@router.get("/{student_id}", response_model=StudentDetailResponse, summary="Get a student with recent history")
async def get_student(student_id: UUID, user: User = Depends(get_current_user), service: StudentService = Depends(get_student_service)):
    try:
        return await service.get_student(student_id)
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/{student_id}/enrollments", response_model=List[EnrollmentResponse], summary="List a student's enrollments")
async def list_student_enrollments(
    student_id: UUID,
    user: User = Depends(get_current_user),
    service: EnrollmentService = Depends(get_enrollment_service)
):
    try:
        return await service.list_by_student(student_id)
    except ServiceError as e:
        raise to_http_exception(e)


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED, summary="Create a student account")
@limiter.limit("30/minute")
async def create_student(
    request: Request,
    create_request: StudentCreateRequest,
    user: User = Depends(require("student:create")),
    service: StudentService = Depends(get_student_service)
):
    try:
        return await service.create_student(**create_request.model_dump())
    except ServiceError as e:
        raise to_http_exception(e)


@router.put("/{student_id}", response_model=StudentResponse, summary="Update a student")
@limiter.limit("60/minute")
async def update_student(
    request: Request,
    student_id: UUID,
    update_request: StudentUpdateRequest,
    user: User = Depends(require("student:update")),
    service: StudentService = Depends(get_student_service)
):
    try:
        return await service.update_student(student_id, update_request.model_dump(exclude_unset=True))
    except ServiceError as e:
        raise to_http_exception(e)


@router.delete("/{student_id}", response_model=MessageResponse, summary="Delete a student and their account")
@limiter.limit("30/minute")
async def delete_student(
    request: Request,
    student_id: UUID,
    user: User = Depends(require("student:delete")),
    service: StudentService = Depends(get_student_service)
):
    try:
        await service.delete_student(student_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Student deleted successfully")
