from fastapi import APIRouter, Depends, Request, status
from typing import List
from uuid import UUID

from ..services.class_service import ClassService
from ..services.enrollment_service import EnrollmentService
from ..services.errors import ServiceError
from ..models.db_models import User
from .schemas.classes import (
    ClassCreateRequest, ClassUpdateRequest, ClassResponse, ClassSummaryResponse,
    ClassDetailResponse, EnrollRequest, EnrollmentResponse
)
from .schemas.common import MessageResponse
from .auth import gated_body, get_current_user, require
from .dependencies import get_class_service, get_enrollment_service
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

router = APIRouter(prefix="/classes", tags=["Classes"])

# === Classes ===

@router.get("", response_model=List[ClassSummaryResponse], summary="List all classes")
async def list_classes(user: User = Depends(get_current_user), service: ClassService = Depends(get_class_service)):
    return await service.list_classes()

@router.get("/{class_id}", response_model=ClassDetailResponse, summary="Get a class with its enrollments")
async def get_class(class_id: UUID, user: User = Depends(get_current_user), service: ClassService = Depends(get_class_service)):
    try:
        summary, enrollments = await service.get_class(class_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return ClassDetailResponse(**summary.model_dump(), enrollments=[EnrollmentResponse.model_validate(e) for e in enrollments])

@router.post("", response_model=ClassResponse, status_code=status.HTTP_201_CREATED, summary="Create a class")
@limiter.limit("30/minute")
async def create_class(
    request: Request,
    create_request: ClassCreateRequest,
    user: User = Depends(require("class:create")),
    service: ClassService = Depends(get_class_service)
):
    try:
        return await service.create_class(**create_request.model_dump())
    except ServiceError as e:
        raise to_http_exception(e)

@router.put("/{class_id}", response_model=ClassResponse, summary="Update a class")
@limiter.limit("30/minute")
async def update_class(
    request: Request,
    class_id: UUID,
    update_request: ClassUpdateRequest,
    user: User = Depends(require("class:update")),
    service: ClassService = Depends(get_class_service)
):
    try:
        return await service.update_class(class_id, update_request.model_dump(exclude_unset=True))
    except ServiceError as e:
        raise to_http_exception(e)

@router.delete("/{class_id}", response_model=MessageResponse, summary="Delete a class")
@limiter.limit("30/minute")
async def delete_class(
    request: Request,
    class_id: UUID,
    user: User = Depends(require("class:delete")),
    service: ClassService = Depends(get_class_service)
):
    try:
        await service.delete_class(class_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Class deleted successfully")

# === Enrollments ===

@router.get("/{class_id}/students", response_model=List[EnrollmentResponse], summary="List the enrollments of a class")
async def list_class_enrollments(
    class_id: UUID,
    user: User = Depends(get_current_user),
    service: EnrollmentService = Depends(get_enrollment_service)
):
    try:
        return await service.list_by_class(class_id)
    except ServiceError as e:
        raise to_http_exception(e)

@router.post("/{class_id}/enroll", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED, summary="Enroll a student in a class")
@limiter.limit("120/minute")
async def enroll_student(
    request: Request,
    class_id: UUID,
    enroll_request: EnrollRequest = Depends(gated_body("enrollment:create", EnrollRequest)),
    user: User = Depends(require("enrollment:create")),
    service: EnrollmentService = Depends(get_enrollment_service)
):
    try:
        return await service.enroll(class_id, enroll_request.student_id)
    except ServiceError as e:
        raise to_http_exception(e)

@router.delete("/{class_id}/students/{student_id}", response_model=MessageResponse, summary="Remove a student from a class")
@limiter.limit("120/minute")
async def unenroll_student(
    request: Request,
    class_id: UUID,
    student_id: UUID,
    user: User = Depends(require("enrollment:delete")),
    service: EnrollmentService = Depends(get_enrollment_service)
):
    try:
        await service.unenroll(class_id, student_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Student unenrolled successfully")
