from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional
from uuid import UUID

from ..services.records_service import LessonService
from ..services.errors import ServiceError
from ..models.db_models import User
from .schemas.records import LessonCreateRequest, LessonUpdateRequest, LessonResponse
from .schemas.common import MessageResponse
from .auth import get_current_user, require
from .dependencies import get_lesson_service
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

router = APIRouter(prefix="/lessons", tags=["Lessons"])


@router.get("", response_model=List[LessonResponse], summary="List lessons, optionally for one class")
async def get_lessons(
    class_id: Optional[UUID] = Query(None, alias="classId"),
    user: User = Depends(get_current_user),
    service: LessonService = Depends(get_lesson_service)
):
    return await service.list_lessons(class_id)


@router.post("", response_model=LessonResponse, status_code=status.HTTP_201_CREATED, summary="Create a lesson")
@limiter.limit("60/minute")
async def create_lesson(
    request: Request,
    create_request: LessonCreateRequest,
    user: User = Depends(require("lesson:create")),
    service: LessonService = Depends(get_lesson_service)
):
    try:
        return await service.create_lesson(**create_request.model_dump())
    except ServiceError as e:
        raise to_http_exception(e)


@router.put("/{lesson_id}", response_model=LessonResponse, summary="Update a lesson")
@limiter.limit("60/minute")
async def update_lesson(
    request: Request,
    lesson_id: UUID,
    update_request: LessonUpdateRequest,
    user: User = Depends(require("lesson:update")),
    service: LessonService = Depends(get_lesson_service)
):
    try:
        return await service.update_lesson(lesson_id, update_request.model_dump(exclude_unset=True))
    except ServiceError as e:
        raise to_http_exception(e)


@router.delete("/{lesson_id}", response_model=MessageResponse, summary="Delete a lesson")
@limiter.limit("60/minute")
async def delete_lesson(
    request: Request,
    lesson_id: UUID,
    user: User = Depends(require("lesson:delete")),
    service: LessonService = Depends(get_lesson_service)
):
    try:
        await service.delete_lesson(lesson_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Lesson deleted successfully")
