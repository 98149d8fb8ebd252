from fastapi import APIRouter, Depends, Request, status
from typing import List
from uuid import UUID

from ..services.records_service import PerformanceService
from ..services.errors import ServiceError
from ..models.db_models import User
from .schemas.records import PerformanceCreateRequest, PerformanceResponse
from .auth import get_current_user, require
from .dependencies import get_performance_service
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

router = APIRouter(prefix="/performance", tags=["Performance"])


@router.get("/student/{student_id}", response_model=List[PerformanceResponse], summary="List a student's results")
async def get_student_results(
    student_id: UUID,
    user: User = Depends(get_current_user),
    service: PerformanceService = Depends(get_performance_service)
):
    return await service.list_for_student(student_id)


@router.post("", response_model=PerformanceResponse, status_code=status.HTTP_201_CREATED, summary="Add an assessment result")
@limiter.limit("120/minute")
async def add_result(
    request: Request,
    create_request: PerformanceCreateRequest,
    user: User = Depends(require("performance:create")),
    service: PerformanceService = Depends(get_performance_service)
):
    try:
        return await service.add_result(**create_request.model_dump())
    except ServiceError as e:
        raise to_http_exception(e)
