from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from typing import List, Optional

from ..services.records_service import EventService
from ..services.errors import ServiceError
from ..models.db_models import User
from .schemas.records import EventCreateRequest, EventResponse
from .schemas.common import MessageResponse, parse_day
from .auth import get_current_user, require
from .dependencies import get_event_service
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter
from uuid import UUID

router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=List[EventResponse], summary="List events, optionally within a date range")
async def get_events(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    user: User = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    try:
        start = parse_day(start_date) if start_date else None
        end = parse_day(end_date) if end_date else None
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="startDate and endDate must be ISO-8601 dates")
    return await service.list_events(start, end)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED, summary="Create an event")
@limiter.limit("60/minute")
async def create_event(
    request: Request,
    create_request: EventCreateRequest,
    user: User = Depends(require("event:create")),
    service: EventService = Depends(get_event_service)
):
    try:
        return await service.create_event(creator_id=user.id, **create_request.model_dump())
    except ServiceError as e:
        raise to_http_exception(e)


@router.delete("/{event_id}", response_model=MessageResponse, summary="Delete an event")
@limiter.limit("60/minute")
async def delete_event(
    request: Request,
    event_id: UUID,
    user: User = Depends(require("event:delete")),
    service: EventService = Depends(get_event_service)
):
    try:
        await service.delete_event(event_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Event deleted successfully")
