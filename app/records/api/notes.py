from fastapi import APIRouter, Depends, status
from typing import List
from uuid import UUID

from ..services.records_service import NoteService
from ..services.errors import ServiceError
from ..models.db_models import User
from .schemas.records import NoteCreateRequest, NoteUpdateRequest, NoteResponse
from .schemas.common import MessageResponse
from .auth import get_current_user
from .dependencies import get_note_service
from .utilities.errors import to_http_exception

# Notes are private: every route works on the caller's own notes only.
router = APIRouter(prefix="/notes", tags=["Notes"])


@router.get("", response_model=List[NoteResponse], summary="List my notes, pinned first")
async def get_notes(user: User = Depends(get_current_user), service: NoteService = Depends(get_note_service)):
    return await service.list_notes(user.id)


@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED, summary="Create a note")
async def create_note(
    create_request: NoteCreateRequest,
    user: User = Depends(get_current_user),
    service: NoteService = Depends(get_note_service)
):
    try:
        return await service.create_note(user.id, **create_request.model_dump())
    except ServiceError as e:
        raise to_http_exception(e)


@router.put("/{note_id}", response_model=NoteResponse, summary="Update one of my notes")
async def update_note(
    note_id: UUID,
    update_request: NoteUpdateRequest,
    user: User = Depends(get_current_user),
    service: NoteService = Depends(get_note_service)
):
    try:
        return await service.update_note(note_id, user.id, update_request.model_dump(exclude_unset=True))
    except ServiceError as e:
        raise to_http_exception(e)


@router.delete("/{note_id}", response_model=MessageResponse, summary="Delete one of my notes")
async def delete_note(note_id: UUID, user: User = Depends(get_current_user), service: NoteService = Depends(get_note_service)):
    try:
        await service.delete_note(note_id, user.id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Note deleted successfully")
