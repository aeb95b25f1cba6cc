import logging
from typing import List

from fastapi import APIRouter, Depends

from solo_hunter.server.db import UserRecord
from solo_hunter.server.dependencies import get_current_user, get_rate_limits, get_storage
from solo_hunter.server.schemas import NoteCreate, NoteResponse, NoteUpdate, SuccessResponse
from solo_hunter.server.storage import Storage
from solo_hunter.services.rate_limiter import RateLimits

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notes", tags=["notes"])


@router.get("", response_model=List[NoteResponse])
async def list_notes(
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    notes = await storage.list_notes(user.id)
    return [NoteResponse.model_validate(n) for n in notes]


@router.post("", response_model=NoteResponse, status_code=201)
async def create_note(
    data: NoteCreate,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    rate_limits: RateLimits = Depends(get_rate_limits),
):
    rate_limits.note_create.check(user.firebase_uid)
    note = await storage.create_note(user.id, data)
    logger.info(f"📝 Запись {note.id} создана для {user.id}")
    return NoteResponse.model_validate(note)


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    note = await storage.update_note(user.id, note_id, data)
    return NoteResponse.model_validate(note)


@router.delete("/{note_id}", response_model=SuccessResponse)
async def delete_note(
    note_id: str,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    if await storage.delete_note(user.id, note_id):
        logger.info(f"🗑️ Запись {note_id} удалена")
    return SuccessResponse()
