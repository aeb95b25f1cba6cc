import logging
from typing import List

from fastapi import APIRouter, Depends

from solo_hunter.server.db import UserRecord
from solo_hunter.server.dependencies import get_current_user, get_storage
from solo_hunter.server.schemas import (
    CalendarEventCreate, CalendarEventResponse, CalendarEventUpdate, SuccessResponse,
)
from solo_hunter.server.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/calendar-events", tags=["calendar"])


@router.get("", response_model=List[CalendarEventResponse])
async def list_events(
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """
    События календаря текущего пользователя
    """
    events = await storage.list_events(user.id)
    return [CalendarEventResponse.model_validate(e) for e in events]


@router.post("", response_model=CalendarEventResponse, status_code=201)
async def create_event(
    data: CalendarEventCreate,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    event = await storage.create_event(user.id, data)
    logger.info(f"📅 Событие {event.id} создано для {user.id}")
    return CalendarEventResponse.model_validate(event)


@router.put("/{event_id}", response_model=CalendarEventResponse)
async def update_event(
    event_id: str,
    data: CalendarEventUpdate,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    event = await storage.update_event(user.id, event_id, data)
    return CalendarEventResponse.model_validate(event)


@router.delete("/{event_id}", response_model=SuccessResponse)
async def delete_event(
    event_id: str,
    user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """
    Удаление идемпотентно: отсутствующее событие не считается ошибкой
    """
    if await storage.delete_event(user.id, event_id):
        logger.info(f"🗑️ Событие {event_id} удалено")
    return SuccessResponse()
