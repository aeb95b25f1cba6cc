# solo_hunter/services/note_service.py

import logging
from typing import Optional

from solo_hunter.core.models import Note
from solo_hunter.services.rate_limiter import RateLimits
from solo_hunter.services.user_data import UserDataManager

logger = logging.getLogger(__name__)


class NoteService:
    """Архив записей охотника с ограничением частоты создания"""

    def __init__(self, data: UserDataManager, rate_limits: Optional[RateLimits] = None):
        self.data = data
        self.rate_limits = rate_limits or RateLimits()

    async def create_note(self, title: str, content: str, **kwargs) -> Note:
        user_id = self.data.require_user()
        self.rate_limits.note_create.check(user_id)
        return await self.data.create_note(title, content, **kwargs)


__all__ = ['NoteService']
