import asyncio
import functools
import logging
from typing import Optional

from solo_hunter.config import config
from solo_hunter.core.exceptions import TransientStoreError

logger = logging.getLogger(__name__)


def retry_on_transient(attempts: Optional[int] = None, delay: Optional[float] = None):
    """
    Повтор асинхронной операции при временной недоступности хранилища.

    Повторяется только TransientStoreError; остальные ошибки пробрасываются сразу.
    Значения по умолчанию берутся из config.store в момент вызова.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            retries = config.store.retry_attempts if attempts is None else attempts
            pause = config.store.retry_delay_seconds if delay is None else delay

            for attempt in range(retries + 1):
                try:
                    return await func(*args, **kwargs)
                except TransientStoreError as e:
                    if attempt >= retries:
                        logger.error(f"❌ {func.__name__}: хранилище недоступно после {attempt + 1} попыток: {e}")
                        raise
                    logger.warning(f"🔄 {func.__name__}: попытка {attempt + 1} не удалась ({e}), повтор через {pause}с")
                    await asyncio.sleep(pause)
        return wrapper
    return decorator


__all__ = ['retry_on_transient']
