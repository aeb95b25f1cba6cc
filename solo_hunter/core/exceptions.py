# solo_hunter/core/exceptions.py

"""Иерархия исключений Solo Hunter"""

from typing import Optional


class SoloHunterError(Exception):
    """Базовое исключение приложения"""
    pass


class NotAuthenticatedError(SoloHunterError):
    """Операция без авторизованного пользователя"""

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class NotFoundError(SoloHunterError):
    """Документ не найден или принадлежит другому пользователю"""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection}/{doc_id} not found")


class ValidationError(SoloHunterError):
    """Ошибка валидации данных"""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class ConflictError(SoloHunterError):
    """Нарушение уникальности (например, email уже занят)"""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class RateLimitedError(SoloHunterError):
    """Превышен лимит частоты операций"""

    def __init__(self, action: str, retry_after: float):
        self.action = action
        self.retry_after = retry_after
        super().__init__(
            f"Too many {action} requests, try again in {max(1, round(retry_after))}s"
        )


# ===== ОШИБКИ ХРАНИЛИЩА =====

class StoreError(SoloHunterError):
    """Базовое исключение для ошибок хранилища"""
    pass


class TransientStoreError(StoreError):
    """Временная недоступность хранилища (повторяется один раз)"""
    pass


class PermanentStoreError(StoreError):
    """Неустранимая ошибка хранилища (без повторов)"""
    pass


class StoreCorruptionError(PermanentStoreError):
    """Повреждение файла данных"""
    pass


__all__ = [
    'SoloHunterError',
    'NotAuthenticatedError',
    'NotFoundError',
    'ValidationError',
    'ConflictError',
    'RateLimitedError',
    'StoreError',
    'TransientStoreError',
    'PermanentStoreError',
    'StoreCorruptionError',
]
