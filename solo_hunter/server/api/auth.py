from fastapi import APIRouter, Depends

from solo_hunter.core.exceptions import NotFoundError
from solo_hunter.server.dependencies import get_storage
from solo_hunter.server.schemas import UserResponse, UserUpsert
from solo_hunter.server.storage import Storage

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/user", response_model=UserResponse, response_model_by_alias=True)
async def upsert_user(data: UserUpsert, storage: Storage = Depends(get_storage)):
    """
    Найти пользователя по firebaseUid или создать нового
    """
    user = await storage.upsert_user(data)
    return UserResponse.model_validate(user)


@router.get("/user/{firebase_uid}", response_model=UserResponse, response_model_by_alias=True)
async def get_user(firebase_uid: str, storage: Storage = Depends(get_storage)):
    user = await storage.get_user_by_firebase_uid(firebase_uid)
    if user is None:
        raise NotFoundError("users", firebase_uid)
    return UserResponse.model_validate(user)
