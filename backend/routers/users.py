# routers/users.py — Team members and presence status
from typing import List

from fastapi import APIRouter, Depends

from exceptions import NotFoundError
from schemas import UserCreate, UserStatusUpdate, UserOut, user_out
from storage import Storage, get_storage

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("", response_model=List[UserOut])
async def list_users(store: Storage = Depends(get_storage)):
    return [user_out(u) for u in await store.list_users()]


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: str, store: Storage = Depends(get_storage)):
    user = await store.get_user(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user_out(user)


@router.post("", response_model=UserOut, status_code=201)
async def create_user(data: UserCreate, store: Storage = Depends(get_storage)):
    return user_out(await store.create_user(data))


@router.patch("/{user_id}/status", response_model=UserOut)
async def update_user_status(
    user_id: str,
    data: UserStatusUpdate,
    store: Storage = Depends(get_storage),
):
    return user_out(await store.update_user_status(user_id, data.status))


@router.delete("/{user_id}")
async def delete_user(user_id: str, store: Storage = Depends(get_storage)):
    await store.delete_user(user_id)
    return {"success": True}
