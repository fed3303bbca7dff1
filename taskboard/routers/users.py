from fastapi import APIRouter, Depends, Response, status

from taskboard.dependencies import get_current_user, get_store
from taskboard.schemas.user import UserCreate, UserResponse, UserUpdate
from taskboard.services import users as user_service
from taskboard.stores.base import Store

router = APIRouter(prefix="/users", tags=["users"])

@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(user: UserCreate, store: Store = Depends(get_store)):
    return await user_service.create_user(store, user.email, user.password)

@router.get("", response_model=list[UserResponse], dependencies=[Depends(get_current_user)])
async def list_users(store: Store = Depends(get_store)):
    return await user_service.list_users(store)

@router.get("/{user_id}", response_model=UserResponse, dependencies=[Depends(get_current_user)])
async def get_user(user_id: str, store: Store = Depends(get_store)):
    return await user_service.get_user(store, user_id)

@router.api_route("/{user_id}", methods=["PUT", "PATCH"], response_model=UserResponse,
                  dependencies=[Depends(get_current_user)])
async def update_user(user_id: str, user_update: UserUpdate, store: Store = Depends(get_store)):
    return await user_service.update_user(store, user_id, user_update.password)

@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(get_current_user)])
async def delete_user(user_id: str, store: Store = Depends(get_store)):
    await user_service.delete_user(store, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
