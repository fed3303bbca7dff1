from dataclasses import asdict

from fastapi import APIRouter, Depends, Query, Response, status

from taskboard.dependencies import get_current_user, get_store
from taskboard.schemas.task import Task as TaskSchema, TaskCreate, TaskCreated, TaskList, TaskUpdate
from taskboard.services import tasks as task_service
from taskboard.services.auth import TokenClaims
from taskboard.stores.base import Store

router = APIRouter(prefix="/tasks", tags=["tasks"])

@router.post("", response_model=TaskCreated, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    store: Store = Depends(get_store),
    current_user: TokenClaims = Depends(get_current_user)
):
    task = await task_service.create_task(
        store, task_data.title, task_data.description, task_data.status, current_user.user_id
    )
    return TaskCreated(
        task_id=task.id,
        title=task.title,
        description=task.description,
        status=task.status,
    )

@router.get("", response_model=TaskList)
async def list_tasks(
    task_status: str | None = Query(None, alias="status"),
    page: str | None = None,
    limit: str | None = None,
    store: Store = Depends(get_store),
    current_user: TokenClaims = Depends(get_current_user)
):
    result = await task_service.list_tasks(store, current_user.user_id, task_status, page, limit)
    return TaskList(page=result.page, limit=result.limit, total=result.total, tasks=[asdict(t) for t in result.tasks])

@router.get("/{task_id}", response_model=TaskSchema, dependencies=[Depends(get_current_user)])
async def get_task(task_id: str, store: Store = Depends(get_store)):
    return await task_service.get_task_by_id(store, task_id)

@router.api_route("/{task_id}", methods=["PUT", "PATCH"], response_model=TaskSchema,
                  dependencies=[Depends(get_current_user)])
async def update_task(task_id: str, update_data: TaskUpdate, store: Store = Depends(get_store)):
    return await task_service.update_task(
        store,
        task_id,
        title=update_data.title,
        description=update_data.description,
        status=update_data.status,
    )

@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(get_current_user)])
async def delete_task(task_id: str, store: Store = Depends(get_store)):
    await task_service.delete_task(store, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
