import logging
from dataclasses import dataclass

from taskboard.errors import InvalidArgumentError, NotFoundError, store_errors
from taskboard.stores.base import Store, TaskRecord
from taskboard.utils.timestamps import next_timestamp, utcnow
from taskboard.utils.validation import is_valid_status, parse_id

logger = logging.getLogger(__name__)

INVALID_TASK_ID = "Valid task ID is required"
INVALID_STATUS = "Status must be one of: pending, in_progress, completed"
INVALID_CREATE_STATUS = "Status must be pending, in_progress, or completed"

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass
class TaskPage:
    tasks: list[TaskRecord]
    page: int
    limit: int
    total: int


async def create_task(store: Store, title: str | None, description: str | None, status: str | None,
                      owner_id) -> TaskRecord:
    owner_id = parse_id(owner_id, "Valid user ID is required")
    if not title:
        raise InvalidArgumentError("Title is required and must be at least 1 character long")
    if status and not is_valid_status(status):
        raise InvalidArgumentError(INVALID_CREATE_STATUS)

    with store_errors("Failed to create task"):
        if await store.get_user(owner_id) is None:
            raise NotFoundError("User not found")
        task = await store.create_task(
            title=title,
            description=description or None,
            status=status or "pending",
            user_id=owner_id,
            now=utcnow(),
        )

    logger.info("[TASKS] Created task %s for user %s", task.id, owner_id)
    return task


def _page_value(value, default: int) -> int:
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


async def list_tasks(store: Store, owner_id=None, status: str | None = None, page=None, limit=None) -> TaskPage:
    """List tasks newest first.

    Unsupported status values are ignored rather than rejected, and a
    non-positive page or limit falls back to the default.
    """
    if owner_id is not None:
        owner_id = parse_id(owner_id, "Invalid user ID format")
    page = _page_value(page, DEFAULT_PAGE)
    limit = min(_page_value(limit, DEFAULT_LIMIT), MAX_LIMIT)

    with store_errors("Failed to fetch tasks"):
        tasks = await store.list_tasks(
            user_id=owner_id,
            status=status if is_valid_status(status) else None,
        )

    offset = (page - 1) * limit
    return TaskPage(tasks=tasks[offset:offset + limit], page=page, limit=limit, total=len(tasks))


async def get_task_by_id(store: Store, task_id) -> TaskRecord:
    task_id = parse_id(task_id, INVALID_TASK_ID)
    with store_errors("Failed to fetch task"):
        task = await store.get_task(task_id)
    if task is None:
        raise NotFoundError("Task not found")
    return task


async def update_task(store: Store, task_id, title: str | None = None, description: str | None = None,
                      status: str | None = None) -> TaskRecord:
    """Partial update; ``None`` means "not supplied".

    Compatibility quirk kept on purpose: an empty or blank title counts as
    not supplied, while an empty description is an explicit value that
    clears the text.
    """
    task_id = parse_id(task_id, INVALID_TASK_ID)
    if status and not is_valid_status(status):
        raise InvalidArgumentError(INVALID_STATUS)

    changes = {}
    if title is not None and title.strip() != "":
        changes["title"] = title
    if description is not None:
        changes["description"] = description
    if status:
        changes["status"] = status

    with store_errors("Failed to update task"):
        task = await store.get_task(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        if not changes:
            return task
        updated = await store.update_task(task_id, changes, next_timestamp(task.updated_at))

    if updated is None:
        raise NotFoundError("Task not found")
    return updated


async def delete_task(store: Store, task_id):
    task_id = parse_id(task_id, INVALID_TASK_ID)
    with store_errors("Failed to delete task"):
        deleted = await store.delete_task(task_id)
    if not deleted:
        raise NotFoundError("Task not found")
    logger.info("[TASKS] Deleted task %s", task_id)
