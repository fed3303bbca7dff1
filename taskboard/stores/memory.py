from dataclasses import replace
from datetime import datetime
from itertools import count

from taskboard.errors import DuplicateKeyError
from taskboard.stores.base import Store, TaskRecord, UserRecord


class MemoryStore(Store):
    """Process-local store for tests and throwaway servers."""

    def __init__(self):
        self._users: dict[int, UserRecord] = {}
        self._tasks: dict[int, TaskRecord] = {}
        self._user_ids = count(1)
        self._task_ids = count(1)

    async def create_user(self, username: str, password: str, now: datetime) -> UserRecord:
        if any(u.username == username for u in self._users.values()):
            raise DuplicateKeyError(f"username {username!r} already exists")
        user = UserRecord(
            id=next(self._user_ids),
            username=username,
            password=password,
            created_at=now,
            updated_at=now,
        )
        self._users[user.id] = user
        return replace(user)

    async def get_user(self, user_id: int) -> UserRecord | None:
        user = self._users.get(user_id)
        return replace(user) if user else None

    async def get_user_by_username(self, username: str) -> UserRecord | None:
        for user in self._users.values():
            if user.username == username:
                return replace(user)
        return None

    async def list_users(self) -> list[UserRecord]:
        return [replace(u) for u in self._users.values()]

    async def update_user_password(self, user_id: int, password: str, now: datetime) -> UserRecord | None:
        user = self._users.get(user_id)
        if user is None:
            return None
        user.password = password
        user.updated_at = now
        return replace(user)

    async def delete_user(self, user_id: int) -> bool:
        if self._users.pop(user_id, None) is None:
            return False
        for task_id in [t.id for t in self._tasks.values() if t.user_id == user_id]:
            del self._tasks[task_id]
        return True

    async def create_task(self, title: str, description: str | None, status: str, user_id: int,
                          now: datetime) -> TaskRecord:
        task = TaskRecord(
            id=next(self._task_ids),
            title=title,
            description=description,
            status=status,
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )
        self._tasks[task.id] = task
        return replace(task)

    async def get_task(self, task_id: int) -> TaskRecord | None:
        task = self._tasks.get(task_id)
        return replace(task) if task else None

    async def list_tasks(self, user_id: int | None = None, status: str | None = None) -> list[TaskRecord]:
        tasks = [
            t for t in self._tasks.values()
            if (user_id is None or t.user_id == user_id) and (status is None or t.status == status)
        ]
        tasks.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        return [replace(t) for t in tasks]

    async def update_task(self, task_id: int, changes: dict, now: datetime) -> TaskRecord | None:
        task = self._tasks.get(task_id)
        if task is None:
            return None
        for key, value in changes.items():
            setattr(task, key, value)
        task.updated_at = now
        return replace(task)

    async def delete_task(self, task_id: int) -> bool:
        return self._tasks.pop(task_id, None) is not None
