"""Storage interface shared by the in-memory and SQL backends.

Stores are deliberately dumb: they persist what the service hands them
(hashes, timestamps, validated values) and report failures as
``StoreError``. Every call is a single read or a single-row mutation.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass
class UserRecord:
    id: int
    username: str
    password: str
    created_at: datetime
    updated_at: datetime


@dataclass
class TaskRecord:
    id: int
    title: str
    description: str | None
    status: str
    user_id: int
    created_at: datetime
    updated_at: datetime


class Store(ABC):

    async def init(self) -> None:
        pass

    async def close(self) -> None:
        pass

    # Users

    @abstractmethod
    async def create_user(self, username: str, password: str, now: datetime) -> UserRecord:
        """Raises ``DuplicateKeyError`` when the username is taken."""

    @abstractmethod
    async def get_user(self, user_id: int) -> UserRecord | None: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> UserRecord | None: ...

    @abstractmethod
    async def list_users(self) -> list[UserRecord]: ...

    @abstractmethod
    async def update_user_password(self, user_id: int, password: str, now: datetime) -> UserRecord | None: ...

    @abstractmethod
    async def delete_user(self, user_id: int) -> bool:
        """Deletes the user and, by cascade, every task it owns."""

    # Tasks

    @abstractmethod
    async def create_task(self, title: str, description: str | None, status: str, user_id: int,
                          now: datetime) -> TaskRecord: ...

    @abstractmethod
    async def get_task(self, task_id: int) -> TaskRecord | None: ...

    @abstractmethod
    async def list_tasks(self, user_id: int | None = None, status: str | None = None) -> list[TaskRecord]:
        """Newest first (created_at, then id, descending)."""

    @abstractmethod
    async def update_task(self, task_id: int, changes: dict, now: datetime) -> TaskRecord | None: ...

    @abstractmethod
    async def delete_task(self, task_id: int) -> bool: ...


def build_store(backend: str, database_url: str | None = None) -> Store:
    if backend == "memory":
        from taskboard.stores.memory import MemoryStore
        return MemoryStore()
    if backend == "sql":
        from taskboard.stores.sql import SqlStore
        return SqlStore(database_url)
    raise ValueError(f"Unknown store backend: {backend!r}")
