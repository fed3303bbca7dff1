from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.future import select

from taskboard.database import create_tables, make_engine, make_sessionmaker
from taskboard.errors import DuplicateKeyError, StoreError
from taskboard.models.tasks import Task as TaskModel
from taskboard.models.user import User as UserModel
from taskboard.stores.base import Store, TaskRecord, UserRecord

# Primary keys are INTEGER columns (int4 on PostgreSQL); larger ids cannot exist
MAX_ID = 2**31 - 1


def _addressable(row_id: int) -> bool:
    return 0 < row_id <= MAX_ID


def _user_record(user: UserModel) -> UserRecord:
    return UserRecord(
        id=user.id,
        username=user.username,
        password=user.password,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _task_record(task: TaskModel) -> TaskRecord:
    return TaskRecord(
        id=task.id,
        title=task.title,
        description=task.description,
        status=task.status,
        user_id=task.user_id,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


class SqlStore(Store):
    """Relational backend over an async SQLAlchemy engine (PostgreSQL or SQLite)."""

    def __init__(self, database_url: str):
        self.engine = make_engine(database_url)
        self._sessionmaker = make_sessionmaker(self.engine)

    async def init(self) -> None:
        try:
            await create_tables(self.engine)
        except (SQLAlchemyError, OSError) as exc:
            raise StoreError(f"Failed to create tables: {exc}") from exc

    async def close(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def _session(self):
        async with self._sessionmaker() as db:
            try:
                yield db
            except (SQLAlchemyError, OSError, OverflowError) as exc:
                await db.rollback()
                raise StoreError(str(exc)) from exc

    async def create_user(self, username: str, password: str, now: datetime) -> UserRecord:
        async with self._session() as db:
            new_user = UserModel(username=username, password=password, created_at=now, updated_at=now)
            db.add(new_user)
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise DuplicateKeyError(f"username {username!r} already exists") from exc
            await db.refresh(new_user)
            return _user_record(new_user)

    async def get_user(self, user_id: int) -> UserRecord | None:
        if not _addressable(user_id):
            return None
        async with self._session() as db:
            result = await db.execute(select(UserModel).filter(UserModel.id == user_id))
            user = result.scalars().first()
            return _user_record(user) if user else None

    async def get_user_by_username(self, username: str) -> UserRecord | None:
        async with self._session() as db:
            result = await db.execute(select(UserModel).filter(UserModel.username == username))
            user = result.scalars().first()
            return _user_record(user) if user else None

    async def list_users(self) -> list[UserRecord]:
        async with self._session() as db:
            result = await db.execute(select(UserModel).order_by(UserModel.id))
            return [_user_record(u) for u in result.scalars().all()]

    async def update_user_password(self, user_id: int, password: str, now: datetime) -> UserRecord | None:
        if not _addressable(user_id):
            return None
        async with self._session() as db:
            result = await db.execute(
                update(UserModel)
                .where(UserModel.id == user_id)
                .values(password=password, updated_at=now)
            )
            await db.commit()
            if result.rowcount == 0:
                return None
            result = await db.execute(select(UserModel).filter(UserModel.id == user_id))
            user = result.scalars().first()
            return _user_record(user) if user else None

    async def delete_user(self, user_id: int) -> bool:
        if not _addressable(user_id):
            return False
        async with self._session() as db:
            # Owned tasks go with the ON DELETE CASCADE foreign key
            result = await db.execute(delete(UserModel).where(UserModel.id == user_id))
            await db.commit()
            return result.rowcount > 0

    async def create_task(self, title: str, description: str | None, status: str, user_id: int,
                          now: datetime) -> TaskRecord:
        async with self._session() as db:
            new_task = TaskModel(
                title=title,
                description=description,
                status=status,
                user_id=user_id,
                created_at=now,
                updated_at=now,
            )
            db.add(new_task)
            await db.commit()
            await db.refresh(new_task)
            return _task_record(new_task)

    async def get_task(self, task_id: int) -> TaskRecord | None:
        if not _addressable(task_id):
            return None
        async with self._session() as db:
            result = await db.execute(select(TaskModel).filter(TaskModel.id == task_id))
            task = result.scalars().first()
            return _task_record(task) if task else None

    async def list_tasks(self, user_id: int | None = None, status: str | None = None) -> list[TaskRecord]:
        if user_id is not None and not _addressable(user_id):
            return []
        query = select(TaskModel)
        if user_id is not None:
            query = query.filter(TaskModel.user_id == user_id)
        if status is not None:
            query = query.filter(TaskModel.status == status)
        query = query.order_by(TaskModel.created_at.desc(), TaskModel.id.desc())

        async with self._session() as db:
            result = await db.execute(query)
            return [_task_record(t) for t in result.scalars().all()]

    async def update_task(self, task_id: int, changes: dict, now: datetime) -> TaskRecord | None:
        if not _addressable(task_id):
            return None
        async with self._session() as db:
            result = await db.execute(
                update(TaskModel)
                .where(TaskModel.id == task_id)
                .values(**changes, updated_at=now)
            )
            await db.commit()
            if result.rowcount == 0:
                return None
            result = await db.execute(select(TaskModel).filter(TaskModel.id == task_id))
            task = result.scalars().first()
            return _task_record(task) if task else None

    async def delete_task(self, task_id: int) -> bool:
        if not _addressable(task_id):
            return False
        async with self._session() as db:
            result = await db.execute(delete(TaskModel).where(TaskModel.id == task_id))
            await db.commit()
            return result.rowcount > 0
