from datetime import datetime, timedelta

import httpx
import pytest

from conftest import signup
from taskboard.dependencies import AppContext
from taskboard.errors import DuplicateKeyError
from taskboard.main import create_app
from taskboard.stores.sql import MAX_ID, SqlStore

NOW = datetime(2024, 1, 1, 9, 0, 0)


@pytest.fixture
async def store(tmp_path):
    store = SqlStore(f"sqlite+aiosqlite:///{tmp_path / 'taskboard.db'}")
    await store.init()
    yield store
    await store.close()


async def test_user_round_trip(store):
    user = await store.create_user("a@example.com", "hash", NOW)
    assert user.id == 1
    assert await store.get_user(user.id) == user
    assert await store.get_user_by_username("a@example.com") == user
    assert await store.get_user(99) is None

    with pytest.raises(DuplicateKeyError):
        await store.create_user("a@example.com", "hash", NOW)


async def test_update_and_delete_report_missing_rows(store):
    assert await store.update_user_password(5, "hash", NOW) is None
    assert await store.update_task(5, {"title": "x"}, NOW) is None
    assert await store.delete_user(5) is False
    assert await store.delete_task(5) is False


async def test_update_password(store):
    user = await store.create_user("a@example.com", "old", NOW)
    later = NOW + timedelta(milliseconds=1)
    updated = await store.update_user_password(user.id, "new", later)
    assert (updated.password, updated.updated_at, updated.created_at) == ("new", later, NOW)


async def test_tasks_newest_first(store):
    user = await store.create_user("a@example.com", "hash", NOW)
    first = await store.create_task("First", None, "pending", user.id, NOW)
    second = await store.create_task("Second", "body", "completed", user.id, NOW)
    third = await store.create_task("Third", None, "pending", user.id, NOW + timedelta(seconds=1))

    assert [t.id for t in await store.list_tasks()] == [third.id, second.id, first.id]
    assert [t.id for t in await store.list_tasks(status="completed")] == [second.id]
    assert await store.list_tasks(user_id=user.id + 1) == []


async def test_update_task_changes(store):
    user = await store.create_user("a@example.com", "hash", NOW)
    task = await store.create_task("Title", "body", "pending", user.id, NOW)
    later = NOW + timedelta(seconds=5)

    updated = await store.update_task(task.id, {"description": "", "status": "in_progress"}, later)
    assert (updated.title, updated.description, updated.status) == ("Title", "", "in_progress")
    assert updated.updated_at == later


async def test_delete_user_cascades_to_tasks(store):
    user = await store.create_user("a@example.com", "hash", NOW)
    task = await store.create_task("Owned", None, "pending", user.id, NOW)

    assert await store.delete_user(user.id) is True
    assert await store.get_task(task.id) is None
    assert await store.list_users() == []


@pytest.mark.parametrize("row_id", [MAX_ID + 1, 2**40, 2**63, 2**64])
async def test_ids_beyond_column_range_are_missing(store, row_id):
    user = await store.create_user("a@example.com", "hash", NOW)
    await store.create_task("Kept", None, "pending", user.id, NOW)

    assert await store.get_user(row_id) is None
    assert await store.get_task(row_id) is None
    assert await store.update_user_password(row_id, "hash", NOW) is None
    assert await store.update_task(row_id, {"title": "x"}, NOW) is None
    assert await store.delete_user(row_id) is False
    assert await store.delete_task(row_id) is False
    assert await store.list_tasks(user_id=row_id) == []
    assert len(await store.list_tasks()) == 1


async def test_rest_ids_beyond_column_range_are_not_found(store):
    app = create_app(AppContext(store=store), manage_store=False)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        _, headers = await signup(client, "big@example.com")

        for path in ("/users/9223372036854775808", "/users/2147483648", "/tasks/18446744073709551616"):
            response = await client.get(path, headers=headers)
            assert response.status_code == 404, path
        assert (await client.delete("/tasks/9223372036854775808", headers=headers)).status_code == 404
