import grpc
import pytest

from taskboard.rpc import schema


async def _login(rpc, email="rpc@example.com", password="password123"):
    created = await rpc.call("create_user", {"email": email, "password": password})
    assert created.code == grpc.StatusCode.OK, created.details
    login = await rpc.call("login", {"email": email, "password": password})
    assert login.code == grpc.StatusCode.OK, login.details
    return created.message.user, login.message.token


async def test_create_user_envelope(rpc):
    user, _ = await _login(rpc)

    assert user.id > 0
    assert user.username == "rpc@example.com"
    assert user.created_at.endswith("Z")
    assert "password" not in [f.name for f in user.DESCRIPTOR.fields]


async def test_status_codes_match_error_table(rpc):
    await _login(rpc, "taken@example.com")

    duplicate = await rpc.call("create_user", {"email": "taken@example.com", "password": "password123"})
    assert duplicate.code == grpc.StatusCode.ALREADY_EXISTS
    assert duplicate.details == "Email already exists"

    short = await rpc.call("create_user", {"email": "short@example.com", "password": "abc"})
    assert short.code == grpc.StatusCode.INVALID_ARGUMENT

    wrong = await rpc.call("login", {"email": "taken@example.com", "password": "nope-nope"})
    assert wrong.code == grpc.StatusCode.UNAUTHENTICATED
    assert wrong.details == "Invalid email or password"


async def test_calls_require_token_metadata(rpc):
    missing = await rpc.call("list_users", {})
    assert missing.code == grpc.StatusCode.UNAUTHENTICATED
    assert missing.details == "Authentication required"

    _, token = await _login(rpc)
    listed = await rpc.call("list_users", {}, token)
    assert listed.code == grpc.StatusCode.OK
    assert [u.username for u in listed.message.users] == ["rpc@example.com"]


async def test_logout_revokes_token(rpc):
    user, token = await _login(rpc)

    logout = await rpc.call("logout", {"token": token})
    assert logout.code == grpc.StatusCode.OK
    assert logout.message.ByteSize() == 0

    rejected = await rpc.call("get_user", {"user_id": user.id}, token)
    assert rejected.code == grpc.StatusCode.UNAUTHENTICATED
    assert rejected.details == "Token has been revoked"

    empty = await rpc.call("logout", {})
    assert empty.code == grpc.StatusCode.INVALID_ARGUMENT
    assert empty.details == "Token is required"


async def test_task_round_trip(rpc):
    user, token = await _login(rpc)

    created = await rpc.call("create_task", {"title": "T", "status": "pending", "user_id": user.id}, token)
    assert created.code == grpc.StatusCode.OK
    assert created.message.success
    assert not created.message.HasField("description")
    task_id = created.message.task_id

    listed = await rpc.call("list_tasks", {"user_id": user.id}, token)
    assert listed.message.total == 1
    assert listed.message.page == 1
    assert listed.message.limit == 10
    assert listed.message.tasks[0].title == "T"

    updated = await rpc.call("update_task", {"task_id": task_id, "status": "in_progress"}, token)
    assert updated.message.task.status == "in_progress"
    assert updated.message.task.title == "T"
    assert updated.message.task.updated_at > listed.message.tasks[0].updated_at

    deleted = await rpc.call("delete_task", {"task_id": task_id}, token)
    assert deleted.code == grpc.StatusCode.OK
    again = await rpc.call("delete_task", {"task_id": task_id}, token)
    assert again.code == grpc.StatusCode.NOT_FOUND
    assert again.details == "Task not found"


async def test_create_task_for_unknown_owner(rpc):
    _, token = await _login(rpc)
    response = await rpc.call("create_task", {"title": "Orphan", "user_id": 424242}, token)
    assert response.code == grpc.StatusCode.NOT_FOUND
    assert response.details == "User not found"


async def test_update_task_distinguishes_unset_from_empty(rpc):
    user, token = await _login(rpc)
    created = await rpc.call("create_task", {"title": "Keep", "description": "Clear", "user_id": user.id}, token)
    task_id = created.message.task_id

    untouched = await rpc.call("update_task", {"task_id": task_id, "title": ""}, token)
    assert untouched.message.task.title == "Keep"
    assert untouched.message.task.description == "Clear"

    cleared = await rpc.call("update_task", {"task_id": task_id, "description": ""}, token)
    assert cleared.message.task.HasField("description")
    assert cleared.message.task.description == ""


async def test_unknown_method_is_unimplemented(rpc_channel):
    call = rpc_channel.unary_unary(
        "/taskboard.v1.TaskService/Archive",
        request_serializer=schema.GetTaskRequest.SerializeToString,
        response_deserializer=schema.TaskResponse.FromString,
    )
    with pytest.raises(grpc.aio.AioRpcError) as excinfo:
        await call(schema.GetTaskRequest(task_id=1))
    assert excinfo.value.code() == grpc.StatusCode.UNIMPLEMENTED


def test_schema_is_loaded_from_proto_file():
    assert schema.PACKAGE == "taskboard.v1"
    assert schema.protos.DESCRIPTOR.name == schema.PROTO_PATH
    assert schema.User is schema.MESSAGE_CLASSES["User"]
    assert schema.SERVICES["TaskService"]["GetTasks"] == ("GetTasksRequest", "GetTasksResponse")
    assert set(schema.SERVICES) == {"AuthService", "UserService", "TaskService"}
    assert schema.method_path("UserService", "GetUser") == "/taskboard.v1.UserService/GetUser"


def test_scalar_fields_keep_presence():
    task = schema.Task(title="T")
    assert task.HasField("title")
    assert not task.HasField("description")
    task.description = ""
    assert task.HasField("description")
