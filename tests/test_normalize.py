import grpc
import pytest

from taskboard.harness.normalize import (
    Envelope, RestRaw, RpcRaw, canonicalize, normalize_rest, normalize_rpc, project_message,
)
from taskboard.harness.outcomes import Outcome, outcome_for_http, outcome_for_rpc
from taskboard.rpc import schema


def _task(**fields):
    defaults = dict(
        id=3, title="T", status="pending", user_id=1,
        created_at="2024-05-01T12:00:00.000Z", updated_at="2024-05-01T12:00:00.000Z",
    )
    return schema.Task(**{**defaults, **fields})


def test_projection_keeps_presence_and_stringifies_int64():
    record = project_message(_task())
    assert record["id"] == "3"
    assert record["user_id"] == "1"
    assert record["description"] is None

    record = project_message(_task(description=""))
    assert record["description"] == ""


def test_projection_of_repeated_and_nested_messages():
    response = schema.GetTasksResponse(tasks=[_task()], page=1, limit=10, total=1,
                                       status=schema.Status(code=0, message="ok"))
    record = project_message(response)
    assert record["page"] == 1
    assert record["status"] == {"code": 0, "message": "ok"}
    assert record["tasks"][0]["title"] == "T"

    empty = project_message(schema.GetTasksResponse())
    assert empty["tasks"] == []
    assert empty["status"] is None


def test_canonicalize_renames_and_coerces():
    record = canonicalize({"task_id": "12", "user_id": "4", "created_at": "2024-05-01 12:00:00", "title": "7"})
    assert record == {"taskId": 12, "userId": 4, "createdAt": "2024-05-01T12:00:00.000Z", "title": "7"}


def test_envelopes():
    assert Envelope(unwrap="user").open({"user": {"id": 1}, "status": {}}) == {"id": 1}
    assert Envelope(drop=("status",)).open({"token": "t", "status": {}}) == {"token": "t"}
    assert Envelope().open([1, 2]) == [1, 2]


def test_normalize_rpc_success_and_no_content():
    user = schema.User(id=5, username="a@example.com", created_at="2024-05-01T12:00:00.000Z",
                       updated_at="2024-05-01T12:00:00.000Z")
    raw = RpcRaw(grpc.StatusCode.OK, schema.UserResponse(user=user, status=schema.Status(code=0)))
    normalized = normalize_rpc("get_user", raw)
    assert normalized.outcome is Outcome.SUCCESS
    assert normalized.record == {
        "id": 5,
        "username": "a@example.com",
        "createdAt": "2024-05-01T12:00:00.000Z",
        "updatedAt": "2024-05-01T12:00:00.000Z",
    }

    deleted = normalize_rpc("delete_task", RpcRaw(grpc.StatusCode.OK, schema.DeleteTaskResponse(
        status=schema.Status(code=0, message="Task deleted successfully"))))
    assert deleted.outcome is Outcome.NO_CONTENT
    assert deleted.record == {}


def test_normalize_errors_keep_message_only():
    rest = normalize_rest("get_task", RestRaw(404, {"code": 404, "error": "Not Found", "message": "Task not found"}))
    rpc = normalize_rpc("get_task", RpcRaw(grpc.StatusCode.NOT_FOUND, None, "Task not found"))

    assert rest.outcome is rpc.outcome is Outcome.NOT_FOUND
    assert rest.record == rpc.record == {}
    assert rest.message == rpc.message == "Task not found"
    assert (rest.status, rpc.status) == ("404", "NOT_FOUND")


def test_normalize_rest_no_content():
    normalized = normalize_rest("delete_user", RestRaw(204, None))
    assert normalized.outcome is Outcome.NO_CONTENT
    assert normalized.record == {}


@pytest.mark.parametrize("http,rpc,outcome", [
    (200, grpc.StatusCode.OK, Outcome.SUCCESS),
    (400, grpc.StatusCode.INVALID_ARGUMENT, Outcome.INVALID_ARGUMENT),
    (401, grpc.StatusCode.UNAUTHENTICATED, Outcome.UNAUTHENTICATED),
    (404, grpc.StatusCode.NOT_FOUND, Outcome.NOT_FOUND),
    (409, grpc.StatusCode.ALREADY_EXISTS, Outcome.ALREADY_EXISTS),
    (500, grpc.StatusCode.INTERNAL, Outcome.INTERNAL),
])
def test_status_table(http, rpc, outcome):
    assert outcome_for_http(http) is outcome
    assert outcome_for_rpc(rpc) is outcome


def test_unmapped_statuses():
    assert outcome_for_http(422) is Outcome.UNMAPPED
    assert outcome_for_rpc(grpc.StatusCode.UNAVAILABLE) is Outcome.UNMAPPED
    assert outcome_for_http(201) is Outcome.SUCCESS
    assert outcome_for_http(204) is Outcome.NO_CONTENT


def test_projection_of_nested_repeated_presence():
    response = schema.GetTasksResponse(tasks=[_task(), _task(id=2**40, description="Body")], total=2)
    record = project_message(response)

    first, second = record["tasks"]
    assert first["description"] is None
    assert second["description"] == "Body"
    assert second["id"] == str(2**40)
    assert record["status"] is None
    assert record["page"] is None

    normalized = normalize_rpc("list_tasks", RpcRaw(grpc.StatusCode.OK, response))
    assert normalized.record["tasks"][1]["id"] == 2**40
    assert normalized.record["tasks"][0]["description"] is None


def test_projection_of_every_schema_message():
    for name, message_class in schema.MESSAGE_CLASSES.items():
        record = project_message(message_class())
        assert set(record) == {f.name for f in message_class.DESCRIPTOR.fields}, name
        assert all(value in (None, []) for value in record.values()), name


def test_coerce_leaves_non_ascii_digits_alone():
    assert canonicalize({"id": "²", "total": "-3"}) == {"id": "²", "total": -3}
