"""Scenario catalog.

A scenario is a list of steps run in order against both transports. Step
arguments may hold ``Ref("capture.field")`` placeholders, resolved against
values captured earlier on the *same* transport, so each side reuses its own
server-generated ids and tokens.
"""
from dataclasses import dataclass, field
from typing import Any, Callable

from taskboard.harness.outcomes import Outcome
from taskboard.services.tasks import INVALID_CREATE_STATUS
from taskboard.utils.timestamps import parse_timestamp


@dataclass(frozen=True)
class Ref:
    path: str

    def resolve(self, captures: dict):
        name, _, key = self.path.partition(".")
        value = captures[name]
        for part in key.split(".") if key else ():
            value = value[part]
        return value


def resolve(value, captures: dict):
    if isinstance(value, Ref):
        return value.resolve(captures)
    if isinstance(value, dict):
        return {k: resolve(v, captures) for k, v in value.items()}
    return value


@dataclass
class Step:
    name: str
    operation: str
    args: dict = field(default_factory=dict)
    auth: str | None = None
    expect: Outcome = Outcome.SUCCESS
    capture: str | None = None
    check_values: bool = True
    expect_record: dict = field(default_factory=dict)
    expect_absent: tuple[str, ...] = ()
    expect_message: str | None = None
    checks: list[Callable[[Any, dict], list[str]]] = field(default_factory=list)


@dataclass
class Scenario:
    name: str
    description: str
    steps: list[Step]


def _signup(email: str, password: str = "password123") -> list[Step]:
    return [
        Step("create user", "create_user", {"email": email, "password": password},
             capture="user", expect_absent=("password",)),
        Step("login", "login", {"email": email, "password": password}, capture="session"),
    ]


def _new_task(title: str = "Task", **extra) -> Step:
    args = {"title": title, "user_id": Ref("user.id"), **extra}
    return Step(f"create task {title!r}", "create_task", args, auth="session.token", capture="task")


def updated_after(capture: str) -> Callable[[Any, dict], list[str]]:
    def check(record, captures):
        before = parse_timestamp(captures[capture]["updatedAt"])
        after = parse_timestamp(record["updatedAt"])
        if after <= before:
            return [f"updatedAt did not increase ({record['updatedAt']} <= {captures[capture]['updatedAt']})"]
        return []
    return check


def unchanged(capture: str, *fields: str) -> Callable[[Any, dict], list[str]]:
    def check(record, captures):
        return [
            f"{name} changed from {captures[capture][name]!r} to {record[name]!r}"
            for name in fields
            if record.get(name) != captures[capture][name]
        ]
    return check


def task_count(expected: int) -> Callable[[Any, dict], list[str]]:
    def check(record, captures):
        problems = []
        if record.get("total") != expected:
            problems.append(f"total is {record.get('total')}, expected {expected}")
        if len(record.get("tasks", [])) != expected:
            problems.append(f"{len(record.get('tasks', []))} tasks listed, expected {expected}")
        return problems
    return check


def first_task(**expected) -> Callable[[Any, dict], list[str]]:
    def check(record, captures):
        tasks = record.get("tasks") or [{}]
        return [
            f"tasks[0].{name} is {tasks[0].get(name)!r}, expected {value!r}"
            for name, value in expected.items()
            if tasks[0].get(name) != value
        ]
    return check


CATALOG = [
    Scenario("signup_and_fetch", "Signup, then GetUser returns the same id and never the password", [
        *_signup("signup@example.com"),
        Step("get user", "get_user", {"user_id": Ref("user.id")}, auth="session.token",
             expect_record={"id": Ref("user.id"), "username": "signup@example.com"},
             expect_absent=("password",)),
    ]),
    Scenario("invalid_status_rejected", "Non-empty unknown statuses are rejected on create", [
        *_signup("status@example.com"),
        *[
            Step(f"create task with status {value!r}", "create_task",
                 {"title": "Bad status", "status": value, "user_id": Ref("user.id")},
                 auth="session.token", expect=Outcome.INVALID_ARGUMENT, expect_message=INVALID_CREATE_STATUS)
            for value in ("done", "PENDING", "archived")
        ],
    ]),
    Scenario("delete_task_twice", "Deleting a task twice yields no-content then NotFound", [
        *_signup("delete@example.com"),
        _new_task(),
        Step("delete task", "delete_task", {"task_id": Ref("task.taskId")}, auth="session.token",
             expect=Outcome.NO_CONTENT),
        Step("delete task again", "delete_task", {"task_id": Ref("task.taskId")}, auth="session.token",
             expect=Outcome.NOT_FOUND, expect_message="Task not found"),
    ]),
    Scenario("status_only_update", "A status-only update keeps title and description and bumps updatedAt", [
        *_signup("update@example.com"),
        _new_task("Write report", description="Quarterly numbers"),
        Step("get task", "get_task", {"task_id": Ref("task.taskId")}, auth="session.token", capture="before"),
        Step("update status", "update_task", {"task_id": Ref("task.taskId"), "status": "in_progress"},
             auth="session.token", expect_record={"status": "in_progress"},
             checks=[unchanged("before", "title", "description"), updated_after("before")]),
    ]),
    Scenario("single_task_listing", "One user with one task lists exactly that task", [
        *_signup("a@example.com"),
        _new_task("T", status="pending"),
        Step("list tasks", "list_tasks", {"user_id": Ref("user.id")}, auth="session.token",
             expect_record={"page": 1, "limit": 10, "total": 1},
             checks=[task_count(1), first_task(title="T", status="pending")]),
    ]),
    Scenario("wrong_password", "Bad credentials fail the same way whether or not the email exists", [
        Step("create user", "create_user", {"email": "wrong@example.com", "password": "password123"},
             capture="user"),
        Step("login with wrong password", "login", {"email": "wrong@example.com", "password": "nope-nope"},
             expect=Outcome.UNAUTHENTICATED, expect_message="Invalid email or password"),
        Step("login with unknown email", "login", {"email": "nobody@example.com", "password": "password123"},
             expect=Outcome.UNAUTHENTICATED, expect_message="Invalid email or password"),
    ]),
    Scenario("fetch_after_delete", "A deleted task can be neither fetched nor updated", [
        *_signup("gone@example.com"),
        _new_task(),
        Step("delete task", "delete_task", {"task_id": Ref("task.taskId")}, auth="session.token",
             expect=Outcome.NO_CONTENT),
        Step("get deleted task", "get_task", {"task_id": Ref("task.taskId")}, auth="session.token",
             expect=Outcome.NOT_FOUND, expect_message="Task not found"),
        Step("update deleted task", "update_task", {"task_id": Ref("task.taskId"), "status": "completed"},
             auth="session.token", expect=Outcome.NOT_FOUND, expect_message="Task not found"),
    ]),
    Scenario("field_structure_walk", "Every read and write operation, then the session ends", [
        *_signup("walk@example.com"),
        # Other users may exist on a shared store; compare shape only
        Step("list users", "list_users", auth="session.token", check_values=False,
             expect_absent=("password",)),
        Step("get user", "get_user", {"user_id": Ref("user.id")}, auth="session.token"),
        _new_task("Walk task", description="Every field", status="in_progress"),
        Step("list tasks", "list_tasks", {"user_id": Ref("user.id")}, auth="session.token",
             checks=[task_count(1)]),
        Step("get task", "get_task", {"task_id": Ref("task.taskId")}, auth="session.token"),
        Step("logout", "logout", {"token": Ref("session.token")}, expect=Outcome.NO_CONTENT),
        Step("use revoked token", "get_user", {"user_id": Ref("user.id")}, auth="session.token",
             expect=Outcome.UNAUTHENTICATED, expect_message="Token has been revoked"),
        Step("logout again", "logout", {"token": Ref("session.token")},
             expect=Outcome.UNAUTHENTICATED, expect_message="Token has been revoked"),
    ]),
    Scenario("error_handling", "Validation, duplicate and lookup failures map to the same status", [
        *_signup("errors@example.com"),
        Step("login without credentials", "login", {}, expect=Outcome.INVALID_ARGUMENT,
             expect_message="Email and password are required"),
        Step("create task with empty title", "create_task", {"title": "", "user_id": Ref("user.id")},
             auth="session.token", expect=Outcome.INVALID_ARGUMENT,
             expect_message="Title is required and must be at least 1 character long"),
        Step("duplicate signup", "create_user", {"email": "errors@example.com", "password": "password123"},
             expect=Outcome.ALREADY_EXISTS, expect_message="Email already exists"),
        Step("short password", "create_user", {"email": "short@example.com", "password": "abc"},
             expect=Outcome.INVALID_ARGUMENT, expect_message="Password must be at least 6 characters long"),
        Step("unknown user", "get_user", {"user_id": 999999}, auth="session.token",
             expect=Outcome.NOT_FOUND, expect_message="User not found"),
        Step("non-positive user id", "get_user", {"user_id": 0}, auth="session.token",
             expect=Outcome.INVALID_ARGUMENT, expect_message="Invalid user ID"),
        Step("list users without a token", "list_users", expect=Outcome.UNAUTHENTICATED,
             expect_message="Authentication required"),
    ]),
    Scenario("user_lifecycle", "Password update, then deleting the user removes their tasks", [
        *_signup("lifecycle@example.com"),
        _new_task("Owned task"),
        Step("update password", "update_user", {"user_id": Ref("user.id"), "password": "newpassword1"},
             auth="session.token", expect_absent=("password",), capture="updated",
             checks=[updated_after("user")]),
        Step("login with old password", "login",
             {"email": "lifecycle@example.com", "password": "password123"},
             expect=Outcome.UNAUTHENTICATED, expect_message="Invalid email or password"),
        Step("login with new password", "login",
             {"email": "lifecycle@example.com", "password": "newpassword1"}),
        Step("delete user", "delete_user", {"user_id": Ref("user.id")}, auth="session.token",
             expect=Outcome.NO_CONTENT),
        Step("get deleted user", "get_user", {"user_id": Ref("user.id")}, auth="session.token",
             expect=Outcome.NOT_FOUND, expect_message="User not found"),
        Step("get cascaded task", "get_task", {"task_id": Ref("task.taskId")}, auth="session.token",
             expect=Outcome.NOT_FOUND, expect_message="Task not found"),
    ]),
    Scenario("update_quirks", "Empty title is ignored on update, empty description is applied", [
        *_signup("quirks@example.com"),
        _new_task("Keep me", description="Clear me"),
        Step("update with empty title", "update_task", {"task_id": Ref("task.taskId"), "title": ""},
             auth="session.token", expect_record={"title": "Keep me", "description": "Clear me"}),
        Step("update with empty description", "update_task",
             {"task_id": Ref("task.taskId"), "description": ""},
             auth="session.token", expect_record={"title": "Keep me", "description": ""}),
    ]),
]

SCENARIOS = {scenario.name: scenario for scenario in CATALOG}
