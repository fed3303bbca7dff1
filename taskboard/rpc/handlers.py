"""gRPC servicers.

Each servicer method decodes its request message, calls the same service
function the REST routers call, and builds the response message. Failures
are raised as ``ServiceError`` and turned into status codes by
``taskboard.rpc.server``.
"""
import logging

from taskboard.dependencies import AppContext
from taskboard.rpc import schema
from taskboard.services import auth as auth_service
from taskboard.services import tasks as task_service
from taskboard.services import users as user_service
from taskboard.services.auth import TokenClaims
from taskboard.stores.base import TaskRecord, UserRecord
from taskboard.utils.timestamps import format_timestamp

logger = logging.getLogger(__name__)

OK = 0


def _status(message: str):
    return schema.Status(code=OK, message=message)


def _optional(request, field: str):
    """Value of a field the client actually set, else ``None``."""
    return getattr(request, field) if request.HasField(field) else None


def _user_message(user: UserRecord):
    return schema.User(
        id=user.id,
        username=user.username,
        created_at=format_timestamp(user.created_at),
        updated_at=format_timestamp(user.updated_at),
    )


def _task_message(task: TaskRecord):
    fields = dict(
        id=task.id,
        title=task.title,
        status=task.status,
        user_id=task.user_id,
        created_at=format_timestamp(task.created_at),
        updated_at=format_timestamp(task.updated_at),
    )
    if task.description is not None:
        fields["description"] = task.description
    return schema.Task(**fields)


def bearer_token(context) -> str | None:
    for key, value in context.invocation_metadata() or ():
        if key == "authorization":
            scheme, _, token = value.partition(" ")
            return token.strip() if scheme.lower() == "bearer" else None
    return None


class _Servicer:
    def __init__(self, app_context: AppContext):
        self.app_context = app_context

    @property
    def store(self):
        return self.app_context.store

    def authorize(self, context) -> TokenClaims:
        return self.app_context.issuer.verify(bearer_token(context))


class AuthServicer(_Servicer):

    async def Login(self, request, context):
        token = await auth_service.authenticate(
            self.store, self.app_context.issuer, request.username, request.password
        )
        return schema.LoginResponse(token=token, status=_status("Login successful"))

    async def Logout(self, request, context):
        auth_service.logout(self.app_context.issuer, request.token)
        return schema.LogoutResponse()


class UserServicer(_Servicer):

    async def CreateUser(self, request, context):
        user = await user_service.create_user(self.store, request.email, request.password)
        return schema.UserResponse(user=_user_message(user), status=_status("User created successfully"))

    async def GetUsers(self, request, context):
        self.authorize(context)
        users = await user_service.list_users(self.store)
        return schema.GetUsersResponse(
            users=[_user_message(u) for u in users],
            status=_status("Users fetched successfully"),
        )

    async def GetUser(self, request, context):
        self.authorize(context)
        user = await user_service.get_user(self.store, request.user_id)
        return schema.UserResponse(user=_user_message(user), status=_status("User fetched successfully"))

    async def UpdateUser(self, request, context):
        self.authorize(context)
        user = await user_service.update_user(self.store, request.user_id, request.password)
        return schema.UserResponse(user=_user_message(user), status=_status("User updated successfully"))

    async def DeleteUser(self, request, context):
        self.authorize(context)
        await user_service.delete_user(self.store, request.user_id)
        return schema.DeleteUserResponse(status=_status("User deleted successfully"))


class TaskServicer(_Servicer):

    async def CreateTask(self, request, context):
        self.authorize(context)
        task = await task_service.create_task(
            self.store,
            request.title,
            _optional(request, "description"),
            _optional(request, "status"),
            request.user_id,
        )
        fields = dict(
            success=True,
            message="Task created successfully",
            task_id=task.id,
            title=task.title,
            status=task.status,
            status_info=_status("Task created successfully"),
        )
        if task.description is not None:
            fields["description"] = task.description
        return schema.CreateTaskResponse(**fields)

    async def GetTasks(self, request, context):
        self.authorize(context)
        # user_id 0 (unset) lists every owner's tasks
        result = await task_service.list_tasks(
            self.store,
            owner_id=request.user_id or None,
            status=request.status or None,
            page=request.page or None,
            limit=request.limit or None,
        )
        return schema.GetTasksResponse(
            tasks=[_task_message(t) for t in result.tasks],
            page=result.page,
            limit=result.limit,
            total=result.total,
            status=_status("Tasks fetched successfully"),
        )

    async def GetTask(self, request, context):
        self.authorize(context)
        task = await task_service.get_task_by_id(self.store, request.task_id)
        return schema.TaskResponse(task=_task_message(task), status=_status("Task fetched successfully"))

    async def UpdateTask(self, request, context):
        self.authorize(context)
        task = await task_service.update_task(
            self.store,
            request.task_id,
            title=_optional(request, "title"),
            description=_optional(request, "description"),
            status=_optional(request, "status"),
        )
        return schema.TaskResponse(task=_task_message(task), status=_status("Task updated successfully"))

    async def DeleteTask(self, request, context):
        self.authorize(context)
        await task_service.delete_task(self.store, request.task_id)
        return schema.DeleteTaskResponse(status=_status("Task deleted successfully"))


SERVICERS = {
    "AuthService": AuthServicer,
    "UserService": UserServicer,
    "TaskService": TaskServicer,
}
