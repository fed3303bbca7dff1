"""Transport clients used by the harness.

Both expose ``call(operation, args, token)`` over the same logical
operations and return the raw response; arguments that are absent (or
``None``) are not sent at all, so "not supplied" survives the trip.
"""
import logging

import grpc
import httpx

from taskboard.harness.normalize import RestRaw, RpcRaw
from taskboard.rpc import schema

logger = logging.getLogger(__name__)

# operation -> (method, path, body fields, query fields)
REST_ROUTES = {
    "create_user": ("POST", "/users", ("email", "password"), ()),
    "login": ("POST", "/sessions", ("email", "password"), ()),
    "logout": ("DELETE", "/sessions", (), ()),
    "list_users": ("GET", "/users", (), ()),
    "get_user": ("GET", "/users/{user_id}", (), ()),
    "update_user": ("PUT", "/users/{user_id}", ("password",), ()),
    "delete_user": ("DELETE", "/users/{user_id}", (), ()),
    "create_task": ("POST", "/tasks", ("title", "description", "status"), ()),
    "list_tasks": ("GET", "/tasks", (), ("status", "page", "limit")),
    "get_task": ("GET", "/tasks/{task_id}", (), ()),
    "update_task": ("PATCH", "/tasks/{task_id}", ("title", "description", "status"), ()),
    "delete_task": ("DELETE", "/tasks/{task_id}", (), ()),
}

# operation -> (service, method, {logical argument: request field})
RPC_ROUTES = {
    "create_user": ("UserService", "CreateUser", {"email": "email", "password": "password"}),
    "login": ("AuthService", "Login", {"email": "username", "password": "password"}),
    "logout": ("AuthService", "Logout", {"token": "token"}),
    "list_users": ("UserService", "GetUsers", {}),
    "get_user": ("UserService", "GetUser", {"user_id": "user_id"}),
    "update_user": ("UserService", "UpdateUser", {"user_id": "user_id", "password": "password"}),
    "delete_user": ("UserService", "DeleteUser", {"user_id": "user_id"}),
    "create_task": ("TaskService", "CreateTask", {
        "title": "title", "description": "description", "status": "status", "user_id": "user_id",
    }),
    "list_tasks": ("TaskService", "GetTasks", {
        "user_id": "user_id", "status": "status", "page": "page", "limit": "limit",
    }),
    "get_task": ("TaskService", "GetTask", {"task_id": "task_id"}),
    "update_task": ("TaskService", "UpdateTask", {
        "task_id": "task_id", "title": "title", "description": "description", "status": "status",
    }),
    "delete_task": ("TaskService", "DeleteTask", {"task_id": "task_id"}),
}


class RestClient:
    name = "REST"

    def __init__(self, base_url: str = "http://localhost:5001", http: httpx.AsyncClient | None = None):
        self.http = http or httpx.AsyncClient(base_url=base_url)

    async def close(self):
        await self.http.aclose()

    async def call(self, operation: str, args: dict, token: str | None = None) -> RestRaw:
        method, path, body_fields, query_fields = REST_ROUTES[operation]
        args = {k: v for k, v in args.items() if v is not None}

        if operation == "logout":
            # Logout identifies the session by the bearer token itself
            token = args.get("token", token)

        headers = {"Authorization": f"Bearer {token}"} if token else {}
        url = path.format(**args)
        body = {k: args[k] for k in body_fields if k in args}
        params = {k: args[k] for k in query_fields if k in args}

        response = await self.http.request(
            method,
            url,
            json=body if method in ("POST", "PUT", "PATCH") else None,
            params=params or None,
            headers=headers,
        )
        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = response.text
        logger.debug("[HARNESS] REST %s %s -> %s", method, url, response.status_code)
        return RestRaw(response.status_code, payload)


class RpcClient:
    name = "RPC"

    def __init__(self, target: str = "localhost:50051", channel: grpc.aio.Channel | None = None):
        self.channel = channel or grpc.aio.insecure_channel(target)
        self._stubs = {}

    async def close(self):
        await self.channel.close()

    def _stub(self, service: str, method: str):
        key = (service, method)
        if key not in self._stubs:
            request_name, response_name = schema.SERVICES[service][method]
            self._stubs[key] = self.channel.unary_unary(
                schema.method_path(service, method),
                request_serializer=schema.MESSAGE_CLASSES[request_name].SerializeToString,
                response_deserializer=schema.MESSAGE_CLASSES[response_name].FromString,
            )
        return self._stubs[key]

    async def call(self, operation: str, args: dict, token: str | None = None) -> RpcRaw:
        service, method, fields = RPC_ROUTES[operation]
        request_name, _ = schema.SERVICES[service][method]
        request = schema.MESSAGE_CLASSES[request_name](
            **{fields[k]: v for k, v in args.items() if k in fields and v is not None}
        )
        metadata = (("authorization", f"Bearer {token}"),) if token else None

        try:
            response = await self._stub(service, method)(request, metadata=metadata)
        except grpc.aio.AioRpcError as exc:
            logger.debug("[HARNESS] RPC %s.%s -> %s", service, method, exc.code().name)
            return RpcRaw(exc.code(), None, exc.details())

        logger.debug("[HARNESS] RPC %s.%s -> OK", service, method)
        return RpcRaw(grpc.StatusCode.OK, response)
