"""Protobuf schema of the RPC transport.

Messages and services are defined in ``taskboard.proto`` next to this module
and compiled at import time with ``grpc.protos``.
"""
import grpc

PROTO_PATH = "taskboard/rpc/taskboard.proto"

protos = grpc.protos(PROTO_PATH)

PACKAGE = protos.DESCRIPTOR.package

Status = protos.Status
User = protos.User
Task = protos.Task

LoginRequest = protos.LoginRequest
LoginResponse = protos.LoginResponse
LogoutRequest = protos.LogoutRequest
LogoutResponse = protos.LogoutResponse

CreateUserRequest = protos.CreateUserRequest
GetUsersRequest = protos.GetUsersRequest
GetUsersResponse = protos.GetUsersResponse
GetUserRequest = protos.GetUserRequest
UpdateUserRequest = protos.UpdateUserRequest
DeleteUserRequest = protos.DeleteUserRequest
DeleteUserResponse = protos.DeleteUserResponse
UserResponse = protos.UserResponse

CreateTaskRequest = protos.CreateTaskRequest
CreateTaskResponse = protos.CreateTaskResponse
GetTasksRequest = protos.GetTasksRequest
GetTasksResponse = protos.GetTasksResponse
GetTaskRequest = protos.GetTaskRequest
UpdateTaskRequest = protos.UpdateTaskRequest
DeleteTaskRequest = protos.DeleteTaskRequest
DeleteTaskResponse = protos.DeleteTaskResponse
TaskResponse = protos.TaskResponse

MESSAGE_CLASSES = {name: getattr(protos, name) for name in protos.DESCRIPTOR.message_types_by_name}

# service -> {method: (request, response)}
SERVICES = {
    service.name: {
        method.name: (method.input_type.name, method.output_type.name) for method in service.methods
    }
    for service in protos.DESCRIPTOR.services_by_name.values()
}


def method_path(service: str, method: str) -> str:
    return f"/{PACKAGE}.{service}/{method}"
