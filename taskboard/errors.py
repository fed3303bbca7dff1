"""Error taxonomy shared by the service layer and both transports.

Every business failure is raised as a ``ServiceError`` subclass. The adapters
translate it 1:1 into their native representation through ``ErrorCode``:
an HTTP status plus ``{code, error, message}`` body for REST, a gRPC status
code plus details for RPC.
"""
import enum
import logging
from contextlib import contextmanager
from http import HTTPStatus

import grpc

logger = logging.getLogger(__name__)


class ErrorCode(enum.Enum):
    INVALID_ARGUMENT = ("InvalidArgument", HTTPStatus.BAD_REQUEST, grpc.StatusCode.INVALID_ARGUMENT)
    UNAUTHENTICATED = ("Unauthenticated", HTTPStatus.UNAUTHORIZED, grpc.StatusCode.UNAUTHENTICATED)
    NOT_FOUND = ("NotFound", HTTPStatus.NOT_FOUND, grpc.StatusCode.NOT_FOUND)
    ALREADY_EXISTS = ("AlreadyExists", HTTPStatus.CONFLICT, grpc.StatusCode.ALREADY_EXISTS)
    INTERNAL = ("Internal", HTTPStatus.INTERNAL_SERVER_ERROR, grpc.StatusCode.INTERNAL)

    def __init__(self, label: str, http_status: HTTPStatus, grpc_status: grpc.StatusCode):
        self.label = label
        self.http_status = http_status
        self.grpc_status = grpc_status


class ServiceError(Exception):
    code: ErrorCode = ErrorCode.INTERNAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgumentError(ServiceError):
    code = ErrorCode.INVALID_ARGUMENT


class UnauthenticatedError(ServiceError):
    code = ErrorCode.UNAUTHENTICATED


class NotFoundError(ServiceError):
    code = ErrorCode.NOT_FOUND


class AlreadyExistsError(ServiceError):
    code = ErrorCode.ALREADY_EXISTS


class InternalError(ServiceError):
    code = ErrorCode.INTERNAL


class StoreError(Exception):
    """Raised by store backends; never crosses a transport boundary."""


class DuplicateKeyError(StoreError):
    pass


@contextmanager
def store_errors(message: str):
    """Translate backend failures into ``InternalError`` with a client-safe message."""
    try:
        yield
    except DuplicateKeyError:
        raise
    except StoreError as exc:
        logger.error("[STORE] %s: %s", message, exc)
        raise InternalError(message) from exc
