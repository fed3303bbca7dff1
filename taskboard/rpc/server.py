import functools
import logging

import grpc

from taskboard.dependencies import AppContext
from taskboard.errors import ServiceError
from taskboard.rpc import schema
from taskboard.rpc.handlers import SERVICERS

logger = logging.getLogger(__name__)


def _translate_errors(method_name: str, behavior):
    @functools.wraps(behavior)
    async def wrapper(request, context):
        try:
            return await behavior(request, context)
        except ServiceError as exc:
            await context.abort(exc.code.grpc_status, exc.message)
        except Exception:
            logger.exception("[RPC] Unhandled error in %s", method_name)
            await context.abort(grpc.StatusCode.INTERNAL, "Internal Server Error")
    return wrapper


def build_handlers(app_context: AppContext) -> list[grpc.GenericRpcHandler]:
    handlers = []
    for service_name, methods in schema.SERVICES.items():
        servicer = SERVICERS[service_name](app_context)
        method_handlers = {}
        for method_name, (request_name, response_name) in methods.items():
            request_class = schema.MESSAGE_CLASSES[request_name]
            response_class = schema.MESSAGE_CLASSES[response_name]
            method_handlers[method_name] = grpc.unary_unary_rpc_method_handler(
                _translate_errors(f"{service_name}.{method_name}", getattr(servicer, method_name)),
                request_deserializer=request_class.FromString,
                response_serializer=response_class.SerializeToString,
            )
        handlers.append(
            grpc.method_handlers_generic_handler(f"{schema.PACKAGE}.{service_name}", method_handlers)
        )
    return handlers


def create_server(app_context: AppContext, address: str) -> tuple[grpc.aio.Server, int]:
    """Build (but do not start) the RPC server; returns it with the bound port."""
    server = grpc.aio.server()
    server.add_generic_rpc_handlers(build_handlers(app_context))
    port = server.add_insecure_port(address)
    logger.info("[RPC] Bound to %s (port %s)", address, port)
    return server, port
