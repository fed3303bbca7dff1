import logging
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from taskboard.dependencies import AppContext, build_context
from taskboard.errors import ErrorCode, ServiceError
from taskboard.logging_config import configure_logging
from taskboard.routers.auth import router as auth_router
from taskboard.routers.tasks import router as tasks_router
from taskboard.routers.users import router as users_router

logger = logging.getLogger(__name__)


def error_response(status: HTTPStatus, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"code": status.value, "error": status.phrase, "message": message},
    )


def create_app(context: AppContext | None = None, manage_store: bool = True) -> FastAPI:
    """Build the REST transport.

    ``manage_store`` controls whether the lifespan initializes and closes the
    store; it is turned off when another component (the combined server)
    owns the context.
    """
    context = context or build_context()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manage_store:
            await context.store.init()
        logger.info("[REST] Store ready (%s)", type(context.store).__name__)
        yield
        if manage_store:
            await context.store.close()

    app = FastAPI(
        lifespan=lifespan,
        title="Taskboard API",
        description="Users, sessions and tasks over REST, mirrored field-for-field by the gRPC service",
        version="1.0.0",
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex="https?://.*",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceError)
    async def service_exception_handler(request: Request, exc: ServiceError):
        return error_response(exc.code.http_status, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # Malformed input is a 400 on this API, never FastAPI's default 422
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return error_response(ErrorCode.INVALID_ARGUMENT.http_status, message)

    # Global exception handler so unexpected failures keep the {code,error,message} shape
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("[REST] Unhandled error on %s %s", request.method, request.url.path)
        return error_response(ErrorCode.INTERNAL.http_status, "Internal Server Error")

    app.include_router(users_router)
    app.include_router(auth_router)
    app.include_router(tasks_router)

    @app.get("/")
    def root():
        return {"message": "Taskboard API running"}

    return app


configure_logging()
app = create_app()
