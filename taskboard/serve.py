"""Run the REST and RPC transports in one process.

Both share one store and one token revocation set, so a token revoked over
REST is rejected over RPC too (until the process restarts).

    python -m taskboard.serve [--transport both|rest|rpc]
"""
import argparse
import asyncio
import logging

import uvicorn

from taskboard.config import settings
from taskboard.dependencies import build_context
from taskboard.logging_config import configure_logging
from taskboard.main import create_app
from taskboard.rpc.server import create_server

logger = logging.getLogger(__name__)


async def serve(transport: str = "both"):
    context = build_context()
    await context.store.init()

    rpc_server = None
    try:
        if transport in ("both", "rpc"):
            rpc_server, port = create_server(context, f"{settings.GRPC_HOST}:{settings.GRPC_PORT}")
            await rpc_server.start()
            logger.info("[RPC] Server running on port %s", port)

        if transport in ("both", "rest"):
            config = uvicorn.Config(
                create_app(context, manage_store=False),
                host=settings.REST_HOST,
                port=settings.REST_PORT,
                log_level=settings.LOG_LEVEL.lower(),
            )
            await uvicorn.Server(config).serve()
        elif rpc_server is not None:
            await rpc_server.wait_for_termination()
    finally:
        if rpc_server is not None:
            await rpc_server.stop(grace=5)
        await context.store.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the Taskboard REST and RPC servers")
    parser.add_argument("--transport", choices=["both", "rest", "rpc"], default="both")
    args = parser.parse_args(argv)

    configure_logging()
    asyncio.run(serve(args.transport))


if __name__ == "__main__":
    main()
